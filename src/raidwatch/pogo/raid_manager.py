# src/raidwatch/pogo/raid_manager.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional, Protocol, Union

from raidwatch.config.paths import DEFAULT_BOSSES_FILE, DEFAULT_GYMS_FILE, DEFAULT_SAVE_FILE
from raidwatch.errors import DuplicateKeyError, LoadError, NotFoundError, TimerError
from raidwatch.names.typedefs import SearchResults
from raidwatch.pogo.boss import Boss
from raidwatch.pogo.boss_directory import BossDirectory, BossLookupOptions
from raidwatch.pogo.converters import (
    load_boss_directory,
    load_gym_directory,
    load_raid_map,
    save_raid_map,
)
from raidwatch.pogo.gym import Gym
from raidwatch.pogo.gym_directory import GymDirectory
from raidwatch.pogo.raid import Raid, RaidState, RaidType
from raidwatch.pogo.raid_map import RaidLookupOptions, RaidMap
from raidwatch.util.dates import utc_now

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL = 30

LookupOptions = Optional[Union[Mapping[str, Any], RaidLookupOptions]]


# ---------------------------------------------------------------------------
# Options / listeners
# ---------------------------------------------------------------------------

@dataclass
class RaidManagerOptions:
    """
    - strict: reporting a raid at a gym that already has one fails
    - refresh_interval: seconds between refresh passes (0 disables the timer)
    - auto_start: start the refresh timer during construction
    - auto_save: write the snapshot after every change
    - clock: returns the current aware datetime
    - loop: event loop for the refresh timer (default: the running loop)
    """
    strict: bool = False
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    auto_start: bool = False
    auto_save: bool = True

    bosses_file: Path = DEFAULT_BOSSES_FILE
    gyms_file: Path = DEFAULT_GYMS_FILE
    save_file: Path = DEFAULT_SAVE_FILE

    clock: Callable[[], datetime] = utc_now
    loop: Optional[asyncio.AbstractEventLoop] = None


class RaidChangeType(str, Enum):
    ADDED = "added"
    UPDATED = "updated"
    HATCHED = "hatched"
    ENDED = "ended"
    DELETED = "deleted"


class RaidManagerListener(Protocol):
    def raid_updated(
        self,
        manager: "RaidManager",
        raid: Raid,
        change: RaidChangeType,
        prior: Optional[Raid] = None,
    ) -> None: ...

    def raid_list_updated(self, manager: "RaidManager") -> None: ...


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------

class RaidManager:
    """
    Owns the boss and gym directories and the live raid map.

    Bosses and gyms are loaded at construction (a failure is fatal); the
    last raid snapshot is restored when readable. Every successful change
    is reported to listeners, in registration order, before the call
    returns, and is followed by an auto-save.
    """

    def __init__(self, options: Optional[RaidManagerOptions] = None):
        self.options = options or RaidManagerOptions()
        self._clock = self.options.clock
        self._refresh_interval = self.options.refresh_interval
        self._timer: Optional[asyncio.TimerHandle] = None
        self._listeners: List[RaidManagerListener] = []

        self.bosses: BossDirectory = load_boss_directory(self.options.bosses_file)
        self.gyms: GymDirectory = load_gym_directory(self.options.gyms_file)
        self._raids: RaidMap = self._restore()

        if self.options.auto_start:
            self.start(self._refresh_interval, immediate=True)
        else:
            self.refresh_raid_list()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def strict(self) -> bool:
        return self.options.strict

    @property
    def refresh_interval(self) -> float:
        return self._refresh_interval

    @property
    def raids(self) -> RaidMap:
        return self._raids

    def now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_gyms(self, name: str, options: LookupOptions = None) -> SearchResults[Gym]:
        return self.gyms.lookup(name, options)

    def get_bosses(
        self,
        name: str,
        options: Optional[Union[Mapping[str, Any], BossLookupOptions]] = None,
    ) -> SearchResults[Boss]:
        return self.bosses.lookup(name, options)

    def get_all_raids(self, options: LookupOptions = None) -> List[Raid]:
        raids = self._raids.get_all(options, self.now())
        if not raids:
            raise NotFoundError("No matching raids found")
        return raids

    def get_raids(self, name: str, options: LookupOptions = None) -> List[Raid]:
        gyms = self.gyms.lookup(name, options).all_items()
        if not gyms:
            raise NotFoundError(f"No gyms match {name}")
        return self._raids.get_raids_at_gyms(gyms, options, self.now())

    def get_raid(self, gym: Union[str, Gym], options: LookupOptions = None) -> Raid:
        if isinstance(gym, Gym):
            raids = self._raids.get_raids_at_gyms([gym], options, self.now())
        else:
            raids = self.get_raids(gym, options)
        if not raids:
            raise NotFoundError(f"No raid found matching {gym}")
        return raids[0]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def _resolve_gym(self, gym: Union[str, Gym]) -> Gym:
        if isinstance(gym, Gym):
            return gym
        return self.gyms.lookup(gym).first_item()

    def _resolve_boss(self, boss: Union[str, Boss], tier: Optional[int] = None) -> Boss:
        if isinstance(boss, Boss):
            return boss
        return self.bosses.lookup(boss, {"tier": tier}).first_item()

    def _swap_in(self, raid: Raid) -> Raid:
        if self.strict and self._raids.has(raid):
            raise DuplicateKeyError(f"Raid already reported at {raid.gym.name}")

        prior = self._raids.swap(raid)
        change = RaidChangeType.ADDED if prior is None else RaidChangeType.UPDATED
        self._report_raid_update(raid, change, prior)
        self._report_raid_list_update()
        return raid

    def add_future_raid(
        self,
        start: Union[datetime, float],
        gym: Union[str, Gym],
        tier: int,
        raid_type: Optional[Union[RaidType, str]] = None,
    ) -> Raid:
        """`start` is an absolute hatch time or an egg timer in minutes."""
        raid = Raid.create_future_raid(start, self._resolve_gym(gym), tier, raid_type, now=self.now())
        return self._swap_in(raid)

    def add_active_raid(
        self,
        time_left: float,
        gym: Union[str, Gym],
        boss: Union[str, Boss],
        raid_type: Optional[Union[RaidType, str]] = None,
    ) -> Raid:
        raid = Raid.create_active_raid(
            time_left,
            self._resolve_gym(gym),
            self._resolve_boss(boss),
            raid_type,
            now=self.now(),
        )
        return self._swap_in(raid)

    def update_raid(self, gym: Union[str, Gym], boss: Union[str, Boss]) -> Raid:
        raid = self.get_raid(gym)
        raid.update(self._resolve_boss(boss, raid.tier), now=self.now())
        self._report_raid_update(raid, RaidChangeType.UPDATED)
        self._report_raid_list_update()
        return raid

    def remove_raid(self, gym: Union[str, Gym]) -> Raid:
        raid = self._raids.remove(self.get_raid(gym))
        self._report_raid_update(raid, RaidChangeType.DELETED)
        self._report_raid_list_update()
        return raid

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: RaidManagerListener, immediate: bool = False) -> bool:
        if listener in self._listeners:
            raise DuplicateKeyError("Requested listener already exists")
        self._listeners.append(listener)
        if immediate:
            listener.raid_list_updated(self)
        return True

    def remove_listener(self, listener: RaidManagerListener) -> bool:
        if listener not in self._listeners:
            raise NotFoundError("Requested listener does not exist")
        self._listeners.remove(listener)
        return True

    def _report_raid_update(self, raid: Raid, change: RaidChangeType, prior: Optional[Raid] = None) -> None:
        for listener in list(self._listeners):
            try:
                listener.raid_updated(self, raid, change, prior)
            except Exception:
                logger.exception("Listener %r failed handling %s at %s", listener, change.value, raid.gym.name)

    def _report_raid_list_update(self) -> None:
        for listener in list(self._listeners):
            try:
                listener.raid_list_updated(self)
            except Exception:
                logger.exception("Listener %r failed handling raid list update", listener)
        self._auto_save()

    # ------------------------------------------------------------------
    # Refresh timer
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._timer is not None

    def start(self, interval: Optional[float] = None, immediate: bool = False) -> bool:
        """
        Start refreshing every `interval` seconds. Returns False (and does
        nothing further) when the interval is 0.
        """
        if self._timer is not None:
            raise TimerError("Timer is already running")

        if immediate:
            self.refresh_raid_list()

        if interval is None:
            interval = self._refresh_interval
        if interval <= 0:
            logger.info("Timer not started due to 0 interval")
            return False

        loop = self._event_loop()
        self._refresh_interval = interval
        self._timer = loop.call_later(interval, self._tick)
        logger.info("Timer started with %s second interval", self._refresh_interval)
        return True

    def stop(self) -> bool:
        if self._timer is None:
            raise TimerError("No timer is running")
        self._timer.cancel()
        self._timer = None
        logger.info("Timer stopped")
        return True

    def _event_loop(self) -> asyncio.AbstractEventLoop:
        if self.options.loop is not None:
            return self.options.loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError as e:
            raise TimerError("No event loop available for the refresh timer") from e

    def _schedule(self) -> None:
        self._timer = self._event_loop().call_later(self._refresh_interval, self._tick)

    def _tick(self) -> None:
        # reschedule first so a failing pass does not stop the timer
        self._schedule()
        self.refresh_raid_list()

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def _single_active_boss(self, tier: int, now: datetime) -> Optional[Boss]:
        found = self.bosses.get_all({"tier": tier, "is_active": True, "active_at": now})
        if len(found) != 1:
            return None
        return found[0].item

    def refresh_raid_list(self) -> bool:
        """
        Advance every raid to its current state: hatched eggs get their
        boss when exactly one active boss exists for the tier, expired
        raids are removed. Listeners hear about the pass once, and only if
        something changed. Returns whether anything changed.
        """
        now = self.now()
        changed = False

        for raid in list(self._raids):
            prior = raid.refresh_state(now)
            state = raid.last_state
            changed = changed or prior != state

            if state is RaidState.HATCHED:
                if raid.boss is None:
                    boss = self._single_active_boss(raid.tier, now)
                    if boss is not None:
                        raid.update(boss, now=now)
                        changed = True
                if prior is not RaidState.HATCHED:
                    what = raid.boss.display_name if raid.boss is not None else f"unknown T{raid.tier}"
                    logger.info("Raid egg hatched %s at %s", what, raid.gym.name)

            elif state is RaidState.EXPIRED:
                logger.info("Raid expired at %s", raid.gym.name)
                if self._raids.delete(raid):
                    changed = True
                else:
                    logger.warning("Unable to delete raid at %s", raid.gym.name)

        if changed:
            self._report_raid_list_update()
        return changed

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _restore(self) -> RaidMap:
        path = Path(self.options.save_file)
        if not path.exists():
            logger.info("No raid snapshot at %s, starting empty", path)
            return RaidMap()
        try:
            raids = load_raid_map(path, self.gyms, self.bosses, self.now())
        except LoadError as e:
            logger.warning("Failed to load raid map from %s: %s", path, e)
            return RaidMap()
        logger.info("Restored %d raids from %s", len(raids), path)
        return raids

    def save(self) -> Path:
        return save_raid_map(self._raids, self.options.save_file)

    def _auto_save(self) -> None:
        if not self.options.auto_save:
            return
        try:
            self.save()
        except OSError as e:
            logger.warning("Failed to save raid map to %s: %s", self.options.save_file, e)
