# src/raidwatch/pogo/raid.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Tuple, Union

from raidwatch.errors import RaidStateError, ValidationError
from raidwatch.pogo.boss import Boss
from raidwatch.pogo.game import validate_raid_tier
from raidwatch.pogo.gym import Gym
from raidwatch.util.dates import DateRange, ensure_aware, format_iso, utc_now


# hatch further away than this (minutes) is a "future" raid, not an egg
MAX_EGG_HATCH_TIME = 60
MAX_NORMAL_RAID_ACTIVE_TIME = 45
MAX_RAID_HOUR_RAID_ACTIVE_TIME = 60

# allowance for reporting a raid right at hatch
HATCH_GRACE_MINUTES = 1


class RaidType(str, Enum):
    NORMAL = "normal"
    RAID_HOUR = "raid-hour"


class RaidState(str, Enum):
    FUTURE = "future"
    EGG = "egg"
    HATCHED = "hatched"
    EXPIRED = "expired"


def validate_raid_type(value: object) -> RaidType:
    if value is None:
        return RaidType.NORMAL
    if isinstance(value, RaidType):
        return value
    if isinstance(value, str):
        try:
            return RaidType(value.strip().lower())
        except ValueError:
            pass
    raise ValidationError(f"Invalid raid type {value!r} (normal/raid-hour)")


def validate_raid_state(value: object) -> RaidState:
    if isinstance(value, RaidState):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        # accept the alternate names some clients use
        text = {"upcoming": "egg", "active": "hatched"}.get(text, text)
        try:
            return RaidState(text)
        except ValueError:
            pass
    raise ValidationError(f"Invalid raid state {value!r}")


def raid_duration(raid_type: Optional[RaidType | str] = None) -> int:
    if validate_raid_type(raid_type) is RaidType.RAID_HOUR:
        return MAX_RAID_HOUR_RAID_ACTIVE_TIME
    return MAX_NORMAL_RAID_ACTIVE_TIME


def validate_raid_times(raid_times: DateRange, raid_type: Optional[RaidType | str] = None) -> DateRange:
    if not isinstance(raid_times, DateRange) or not raid_times.is_explicit:
        raise ValidationError("Raid times must define both start and end")
    got = raid_times.duration_minutes()
    expected = raid_duration(raid_type)
    if got != expected:
        raise ValidationError(f"Invalid raid duration - got {got:g}, expected {expected}.")
    return raid_times


def derive_state(
    raid_times: DateRange,
    now: Optional[datetime] = None,
    raid_type: Optional[RaidType | str] = None,
) -> RaidState:
    """
    Lifecycle state as a pure function of the raid window and `now`:

        hatch - 60m        hatch             hatch + duration
      future  |     egg      |     hatched      |    expired
    """
    validate_raid_times(raid_times, raid_type)
    now = ensure_aware(now) if now is not None else utc_now()

    where = raid_times.check(now)
    if where == "included":
        return RaidState.HATCHED
    if where == "less":
        if raid_times.minutes_until_start(now) > MAX_EGG_HATCH_TIME:
            return RaidState.FUTURE
        return RaidState.EGG
    return RaidState.EXPIRED


# ---------------------------------------------------------------------------
# Raid times
# ---------------------------------------------------------------------------

def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def raid_times_from_hatch(
    hatch: datetime,
    raid_type: Optional[RaidType | str] = None,
    now: Optional[datetime] = None,
    force: bool = False,
) -> DateRange:
    """
    Raid window starting at `hatch`. Unless `force` is set the hatch must be
    at most MAX_EGG_HATCH_TIME minutes ahead and not more than a minute ago.
    """
    hatch = ensure_aware(hatch)
    if not force:
        now = ensure_aware(now) if now is not None else utc_now()
        delta = (hatch - now).total_seconds() / 60.0
        if delta > MAX_EGG_HATCH_TIME:
            raise RaidStateError(
                f"Requested hatch time {format_iso(hatch)} is too far in the future (max {MAX_EGG_HATCH_TIME} minutes)."
            )
        if delta < -HATCH_GRACE_MINUTES:
            raise RaidStateError(f"Requested hatch time {format_iso(hatch)} is in the past.")
    return DateRange.from_start(hatch, raid_duration(raid_type))


def raid_times_from_egg_timer(
    minutes: float,
    raid_type: Optional[RaidType | str] = None,
    now: Optional[datetime] = None,
) -> DateRange:
    if minutes < 1 or minutes > MAX_EGG_HATCH_TIME:
        raise RaidStateError(f"Egg timer {minutes} is out of range (1..{MAX_EGG_HATCH_TIME})")
    now = ensure_aware(now) if now is not None else utc_now()
    return DateRange.from_start(now + timedelta(minutes=minutes), raid_duration(raid_type))


def raid_times_for_active_raid(
    minutes_left: float,
    raid_type: Optional[RaidType | str] = None,
    now: Optional[datetime] = None,
) -> DateRange:
    duration = raid_duration(raid_type)
    if minutes_left < 1 or minutes_left > duration:
        raise RaidStateError(f"Raid timer {minutes_left} is out of range (1..{duration})")
    now = ensure_aware(now) if now is not None else utc_now()
    end = now + timedelta(minutes=minutes_left)
    return DateRange(start=end - timedelta(minutes=duration), end=end)


# ---------------------------------------------------------------------------
# Raid
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RaidKeys:
    name: str
    gym_name: str


class Raid:
    """
    One raid at one gym.

    The gym never changes; tier and boss change through update(). State is
    always derived from `raid_times` and the clock. The last state seen by
    refresh_state() is remembered only so callers can detect transitions.
    """

    def __init__(
        self,
        gym: Gym,
        tier: int,
        raid_times: DateRange,
        boss: Optional[Boss] = None,
        raid_type: Optional[RaidType | str] = None,
        now: Optional[datetime] = None,
    ):
        if not isinstance(gym, Gym):
            raise ValidationError(f"Raid gym must be a Gym, got {type(gym).__name__}")
        self.raid_type: RaidType = validate_raid_type(raid_type)
        self._tier = validate_raid_tier(tier)
        if boss is not None and boss.tier != self._tier:
            raise ValidationError(f"Mismatched tier: {boss.name} is tier {boss.tier} but raid is {self._tier}")

        self.gym = gym
        self.raid_times = validate_raid_times(raid_times, self.raid_type)
        self._boss = boss
        self._state = derive_state(self.raid_times, now, self.raid_type)

        self.keys = RaidKeys(name=gym.primary_key, gym_name=gym.primary_key)

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def create_future_raid(
        cls,
        start_or_timer: Union[datetime, float],
        gym: Gym,
        tier: int,
        raid_type: Optional[RaidType | str] = None,
        now: Optional[datetime] = None,
    ) -> "Raid":
        """`start_or_timer` is an absolute hatch time or an egg timer in minutes."""
        if _is_number(start_or_timer):
            times = raid_times_from_egg_timer(start_or_timer, raid_type, now)
        elif isinstance(start_or_timer, datetime):
            times = raid_times_from_hatch(start_or_timer, raid_type, now)
        else:
            raise ValidationError(f"Invalid raid start {start_or_timer!r}")
        return cls(gym, tier, times, raid_type=raid_type, now=now)

    @classmethod
    def create_active_raid(
        cls,
        time_left: float,
        gym: Gym,
        boss: Boss,
        raid_type: Optional[RaidType | str] = None,
        now: Optional[datetime] = None,
    ) -> "Raid":
        times = raid_times_for_active_raid(time_left, raid_type, now)
        return cls(gym, boss.tier, times, boss=boss, raid_type=raid_type, now=now)

    @classmethod
    def from_hatch(
        cls,
        hatch: datetime,
        gym: Gym,
        tier: int,
        boss: Optional[Boss] = None,
        raid_type: Optional[RaidType | str] = None,
        force: bool = False,
        now: Optional[datetime] = None,
    ) -> "Raid":
        """Rebuild a raid from a stored hatch time; `force` skips the hatch window checks."""
        times = raid_times_from_hatch(hatch, raid_type, now, force=force)
        return cls(gym, tier, times, boss=boss, raid_type=raid_type, now=now)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.gym.name

    @property
    def primary_key(self) -> str:
        return self.keys.name

    @property
    def tier(self) -> int:
        return self._tier

    @property
    def boss(self) -> Optional[Boss]:
        return self._boss

    @property
    def hatch_time(self) -> datetime:
        return self.raid_times.start

    @property
    def expiry_time(self) -> datetime:
        return self.raid_times.end

    @property
    def state(self) -> RaidState:
        return self.state_at()

    def state_at(self, now: Optional[datetime] = None) -> RaidState:
        return derive_state(self.raid_times, now, self.raid_type)

    @property
    def last_state(self) -> RaidState:
        """State as of the last refresh_state() (or construction)."""
        return self._state

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def update(self, boss_or_tier: Union[Boss, int], now: Optional[datetime] = None):
        """
        Set the tier (only while no boss is assigned; returns the old tier)
        or assign a boss of the same tier (only once hatched; returns the
        previous boss).
        """
        if isinstance(boss_or_tier, Boss):
            state = self.state_at(now)
            if state not in (RaidState.HATCHED, RaidState.EXPIRED):
                raise RaidStateError("Cannot assign a boss to a future raid.")
            if boss_or_tier.tier != self._tier:
                raise ValidationError(
                    f"Mismatched tier: {boss_or_tier.name} is tier {boss_or_tier.tier} but raid is {self._tier}"
                )
            prior = self._boss
            self._boss = boss_or_tier
            return prior

        tier = validate_raid_tier(boss_or_tier)
        if self._boss is not None:
            raise RaidStateError("Cannot change tier once a boss is assigned.")
        prior_tier = self._tier
        self._tier = tier
        return prior_tier

    def refresh_state(self, now: Optional[datetime] = None) -> RaidState:
        """Recompute the state; returns the state seen by the previous refresh."""
        prior = self._state
        self._state = self.state_at(now)
        return prior

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def sort_key(self) -> Tuple[datetime, str]:
        return (self.hatch_time, self.primary_key)

    def compare(self, other: "Raid") -> int:
        mine, theirs = self.sort_key(), other.sort_key()
        if mine < theirs:
            return -1
        if mine > theirs:
            return 1
        return 0

    def __lt__(self, other: "Raid") -> bool:
        return self.sort_key() < other.sort_key()

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return self.primary_key

    def __repr__(self) -> str:
        what = self._boss.primary_key if self._boss is not None else f"T{self._tier}"
        return f"Raid({self.primary_key!r}, {what}, hatch={format_iso(self.hatch_time)}, {self.raid_type.value})"

    def to_json(self) -> dict:
        out = {
            "gym": self.gym.primary_key,
            "tier": self._tier,
            "hatch": format_iso(self.hatch_time),
            "type": self.raid_type.value,
        }
        if self._boss is not None:
            out["boss"] = self._boss.primary_key
        return out

    def to_array(self) -> list:
        return [
            format_iso(self.hatch_time),
            self.gym.primary_key,
            self._boss.primary_key if self._boss is not None else self._tier,
            self.raid_type.value,
        ]
