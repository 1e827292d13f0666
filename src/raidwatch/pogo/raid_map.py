# src/raidwatch/pogo/raid_map.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Union

from raidwatch.errors import DuplicateKeyError, NotFoundError, ValidationError
from raidwatch.names.normalize import normalize_name
from raidwatch.names.normalized_map import NormalizedMap
from raidwatch.places.lookup_options import filter_poi, merge_options
from raidwatch.pogo.game import validate_raid_tier
from raidwatch.pogo.gym import Gym
from raidwatch.pogo.gym_directory import GymLookupOptions, gym_filter
from raidwatch.pogo.raid import Raid, RaidState, validate_raid_state


@dataclass
class RaidLookupOptions(GymLookupOptions):
    min_tier: Optional[int] = None
    max_tier: Optional[int] = None
    state_filter: Optional[List[RaidState]] = None

    def __post_init__(self):
        super().__post_init__()
        if self.min_tier is not None:
            self.min_tier = validate_raid_tier(self.min_tier)
        if self.max_tier is not None:
            self.max_tier = validate_raid_tier(self.max_tier)
        if self.state_filter is not None:
            self.state_filter = [validate_raid_state(s) for s in self.state_filter]


def raid_filter(
    raid: Raid,
    options: Optional[RaidLookupOptions] = None,
    now: Optional[datetime] = None,
) -> bool:
    if options is None:
        return True
    min_tier = getattr(options, "min_tier", None)
    max_tier = getattr(options, "max_tier", None)
    state_filter = getattr(options, "state_filter", None)

    if min_tier is not None and raid.tier < min_tier:
        return False
    if max_tier is not None and raid.tier > max_tier:
        return False
    if state_filter is not None and raid.state_at(now) not in state_filter:
        return False
    return gym_filter(raid.gym, options) and filter_poi(raid.gym, options)


RaidTarget = Union[str, Gym, Raid]


class RaidMap:
    """At most one raid per gym, keyed by the gym's normalized name."""

    def __init__(self, raids: Optional[Iterable[Raid]] = None):
        self._map: NormalizedMap[Raid] = NormalizedMap()
        if raids is not None:
            self.add_range(raids)

    def __len__(self) -> int:
        return len(self._map)

    def __iter__(self) -> Iterator[Raid]:
        return iter(list(self._map.values()))

    def __contains__(self, target: object) -> bool:
        return isinstance(target, (str, Gym, Raid)) and self.has(target)

    @staticmethod
    def _key(target: RaidTarget) -> str:
        if isinstance(target, Raid):
            return target.keys.gym_name
        if isinstance(target, Gym):
            return target.primary_key
        return normalize_name(target)

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------

    def add(self, raid: Raid) -> Raid:
        key = raid.keys.gym_name
        if self._map.has(key):
            raise DuplicateKeyError(f"Raid already exists for {raid.gym.name}.")
        return self._map.set(key, raid)

    def add_or_update(self, raid: Raid) -> Raid:
        return self._map.set(raid.keys.gym_name, raid)

    def swap(self, raid: Raid) -> Optional[Raid]:
        """Insert or replace; returns the raid previously at the gym, if any."""
        prior = self._map.try_get(raid.keys.gym_name)
        self._map.set(raid.keys.gym_name, raid)
        return prior

    def add_range(self, raids: Iterable[Raid]) -> List[Raid]:
        batch = list(raids)
        seen = set()
        for raid in batch:
            key = raid.keys.gym_name
            if key in seen or self._map.has(key):
                raise DuplicateKeyError(f"Raid already exists for {raid.gym.name}.")
            seen.add(key)
        return [self._map.set(r.keys.gym_name, r) for r in batch]

    def add_or_update_range(self, raids: Iterable[Raid]) -> List[Raid]:
        return [self.add_or_update(r) for r in raids]

    def set(self, name: str, raid: Raid) -> Raid:
        if normalize_name(name) != raid.keys.gym_name:
            raise ValidationError(f"Mismatched name: got {name} for {raid.gym.name}")
        return self._map.set(name, raid)

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    def has(self, target: RaidTarget) -> bool:
        return self._map.has(self._key(target))

    def try_get(self, target: RaidTarget) -> Optional[Raid]:
        return self._map.try_get(self._key(target))

    get = try_get

    def get_strict(self, target: RaidTarget) -> Raid:
        raid = self.try_get(target)
        if raid is None:
            raise NotFoundError(f"No raid found at {target}.")
        return raid

    def get_raids_at_gyms(
        self,
        gyms: Iterable[Gym],
        options: Optional[Mapping[str, Any] | RaidLookupOptions] = None,
        now: Optional[datetime] = None,
    ) -> List[Raid]:
        """Raids at `gyms` that pass `options`, in the order the gyms were given."""
        effective = merge_options(RaidLookupOptions(), options) if options is not None else None
        found: List[Raid] = []
        for gym in gyms:
            raid = self._map.try_get(gym.primary_key)
            if raid is not None and raid_filter(raid, effective, now):
                found.append(raid)
        return found

    def get_all(
        self,
        options: Optional[Mapping[str, Any] | RaidLookupOptions] = None,
        now: Optional[datetime] = None,
    ) -> List[Raid]:
        """Every raid passing `options`, sorted by hatch time then name."""
        effective = merge_options(RaidLookupOptions(), options) if options is not None else None
        return sorted(r for r in self._map.values() if raid_filter(r, effective, now))

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def remove(self, target: RaidTarget) -> Raid:
        """Remove and return the raid at a gym given by name, Gym or Raid."""
        key = self._key(target)
        raid = self._map.try_get(key)
        if raid is None:
            raise NotFoundError(f"No raid found at {target}.")
        self._map.delete(key)
        return raid

    def delete(self, target: RaidTarget) -> bool:
        return self._map.delete(self._key(target))

    def clear(self) -> None:
        self._map.clear()

    def to_json(self) -> list:
        return [r.to_array() for r in sorted(self._map.values())]
