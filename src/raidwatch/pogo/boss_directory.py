# src/raidwatch/pogo/boss_directory.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from raidwatch.errors import DuplicateKeyError, ValidationError
from raidwatch.names.directory import Directory
from raidwatch.names.normalize import normalize_name
from raidwatch.names.typedefs import DirectoryFilter, DirectoryLookupOptions, SearchResult, SearchResults
from raidwatch.places.lookup_options import merge_options
from raidwatch.pogo.boss import Boss, BossStatus
from raidwatch.pogo.game import validate_raid_tier


@dataclass
class BossLookupOptions(DirectoryLookupOptions):
    tier: Optional[int] = None
    is_active: Optional[bool] = None
    # moment used to evaluate is_active; None means "now"
    active_at: Optional[datetime] = None


@dataclass(frozen=True)
class BossNamesByStatus:
    active: BossStatus
    bosses: List[str]


@dataclass
class BossTier:
    """
    One tier of a boss file: the tier, the bosses' property bags (as Boss
    keyword arguments, without or with a matching tier) and optional status
    overrides naming bosses from the same batch.
    """
    tier: int
    bosses: List[Mapping[str, Any]]
    status: List[BossNamesByStatus] = field(default_factory=list)


def reconcile_tier(tier: BossTier) -> List[Boss]:
    """
    Build the final bosses of a tier.

    Phase one constructs each Boss as given; phase two applies the status
    overrides, producing replacement Boss values. A status naming a boss
    outside this batch, or a boss whose status is set twice, fails the
    whole tier. Bosses left without status are inactive.
    """
    tier_number = validate_raid_tier(tier.tier)

    built: List[Boss] = []
    for props in tier.bosses:
        declared = props.get("tier")
        if declared is not None and validate_raid_tier(declared) != tier_number:
            raise ValidationError(
                f"Conflicting tier {declared} for {props.get('name')} in tier {tier_number} boss definitions"
            )
        built.append(Boss(**{**props, "tier": tier_number}))

    by_name: Dict[str, int] = {}
    for index, boss in enumerate(built):
        if boss.keys.name in by_name:
            raise DuplicateKeyError(f"Boss {boss.name} defined twice in tier {tier_number}")
        by_name[boss.keys.name] = index

    statuses: Dict[int, BossStatus] = {}
    for by_status in tier.status:
        for boss_name in by_status.bosses:
            index = by_name.get(normalize_name(boss_name))
            if index is None:
                raise ValidationError(
                    f"Boss {boss_name} not found for tier {tier_number} status {by_status.active!r}"
                )
            if index in statuses or built[index].active is not None:
                prior = statuses.get(index, built[index].active)
                raise ValidationError(
                    f"Status multiply defined for {boss_name} ({prior!r} and {by_status.active!r})"
                )
            statuses[index] = by_status.active

    final: List[Boss] = []
    for index, boss in enumerate(built):
        if index in statuses:
            final.append(replace(boss, active=statuses[index]))
        elif boss.active is None:
            final.append(replace(boss, active=False))
        else:
            final.append(boss)
    return final


class BossDirectory:
    """Bosses indexed by "<name> T<tier>", name and alternate names."""

    def __init__(self, bosses: Optional[Iterable[Boss]] = None):
        self._dir: Directory[Boss] = Directory(
            Boss.directory_options(),
            bosses,
            adjuster=self._adjust,
            what="boss",
        )

    def __len__(self) -> int:
        return len(self._dir)

    def __iter__(self) -> Iterator[Boss]:
        return iter(self._dir)

    @property
    def directory(self) -> Directory[Boss]:
        return self._dir

    def add(self, boss: Boss) -> Boss:
        return self._dir.add(boss)

    def add_range(self, bosses: Iterable[Boss]) -> List[Boss]:
        return self._dir.add_range(bosses)

    def add_tier(self, tier: BossTier) -> List[Boss]:
        return self._dir.add_range(reconcile_tier(tier))

    def get(self, name: str) -> Optional[Boss]:
        return self._dir.get(name)

    def get_by_any_field_exact(self, name: str) -> List[Boss]:
        return self._dir.get_by_any_field_exact(name)

    @staticmethod
    def filter(boss: Boss, options: Optional[BossLookupOptions]) -> bool:
        if options is None:
            return True
        if options.tier is not None and options.tier != boss.tier:
            return False
        if options.is_active is not None and options.is_active != boss.is_active(options.active_at):
            return False
        return True

    def _adjust(
        self,
        results: List[SearchResult[Boss]],
        options: Optional[BossLookupOptions],
        filter: Optional[DirectoryFilter],
    ) -> List[SearchResult[Boss]]:
        if filter is not None:
            results = [r for r in results if filter(r.item, options)]
        return [r for r in results if BossDirectory.filter(r.item, options)]

    def _effective(self, options: Optional[Mapping[str, Any] | BossLookupOptions]) -> BossLookupOptions:
        return merge_options(BossLookupOptions(), options)

    def lookup(
        self,
        name: str,
        options: Optional[Mapping[str, Any] | BossLookupOptions] = None,
        filter: Optional[DirectoryFilter] = None,
    ) -> SearchResults[Boss]:
        return self._dir.lookup(name, self._effective(options), filter)

    def get_all(
        self,
        options: Optional[Mapping[str, Any] | BossLookupOptions] = None,
        filter: Optional[DirectoryFilter] = None,
    ) -> SearchResults[Boss]:
        return self._dir.get_all(self._effective(options), filter)
