# src/raidwatch/places/poi_directory.py
from __future__ import annotations

import logging
from typing import Any, Generic, Iterable, Iterator, List, Mapping, Optional, TypeVar

from raidwatch.errors import ValidationError
from raidwatch.names.directory import Directory
from raidwatch.names.normalize import is_listed_or_default
from raidwatch.names.normalized_map import NormalizedMap
from raidwatch.names.typedefs import SearchResult, SearchResults
from raidwatch.places.lookup_options import (
    PoiFilter,
    PoiLookupOptions,
    adjust_search_results,
    merge_options,
)
from raidwatch.places.typedefs import City, Poi, Zone

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=Poi)
O = TypeVar("O", bound=PoiLookupOptions)


class PoiDirectory(Generic[P, O]):
    """
    Directory of POIs plus the City / Zone aggregates derived from them.

    Directory-wide defaults (`options`) restrict which POIs may be added
    (allowed cities / zones) and seed every lookup; per-call options are
    merged over them. A domain filter (e.g. EX eligibility for gyms) is
    injected through `poi_filter` and applied during lookup adjustment.
    """

    def __init__(
        self,
        options: Optional[Mapping[str, Any] | O] = None,
        pois: Optional[Iterable[P]] = None,
        *,
        default_options: Optional[O] = None,
        poi_filter: Optional[PoiFilter] = None,
        what: str = "poi",
    ):
        base = default_options if default_options is not None else PoiLookupOptions()
        self.options: O = merge_options(base, options)
        self._poi_filter = poi_filter

        self.pois: Directory[P] = Directory(Poi.directory_options(), adjuster=self._adjust, what=what)
        self.zones: NormalizedMap[Zone] = NormalizedMap()
        self.cities: NormalizedMap[City] = NormalizedMap()

        if pois is not None:
            self.add_range(pois)

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    def _is_allowed(self, poi: P) -> bool:
        if not is_listed_or_default(self.options.allowed_zones, poi.zones):
            if self.options.on_non_allowed_zones == "error":
                raise ValidationError(f'POI "{poi.name}" is not in an allowed zone.')
            logger.debug("Skipping %s: not in an allowed zone", poi.name)
            return False

        if not is_listed_or_default(self.options.allowed_cities, poi.city):
            if self.options.on_non_allowed_cities == "error":
                raise ValidationError(f'POI "{poi.name}" is not in an allowed city.')
            logger.debug("Skipping %s: not in an allowed city", poi.name)
            return False

        return True

    def _update_zones_and_cities(self, poi: P) -> None:
        city = self.cities.get_or_add(poi.city, City)
        city.zones.add_range(poi.zones)
        city.pois.add(poi.name)

        for name in poi.zones:
            if is_listed_or_default(self.options.allowed_zones, name):
                zone = self.zones.get_or_add(name, Zone)
                zone.cities.add(city.name)
                zone.pois.add(poi.name)

    def add(self, poi: P) -> Optional[P]:
        """Add one POI; returns None if directory defaults exclude it."""
        if not self._is_allowed(poi):
            return None
        self.pois.add(poi)
        self._update_zones_and_cities(poi)
        return poi

    def add_range(self, pois: Iterable[P]) -> List[P]:
        accepted = [p for p in pois if self._is_allowed(p)]
        self.pois.add_range(accepted)
        for poi in accepted:
            self._update_zones_and_cities(poi)
        return accepted

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.pois)

    def __iter__(self) -> Iterator[P]:
        return iter(self.pois)

    def get(self, name: str) -> Optional[P]:
        return self.pois.get(name)

    def get_by_any_field_exact(self, name: str) -> List[P]:
        return self.pois.get_by_any_field_exact(name)

    def effective_options(self, user: Optional[Mapping[str, Any] | O] = None) -> O:
        return merge_options(self.options, user)

    def _adjust(
        self,
        results: List[SearchResult[P]],
        options: Optional[O],
        filter: Optional[PoiFilter],
    ) -> List[SearchResult[P]]:
        return adjust_search_results(results, options, self._combined_filter(filter))

    def _combined_filter(self, filter: Optional[PoiFilter]) -> Optional[PoiFilter]:
        domain = self._poi_filter
        if domain is None:
            return filter
        if filter is None:
            return domain
        return lambda poi, options: domain(poi, options) and filter(poi, options)

    def lookup(
        self,
        name: str,
        options: Optional[Mapping[str, Any] | O] = None,
        filter: Optional[PoiFilter] = None,
    ) -> SearchResults[P]:
        return self.pois.lookup(name, self.effective_options(options), filter)

    def lookup_exact(
        self,
        name: str,
        options: Optional[Mapping[str, Any] | O] = None,
        filter: Optional[PoiFilter] = None,
    ) -> SearchResults[P]:
        effective = merge_options(self.effective_options(options), {"no_text_search": True})
        return self.pois.lookup(name, effective, filter)

    def get_all(
        self,
        options: Optional[Mapping[str, Any] | O] = None,
        filter: Optional[PoiFilter] = None,
    ) -> SearchResults[P]:
        return self.pois.get_all(self.effective_options(options), filter)
