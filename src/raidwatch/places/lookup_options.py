# src/raidwatch/places/lookup_options.py

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

from raidwatch.errors import ValidationError
from raidwatch.names.normalize import normalize_names
from raidwatch.names.typedefs import DirectoryLookupOptions, SearchResult
from raidwatch.places.typedefs import Poi
from raidwatch.spatial.geo import DEFAULT_NEAR_RADIUS_M, Coordinate, Region

O = TypeVar("O")
T = TypeVar("T")
P = TypeVar("P", bound=Poi)

_NAME_LIST_FIELDS = (
    "allowed_zones",
    "allowed_cities",
    "required_zones",
    "required_cities",
    "preferred_zones",
    "preferred_cities",
)


# =====================================================
#  OPTIONS
# =====================================================

@dataclass
class PoiLookupOptions(DirectoryLookupOptions):
    """
    Options understood by every POI-backed lookup. All name lists hold
    normalized keys; an empty list means "no constraint".
    """

    allowed_zones: List[str] = field(default_factory=list)
    allowed_cities: List[str] = field(default_factory=list)
    required_zones: List[str] = field(default_factory=list)
    required_cities: List[str] = field(default_factory=list)
    preferred_zones: List[str] = field(default_factory=list)
    preferred_cities: List[str] = field(default_factory=list)

    on_non_allowed_zones: str = "ignore"
    on_non_allowed_cities: str = "ignore"

    near: Optional[Coordinate] = None
    radius: float = DEFAULT_NEAR_RADIUS_M
    region: Optional[Region] = None

    def __post_init__(self):
        for name in _NAME_LIST_FIELDS:
            setattr(self, name, normalize_names(list(getattr(self, name) or [])))
        for name in ("on_non_allowed_zones", "on_non_allowed_cities"):
            if getattr(self, name) not in ("error", "ignore"):
                raise ValidationError(f"{name} must be 'error' or 'ignore', got {getattr(self, name)!r}")


def merge_options(base: O, user: Optional[Mapping[str, Any] | Any] = None) -> O:
    """
    Overlay user-supplied options on `base`, returning a new options object.

    `user` may be a mapping of partial overrides (None values and unknown
    fields are ignored) or another options dataclass, of which only the
    fields set away from that class's defaults win. To clear a field the
    base sets, pass a mapping.
    """
    if user is None:
        return base

    known = {f.name for f in fields(base) if f.init}
    if is_dataclass(user):
        defaults = type(user)()
        overrides = {
            f.name: getattr(user, f.name)
            for f in fields(user)
            if f.name in known and getattr(user, f.name) != getattr(defaults, f.name)
        }
    else:
        overrides = {k: v for k, v in user.items() if k in known and v is not None}

    # replace() re-runs __post_init__, which normalizes name lists
    return replace(base, **overrides)


# =====================================================
#  CATEGORIZATION
# =====================================================

class PoiCategory(Enum):
    MATCHED = "matched"
    IN_PREFERRED_CITY = "inPreferredCity"
    IN_PREFERRED_ZONE = "inPreferredZone"
    UNMATCHED = "unmatched"
    FILTERED_OUT = "filteredOut"
    DISALLOWED = "disallowed"


CATEGORY_SCORES: Dict[PoiCategory, float] = {
    PoiCategory.MATCHED: 1.0,
    PoiCategory.IN_PREFERRED_CITY: 0.9,
    PoiCategory.IN_PREFERRED_ZONE: 0.8,
    PoiCategory.UNMATCHED: 0.7,
}

PoiFilter = Callable[[Any, Any], bool]


def filter_poi(poi: Poi, options: Optional[PoiLookupOptions] = None) -> bool:
    """Geographic filters: near/radius and bounding region."""
    if options is None:
        return True
    return poi.is_near(options.near, options.radius) and poi.is_in_region(options.region)


def categorize_poi(
    poi: P,
    options: Optional[PoiLookupOptions] = None,
    filter: Optional[PoiFilter] = None,
) -> PoiCategory:
    if options is not None:
        allowed = poi.matches(options.allowed_zones, options.allowed_cities)
        required = poi.matches(options.required_zones, options.required_cities)
        if not (allowed and required):
            return PoiCategory.DISALLOWED

    if not filter_poi(poi, options) or (filter is not None and not filter(poi, options)):
        return PoiCategory.FILTERED_OUT

    if options is None:
        return PoiCategory.MATCHED

    in_city = poi.matches_cities(options.preferred_cities)
    in_zone = poi.matches_zones(options.preferred_zones)

    if in_city:
        return PoiCategory.MATCHED if in_zone else PoiCategory.IN_PREFERRED_CITY
    if in_zone:
        return PoiCategory.IN_PREFERRED_ZONE
    return PoiCategory.UNMATCHED


def categorize_objects(
    objects: List[T],
    get_poi: Callable[[T], Poi],
    options: Optional[PoiLookupOptions] = None,
    filter: Optional[PoiFilter] = None,
) -> Dict[PoiCategory, List[T]]:
    categorized: Dict[PoiCategory, List[T]] = {c: [] for c in PoiCategory}
    for obj in objects:
        categorized[categorize_poi(get_poi(obj), options, filter)].append(obj)
    return categorized


def categorize_pois(
    pois: List[P],
    options: Optional[PoiLookupOptions] = None,
    filter: Optional[PoiFilter] = None,
) -> Dict[PoiCategory, List[P]]:
    return categorize_objects(pois, lambda p: p, options, filter)


def adjust_object_search_results(
    candidates: List[SearchResult[T]],
    options: Optional[PoiLookupOptions],
    extract: Callable[[T], Poi],
    filter: Optional[PoiFilter] = None,
) -> List[SearchResult[T]]:
    """
    Drop disallowed and filtered-out candidates, scale the rest by their
    category score, then rank by combined score (stable for ties).
    """
    adjusted: List[SearchResult[T]] = []
    for c in candidates:
        category = categorize_poi(extract(c.item), options, filter)
        multiplier = CATEGORY_SCORES.get(category)
        if multiplier is None:
            continue
        adjusted.append(SearchResult(c.item, c.score * multiplier))

    return sorted(adjusted, key=lambda r: r.score, reverse=True)


def adjust_search_results(
    candidates: List[SearchResult[P]],
    options: Optional[PoiLookupOptions] = None,
    filter: Optional[PoiFilter] = None,
) -> List[SearchResult[P]]:
    return adjust_object_search_results(candidates, options, lambda p: p, filter)
