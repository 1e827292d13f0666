# src/raidwatch/places/typedefs.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from raidwatch.names.normalize import (
    is_listed_or_default,
    normalize_name,
    normalize_names,
    validate_name,
    validate_names,
)
from raidwatch.names.normalized_map import NormalizedSet
from raidwatch.names.typedefs import DirectoryOptions, FieldSearchWeight
from raidwatch.spatial.geo import (
    DEFAULT_NEAR_RADIUS_M,
    Coordinate,
    Region,
    coordinate_is_in_region,
    coordinates_are_near,
)


# ---------------------------------------------------------------------------
# Point of interest
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PoiKeys:
    name: str
    city: str
    zones: Tuple[str, ...]
    alternate_names: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Poi:
    """
    A named, geolocated place.

      - name: display name (primary key once normalized)
      - city: the city the POI belongs to
      - zones: one or more zones (organizational areas) it belongs to
      - alternate_names: nicknames, indexed for exact lookup
      - coord: WGS84 location

    Immutable; every name is validated and normalized at construction.
    """

    name: str
    city: str
    zones: Tuple[str, ...]
    coord: Coordinate
    alternate_names: Tuple[str, ...] = ()

    keys: PoiKeys = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "zones", tuple(self.zones))
        object.__setattr__(self, "alternate_names", tuple(self.alternate_names or ()))

        validate_name(self.name, "poi name")
        validate_name(self.city, "city name")
        validate_names(self.zones, "zone name", 1)
        validate_names(self.alternate_names, "alternate name")
        if not isinstance(self.coord, Coordinate):
            raise TypeError(f"POI coord must be a Coordinate, got {type(self.coord).__name__}")

        object.__setattr__(self, "keys", PoiKeys(
            name=normalize_name(self.name),
            city=normalize_name(self.city),
            zones=tuple(normalize_names(self.zones)),
            alternate_names=tuple(normalize_names(self.alternate_names)),
        ))

    @property
    def primary_key(self) -> str:
        return self.keys.name

    def __str__(self) -> str:
        return self.primary_key

    @staticmethod
    def directory_options() -> DirectoryOptions:
        return DirectoryOptions(
            threshold=0.7,
            text_search_keys=(
                FieldSearchWeight("name", 0.6),
                FieldSearchWeight("alternate_names", 0.4),
            ),
            alternate_keys=("alternate_names",),
        )

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def belongs_to_zone(self, zones: str | Iterable[str]) -> bool:
        wanted = [zones] if isinstance(zones, str) else list(zones)
        if not wanted:
            raise ValueError("Must supply at least one valid zone name to belongs_to_zone.")
        return any(normalize_name(validate_name(z, "zone name")) in self.keys.zones for z in wanted)

    def matches_cities(self, cities: Optional[List[str]] = None) -> bool:
        return is_listed_or_default(cities, self.city)

    def matches_zones(self, zones: Optional[List[str]] = None) -> bool:
        return is_listed_or_default(zones, self.zones)

    def matches(self, zones: Optional[List[str]] = None, cities: Optional[List[str]] = None) -> bool:
        return self.matches_zones(zones) and self.matches_cities(cities)

    def is_near(self, coord: Optional[Coordinate] = None, radius_m: Optional[float] = None) -> bool:
        if coord is None:
            return True
        return coordinates_are_near(coord, self.coord, radius_m if radius_m is not None else DEFAULT_NEAR_RADIUS_M)

    def is_in_region(self, region: Optional[Region] = None) -> bool:
        return coordinate_is_in_region(self.coord, region)

    @property
    def directions_link(self) -> str:
        return (
            "https://www.google.com/maps/dir/?api=1"
            f"&destination={self.coord.latitude},{self.coord.longitude}"
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_array(self) -> list:
        return [
            "|".join(self.zones),
            self.city,
            "|".join([self.name, *self.alternate_names]),
            self.coord.latitude,
            self.coord.longitude,
        ]

    def to_json(self) -> dict:
        return {
            "zones": list(self.zones),
            "city": self.city,
            "name": self.name,
            "alternateNames": list(self.alternate_names),
            "coord": self.coord.to_json(),
        }


# ---------------------------------------------------------------------------
# Aggregates maintained by the POI directory
# ---------------------------------------------------------------------------

@dataclass
class City:
    name: str
    zones: NormalizedSet = field(default_factory=NormalizedSet)
    pois: NormalizedSet = field(default_factory=NormalizedSet)

    def __post_init__(self):
        validate_name(self.name, "city name")
        self.primary_key = normalize_name(self.name)

    def is_in_zone(self, zone_name: str) -> bool:
        return self.zones.has(zone_name)

    def includes_poi(self, poi_name: str) -> bool:
        return self.pois.has(poi_name)


@dataclass
class Zone:
    name: str
    cities: NormalizedSet = field(default_factory=NormalizedSet)
    pois: NormalizedSet = field(default_factory=NormalizedSet)

    def __post_init__(self):
        validate_name(self.name, "zone name")
        self.primary_key = normalize_name(self.name)

    def includes_city(self, city_name: str) -> bool:
        return self.cities.has(city_name)

    def includes_poi(self, poi_name: str) -> bool:
        return self.pois.has(poi_name)
