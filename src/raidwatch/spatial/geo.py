# src/raidwatch/spatial/geo.py

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from shapely.geometry import Point, box

from raidwatch.errors import ValidationError


MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0

DEFAULT_NEAR_RADIUS_M = 1000.0

# Mean Earth radius (km) – IUGG 1980
EARTH_RADIUS_KM = 6371.0088


def is_valid_latitude(lat: float) -> bool:
    return isinstance(lat, (int, float)) and math.isfinite(lat) and MIN_LATITUDE <= lat <= MAX_LATITUDE


def is_valid_longitude(lon: float) -> bool:
    return isinstance(lon, (int, float)) and math.isfinite(lon) and MIN_LONGITUDE <= lon <= MAX_LONGITUDE


def validate_latitude(lat: float) -> float:
    if not is_valid_latitude(lat):
        raise ValidationError(f"Invalid latitude {lat} must be {MIN_LATITUDE:g}..{MAX_LATITUDE:g}")
    return float(lat)


def validate_longitude(lon: float) -> float:
    if not is_valid_longitude(lon):
        raise ValidationError(f"Invalid longitude {lon} must be {MIN_LONGITUDE:g}..{MAX_LONGITUDE:g}")
    return float(lon)


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def __post_init__(self):
        object.__setattr__(self, "latitude", validate_latitude(self.latitude))
        object.__setattr__(self, "longitude", validate_longitude(self.longitude))

    def to_json(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class Region:
    """Axis-aligned lat/lon rectangle, bounds inclusive."""
    min: Coordinate
    max: Coordinate

    def __post_init__(self):
        if self.min.latitude > self.max.latitude or self.min.longitude > self.max.longitude:
            raise ValidationError(f"Region min {self.min} must not exceed max {self.max}")

    def contains(self, c: Coordinate) -> bool:
        rect = box(self.min.longitude, self.min.latitude, self.max.longitude, self.max.latitude)
        return rect.covers(Point(c.longitude, c.latitude))


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Compute the great-circle distance between two WGS84 points (lat, lon)
    in decimal degrees, using the Haversine formula.

    Returns distance in kilometers.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = phi2 - phi1
    dlambda = math.radians(lon2 - lon1)

    a = (
        math.sin(dphi / 2.0) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2.0) ** 2
    )
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_KM * c


def distance_in_meters(c1: Coordinate, c2: Coordinate) -> float:
    return haversine_km(c1.latitude, c1.longitude, c2.latitude, c2.longitude) * 1000.0


def coordinates_are_near(c1: Coordinate, c2: Coordinate, radius_m: float) -> bool:
    return distance_in_meters(c1, c2) <= radius_m


def coordinate_is_in_region(c: Coordinate, region: Optional[Region]) -> bool:
    if region is None:
        return True
    return region.contains(c)
