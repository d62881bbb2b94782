"""Coordinate types shared by every stage of the route pipeline.

Two orders exist at the boundaries: geographic ``(lat, lon)`` for display and
service ``(lon, lat)`` for OpenRouteService. Each has its own type and the only
way between them is an explicit conversion, so a bare pair of floats never has
to be guessed at.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

EARTH_RADIUS_KM = 6371.0


def safe_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def _is_valid_lat_lon(lat: float, lon: float) -> bool:
    return -90 <= lat <= 90 and -180 <= lon <= 180


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """Geographic order: latitude first."""

    lat: float
    lon: float

    @classmethod
    def from_values(cls, lat: Any, lon: Any) -> GeoPoint | None:
        parsed_lat = safe_float(lat)
        parsed_lon = safe_float(lon)
        if parsed_lat is None or parsed_lon is None:
            return None
        if not _is_valid_lat_lon(parsed_lat, parsed_lon):
            return None
        return cls(lat=parsed_lat, lon=parsed_lon)

    def to_service(self) -> ServicePoint:
        return ServicePoint(lon=self.lon, lat=self.lat)

    def as_latlng(self) -> list[float]:
        return [self.lat, self.lon]


@dataclass(frozen=True, slots=True)
class ServicePoint:
    """Service order: longitude first, as OpenRouteService sends and expects it."""

    lon: float
    lat: float

    @classmethod
    def from_pair(cls, pair: Any) -> ServicePoint | None:
        if not isinstance(pair, (list, tuple)) or len(pair) < 2:
            return None
        lon = safe_float(pair[0])
        lat = safe_float(pair[1])
        if lon is None or lat is None:
            return None
        if not _is_valid_lat_lon(lat, lon):
            return None
        return cls(lon=lon, lat=lat)

    def to_geographic(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lon=self.lon)

    def as_lnglat(self) -> list[float]:
        return [self.lon, self.lat]


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    d_lat = lat2 - lat1
    d_lon = math.radians(b.lon - a.lon)

    x = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * 1000 * math.atan2(math.sqrt(x), math.sqrt(1 - x))


def path_length_m(points: Iterable[GeoPoint]) -> float:
    total = 0.0
    previous: GeoPoint | None = None
    for point in points:
        if previous is not None and all(map(math.isfinite, (previous.lat, previous.lon, point.lat, point.lon))):
            total += haversine_m(previous, point)
        previous = point
    return total


def points_equal(a: GeoPoint, b: GeoPoint, tolerance: float = 0.0) -> bool:
    return abs(a.lat - b.lat) <= tolerance and abs(a.lon - b.lon) <= tolerance


def sanitize_points(points: Sequence[GeoPoint]) -> list[GeoPoint]:
    """Collapse runs of identical consecutive points, keeping order."""
    result: list[GeoPoint] = []
    for point in points:
        if result and points_equal(result[-1], point):
            continue
        result.append(point)
    return result


def has_enough_points(points: Sequence[GeoPoint], tolerance: float = 1e-4) -> bool:
    if len(points) < 2:
        return False
    if len(points) == 2 and points_equal(points[0], points[1], tolerance):
        return False
    return True
