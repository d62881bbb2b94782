from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.core.enums import FallbackReason, RouteMode
from app.services.coordinates import GeoPoint, ServicePoint
from app.services.waypoints import Waypoint


@dataclass(frozen=True, slots=True)
class RouteResult:
    mode: RouteMode
    distance: str
    duration: str
    distance_m: float
    duration_sec: float
    instructions: tuple[str, ...]
    path: tuple[GeoPoint, ...]
    waypoints: tuple[Waypoint, ...]
    service_path: tuple[ServicePoint, ...] | None = None
    is_approximate: bool = False
    error_message: str | None = None
    fallback_reason: FallbackReason | None = None
    duration_estimated: bool = False

    @property
    def distance_km(self) -> float:
        return self.distance_m / 1000

    def geometry_wire(self) -> dict[str, Any] | list[list[float]]:
        """Geometry as the client has always received it.

        Routed results carry a GeoJSON LineString in ``[lon, lat]`` order;
        approximations carry a plain ``[lat, lon]`` list.
        """
        if self.service_path is not None and not self.is_approximate:
            return {"type": "LineString", "coordinates": [point.as_lnglat() for point in self.service_path]}
        return [point.as_latlng() for point in self.path]

    def geometry_latlng(self) -> list[list[float]]:
        return [point.as_latlng() for point in self.path]
