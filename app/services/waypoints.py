from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Sequence

from app.services.coordinates import GeoPoint, points_equal


@dataclass(frozen=True, slots=True)
class Waypoint:
    id: str
    label: str
    address: str
    point: GeoPoint | None = None

    @classmethod
    def create(cls, id: str, label: str, address: str, lat: Any = None, lng: Any = None) -> Waypoint:
        point = GeoPoint.from_values(lat, lng) if lat is not None and lng is not None else None
        return cls(id=id, label=label, address=address, point=point)

    @property
    def is_resolved(self) -> bool:
        return self.point is not None

    @property
    def display_name(self) -> str:
        return self.address.strip() or self.label.strip() or self.id

    def with_point(self, point: GeoPoint) -> Waypoint:
        return replace(self, point=point)

    def to_wire(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id, "label": self.label, "address": self.address}
        if self.point is not None:
            payload["lat"] = self.point.lat
            payload["lng"] = self.point.lon
        return payload


def resolved_only(waypoints: Sequence[Waypoint]) -> list[Waypoint]:
    return [item for item in waypoints if item.point is not None]


def sanitize_waypoints(waypoints: Sequence[Waypoint]) -> list[Waypoint]:
    """Drop resolved waypoints that sit on exactly the same point as their predecessor."""
    result: list[Waypoint] = []
    for waypoint in resolved_only(waypoints):
        if result and points_equal(result[-1].point, waypoint.point):  # type: ignore[arg-type]
            continue
        result.append(waypoint)
    return result
