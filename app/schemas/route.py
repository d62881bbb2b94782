from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import RouteMode
from app.services.directions import RouteOptions
from app.services.route_result import RouteResult
from app.services.waypoints import Waypoint


class WaypointIn(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    label: str = Field(default="", max_length=64)
    address: str = Field(default="", max_length=255)
    lat: float | None = None
    lng: float | None = None

    def to_domain(self) -> Waypoint:
        return Waypoint.create(id=self.id, label=self.label, address=self.address, lat=self.lat, lng=self.lng)


class RouteCalculationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    waypoints: list[WaypointIn] = Field(default_factory=list, max_length=50)
    mode: RouteMode = RouteMode.CAR
    avoid_tolls: bool = Field(default=False, alias="avoidTolls")
    avoid_highways: bool = Field(default=False, alias="avoidHighways")
    fastest_route: bool | None = Field(default=None, alias="fastestRoute")

    def route_options(self) -> RouteOptions:
        return RouteOptions(
            avoid_tolls=self.avoid_tolls,
            avoid_highways=self.avoid_highways,
            prefer_fastest=self.fastest_route is not False,
        )


class WaypointOut(BaseModel):
    id: str
    label: str
    address: str
    lat: float | None = None
    lng: float | None = None


class RouteResponse(BaseModel):
    """Normalized route for the map client.

    ``geometry`` differs by branch: a GeoJSON LineString in ``[lon, lat]`` order
    for routed results, a ``[lat, lon]`` array for fallbacks. ``geometryLatLng``
    is always ``[lat, lon]``.
    """

    model_config = ConfigDict(populate_by_name=True)

    distance: str
    duration: str
    distance_meters: float = Field(alias="distanceMeters")
    distance_km: float = Field(alias="distanceKm")
    duration_seconds: float = Field(alias="durationSeconds")
    instructions: list[str]
    geometry: dict[str, Any] | list[list[float]]
    geometry_latlng: list[list[float]] = Field(alias="geometryLatLng")
    waypoints: list[WaypointOut]
    mode: RouteMode
    fallback: bool
    error_message: str | None = Field(default=None, alias="errorMessage")

    @classmethod
    def from_result(cls, result: RouteResult) -> RouteResponse:
        return cls(
            distance=result.distance,
            duration=result.duration,
            distance_meters=round(result.distance_m, 1),
            distance_km=round(result.distance_km, 3),
            duration_seconds=round(result.duration_sec),
            instructions=list(result.instructions),
            geometry=result.geometry_wire(),
            geometry_latlng=result.geometry_latlng(),
            waypoints=[WaypointOut(**item.to_wire()) for item in result.waypoints],
            mode=result.mode,
            fallback=result.is_approximate,
            error_message=result.error_message,
        )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class LocationResolution(BaseModel):
    query: str
    found: bool
    lat: float | None = None
    lng: float | None = None
