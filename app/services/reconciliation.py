from __future__ import annotations

from dataclasses import dataclass

from app.core.config import Settings, get_settings
from app.core.enums import RouteMode
from app.services.coordinates import path_length_m
from app.services.directions import RouteFeature


@dataclass(frozen=True, slots=True)
class RouteMetrics:
    distance_m: float
    duration_sec: float
    duration_estimated: bool = False

    @property
    def distance_km(self) -> float:
        return self.distance_m / 1000


def estimate_duration_sec(distance_m: float, average_speed_kmh: float) -> float:
    if distance_m <= 0 or average_speed_kmh <= 0:
        return 0.0
    return distance_m / 1000 / average_speed_kmh * 3600


def reconcile(feature: RouteFeature, mode: RouteMode, settings: Settings | None = None) -> RouteMetrics:
    """Derive authoritative metrics for a routed feature.

    Distance is always the haversine length of the returned geometry; the
    summary distance is never read. Duration comes from the summary when it is
    positive, otherwise from the mode's average speed.
    """
    settings = settings or get_settings()
    distance_m = path_length_m(feature.geographic_path)
    duration = feature.summary_duration
    if duration is not None and duration > 0:
        return RouteMetrics(distance_m=distance_m, duration_sec=duration)
    return RouteMetrics(
        distance_m=distance_m,
        duration_sec=estimate_duration_sec(distance_m, settings.average_speed_kmh(mode)),
        duration_estimated=True,
    )


def format_distance(distance_m: float) -> str:
    """German-style kilometers: ``"8,5 km"`` below 10 km, ``"1.050 km"`` above."""
    km = max(distance_m, 0.0) / 1000
    if round(km, 1) < 10:
        return f"{km:.1f}".replace(".", ",") + " km"
    return f"{round(km):,}".replace(",", ".") + " km"


def format_duration(duration_sec: float) -> str:
    total_minutes = int(round(max(duration_sec, 0.0) / 60))
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}min"
    return f"{minutes}min"
