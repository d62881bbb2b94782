from __future__ import annotations

from typing import Sequence

from app.core.config import Settings, get_settings
from app.core.enums import FallbackReason, RouteMode
from app.services.coordinates import path_length_m
from app.services.reconciliation import estimate_duration_sec, format_distance, format_duration
from app.services.route_result import RouteResult
from app.services.waypoints import Waypoint, resolved_only

_REASON_MESSAGES = {
    FallbackReason.SERVICE_HTTP_ERROR: "Directions service unavailable",
    FallbackReason.NO_ROUTE_FOUND: "No route found between the given points",
    FallbackReason.INSUFFICIENT_WAYPOINTS: "Not enough distinct waypoints for routing",
}


def describe_reason(reason: FallbackReason, detail: str | None = None, status: int | None = None) -> str:
    message = _REASON_MESSAGES[reason]
    if status is not None:
        message = f"{message} (HTTP {status})"
    if detail:
        message = f"{message}: {detail}"
    return f"{message}. Showing a straight-line approximation."


def placeholder_instructions(waypoints: Sequence[Waypoint]) -> tuple[str, ...]:
    last_index = len(waypoints) - 1
    instructions: list[str] = []
    for index, waypoint in enumerate(waypoints):
        if index == 0:
            text = f"Start at {waypoint.display_name}"
        elif index == last_index:
            text = f"Arrive at {waypoint.display_name}"
        else:
            text = f"Continue to {waypoint.display_name}"
        instructions.append(f"{index + 1}. {text}")
    return tuple(instructions)


def synthesize_fallback(
    waypoints: Sequence[Waypoint],
    mode: RouteMode,
    reason: FallbackReason,
    *,
    detail: str | None = None,
    status: int | None = None,
    settings: Settings | None = None,
) -> RouteResult:
    """Straight-line route through the resolved waypoints, flagged as approximate."""
    settings = settings or get_settings()
    valid = resolved_only(waypoints)
    path = tuple(item.point for item in valid if item.point is not None)
    distance_m = path_length_m(path)
    duration_sec = estimate_duration_sec(distance_m, settings.average_speed_kmh(mode))
    return RouteResult(
        mode=mode,
        distance=format_distance(distance_m),
        duration=format_duration(duration_sec),
        distance_m=distance_m,
        duration_sec=duration_sec,
        instructions=placeholder_instructions(valid),
        path=path,
        waypoints=tuple(valid),
        is_approximate=True,
        error_message=describe_reason(reason, detail, status),
        fallback_reason=reason,
        duration_estimated=True,
    )
