from __future__ import annotations

import logging
from typing import Sequence

from app.core.config import Settings, get_settings
from app.core.enums import FallbackReason, RouteMode
from app.core.exceptions import (
    AppError,
    ConfigurationMissingError,
    InsufficientWaypointsError,
    RouteCalculationError,
)
from app.services.coordinates import has_enough_points, sanitize_points
from app.services.directions import (
    DirectionsEmpty,
    DirectionsHttpFailure,
    DirectionsProvider,
    DirectionsSuccess,
    OpenRouteServiceDirectionsProvider,
    RouteOptions,
)
from app.services.fallback import synthesize_fallback
from app.services.geocoding import GeocodingService
from app.services.reconciliation import format_distance, format_duration, reconcile
from app.services.route_result import RouteResult
from app.services.waypoints import Waypoint, resolved_only, sanitize_waypoints

logger = logging.getLogger(__name__)


class RouteService:
    def __init__(
        self,
        directions: DirectionsProvider | None = None,
        geocoding: GeocodingService | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.geocoding = geocoding or GeocodingService(settings=self.settings)
        self.directions: DirectionsProvider | None

        if directions is not None:
            self.directions = directions
        elif self.settings.openrouteservice_api_key:
            self.directions = OpenRouteServiceDirectionsProvider(
                api_key=self.settings.openrouteservice_api_key,
                base_url=self.settings.openrouteservice_base_url,
                timeout_sec=self.settings.route_request_timeout_sec,
                retries=self.settings.route_retry_attempts,
                backoff=self.settings.route_retry_backoff_sec,
            )
        else:
            self.directions = None

    async def calculate(
        self,
        waypoints: Sequence[Waypoint],
        mode: RouteMode,
        options: RouteOptions | None = None,
    ) -> RouteResult:
        if len(waypoints) < 2:
            raise InsufficientWaypointsError(details={"received": len(waypoints)})
        if self.directions is None:
            raise ConfigurationMissingError(details={"setting": "OPENROUTESERVICE_API_KEY"})

        try:
            return await self._calculate(waypoints, mode, options or RouteOptions())
        except AppError:
            raise
        except Exception as exc:
            logger.exception("Route calculation crashed", extra={"mode": mode.value, "waypoints": len(waypoints)})
            raise RouteCalculationError(details={"error": exc.__class__.__name__}) from exc

    async def _calculate(self, waypoints: Sequence[Waypoint], mode: RouteMode, options: RouteOptions) -> RouteResult:
        geocoded = await self.geocoding.resolve_waypoints(waypoints)
        unresolved = [item.id for item in geocoded if not item.is_resolved]
        if unresolved:
            logger.info("Dropping waypoints that could not be geocoded", extra={"waypoint_ids": unresolved})

        valid = resolved_only(geocoded)
        if len(valid) < 2:
            raise InsufficientWaypointsError(
                message="At least 2 addresses must be locatable",
                details={"resolved": len(valid), "unresolved_ids": unresolved},
            )

        distinct = sanitize_waypoints(valid)
        points = sanitize_points([item.point for item in valid if item.point is not None])
        if not has_enough_points(points, self.settings.duplicate_tolerance_deg):
            logger.info("Waypoints collapse to a single location", extra={"resolved": len(valid)})
            return synthesize_fallback(valid, mode, FallbackReason.INSUFFICIENT_WAYPOINTS, settings=self.settings)

        outcome = await self.directions.request_route(points, mode, options)

        if isinstance(outcome, DirectionsSuccess):
            feature = outcome.feature
            metrics = reconcile(feature, mode, self.settings)
            return RouteResult(
                mode=mode,
                distance=format_distance(metrics.distance_m),
                duration=format_duration(metrics.duration_sec),
                distance_m=metrics.distance_m,
                duration_sec=metrics.duration_sec,
                instructions=feature.instructions,
                path=tuple(feature.geographic_path),
                service_path=feature.coordinates,
                waypoints=tuple(distinct),
                duration_estimated=metrics.duration_estimated,
            )
        if isinstance(outcome, DirectionsHttpFailure):
            return synthesize_fallback(
                distinct,
                mode,
                FallbackReason.SERVICE_HTTP_ERROR,
                detail=outcome.message,
                status=outcome.status,
                settings=self.settings,
            )
        if isinstance(outcome, DirectionsEmpty):
            return synthesize_fallback(
                distinct, mode, FallbackReason.NO_ROUTE_FOUND, detail=outcome.message, settings=self.settings
            )
        raise TypeError(f"Unexpected directions outcome: {outcome!r}")
