from __future__ import annotations


class AppError(Exception):
    def __init__(self, code: str, message: str, status_code: int = 400, details: dict | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class InsufficientWaypointsError(AppError):
    def __init__(self, message: str = "At least 2 resolvable waypoints are required", details: dict | None = None) -> None:
        super().__init__(code="insufficient_waypoints", message=message, status_code=422, details=details)


class ConfigurationMissingError(AppError):
    def __init__(self, message: str = "Directions service is not configured", details: dict | None = None) -> None:
        super().__init__(code="configuration_missing", message=message, status_code=503, details=details)


class RouteCalculationError(AppError):
    def __init__(self, message: str = "Route calculation failed", details: dict | None = None) -> None:
        super().__init__(code="route_calculation_failed", message=message, status_code=500, details=details)
