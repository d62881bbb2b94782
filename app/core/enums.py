from enum import Enum


class RouteMode(str, Enum):
    CAR = "car"
    WALKING = "walking"


class RoutePreference(str, Enum):
    FASTEST = "fastest"
    SHORTEST = "shortest"


class FallbackReason(str, Enum):
    SERVICE_HTTP_ERROR = "service_http_error"
    NO_ROUTE_FOUND = "no_route_found"
    INSUFFICIENT_WAYPOINTS = "insufficient_waypoints"
