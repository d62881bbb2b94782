from app.services.geocoding import GeocodingService
from app.services.routing import RouteService

__all__ = [
    "GeocodingService",
    "RouteService",
]
