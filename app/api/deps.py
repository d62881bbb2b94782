from __future__ import annotations

from app.core.config import get_settings
from app.services.geocoding import GeocodingService
from app.services.routing import RouteService


async def get_geocoding_service() -> GeocodingService:
    return GeocodingService(settings=get_settings())


async def get_route_service() -> RouteService:
    settings = get_settings()
    return RouteService(geocoding=GeocodingService(settings=settings), settings=settings)
