from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from app.api import deps
from app.core.config import Settings
from app.main import app
from app.services.geocoding import GeocodingService
from app.services.routing import RouteService
from tests.fakes import BERLIN, FRANKFURT, PARIS, FakeDirections, FakeGeoProvider, make_settings, routed


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
def geo_provider() -> FakeGeoProvider:
    return FakeGeoProvider(known={"Berlin": BERLIN, "Paris": PARIS, "Frankfurt": FRANKFURT})


@pytest.fixture()
def directions() -> FakeDirections:
    return FakeDirections(outcome=routed([BERLIN, FRANKFURT, PARIS], duration=36000, instructions=["1. Head west"]))


@pytest.fixture()
async def app_client(settings: Settings, geo_provider: FakeGeoProvider, directions: FakeDirections):
    geocoding = GeocodingService(provider=geo_provider, settings=settings)

    async def override_route_service() -> RouteService:
        return RouteService(directions=directions, geocoding=geocoding, settings=settings)

    async def override_geocoding_service() -> GeocodingService:
        return geocoding

    app.dependency_overrides[deps.get_route_service] = override_route_service
    app.dependency_overrides[deps.get_geocoding_service] = override_geocoding_service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
