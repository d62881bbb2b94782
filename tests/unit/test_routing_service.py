from __future__ import annotations

import httpx
import pytest

from app.core.enums import FallbackReason, RouteMode
from app.core.exceptions import ConfigurationMissingError, InsufficientWaypointsError, RouteCalculationError
from app.services.coordinates import haversine_m, path_length_m
from app.services.directions import (
    DirectionsEmpty,
    DirectionsHttpFailure,
    OpenRouteServiceDirectionsProvider,
    RouteOptions,
)
from app.services.geocoding import GeocodingService
from app.services.reconciliation import format_distance
from app.services.routing import RouteService
from app.services.waypoints import Waypoint
from tests.fakes import BERLIN, FRANKFURT, PARIS, CrashingDirections, FakeDirections, FakeGeoProvider, make_settings, routed


def _service(directions, provider: FakeGeoProvider | None = None, **overrides) -> RouteService:
    settings = make_settings(**overrides)
    provider = provider or FakeGeoProvider(known={"Berlin": BERLIN, "Paris": PARIS, "Frankfurt": FRANKFURT})
    return RouteService(directions=directions, geocoding=GeocodingService(provider=provider, settings=settings), settings=settings)


def _berlin_paris() -> list[Waypoint]:
    return [
        Waypoint.create(id="start", label="A", address="Berlin"),
        Waypoint.create(id="end", label="B", address="Paris"),
    ]


@pytest.mark.asyncio
async def test_routed_result_reconciles_distance_and_keeps_service_duration():
    path = [BERLIN, FRANKFURT, PARIS]
    directions = FakeDirections(outcome=routed(path, duration=36000, distance=1.0, instructions=["1. Head west"]))
    service = _service(directions)

    result = await service.calculate(_berlin_paris(), RouteMode.CAR)

    assert result.is_approximate is False
    assert result.error_message is None
    assert result.duration == "10h 0min"
    assert result.distance_m == pytest.approx(path_length_m(path))
    assert result.distance == format_distance(path_length_m(path))
    assert result.instructions == ("1. Head west",)
    assert result.geometry_wire() == {
        "type": "LineString",
        "coordinates": [point.to_service().as_lnglat() for point in path],
    }
    assert result.geometry_latlng() == [point.as_latlng() for point in path]
    sent_points, sent_mode, sent_options = directions.calls[0]
    assert sent_points == [BERLIN, PARIS]
    assert sent_mode is RouteMode.CAR
    assert sent_options == RouteOptions()


@pytest.mark.asyncio
async def test_missing_duration_is_estimated_for_routed_result():
    directions = FakeDirections(outcome=routed([BERLIN, PARIS]))
    service = _service(directions)

    result = await service.calculate(_berlin_paris(), RouteMode.CAR)

    assert result.duration_estimated is True
    assert result.duration_sec == pytest.approx(result.distance_m / 1000 / 60 * 3600)


@pytest.mark.asyncio
async def test_http_500_falls_back_to_straight_line():
    directions = FakeDirections(outcome=DirectionsHttpFailure(status=500, message="Unknown internal error"))
    service = _service(directions)

    result = await service.calculate(_berlin_paris(), RouteMode.CAR)

    assert result.is_approximate is True
    assert result.fallback_reason is FallbackReason.SERVICE_HTTP_ERROR
    assert result.error_message
    assert result.path == (BERLIN, PARIS)
    assert result.geometry_wire() == [BERLIN.as_latlng(), PARIS.as_latlng()]


@pytest.mark.asyncio
async def test_empty_route_falls_back_with_no_route_reason():
    service = _service(FakeDirections(outcome=DirectionsEmpty()))

    result = await service.calculate(_berlin_paris(), RouteMode.WALKING)

    assert result.is_approximate is True
    assert result.fallback_reason is FallbackReason.NO_ROUTE_FOUND
    assert result.instructions == ("1. Start at Berlin", "2. Arrive at Paris")


@pytest.mark.asyncio
async def test_directions_timeout_end_to_end_falls_back():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    directions = OpenRouteServiceDirectionsProvider(
        "secret", timeout_sec=0.1, retries=1, backoff=0, transport=httpx.MockTransport(handler)
    )
    service = _service(directions)

    result = await service.calculate(_berlin_paris(), RouteMode.CAR)

    assert result.is_approximate is True
    assert result.path == (BERLIN, PARIS)
    assert result.distance_m == pytest.approx(haversine_m(BERLIN, PARIS))
    assert 870 < result.distance_km < 885
    assert result.error_message


@pytest.mark.asyncio
async def test_corrupt_directions_body_still_draws_fallback():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=httpx.ByteStream(b"definitely not gzip"), headers={"Content-Encoding": "gzip"})

    directions = OpenRouteServiceDirectionsProvider(
        "secret", timeout_sec=1, retries=1, backoff=0, transport=httpx.MockTransport(handler)
    )
    service = _service(directions)

    result = await service.calculate(_berlin_paris(), RouteMode.CAR)

    assert result.is_approximate is True
    assert result.fallback_reason == FallbackReason.SERVICE_HTTP_ERROR
    assert result.path == (BERLIN, PARIS)

@pytest.mark.asyncio
async def test_unresolvable_waypoints_are_dropped():
    directions = FakeDirections(outcome=routed([BERLIN, PARIS], duration=100))
    waypoints = [
        Waypoint.create(id="1", label="A", address="Berlin"),
        Waypoint.create(id="2", label="B", address="Atlantis"),
        Waypoint.create(id="3", label="C", address="Paris"),
    ]

    result = await _service(directions).calculate(waypoints, RouteMode.CAR)

    assert [item.id for item in result.waypoints] == ["1", "3"]
    assert directions.calls[0][0] == [BERLIN, PARIS]


@pytest.mark.asyncio
async def test_consecutive_duplicates_are_collapsed_before_routing():
    directions = FakeDirections(outcome=routed([BERLIN, PARIS], duration=100))
    waypoints = [
        Waypoint.create(id="1", label="A", address="Berlin"),
        Waypoint.create(id="2", label="A2", address="Berlin"),
        Waypoint.create(id="3", label="B", address="Paris"),
    ]

    result = await _service(directions).calculate(waypoints, RouteMode.CAR)

    assert directions.calls[0][0] == [BERLIN, PARIS]
    assert [item.id for item in result.waypoints] == ["1", "3"]


@pytest.mark.asyncio
async def test_identical_waypoints_skip_directions_and_flag_insufficient():
    directions = FakeDirections(outcome=routed([BERLIN, PARIS], duration=100))
    waypoints = [
        Waypoint.create(id="1", label="A", address="Berlin"),
        Waypoint.create(id="2", label="B", address="Berlin"),
    ]

    result = await _service(directions).calculate(waypoints, RouteMode.CAR)

    assert directions.calls == []
    assert result.is_approximate is True
    assert result.fallback_reason is FallbackReason.INSUFFICIENT_WAYPOINTS
    assert result.distance_m == 0


@pytest.mark.asyncio
async def test_fewer_than_two_waypoints_is_rejected():
    service = _service(FakeDirections(outcome=DirectionsEmpty()))

    with pytest.raises(InsufficientWaypointsError):
        await service.calculate([Waypoint.create(id="1", label="A", address="Berlin")], RouteMode.CAR)


@pytest.mark.asyncio
async def test_fewer_than_two_resolved_waypoints_is_rejected():
    directions = FakeDirections(outcome=DirectionsEmpty())
    waypoints = [
        Waypoint.create(id="1", label="A", address="Berlin"),
        Waypoint.create(id="2", label="B", address="Atlantis"),
    ]

    with pytest.raises(InsufficientWaypointsError) as exc_info:
        await _service(directions).calculate(waypoints, RouteMode.CAR)

    assert exc_info.value.details["unresolved_ids"] == ["2"]
    assert directions.calls == []


@pytest.mark.asyncio
async def test_missing_api_key_is_a_configuration_error():
    service = _service(None, openrouteservice_api_key="")

    with pytest.raises(ConfigurationMissingError):
        await service.calculate(_berlin_paris(), RouteMode.CAR)


def test_api_key_builds_ors_provider():
    service = _service(None, openrouteservice_api_key="abc")

    assert isinstance(service.directions, OpenRouteServiceDirectionsProvider)
    assert service.directions.api_key == "abc"


@pytest.mark.asyncio
async def test_unexpected_fault_becomes_structured_error():
    service = _service(CrashingDirections())

    with pytest.raises(RouteCalculationError) as exc_info:
        await service.calculate(_berlin_paris(), RouteMode.CAR)

    assert exc_info.value.code == "route_calculation_failed"
    assert exc_info.value.status_code == 500
