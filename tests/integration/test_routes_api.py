import pytest

from app.services.directions import DirectionsHttpFailure
from tests.fakes import BERLIN, PARIS


def _payload(**overrides) -> dict:
    payload = {
        "waypoints": [
            {"id": "1", "label": "A", "address": "Berlin"},
            {"id": "2", "label": "B", "address": "Paris"},
        ],
        "mode": "car",
    }
    payload.update(overrides)
    return payload


@pytest.mark.integration
@pytest.mark.asyncio
async def test_calculate_route_returns_normalized_route(app_client, directions):
    response = await app_client.post("/api/v1/routes/calculate", json=_payload(avoidTolls=True, fastestRoute=False))

    assert response.status_code == 200
    body = response.json()
    data = body["data"]
    assert body["error"] is None
    assert data["fallback"] is False
    assert data["duration"] == "10h 0min"
    assert data["durationSeconds"] == 36000
    assert data["distance"].endswith(" km")
    assert data["geometry"]["type"] == "LineString"
    assert data["geometry"]["coordinates"][0] == [BERLIN.lon, BERLIN.lat]
    assert data["geometryLatLng"][0] == [BERLIN.lat, BERLIN.lon]
    assert data["instructions"] == ["1. Head west"]
    assert [item["id"] for item in data["waypoints"]] == ["1", "2"]
    assert data["waypoints"][0]["lat"] == BERLIN.lat
    assert "errorMessage" not in data

    _, _, options = directions.calls[0]
    assert options.avoid_tolls is True
    assert options.prefer_fastest is False


@pytest.mark.integration
@pytest.mark.asyncio
async def test_calculate_route_marks_fallback(app_client, directions):
    directions.outcome = DirectionsHttpFailure(status=500, message="Unknown internal error")

    response = await app_client.post("/api/v1/routes/calculate", json=_payload())

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["fallback"] is True
    assert data["errorMessage"]
    assert data["geometry"] == [[BERLIN.lat, BERLIN.lon], [PARIS.lat, PARIS.lon]]
    assert data["geometryLatLng"] == data["geometry"]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_single_waypoint_is_a_structured_error(app_client):
    response = await app_client.post(
        "/api/v1/routes/calculate",
        json=_payload(waypoints=[{"id": "1", "label": "A", "address": "Berlin"}]),
    )

    assert response.status_code == 422
    body = response.json()
    assert body["data"] is None
    assert body["error"]["code"] == "insufficient_waypoints"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_unknown_mode_fails_validation(app_client):
    response = await app_client.post("/api/v1/routes/calculate", json=_payload(mode="bicycle"))

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_resolve_location(app_client):
    found = await app_client.get("/api/v1/routes/locations/resolve", params={"q": "Paris"})
    missing = await app_client.get("/api/v1/routes/locations/resolve", params={"q": "Atlantis"})

    assert found.json()["data"] == {"query": "Paris", "found": True, "lat": PARIS.lat, "lng": PARIS.lon}
    assert missing.json()["data"]["found"] is False


@pytest.mark.integration
@pytest.mark.asyncio
async def test_request_id_is_echoed(app_client):
    response = await app_client.get("/healthz", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"
    assert response.json()["meta"]["request_id"] == "abc-123"
