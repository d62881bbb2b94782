from __future__ import annotations

import abc
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Sequence, Union

import httpx

from app.core.enums import RouteMode, RoutePreference
from app.services.coordinates import GeoPoint, ServicePoint, safe_float

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RouteOptions:
    avoid_tolls: bool = False
    avoid_highways: bool = False
    prefer_fastest: bool = True

    @property
    def preference(self) -> RoutePreference:
        return RoutePreference.FASTEST if self.prefer_fastest else RoutePreference.SHORTEST


@dataclass(frozen=True, slots=True)
class RouteFeature:
    coordinates: tuple[ServicePoint, ...]
    summary_distance: float | None = None
    summary_duration: float | None = None
    instructions: tuple[str, ...] = ()

    @property
    def geographic_path(self) -> list[GeoPoint]:
        return [point.to_geographic() for point in self.coordinates]


@dataclass(frozen=True, slots=True)
class DirectionsSuccess:
    feature: RouteFeature


@dataclass(frozen=True, slots=True)
class DirectionsHttpFailure:
    status: int | None
    message: str


@dataclass(frozen=True, slots=True)
class DirectionsEmpty:
    message: str = "Directions service returned no usable route"


DirectionsOutcome = Union[DirectionsSuccess, DirectionsHttpFailure, DirectionsEmpty]


class DirectionsProvider(abc.ABC):
    @abc.abstractmethod
    async def request_route(
        self,
        points: Sequence[GeoPoint],
        mode: RouteMode,
        options: RouteOptions,
    ) -> DirectionsOutcome:
        raise NotImplementedError


def profile_for_mode(mode: RouteMode) -> str:
    mapping = {
        RouteMode.CAR: "driving-car",
        RouteMode.WALKING: "foot-walking",
    }
    return mapping[mode]


def build_request_body(points: Sequence[GeoPoint], mode: RouteMode, options: RouteOptions) -> dict[str, Any]:
    body: dict[str, Any] = {
        "coordinates": [point.to_service().as_lnglat() for point in points],
        "preference": options.preference.value,
        "instructions": True,
        "units": "km",
    }
    if mode == RouteMode.CAR:
        avoid: list[str] = []
        if options.avoid_tolls:
            avoid.append("tollways")
        if options.avoid_highways:
            avoid.append("highways")
        # ORS rejects an empty avoid_features list.
        if avoid:
            body["options"] = {"avoid_features": avoid}
    return body


def _extract_instructions(properties: dict[str, Any]) -> tuple[str, ...]:
    segments = properties.get("segments")
    if not isinstance(segments, list):
        return ()
    instructions: list[str] = []
    for segment in segments:
        if not isinstance(segment, dict):
            continue
        raw_steps = segment.get("steps")
        if not isinstance(raw_steps, list):
            continue
        for step in raw_steps:
            if not isinstance(step, dict):
                continue
            text = str(step.get("instruction") or "").strip()
            if text:
                instructions.append(f"{len(instructions) + 1}. {text}")
    return tuple(instructions)


def parse_feature_collection(payload: Any) -> RouteFeature | None:
    """Pull the first usable LineString feature out of an ORS GeoJSON response."""
    if not isinstance(payload, dict):
        return None
    feature: Any = None
    features = payload.get("features")
    if isinstance(features, list) and features:
        feature = features[0]
    elif payload.get("type") == "Feature":
        feature = payload
    if not isinstance(feature, dict):
        return None

    geometry = feature.get("geometry")
    if not isinstance(geometry, dict) or geometry.get("type") != "LineString":
        return None
    raw_coords = geometry.get("coordinates")
    if not isinstance(raw_coords, list):
        return None
    coordinates = tuple(point for point in map(ServicePoint.from_pair, raw_coords) if point is not None)
    if len(coordinates) < 2:
        return None

    properties = feature.get("properties")
    if not isinstance(properties, dict):
        properties = {}
    summary = properties.get("summary")
    if not isinstance(summary, dict):
        summary = {}
    return RouteFeature(
        coordinates=coordinates,
        summary_distance=safe_float(summary.get("distance")),
        summary_duration=safe_float(summary.get("duration")),
        instructions=_extract_instructions(properties),
    )


def extract_error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error.strip():
            return error.strip()
        if payload.get("message"):
            return str(payload["message"])
    text = response.text.strip()
    if text:
        return text[:300]
    return response.reason_phrase or f"HTTP {response.status_code}"


class OpenRouteServiceDirectionsProvider(DirectionsProvider):
    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.openrouteservice.org",
        timeout_sec: float = 10.0,
        retries: int = 2,
        backoff: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.timeout_sec = timeout_sec
        self.retries = max(1, retries)
        self.backoff = backoff
        self.transport = transport
        self._base_url = f"{base_url.rstrip('/')}/v2/directions"

    async def request_route(
        self,
        points: Sequence[GeoPoint],
        mode: RouteMode,
        options: RouteOptions,
    ) -> DirectionsOutcome:
        url = f"{self._base_url}/{profile_for_mode(mode)}/geojson"
        headers = {
            "Authorization": self.api_key,
            "Content-Type": "application/json",
            "Accept": "application/json, application/geo+json",
        }
        body = build_request_body(points, mode, options)

        last_error: Exception | None = None
        for attempt in range(self.retries):
            try:
                async with asyncio.timeout(self.timeout_sec):
                    async with httpx.AsyncClient(timeout=self.timeout_sec, transport=self.transport) as client:
                        response = await client.post(url, headers=headers, json=body)
            except (httpx.TransportError, TimeoutError) as exc:
                last_error = exc
                logger.warning(
                    "ORS route request failed",
                    extra={"attempt": attempt + 1, "retries": self.retries, "mode": mode.value, "error": repr(exc)},
                )
                if attempt + 1 < self.retries:
                    await asyncio.sleep(self.backoff * (2**attempt))
                continue
            except httpx.HTTPError as exc:
                logger.warning("ORS response could not be read", extra={"mode": mode.value, "error": repr(exc)})
                return DirectionsHttpFailure(status=None, message=f"Directions service response could not be read: {exc}")

            if not response.is_success:
                message = extract_error_message(response)
                logger.warning(
                    "ORS returned an error response",
                    extra={"status": response.status_code, "mode": mode.value, "error": message},
                )
                return DirectionsHttpFailure(status=response.status_code, message=message)

            try:
                payload = response.json()
            except ValueError:
                logger.warning("ORS returned a body that is not JSON", extra={"mode": mode.value})
                return DirectionsEmpty("Directions service returned an unreadable response")

            feature = parse_feature_collection(payload)
            if feature is None:
                logger.warning("ORS returned no usable route", extra={"mode": mode.value})
                return DirectionsEmpty()
            return DirectionsSuccess(feature=feature)

        if isinstance(last_error, (httpx.TimeoutException, TimeoutError)):
            message = "Directions service timed out"
        else:
            message = f"Directions service unreachable: {last_error!r}"
        return DirectionsHttpFailure(status=None, message=message)
