from __future__ import annotations

import abc
import asyncio
import logging
from typing import Sequence

import httpx

from app.core.config import Settings, get_settings
from app.services.coordinates import GeoPoint
from app.services.waypoints import Waypoint

logger = logging.getLogger(__name__)


class GeoProvider(abc.ABC):
    @abc.abstractmethod
    async def geocode(self, location_text: str) -> GeoPoint | None:
        raise NotImplementedError


class NominatimGeoProvider(GeoProvider):
    def __init__(
        self,
        *,
        base_url: str = "https://nominatim.openstreetmap.org",
        user_agent: str = "route-wizard-hub/1.0 (geocoder)",
        country_codes: str = "",
        timeout_sec: float = 6.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.country_codes = country_codes
        self.timeout_sec = timeout_sec
        self.transport = transport

    async def _search(self, query: str, limit: int = 1) -> list[dict]:
        params: dict[str, str | int] = {
            "q": query,
            "format": "jsonv2",
            "limit": limit,
        }
        if self.country_codes:
            params["countrycodes"] = self.country_codes
        headers = {"User-Agent": self.user_agent}
        async with httpx.AsyncClient(timeout=self.timeout_sec, headers=headers, transport=self.transport) as client:
            response = await client.get(f"{self.base_url}/search", params=params)
            response.raise_for_status()
            payload = response.json()
            if isinstance(payload, list):
                return payload
            return []

    async def geocode(self, location_text: str) -> GeoPoint | None:
        items = await self._search(location_text, limit=1)
        if not items or not isinstance(items[0], dict):
            return None
        item = items[0]
        return GeoPoint.from_values(item.get("lat"), item.get("lon"))


class GeocodingService:
    def __init__(self, provider: GeoProvider | None = None, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.provider: GeoProvider = provider or NominatimGeoProvider(
            base_url=self.settings.nominatim_base_url,
            user_agent=self.settings.nominatim_user_agent,
            country_codes=self.settings.geocode_country_codes,
            timeout_sec=self.settings.geocode_timeout_sec,
        )

    async def resolve(self, address: str) -> GeoPoint | None:
        text = address.strip()
        if not text:
            return None
        try:
            async with asyncio.timeout(self.settings.geocode_timeout_sec):
                point = await self.provider.geocode(text)
        except TimeoutError:
            logger.warning("Geocode request timed out", extra={"provider": self.provider.__class__.__name__})
            return None
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "Geocode provider failed",
                extra={"provider": self.provider.__class__.__name__, "error": str(exc)},
            )
            return None
        if point is None:
            logger.info("Address not found", extra={"provider": self.provider.__class__.__name__})
        return point

    async def resolve_waypoints(self, waypoints: Sequence[Waypoint]) -> list[Waypoint]:
        """Fill in coordinates for waypoints that lack them.

        Lookups run concurrently and are independent: one failed or slow
        address leaves only that waypoint unresolved. Order is preserved.
        """
        semaphore = asyncio.Semaphore(max(1, self.settings.geocode_max_concurrency))

        async def resolve_one(waypoint: Waypoint) -> Waypoint:
            if waypoint.is_resolved:
                return waypoint
            async with semaphore:
                point = await self.resolve(waypoint.address)
            if point is None:
                return waypoint
            return waypoint.with_point(point)

        results = await asyncio.gather(*(resolve_one(item) for item in waypoints), return_exceptions=True)
        resolved: list[Waypoint] = []
        for waypoint, item in zip(waypoints, results):
            if isinstance(item, BaseException):
                if isinstance(item, asyncio.CancelledError):
                    raise item
                logger.warning(
                    "Geocode lookup crashed",
                    extra={"waypoint_id": waypoint.id, "error": str(item)},
                )
                resolved.append(waypoint)
                continue
            resolved.append(item)
        return resolved
