from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from app.api.deps import get_geocoding_service, get_route_service
from app.core.responses import success_response
from app.schemas.route import LocationResolution, RouteCalculationRequest, RouteResponse
from app.services.geocoding import GeocodingService
from app.services.routing import RouteService

router = APIRouter(prefix="/routes", tags=["Routes"])


@router.post("/calculate")
async def calculate_route(
    request: Request,
    payload: RouteCalculationRequest,
    service: RouteService = Depends(get_route_service),
):
    route = await service.calculate(
        [item.to_domain() for item in payload.waypoints],
        payload.mode,
        payload.route_options(),
    )
    return success_response(data=RouteResponse.from_result(route).to_wire(), request=request)


@router.get("/locations/resolve")
async def resolve_location(
    request: Request,
    q: str = Query(min_length=2, max_length=255),
    service: GeocodingService = Depends(get_geocoding_service),
):
    point = await service.resolve(q)
    data = LocationResolution(
        query=q,
        found=point is not None,
        lat=point.lat if point else None,
        lng=point.lon if point else None,
    )
    return success_response(data=data.model_dump(), request=request)
