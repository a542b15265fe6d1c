from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from nearby_service.dependencies import get_location_service
from nearby_service.errors import ApiError
from nearby_service.response import data_response
from nearby_service.services.location_service import LocationService

router = APIRouter(prefix="/v1/location", tags=["location"])


def _resolve_client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",", 1)[0].strip()
    if request.client:
        return request.client.host
    return None


@router.get("/approximate")
async def approximate_location(
    request: Request,
    service: LocationService = Depends(get_location_service),
) -> dict:
    location = await service.approximate(_resolve_client_ip(request))
    if location is None:
        raise ApiError("LOCATION_UNAVAILABLE", "location unavailable", 404)
    return data_response(location.model_dump())
