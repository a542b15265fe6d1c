from __future__ import annotations

from fastapi import APIRouter, Depends

from nearby_service.dependencies import get_finder
from nearby_service.errors import ApiError, DirectoryUnavailableError, InvalidInputError
from nearby_service.finder import NearbyProviderFinder
from nearby_service.response import list_response
from nearby_service.schemas import NearbyQueryRequest

router = APIRouter(prefix="/v1/providers", tags=["providers"])


@router.post("/nearby")
async def nearby_providers(
    body: NearbyQueryRequest,
    finder: NearbyProviderFinder = Depends(get_finder),
) -> dict:
    try:
        matches = await finder.query(body.latitude, body.longitude, body.radius)
    except InvalidInputError as exc:
        raise ApiError("VALIDATION_ERROR", str(exc), 400) from exc
    except DirectoryUnavailableError as exc:
        raise ApiError("DIRECTORY_UNAVAILABLE", str(exc), 500) from exc
    return list_response([match.to_payload() for match in matches])
