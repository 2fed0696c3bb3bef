"""
Public tracking endpoint
========================

GET /api/v1/track/{trip_id} -- customer-facing progress of one trip

The trip id is an unguessable UUID, shared with the customer as a link.
Driver contact details appear only once a driver has been assigned.
"""

from fastapi import APIRouter, Depends, Request

from dispatch.api.dependencies import get_trip_service
from dispatch.api.middleware import limiter
from dispatch.api.schemas import ErrorResponse, TrackingResponse
from dispatch.config import settings
from dispatch.services.trips import TripService

router = APIRouter(prefix="/track", tags=["tracking"])


@router.get(
    "/{trip_id}",
    response_model=TrackingResponse,
    summary="Track a trip",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def track_trip(
    request: Request,
    trip_id: str,
    service: TripService = Depends(get_trip_service),
):
    return TrackingResponse.model_validate(await service.tracking(trip_id))
