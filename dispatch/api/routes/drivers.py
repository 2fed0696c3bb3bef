"""
Driver endpoints
================

GET /api/v1/drivers -- roster ranked by reliability score, with corridors
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from dispatch.api.dependencies import get_trip_service
from dispatch.api.middleware import limiter
from dispatch.api.schemas import DriverResponse
from dispatch.config import settings
from dispatch.services.trips import TripService

router = APIRouter(prefix="/drivers", tags=["drivers"])


@router.get(
    "",
    response_model=list[DriverResponse],
    summary="List drivers, most reliable first",
)
@limiter.limit(settings.rate_limit)
async def list_drivers(
    request: Request,
    corridor: Optional[str] = Query(
        None, description="Only drivers who serve this corridor (hint, not enforced)."
    ),
    service: TripService = Depends(get_trip_service),
):
    return [DriverResponse.model_validate(d) for d in await service.roster(corridor)]
