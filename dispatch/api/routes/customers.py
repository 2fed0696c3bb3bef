"""
Customer endpoints
==================

PATCH /api/v1/customers/{customer_id} -- correct name / business type
"""

from fastapi import APIRouter, Depends, Request

from dispatch.api.dependencies import get_trip_service
from dispatch.api.middleware import limiter
from dispatch.api.schemas import (
    CustomerCorrectionRequest,
    CustomerResponse,
    ErrorResponse,
)
from dispatch.config import settings
from dispatch.services.trips import TripService

router = APIRouter(prefix="/customers", tags=["customers"])


@router.patch(
    "/{customer_id}",
    response_model=CustomerResponse,
    summary="Correct a customer's name or business type",
    description="Phone number is the customer's identity and cannot be changed.",
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def correct_customer(
    request: Request,
    customer_id: str,
    body: CustomerCorrectionRequest,
    service: TripService = Depends(get_trip_service),
):
    customer = await service.correct_customer(
        customer_id,
        full_name=body.full_name,
        business_type=body.business_type,
    )
    return CustomerResponse.model_validate(customer)
