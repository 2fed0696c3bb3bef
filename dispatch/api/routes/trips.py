"""
Trip endpoints
==============

POST /api/v1/trips                        -- log a new request (Pending)
GET  /api/v1/trips                        -- dispatch board, one column per status
GET  /api/v1/trips/{trip_id}              -- single trip with customer and driver
POST /api/v1/trips/{trip_id}/assign       -- Pending -> Confirmed
POST /api/v1/trips/{trip_id}/advance      -- Confirmed -> In Progress -> Completed
POST /api/v1/trips/{trip_id}/verification -- record customer/driver amounts
"""

from fastapi import APIRouter, Depends, Request

from dispatch.api.dependencies import get_trip_service
from dispatch.api.middleware import limiter
from dispatch.api.schemas import (
    AdvanceStatusRequest,
    AssignDriverRequest,
    BoardColumn,
    ErrorResponse,
    TripCreateRequest,
    TripResponse,
    VerificationRequest,
    VerificationResponse,
)
from dispatch.config import settings
from dispatch.services.trips import TripService

router = APIRouter(prefix="/trips", tags=["trips"])

_ERRORS = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


@router.post(
    "",
    status_code=201,
    response_model=TripResponse,
    summary="Log a new trip request",
    responses={422: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def create_trip(
    request: Request,
    body: TripCreateRequest,
    service: TripService = Depends(get_trip_service),
):
    details = await service.create_trip(
        full_name=body.full_name,
        phone_number=body.phone_number,
        business_type=body.business_type,
        load_description=body.load_description,
        pickup_location=body.pickup_location,
        dropoff_location=body.dropoff_location,
        pickup_time=body.pickup_time,
    )
    return TripResponse.from_details(details)


@router.get(
    "",
    response_model=list[BoardColumn],
    summary="Dispatch board: trips grouped by status, earliest pickup first",
)
@limiter.limit(settings.rate_limit)
async def get_board(
    request: Request,
    service: TripService = Depends(get_trip_service),
):
    board = await service.board()
    return [
        BoardColumn(
            status=status,
            trips=[TripResponse.from_details(d) for d in trips],
        )
        for status, trips in board.items()
    ]


@router.get(
    "/{trip_id}",
    response_model=TripResponse,
    summary="Get a trip",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def get_trip(
    request: Request,
    trip_id: str,
    service: TripService = Depends(get_trip_service),
):
    return TripResponse.from_details(await service.get_trip(trip_id))


@router.post(
    "/{trip_id}/assign",
    response_model=TripResponse,
    summary="Assign a driver and agree the fare",
    description=(
        "Moves a Pending trip to Confirmed, setting the driver, the agreed "
        "fare and the derived 12 % platform commission in a single write."
    ),
    responses=_ERRORS,
)
@limiter.limit(settings.rate_limit)
async def assign_driver(
    request: Request,
    trip_id: str,
    body: AssignDriverRequest,
    service: TripService = Depends(get_trip_service),
):
    details = await service.assign_driver(
        trip_id,
        body.driver_id,
        body.agreed_fare,
        expected_version=body.expected_version,
    )
    return TripResponse.from_details(details)


@router.post(
    "/{trip_id}/advance",
    response_model=TripResponse,
    summary="Advance a confirmed trip to its next status",
    responses=_ERRORS,
)
@limiter.limit(settings.rate_limit)
async def advance_status(
    request: Request,
    trip_id: str,
    body: AdvanceStatusRequest,
    service: TripService = Depends(get_trip_service),
):
    details = await service.advance_status(
        trip_id, body.target, expected_version=body.expected_version
    )
    return TripResponse.from_details(details)


@router.post(
    "/{trip_id}/verification",
    response_model=VerificationResponse,
    summary="Record the amount reported by the customer and/or the driver",
    responses=_ERRORS,
)
@limiter.limit(settings.rate_limit)
async def record_verification(
    request: Request,
    trip_id: str,
    body: VerificationRequest,
    service: TripService = Depends(get_trip_service),
):
    details, outcome = await service.record_verification(
        trip_id,
        customer_amount=body.customer_amount,
        driver_amount=body.driver_amount,
        expected_version=body.expected_version,
    )
    return VerificationResponse(
        trip=TripResponse.from_details(details),
        outcome=outcome.action.value if outcome else None,
        message=outcome.message if outcome else None,
    )
