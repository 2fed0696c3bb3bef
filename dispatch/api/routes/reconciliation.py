"""
Reconciliation endpoints
========================

GET  /api/v1/reconciliation/statements -- unsettled commission per driver
POST /api/v1/reconciliation/settle     -- settle the trips on one statement
"""

from fastapi import APIRouter, Depends, Request

from dispatch.api.dependencies import get_settlement_service
from dispatch.api.middleware import limiter
from dispatch.api.schemas import (
    ErrorResponse,
    SettleRequest,
    SettlementResponse,
    StatementResponse,
    StatementsResponse,
)
from dispatch.config import settings
from dispatch.domain.reconciliation import outstanding_total
from dispatch.services.settlement import SettlementService

router = APIRouter(prefix="/reconciliation", tags=["reconciliation"])


@router.get(
    "/statements",
    response_model=StatementsResponse,
    summary="Outstanding commission grouped by driver, largest first",
)
@limiter.limit(settings.rate_limit)
async def get_statements(
    request: Request,
    service: SettlementService = Depends(get_settlement_service),
):
    statements = await service.statements()
    return StatementsResponse(
        currency=settings.currency,
        outstanding_total=outstanding_total(statements),
        statements=[StatementResponse.model_validate(s) for s in statements],
    )


@router.post(
    "/settle",
    response_model=SettlementResponse,
    summary="Mark the trips on a driver's statement as settled",
    description=(
        "Only the trip ids sent are settled.  Trips completed after the "
        "statement was fetched stay outstanding until the next statement."
    ),
    responses={
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
@limiter.limit(settings.rate_limit)
async def settle(
    request: Request,
    body: SettleRequest,
    service: SettlementService = Depends(get_settlement_service),
):
    result = await service.settle(body.driver_id, body.trip_ids)
    message = (
        "Balance settled successfully"
        if result.settled_trip_ids
        else "Nothing to settle; these trips were already settled"
    )
    return SettlementResponse(
        driver_id=result.driver_id,
        settled_trip_ids=result.settled_trip_ids,
        already_settled_trip_ids=result.already_settled_trip_ids,
        total_commission=result.total_commission,
        message=message,
    )
