"""
Admin / observability endpoints
===============================

GET /api/v1/admin/audit-log -- most recent audit events, newest first
GET /api/v1/admin/health    -- simple health check
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.api.dependencies import get_db
from dispatch.api.middleware import limiter
from dispatch.api.schemas import AuditEventResponse, HealthResponse
from dispatch.config import settings
from dispatch.infrastructure.repositories import AuditRepository

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/audit-log",
    response_model=list[AuditEventResponse],
    summary="Inspect the audit trail",
)
@limiter.limit(settings.rate_limit)
async def get_audit_log(
    request: Request,
    record_id: Optional[str] = Query(None, description="Only events for this record."),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    events = await AuditRepository(db).recent(limit=limit, record_id=record_id)
    return [AuditEventResponse.model_validate(e) for e in events]


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
