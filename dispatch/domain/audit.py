"""Audit trail events.

Events are plain values built by the lifecycle, verification and settlement
code; the infrastructure layer appends them to ``audit_log``.  Nothing in
the write path reads them back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from .enums import AuditAction, TripStatus

MATCH_MESSAGE = "Amounts verified successfully by both parties."
MISMATCH_MESSAGE = "Discrepancy detected! Customer and driver reported different amounts."


@dataclass(frozen=True)
class AuditEvent:
    table_name: str
    record_id: str
    action: AuditAction
    old_data: Optional[dict[str, Any]] = None
    new_data: Optional[dict[str, Any]] = None
    message: Optional[str] = None
    created_at: Optional[datetime] = None
    id: Optional[int] = field(default=None, compare=False)


def status_update(
    trip_id: str,
    old: TripStatus,
    new: TripStatus,
    extra: Optional[dict[str, Any]] = None,
) -> AuditEvent:
    return AuditEvent(
        table_name="trips",
        record_id=trip_id,
        action=AuditAction.STATUS_UPDATE,
        old_data={"status": old.value},
        new_data={"status": new.value, **(extra or {})},
        message=f"Status changed from {old.value} to {new.value}",
    )


def verification_outcome(
    trip_id: str, customer_amount: Decimal, driver_amount: Decimal
) -> AuditEvent:
    """MATCH when both parties agree exactly, otherwise MISMATCH."""
    if customer_amount == driver_amount:
        action, message = AuditAction.VERIFICATION_MATCH, MATCH_MESSAGE
    else:
        action, message = AuditAction.VERIFICATION_MISMATCH, MISMATCH_MESSAGE
    return AuditEvent(
        table_name="trips",
        record_id=trip_id,
        action=action,
        new_data={
            "customer_amount": customer_amount,
            "driver_amount": driver_amount,
        },
        message=message,
    )


def commission_settled(
    driver_id: str, trip_ids: list[str], total_commission: Decimal
) -> AuditEvent:
    return AuditEvent(
        table_name="drivers",
        record_id=driver_id,
        action=AuditAction.COMMISSION_SETTLED,
        new_data={
            "trip_ids": list(trip_ids),
            "total_commission": total_commission,
        },
        message=f"Commission settled for {len(trip_ids)} trip(s)",
    )
