"""
Verification Safeguard
======================

After delivery the customer and the driver each report the amount that
changed hands.  Whenever a report changes one of the two amounts and both
are now known, the amounts are compared *exactly* and a MATCH or MISMATCH
audit event is produced.

The check is advisory: it never blocks the report and never touches any
other trip field.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Optional

from .audit import AuditEvent, verification_outcome
from .commission import parse_amount
from .entities import Trip
from .errors import ValidationError
from .lifecycle import TripUpdate


def evaluate(
    before: tuple[Optional[Decimal], Optional[Decimal]],
    after: tuple[Optional[Decimal], Optional[Decimal]],
    trip_id: str,
) -> Optional[AuditEvent]:
    """Return the outcome event for a (customer, driver) amount change.

    ``None`` when either amount is still unknown or nothing changed, so
    unrelated writes never re-fire the check.
    """
    customer_amount, driver_amount = after
    if customer_amount is None or driver_amount is None:
        return None
    if before == after:
        return None
    return verification_outcome(trip_id, customer_amount, driver_amount)


def record_verification(
    trip: Trip,
    customer_amount: object = None,
    driver_amount: object = None,
) -> TripUpdate:
    """Store the reported amounts; an omitted amount keeps its current value."""
    if customer_amount is None and driver_amount is None:
        raise ValidationError("Report at least one of customer_amount or driver_amount")

    after = trip
    if customer_amount is not None:
        after = replace(
            after,
            customer_verified_amount=parse_amount(customer_amount, "customer_amount"),
        )
    if driver_amount is not None:
        after = replace(
            after,
            driver_verified_amount=parse_amount(driver_amount, "driver_amount"),
        )

    event = evaluate(
        (trip.customer_verified_amount, trip.driver_verified_amount),
        (after.customer_verified_amount, after.driver_verified_amount),
        trip.id,
    )
    return TripUpdate(before=trip, after=after, events=[event] if event else [])
