"""Unit-of-work helpers shared by the dispatch services."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.domain.audit import AuditEvent
from dispatch.domain.entities import Customer, Driver, Trip
from dispatch.infrastructure.models import TripModel
from dispatch.infrastructure.repositories import (
    AuditRepository,
    to_customer,
    to_driver,
    to_trip,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TripDetails:
    """A trip together with the parties it references."""

    trip: Trip
    customer: Optional[Customer] = None
    driver: Optional[Driver] = None


def details_from_row(row: TripModel) -> TripDetails:
    return TripDetails(
        trip=to_trip(row),
        customer=to_customer(row.customer) if row.customer else None,
        driver=to_driver(row.driver) if row.driver else None,
    )


async def record_event(
    session: AsyncSession, audit: AuditRepository, event: AuditEvent
) -> None:
    """Append *event* inside a SAVEPOINT.

    A failed audit write is rolled back on its own and logged; the
    surrounding action still commits.
    """
    try:
        async with session.begin_nested():
            await audit.append(event)
    except SQLAlchemyError:
        logger.exception(
            "Audit write failed (%s %s/%s)",
            event.action.value,
            event.table_name,
            event.record_id,
        )
