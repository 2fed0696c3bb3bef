"""
Commission reconciliation
=========================

``statements`` is the read side: every Completed, unsettled trip grouped
per driver, the driver owing the most first.

``settle`` is the write side.  It takes the trip ids exactly as they were
shown on a statement and marks those, and only those, as settled:

* the call holds ``lock:settle:<driver_id>`` in Redis for its duration
  (a Redis failure before the lock is held fails the call; one while
  releasing it does not, the trips are settled by then);
* every id must exist, belong to the driver and be Completed, otherwise
  nothing is settled;
* ids that are already settled are reported back and skipped, so
  repeating a settle is harmless;
* the update and its audit event commit together, or the whole batch is
  rolled back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.config import settings
from dispatch.domain.audit import commission_settled
from dispatch.domain.enums import TripStatus
from dispatch.domain.errors import DataAccessError, StaleTripError, ValidationError
from dispatch.domain.reconciliation import (
    ZERO,
    DriverStatement,
    build_statements,
    trip_commission,
)
from dispatch.infrastructure.locks import settlement_lock
from dispatch.infrastructure.repositories import (
    AuditRepository,
    DriverRepository,
    TripRepository,
    to_driver,
    to_trip,
)
from dispatch.services.base import record_event

logger = logging.getLogger(__name__)

SETTLE_FAILED_MESSAGE = "Error settling balance. Please try again."


@dataclass(frozen=True)
class SettlementResult:
    driver_id: str
    settled_trip_ids: list[str] = field(default_factory=list)
    already_settled_trip_ids: list[str] = field(default_factory=list)
    total_commission: Decimal = ZERO


class SettlementService:
    def __init__(
        self,
        session: AsyncSession,
        redis: aioredis.Redis,
        lock_ttl_seconds: int | None = None,
    ):
        self.session = session
        self.redis = redis
        self.lock_ttl = lock_ttl_seconds or settings.settle_lock_ttl_seconds
        self.trips = TripRepository(session)
        self.drivers = DriverRepository(session)
        self.audit = AuditRepository(session)

    async def statements(self) -> list[DriverStatement]:
        rows = await self.trips.list_unsettled_completed()
        trips = [to_trip(r) for r in rows]
        drivers = {
            d.id: to_driver(d)
            for d in await self.drivers.get_many({t.driver_id for t in trips if t.driver_id})
        }
        return build_statements(trips, drivers)

    async def settle(self, driver_id: str, trip_ids: Iterable[str]) -> SettlementResult:
        ids = list(dict.fromkeys(trip_ids or []))
        if not driver_id:
            raise ValidationError("driver_id is required")
        if not ids:
            raise ValidationError("At least one trip id is required")

        # Release swallows its own Redis errors, so only a failed acquire
        # (nothing settled yet) lands in the handler below
        try:
            async with settlement_lock(self.redis, driver_id, self.lock_ttl):
                return await self._settle_locked(driver_id, ids)
        except RedisError as exc:
            logger.error("Settlement lock unavailable for driver %s: %s", driver_id, exc)
            raise DataAccessError(SETTLE_FAILED_MESSAGE) from exc

    async def _settle_locked(self, driver_id: str, ids: list[str]) -> SettlementResult:
        rows = {r.id: r for r in await self.trips.get_many(ids)}

        missing = [i for i in ids if i not in rows]
        foreign = [
            i for i in ids
            if i in rows
            and (rows[i].driver_id != driver_id
                 or TripStatus(rows[i].status) != TripStatus.COMPLETED)
        ]
        problems = []
        if missing:
            problems.append(f"unknown trip(s) {', '.join(missing)}")
        if foreign:
            problems.append(f"trip(s) not completed by this driver {', '.join(foreign)}")
        if problems:
            await self.session.rollback()
            raise ValidationError("Cannot settle: " + "; ".join(problems))

        already = [i for i in ids if rows[i].commission_settled]
        pending = [i for i in ids if not rows[i].commission_settled]
        if not pending:
            await self.session.rollback()
            logger.info("Driver %s: trips already settled, nothing to do", driver_id)
            return SettlementResult(driver_id=driver_id, already_settled_trip_ids=already)

        total = sum((trip_commission(to_trip(rows[i])) for i in pending), ZERO)
        try:
            count = await self.trips.mark_settled(driver_id, pending)
            if count != len(pending):
                await self.session.rollback()
                raise StaleTripError(
                    f"Settled {count} of {len(pending)} trips; statement is stale, reload it"
                )
            await record_event(
                self.session, self.audit, commission_settled(driver_id, pending, total)
            )
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Settlement failed for driver %s", driver_id)
            raise DataAccessError(SETTLE_FAILED_MESSAGE) from exc

        logger.info(
            "Driver %s settled %d trip(s), commission %s", driver_id, len(pending), total
        )
        return SettlementResult(
            driver_id=driver_id,
            settled_trip_ids=pending,
            already_settled_trip_ids=already,
            total_commission=total,
        )
