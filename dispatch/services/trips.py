"""
Dispatcher trip actions
=======================

Each public method is one unit of work on the session it was given:

1. Read the trip (and whatever it references).
2. Hand it to the pure domain handler, which validates and returns the
   new state plus audit events, or raises.
3. Write the new state with a conditional UPDATE keyed on the status and
   version that were read in step 1.  Losing that race raises
   ``StaleTripError`` and writes nothing.
4. Append audit events (best-effort, inside a SAVEPOINT).
5. Commit and return the authoritative trip as re-read from the store.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.domain import lifecycle, verification
from dispatch.domain.audit import AuditEvent
from dispatch.domain.entities import Customer, Driver, new_trip
from dispatch.domain.enums import STATUS_ORDER, AuditAction, TripStatus
from dispatch.domain.errors import (
    DataAccessError,
    NotFound,
    StaleTripError,
    ValidationError,
)
from dispatch.domain.tracking import TrackingView, build_tracking
from dispatch.infrastructure.models import TripModel
from dispatch.infrastructure.repositories import (
    AuditRepository,
    CustomerRepository,
    DriverRepository,
    TripRepository,
    to_customer,
    to_driver,
    to_trip,
)
from dispatch.services.base import TripDetails, details_from_row, record_event

logger = logging.getLogger(__name__)


class TripService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.trips = TripRepository(session)
        self.customers = CustomerRepository(session)
        self.drivers = DriverRepository(session)
        self.audit = AuditRepository(session)

    # ── Intake ────────────────────────────────────────────────────────

    async def create_trip(
        self,
        *,
        full_name: str,
        phone_number: str,
        load_description: str,
        pickup_location: str,
        dropoff_location: str,
        pickup_time: Optional[datetime],
        business_type: Optional[str] = None,
    ) -> TripDetails:
        """Log a new request, reusing the customer if the phone is known."""
        full_name = (full_name or "").strip()
        phone_number = (phone_number or "").strip()
        if not full_name or not phone_number:
            raise ValidationError("Customer full_name and phone_number are required")

        # A second attempt covers a concurrent first booking for the same
        # phone: the unique constraint rejects our insert and the re-read
        # finds the customer the other request created.
        for attempt in (1, 2):
            try:
                customer = await self.customers.get_by_phone(phone_number)
                if customer is None:
                    customer = await self.customers.create(
                        full_name=full_name,
                        phone_number=phone_number,
                        business_type=(business_type or "").strip() or None,
                    )
                    logger.info("New customer %s (%s)", customer.id, phone_number)

                trip = new_trip(
                    customer_id=customer.id,
                    load_description=load_description,
                    pickup_location=pickup_location,
                    dropoff_location=dropoff_location,
                    pickup_time=pickup_time,
                )
                row = await self.trips.create(trip)
                await self.session.commit()
                break
            except IntegrityError as exc:
                await self.session.rollback()
                if attempt == 2:
                    raise DataAccessError(f"Could not create trip: {exc}") from exc
                logger.info("Customer %s registered concurrently; retrying", phone_number)
            except SQLAlchemyError as exc:
                await self.session.rollback()
                raise DataAccessError(f"Could not create trip: {exc}") from exc
            except ValidationError:
                await self.session.rollback()
                raise

        logger.info("Trip %s logged for customer %s", row.id, customer.id)
        return await self.get_trip(row.id, refresh=True)

    async def correct_customer(
        self,
        customer_id: str,
        *,
        full_name: Optional[str] = None,
        business_type: Optional[str] = None,
    ) -> Customer:
        """Customers are immutable apart from name and business type."""
        row = await self.customers.get_by_id(customer_id)
        if row is None:
            raise NotFound(f"Customer {customer_id} not found")
        if full_name is not None:
            if not full_name.strip():
                raise ValidationError("full_name cannot be empty")
            row.full_name = full_name.strip()
        if business_type is not None:
            row.business_type = business_type.strip() or None
        try:
            await self.session.commit()
            await self.session.refresh(row)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise DataAccessError(f"Could not update customer: {exc}") from exc
        return to_customer(row)

    # ── Lifecycle ─────────────────────────────────────────────────────

    async def assign_driver(
        self,
        trip_id: str,
        driver_id: Optional[str],
        agreed_fare: object,
        expected_version: Optional[int] = None,
    ) -> TripDetails:
        """Pending -> Confirmed with driver, fare and commission in one write."""
        trip = await self._load(trip_id, expected_version)
        if driver_id and await self.drivers.get_by_id(driver_id) is None:
            raise ValidationError(f"Driver {driver_id} does not exist")
        update = lifecycle.assign_driver(trip, driver_id, agreed_fare)
        details = await self._apply(update)
        logger.info(
            "Trip %s confirmed: driver=%s fare=%s commission=%s",
            trip_id,
            driver_id,
            details.trip.agreed_fare,
            details.trip.platform_commission,
        )
        return details

    async def advance_status(
        self,
        trip_id: str,
        target: Optional[TripStatus] = None,
        expected_version: Optional[int] = None,
    ) -> TripDetails:
        trip = await self._load(trip_id, expected_version)
        update = lifecycle.advance(trip, target)
        details = await self._apply(update)
        logger.info(
            "Trip %s: %s -> %s", trip_id, trip.status.value, details.trip.status.value
        )
        return details

    async def record_verification(
        self,
        trip_id: str,
        customer_amount: object = None,
        driver_amount: object = None,
        expected_version: Optional[int] = None,
    ) -> tuple[TripDetails, Optional[AuditEvent]]:
        """Store reported amounts; returns the MATCH/MISMATCH outcome if one fired."""
        trip = await self._load(trip_id, expected_version)
        update = verification.record_verification(trip, customer_amount, driver_amount)
        details = await self._apply(update)
        outcome = update.events[0] if update.events else None
        if outcome is not None and outcome.action == AuditAction.VERIFICATION_MISMATCH:
            logger.warning(
                "Verification mismatch on trip %s: customer=%s driver=%s",
                trip_id,
                details.trip.customer_verified_amount,
                details.trip.driver_verified_amount,
            )
        return details, outcome

    # ── Reads ─────────────────────────────────────────────────────────

    async def get_trip(self, trip_id: str, *, refresh: bool = False) -> TripDetails:
        row = await self.trips.get_by_id(trip_id, refresh=refresh)
        if row is None:
            raise NotFound(f"Trip {trip_id} not found")
        return details_from_row(row)

    async def board(self) -> dict[TripStatus, list[TripDetails]]:
        """Every trip under its status column, earliest pickup first."""
        columns: dict[TripStatus, list[TripDetails]] = {s: [] for s in STATUS_ORDER}
        for row in await self.trips.list_by_pickup_time():
            columns[TripStatus(row.status)].append(details_from_row(row))
        return columns

    async def roster(self, corridor: Optional[str] = None) -> list[Driver]:
        return [to_driver(d) for d in await self.drivers.list_ranked(corridor)]

    async def tracking(self, trip_id: str) -> TrackingView:
        details = await self.get_trip(trip_id)
        return build_tracking(details.trip, details.driver)

    # ── Internals ─────────────────────────────────────────────────────

    async def _load(self, trip_id: str, expected_version: Optional[int]):
        row: Optional[TripModel] = await self.trips.get_by_id(trip_id, refresh=True)
        if row is None:
            raise NotFound(f"Trip {trip_id} not found")
        trip = to_trip(row)
        if expected_version is not None and expected_version != trip.version:
            raise StaleTripError(
                f"Trip {trip_id} is at version {trip.version}, "
                f"not {expected_version}; reload and retry"
            )
        return trip

    async def _apply(self, update: lifecycle.TripUpdate) -> TripDetails:
        before = update.before
        changes = update.changes
        if not changes:
            return await self.get_trip(before.id)

        try:
            applied = await self.trips.apply_if_unchanged(
                before.id,
                expected_status=before.status,
                expected_version=before.version,
                values=changes,
            )
            if not applied:
                await self.session.rollback()
                logger.warning(
                    "Stale write rejected for trip %s (version %d)",
                    before.id,
                    before.version,
                )
                raise StaleTripError(
                    f"Trip {before.id} was changed by someone else; reload and retry"
                )
            for event in update.events:
                await record_event(self.session, self.audit, event)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise DataAccessError(f"Could not update trip {before.id}: {exc}") from exc

        return await self.get_trip(before.id, refresh=True)
