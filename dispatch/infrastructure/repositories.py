"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  Rows leave this module as domain entities.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    AuditLogModel,
    CorridorModel,
    CustomerModel,
    DriverModel,
    TripModel,
)
from dispatch.domain.audit import AuditEvent
from dispatch.domain.entities import Customer, Driver, Trip
from dispatch.domain.enums import AuditAction, TripStatus


# ── Row -> entity ─────────────────────────────────────────────────────


def to_customer(row: CustomerModel) -> Customer:
    return Customer(
        id=row.id,
        full_name=row.full_name,
        phone_number=row.phone_number,
        business_type=row.business_type,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_driver(row: DriverModel) -> Driver:
    return Driver(
        id=row.id,
        full_name=row.full_name,
        phone_number=row.phone_number,
        vehicle_type=row.vehicle_type,
        registration_number=row.registration_number,
        sacco_affiliation=row.sacco_affiliation,
        reliability_score=row.reliability_score,
        corridors=sorted(c.name for c in row.corridors),
    )


def to_trip(row: TripModel) -> Trip:
    return Trip(
        id=row.id,
        customer_id=row.customer_id,
        driver_id=row.driver_id,
        load_description=row.load_description,
        pickup_location=row.pickup_location,
        dropoff_location=row.dropoff_location,
        pickup_time=row.pickup_time,
        agreed_fare=row.agreed_fare,
        platform_commission=row.platform_commission,
        status=TripStatus(row.status),
        customer_verified_amount=row.customer_verified_amount,
        driver_verified_amount=row.driver_verified_amount,
        commission_paid=row.commission_paid,
        commission_settled=row.commission_settled,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _json_safe(data: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Decimals become strings so amounts are stored exactly as reported."""
    if data is None:
        return None
    return {
        key: str(value) if isinstance(value, Decimal) else value
        for key, value in data.items()
    }


# ── Repositories ──────────────────────────────────────────────────────


class CustomerRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, customer_id: str) -> Optional[CustomerModel]:
        return await self.session.get(CustomerModel, customer_id)

    async def get_by_phone(self, phone_number: str) -> Optional[CustomerModel]:
        result = await self.session.execute(
            select(CustomerModel).where(CustomerModel.phone_number == phone_number)
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        *,
        full_name: str,
        phone_number: str,
        business_type: str | None = None,
    ) -> CustomerModel:
        customer = CustomerModel(
            full_name=full_name,
            phone_number=phone_number,
            business_type=business_type,
        )
        self.session.add(customer)
        await self.session.flush()
        return customer


class DriverRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, driver_id: str) -> Optional[DriverModel]:
        return await self.session.get(DriverModel, driver_id)

    async def get_many(self, driver_ids: Iterable[str]) -> list[DriverModel]:
        ids = list(driver_ids)
        if not ids:
            return []
        result = await self.session.execute(
            select(DriverModel).where(DriverModel.id.in_(ids))
        )
        return list(result.scalars().all())

    async def list_ranked(self, corridor: str | None = None) -> list[DriverModel]:
        """Drivers by reliability score, best first."""
        query = select(DriverModel).order_by(
            DriverModel.reliability_score.desc(), DriverModel.full_name
        )
        if corridor:
            query = query.where(
                DriverModel.corridors.any(CorridorModel.name == corridor)
            )
        result = await self.session.execute(query)
        return list(result.scalars().all())


class TripRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, trip: Trip) -> TripModel:
        row = TripModel(
            customer_id=trip.customer_id,
            load_description=trip.load_description,
            pickup_location=trip.pickup_location,
            dropoff_location=trip.dropoff_location,
            pickup_time=trip.pickup_time,
            status=trip.status,
            driver_id=None,
            agreed_fare=None,
            platform_commission=None,
            commission_paid=False,
            commission_settled=False,
            version=1,
        )
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)
        return row

    async def get_by_id(
        self, trip_id: str, *, refresh: bool = False
    ) -> Optional[TripModel]:
        return await self.session.get(TripModel, trip_id, populate_existing=refresh)

    async def get_many(self, trip_ids: Iterable[str]) -> list[TripModel]:
        ids = list(trip_ids)
        if not ids:
            return []
        result = await self.session.execute(
            select(TripModel)
            .where(TripModel.id.in_(ids))
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_by_pickup_time(self) -> list[TripModel]:
        result = await self.session.execute(
            select(TripModel)
            .order_by(TripModel.pickup_time, TripModel.created_at)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_unsettled_completed(self) -> list[TripModel]:
        result = await self.session.execute(
            select(TripModel)
            .where(
                TripModel.status == TripStatus.COMPLETED,
                TripModel.commission_settled.is_(False),
            )
            .order_by(TripModel.created_at, TripModel.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def apply_if_unchanged(
        self,
        trip_id: str,
        *,
        expected_status: TripStatus,
        expected_version: int,
        values: dict[str, Any],
    ) -> bool:
        """Conditional UPDATE guarded by status and version.

        Returns False when another writer got there first; nothing is
        written in that case.
        """
        result = await self.session.execute(
            update(TripModel)
            .where(
                TripModel.id == trip_id,
                TripModel.status == expected_status,
                TripModel.version == expected_version,
            )
            .values(**values, version=TripModel.version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def mark_settled(self, driver_id: str, trip_ids: list[str]) -> int:
        """Settle exactly *trip_ids*; already-settled rows are left alone."""
        if not trip_ids:
            return 0
        result = await self.session.execute(
            update(TripModel)
            .where(
                TripModel.id.in_(trip_ids),
                TripModel.driver_id == driver_id,
                TripModel.status == TripStatus.COMPLETED,
                TripModel.commission_settled.is_(False),
            )
            .values(commission_settled=True, version=TripModel.version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


class AuditRepository:
    """Append-only.  There is deliberately no update or delete."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, event: AuditEvent) -> AuditLogModel:
        row = AuditLogModel(
            table_name=event.table_name,
            record_id=event.record_id,
            action=event.action.value,
            old_data=_json_safe(event.old_data),
            new_data=_json_safe(event.new_data),
            message=event.message,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def recent(
        self, limit: int = 100, record_id: str | None = None
    ) -> list[AuditEvent]:
        query = select(AuditLogModel).order_by(AuditLogModel.id.desc()).limit(limit)
        if record_id:
            query = query.where(AuditLogModel.record_id == record_id)
        result = await self.session.execute(query)
        return [
            AuditEvent(
                id=row.id,
                table_name=row.table_name,
                record_id=row.record_id,
                action=AuditAction(row.action),
                old_data=row.old_data,
                new_data=row.new_data,
                message=row.message,
                created_at=row.created_at,
            )
            for row in result.scalars().all()
        ]
