"""
SQLAlchemy ORM models  (maps to PostgreSQL).

Tables
------
* ``customers``         -- shippers, reused by phone number
* ``drivers``           -- truck owners, created out of band
* ``corridors``         -- named routes/regions
* ``driver_corridors``  -- many-to-many join, a matchmaking hint only
* ``trips``             -- cargo jobs moving through the lifecycle
* ``audit_log``         -- append-only record of state changes

Indexes
-------
* **B-Tree** on ``trips.status``, ``trips.driver_id``, ``trips.pickup_time``
  and ``(status, commission_settled)`` for the board and reconciliation
  reads; ``(table_name, record_id)`` on ``audit_log`` for inspection.
"""

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from dispatch.domain.enums import TripStatus


def _uuid() -> str:
    return str(uuid.uuid4())


driver_corridors = Table(
    "driver_corridors",
    Base.metadata,
    Column("driver_id", String(36), ForeignKey("drivers.id"), primary_key=True),
    Column("corridor_id", String(36), ForeignKey("corridors.id"), primary_key=True),
)


class CustomerModel(Base):
    __tablename__ = "customers"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(String(36), primary_key=True, default=_uuid)
    full_name = Column(String(120), nullable=False)
    phone_number = Column(String(32), unique=True, nullable=False)
    business_type = Column(String(120), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class CorridorModel(Base):
    __tablename__ = "corridors"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(120), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class DriverModel(Base):
    __tablename__ = "drivers"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(String(36), primary_key=True, default=_uuid)
    full_name = Column(String(120), nullable=False)
    phone_number = Column(String(32), unique=True, nullable=False)
    vehicle_type = Column(String(60), nullable=False)
    registration_number = Column(String(20), unique=True, nullable=False)
    sacco_affiliation = Column(String(120), nullable=True)
    reliability_score = Column(Integer, default=100, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    corridors = relationship(
        CorridorModel, secondary=driver_corridors, lazy="selectin"
    )


class TripModel(Base):
    __tablename__ = "trips"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(String(36), primary_key=True, default=_uuid)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False)
    driver_id = Column(String(36), ForeignKey("drivers.id"), nullable=True)

    load_description = Column(Text, nullable=False)
    pickup_location = Column(Text, nullable=False)
    dropoff_location = Column(Text, nullable=False)
    pickup_time = Column(DateTime(timezone=True), nullable=False)

    agreed_fare = Column(Numeric(12, 2), nullable=True)
    platform_commission = Column(Numeric(12, 2), nullable=True)

    # Stored by value ("In Progress"), not by member name
    status = Column(
        Enum(
            TripStatus,
            name="trip_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        default=TripStatus.PENDING,
        nullable=False,
    )

    customer_verified_amount = Column(Numeric(12, 2), nullable=True)
    driver_verified_amount = Column(Numeric(12, 2), nullable=True)
    commission_paid = Column(Boolean, default=False, nullable=False)
    commission_settled = Column(Boolean, default=False, nullable=False)

    # Optimistic-concurrency guard, bumped by every conditional write
    version = Column(Integer, default=1, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    customer = relationship(CustomerModel, lazy="joined")
    driver = relationship(DriverModel, lazy="joined")

    __table_args__ = (
        Index("idx_trips_status", "status"),
        Index("idx_trips_driver", "driver_id"),
        Index("idx_trips_pickup_time", "pickup_time"),
        Index("idx_trips_reconciliation", "status", "commission_settled"),
    )


class AuditLogModel(Base):
    __tablename__ = "audit_log"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    table_name = Column(String(60), nullable=False)
    record_id = Column(String(36), nullable=False)
    action = Column(String(40), nullable=False)
    old_data = Column(JSON, nullable=True)
    new_data = Column(JSON, nullable=True)
    message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_audit_record", "table_name", "record_id"),
        Index("idx_audit_created", "created_at"),
    )
