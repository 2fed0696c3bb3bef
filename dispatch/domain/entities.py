"""
Domain entities.

Patterns used
-------------
- **State Pattern** on ``Trip``: ``transition_to`` only accepts the single
  successor of the current status (Pending -> Confirmed -> In Progress ->
  Completed).
- ``Trip`` is immutable.  Every change returns a new value, and the only
  way to set a fare is ``priced_at``, which recomputes the commission in
  the same step.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .commission import derive_commission
from .enums import TRIP_TRANSITIONS, TripStatus
from .errors import TransitionError, ValidationError


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Customer:
    id: Optional[str] = None
    full_name: str = ""
    phone_number: str = ""
    business_type: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Corridor:
    id: Optional[str] = None
    name: str = ""


@dataclass
class Driver:
    id: Optional[str] = None
    full_name: str = ""
    phone_number: str = ""
    vehicle_type: str = ""
    registration_number: str = ""
    sacco_affiliation: Optional[str] = None
    reliability_score: int = 100
    corridors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Trip:
    id: Optional[str] = None
    customer_id: Optional[str] = None
    driver_id: Optional[str] = None
    load_description: str = ""
    pickup_location: str = ""
    dropoff_location: str = ""
    pickup_time: Optional[datetime] = None
    agreed_fare: Optional[Decimal] = None
    platform_commission: Optional[Decimal] = None
    status: TripStatus = TripStatus.PENDING
    customer_verified_amount: Optional[Decimal] = None
    driver_verified_amount: Optional[Decimal] = None
    commission_paid: bool = False
    commission_settled: bool = False
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def transition_to(self, new_status: TripStatus) -> "Trip":
        """Return a copy in *new_status* if it is the successor, else raise."""
        successor = TRIP_TRANSITIONS.get(self.status)
        if successor is None or new_status != successor:
            raise TransitionError(
                f"Cannot transition from {self.status.value} to {new_status.value}"
            )
        return replace(self, status=new_status)

    def priced_at(self, agreed_fare: Decimal) -> "Trip":
        return replace(
            self,
            agreed_fare=agreed_fare,
            platform_commission=derive_commission(agreed_fare),
        )


def new_trip(
    *,
    customer_id: str,
    load_description: str,
    pickup_location: str,
    dropoff_location: str,
    pickup_time: Optional[datetime],
) -> Trip:
    """Build a fresh Pending trip, rejecting blank free-text fields."""
    fields = {
        "load_description": (load_description or "").strip(),
        "pickup_location": (pickup_location or "").strip(),
        "dropoff_location": (dropoff_location or "").strip(),
    }
    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise ValidationError(f"Required field(s) empty: {', '.join(missing)}")
    if pickup_time is None:
        raise ValidationError("pickup_time is required")
    if not customer_id:
        raise ValidationError("customer_id is required")
    return Trip(customer_id=customer_id, pickup_time=pickup_time, **fields)
