"""Public trip-tracking projection shown to customers via a shared link."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .entities import Driver, Trip
from .enums import STATUS_ORDER, TripStatus

STATUS_LABELS: dict[TripStatus, str] = {
    TripStatus.PENDING: "Finding Driver",
    TripStatus.CONFIRMED: "Driver Assigned",
    TripStatus.IN_PROGRESS: "On The Road",
    TripStatus.COMPLETED: "Delivered",
}

STATUS_DESCRIPTIONS: dict[TripStatus, str] = {
    TripStatus.PENDING: "We are matching your load with the best available truck.",
    TripStatus.CONFIRMED: (
        "A driver has been assigned and will collect your load at the scheduled time."
    ),
    TripStatus.IN_PROGRESS: "Your load is currently in transit.",
    TripStatus.COMPLETED: "Your load has been delivered successfully.",
}


@dataclass(frozen=True)
class TimelineStep:
    status: TripStatus
    label: str
    description: str
    state: str  # "done" | "current" | "upcoming"


@dataclass(frozen=True)
class TrackingView:
    trip_id: str
    load_description: str
    pickup_location: str
    dropoff_location: str
    pickup_time: Optional[datetime]
    status: TripStatus
    status_label: str
    status_description: str
    agreed_fare: Optional[Decimal]
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    timeline: list[TimelineStep] = field(default_factory=list)


def timeline(current: TripStatus) -> list[TimelineStep]:
    current_idx = STATUS_ORDER.index(current)
    steps = []
    for idx, status in enumerate(STATUS_ORDER):
        if idx < current_idx:
            state = "done"
        elif idx == current_idx:
            state = "current"
        else:
            state = "upcoming"
        steps.append(
            TimelineStep(
                status=status,
                label=STATUS_LABELS[status],
                description=STATUS_DESCRIPTIONS[status],
                state=state,
            )
        )
    return steps


def build_tracking(trip: Trip, driver: Optional[Driver] = None) -> TrackingView:
    # Driver contact is only shared once the trip has left Pending
    show_driver = driver is not None and trip.status != TripStatus.PENDING
    return TrackingView(
        trip_id=trip.id,
        load_description=trip.load_description,
        pickup_location=trip.pickup_location,
        dropoff_location=trip.dropoff_location,
        pickup_time=trip.pickup_time,
        status=trip.status,
        status_label=STATUS_LABELS[trip.status],
        status_description=STATUS_DESCRIPTIONS[trip.status],
        agreed_fare=trip.agreed_fare,
        driver_name=driver.full_name if show_driver else None,
        driver_phone=driver.phone_number if show_driver else None,
        timeline=timeline(trip.status),
    )
