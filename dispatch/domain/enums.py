"""Domain enumerations and state-transition rules."""

import enum
from typing import Optional


class TripStatus(str, enum.Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


# Lifecycle order, also the column order of the dispatch board
STATUS_ORDER: list[TripStatus] = [
    TripStatus.PENDING,
    TripStatus.CONFIRMED,
    TripStatus.IN_PROGRESS,
    TripStatus.COMPLETED,
]

# State machine: maps current status -> its only valid next status
TRIP_TRANSITIONS: dict[TripStatus, Optional[TripStatus]] = {
    TripStatus.PENDING: TripStatus.CONFIRMED,
    TripStatus.CONFIRMED: TripStatus.IN_PROGRESS,
    TripStatus.IN_PROGRESS: TripStatus.COMPLETED,
    TripStatus.COMPLETED: None,
}


class AuditAction(str, enum.Enum):
    STATUS_UPDATE = "STATUS_UPDATE"
    VERIFICATION_MATCH = "VERIFICATION_MATCH"
    VERIFICATION_MISMATCH = "VERIFICATION_MISMATCH"
    COMMISSION_SETTLED = "COMMISSION_SETTLED"
