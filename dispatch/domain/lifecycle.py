"""
Trip Lifecycle State Machine
============================

    Pending --assign--> Confirmed --start--> In Progress --finish--> Completed

* Forward only, one step at a time.  ``Completed`` is terminal.
* ``Pending -> Confirmed`` is reachable only through ``assign_driver``,
  which needs a driver and a positive fare.  The other two steps carry no
  data and go through ``advance``.
* Each handler is pure: it takes the current ``Trip`` and returns a
  ``TripUpdate`` (new state + audit events) or raises.  Persisting the
  update is the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Optional

from .audit import AuditEvent, status_update
from .commission import parse_fare
from .entities import Trip
from .enums import TRIP_TRANSITIONS, TripStatus
from .errors import TransitionError, ValidationError

# Columns a TripUpdate may write; identity and bookkeeping are excluded
_WRITABLE = frozenset(
    f.name
    for f in fields(Trip)
    if f.name not in {"id", "customer_id", "version", "created_at", "updated_at"}
)


@dataclass(frozen=True)
class TripUpdate:
    before: Trip
    after: Trip
    events: list[AuditEvent] = field(default_factory=list)

    @property
    def changes(self) -> dict[str, Any]:
        """Column values that differ between *before* and *after*."""
        return {
            name: getattr(self.after, name)
            for name in _WRITABLE
            if getattr(self.after, name) != getattr(self.before, name)
        }


def successor(status: TripStatus) -> Optional[TripStatus]:
    return TRIP_TRANSITIONS.get(status)


def assign_driver(trip: Trip, driver_id: Optional[str], agreed_fare: object) -> TripUpdate:
    """Pending -> Confirmed.  Sets driver, fare and commission in one step."""
    if trip.status != TripStatus.PENDING:
        raise TransitionError(
            f"Cannot assign a driver to a trip in status {trip.status.value}"
        )
    if not driver_id:
        raise ValidationError("A driver must be selected")
    fare = parse_fare(agreed_fare)

    after = trip.priced_at(fare).transition_to(TripStatus.CONFIRMED)
    after = replace(after, driver_id=driver_id)
    event = status_update(
        trip.id,
        trip.status,
        after.status,
        extra={"driver_id": driver_id, "agreed_fare": fare},
    )
    return TripUpdate(before=trip, after=after, events=[event])


def advance(trip: Trip, target: Optional[TripStatus] = None) -> TripUpdate:
    """Move a confirmed trip one step forward.

    *target* defaults to the successor; if given it must be the successor.
    Pending trips are rejected here since confirming needs ``assign_driver``.
    """
    nxt = successor(trip.status)
    if trip.status == TripStatus.PENDING:
        raise TransitionError(
            "A pending trip is confirmed by assigning a driver, not by advancing"
        )
    if nxt is None:
        raise TransitionError(f"No status follows {trip.status.value}")
    after = trip.transition_to(target if target is not None else nxt)
    return TripUpdate(
        before=trip,
        after=after,
        events=[status_update(trip.id, trip.status, after.status)],
    )

