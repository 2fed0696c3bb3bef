"""
Reconciliation Aggregator
=========================

1. **Filter**  -- keep Completed, unsettled trips that have a driver.
2. **Group**   -- one ``DriverStatement`` per driver, trips in input order.
3. **Sum**     -- total fare (missing fare counts as 0) and total commission
   (stored commission, or recomputed from the fare when the stored value
   is absent).
4. **Order**   -- highest commission owed first.  Ties keep first-seen order.

A statement remembers the exact trip ids it was built from.  Settling uses
that snapshot, so trips completed after the statement was shown are left
for the next build.

Complexity: O(N + D log D) for N trips and D drivers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from .commission import derive_commission, to_money
from .entities import Driver, Trip
from .enums import TripStatus

ZERO = Decimal("0.00")


@dataclass
class DriverStatement:
    driver_id: str
    driver: Optional[Driver] = None
    trips: list[Trip] = field(default_factory=list)
    total_fare: Decimal = ZERO
    total_commission: Decimal = ZERO

    @property
    def trip_ids(self) -> list[str]:
        return [t.id for t in self.trips]


def is_outstanding(trip: Trip) -> bool:
    return (
        trip.status == TripStatus.COMPLETED
        and not trip.commission_settled
        and trip.driver_id is not None
    )


def trip_commission(trip: Trip) -> Decimal:
    if trip.platform_commission is not None:
        return to_money(trip.platform_commission)
    return derive_commission(trip.agreed_fare or ZERO)


def build_statements(
    trips: Iterable[Trip],
    drivers: Optional[Mapping[str, Driver]] = None,
) -> list[DriverStatement]:
    statements: dict[str, DriverStatement] = {}
    for trip in trips:
        if not is_outstanding(trip):
            continue
        stmt = statements.get(trip.driver_id)
        if stmt is None:
            stmt = DriverStatement(
                driver_id=trip.driver_id,
                driver=(drivers or {}).get(trip.driver_id),
            )
            statements[trip.driver_id] = stmt
        stmt.trips.append(trip)
        stmt.total_fare += to_money(trip.agreed_fare or ZERO)
        stmt.total_commission += trip_commission(trip)

    return sorted(
        statements.values(), key=lambda s: s.total_commission, reverse=True
    )


def outstanding_total(statements: Iterable[DriverStatement]) -> Decimal:
    return sum((s.total_commission for s in statements), ZERO)
