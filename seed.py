"""
Seed script -- populates the database with sample data for reviewers.

Drivers and corridors are created out of band; this script is that path.

Run after migrations:
    python seed.py

Creates:
  - 6 corridors
  - 8 drivers, each serving one or more corridors
  - 3 customers
  - 6 trips across every status (two Completed and unsettled, so the
    reconciliation page has something to show)
"""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import text

from dispatch.domain.commission import derive_commission
from dispatch.domain.enums import TripStatus
from dispatch.infrastructure.database import async_session_factory, engine
from dispatch.infrastructure.models import (
    CorridorModel,
    CustomerModel,
    DriverModel,
    TripModel,
)

CORRIDORS = [
    "Nairobi - Mombasa",
    "Nairobi - Nakuru",
    "Nakuru - Eldoret",
    "Eldoret - Kisumu",
    "Nairobi - Thika",
    "Mombasa - Malindi",
]

DRIVERS = [
    {"full_name": "John Kamau", "phone_number": "+254711000001", "vehicle_type": "10T Truck",
     "registration_number": "KCA 101A", "sacco": "Mombasa Road Sacco", "score": 98,
     "corridors": ["Nairobi - Mombasa", "Mombasa - Malindi"]},
    {"full_name": "Grace Wanjiru", "phone_number": "+254711000002", "vehicle_type": "Canter",
     "registration_number": "KCB 202B", "sacco": None, "score": 95,
     "corridors": ["Nairobi - Thika", "Nairobi - Nakuru"]},
    {"full_name": "Peter Otieno", "phone_number": "+254711000003", "vehicle_type": "Pickup",
     "registration_number": "KCC 303C", "sacco": "Lakeside Movers", "score": 91,
     "corridors": ["Eldoret - Kisumu"]},
    {"full_name": "Mary Achieng", "phone_number": "+254711000004", "vehicle_type": "Canter",
     "registration_number": "KCD 404D", "sacco": "Lakeside Movers", "score": 88,
     "corridors": ["Eldoret - Kisumu", "Nakuru - Eldoret"]},
    {"full_name": "Samuel Kiprop", "phone_number": "+254711000005", "vehicle_type": "Trailer",
     "registration_number": "KCE 505E", "sacco": "Rift Haulage", "score": 100,
     "corridors": ["Nakuru - Eldoret", "Nairobi - Nakuru"]},
    {"full_name": "Faith Muthoni", "phone_number": "+254711000006", "vehicle_type": "Pickup",
     "registration_number": "KCF 606F", "sacco": None, "score": 79,
     "corridors": ["Nairobi - Thika"]},
    {"full_name": "Ali Hassan", "phone_number": "+254711000007", "vehicle_type": "10T Truck",
     "registration_number": "KCG 707G", "sacco": "Mombasa Road Sacco", "score": 93,
     "corridors": ["Nairobi - Mombasa"]},
    {"full_name": "David Mutua", "phone_number": "+254711000008", "vehicle_type": "Canter",
     "registration_number": "KCH 808H", "sacco": None, "score": 85,
     "corridors": ["Nairobi - Nakuru", "Nairobi - Mombasa"]},
]

CUSTOMERS = [
    {"full_name": "Amina Traders", "phone_number": "+254722100100", "business_type": "Wholesale"},
    {"full_name": "Kevin Njoroge", "phone_number": "+254722100200", "business_type": "Farmer"},
    {"full_name": "Lucy Wambui", "phone_number": "+254722100300", "business_type": None},
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM drivers"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Corridors ─────────────────────────────────────────────────
        corridors = {name: CorridorModel(name=name) for name in CORRIDORS}
        session.add_all(corridors.values())
        await session.flush()
        print(f"  Created {len(corridors)} corridors")

        # ── Drivers ───────────────────────────────────────────────────
        drivers = []
        for d in DRIVERS:
            driver = DriverModel(
                full_name=d["full_name"],
                phone_number=d["phone_number"],
                vehicle_type=d["vehicle_type"],
                registration_number=d["registration_number"],
                sacco_affiliation=d["sacco"],
                reliability_score=d["score"],
                corridors=[corridors[name] for name in d["corridors"]],
            )
            session.add(driver)
            drivers.append(driver)
        await session.flush()
        print(f"  Created {len(drivers)} drivers")

        # ── Customers ─────────────────────────────────────────────────
        customers = [CustomerModel(**c) for c in CUSTOMERS]
        session.add_all(customers)
        await session.flush()
        print(f"  Created {len(customers)} customers")

        # ── Trips ─────────────────────────────────────────────────────
        now = datetime.now(timezone.utc)
        trips_data = [
            # Pending, waiting for a driver
            {"customer": customers[0], "driver": None, "fare": None,
             "load": "40 bags of maize flour", "pickup": "Industrial Area, Nairobi",
             "dropoff": "Thika Town", "when": now + timedelta(hours=6),
             "status": TripStatus.PENDING},
            {"customer": customers[2], "driver": None, "fare": None,
             "load": "Household furniture", "pickup": "Kilimani, Nairobi",
             "dropoff": "Nakuru CBD", "when": now + timedelta(days=1),
             "status": TripStatus.PENDING},
            # Confirmed
            {"customer": customers[1], "driver": drivers[4], "fare": Decimal("18000"),
             "load": "Fertiliser, 2 tonnes", "pickup": "Nakuru Depot",
             "dropoff": "Eldoret Farmers Store", "when": now + timedelta(hours=3),
             "status": TripStatus.CONFIRMED},
            # In Progress
            {"customer": customers[0], "driver": drivers[0], "fare": Decimal("65000"),
             "load": "Container of electronics", "pickup": "Mombasa Port",
             "dropoff": "Industrial Area, Nairobi", "when": now - timedelta(hours=5),
             "status": TripStatus.IN_PROGRESS},
            # Completed, commission outstanding
            {"customer": customers[1], "driver": drivers[2], "fare": Decimal("12000"),
             "load": "Fresh fish, chilled", "pickup": "Kisumu Landing",
             "dropoff": "Eldoret Market", "when": now - timedelta(days=2),
             "status": TripStatus.COMPLETED},
            {"customer": customers[0], "driver": drivers[0], "fare": Decimal("60000"),
             "load": "Cement, 10 tonnes", "pickup": "Athi River",
             "dropoff": "Mombasa Road Site", "when": now - timedelta(days=3),
             "status": TripStatus.COMPLETED},
        ]

        for t in trips_data:
            trip = TripModel(
                customer_id=t["customer"].id,
                driver_id=t["driver"].id if t["driver"] else None,
                load_description=t["load"],
                pickup_location=t["pickup"],
                dropoff_location=t["dropoff"],
                pickup_time=t["when"],
                agreed_fare=t["fare"],
                platform_commission=derive_commission(t["fare"]),
                status=t["status"],
            )
            session.add(trip)
        await session.flush()
        print(f"  Created {len(trips_data)} trips")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
