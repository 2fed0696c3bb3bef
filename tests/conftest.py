"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  The production models carry no
PostgreSQL-only column types, so the real metadata is created directly.
Redis is replaced with an ``AsyncMock`` whose SET NX always succeeds.
"""

from datetime import datetime, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from dispatch.infrastructure.database import Base
from dispatch.infrastructure.models import CorridorModel, DriverModel
from dispatch.services.trips import TripService

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

PICKUP_TIME = datetime(2026, 3, 2, 8, 30, tzinfo=timezone.utc)


# ── Database ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database per test; all sessions share one connection."""
    engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def redis_mock() -> AsyncMock:
    mock = AsyncMock()
    mock.set = AsyncMock(return_value=True)
    mock.eval = AsyncMock(return_value=1)
    return mock


# ── Seed data ─────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def drivers(session_factory) -> dict[str, str]:
    """Three drivers with corridors; returns {short name: driver id}."""
    async with session_factory() as session:
        coast = CorridorModel(name="Nairobi - Mombasa")
        rift = CorridorModel(name="Nairobi - Nakuru")
        rows = {
            "kamau": DriverModel(
                full_name="John Kamau",
                phone_number="+254711000001",
                vehicle_type="10T Truck",
                registration_number="KCA 101A",
                sacco_affiliation="Mombasa Road Sacco",
                reliability_score=90,
                corridors=[coast],
            ),
            "wanjiru": DriverModel(
                full_name="Grace Wanjiru",
                phone_number="+254711000002",
                vehicle_type="Canter",
                registration_number="KCB 202B",
                reliability_score=100,
                corridors=[coast, rift],
            ),
            "otieno": DriverModel(
                full_name="Peter Otieno",
                phone_number="+254711000003",
                vehicle_type="Pickup",
                registration_number="KCC 303C",
                reliability_score=75,
                corridors=[],
            ),
        }
        session.add_all(rows.values())
        await session.commit()
        return {name: row.id for name, row in rows.items()}


@pytest.fixture
def trip_request() -> dict:
    return {
        "full_name": "Amina Traders",
        "phone_number": "+254722100100",
        "business_type": "Wholesale",
        "load_description": "40 bags of maize flour",
        "pickup_location": "Industrial Area, Nairobi",
        "dropoff_location": "Thika Town",
        "pickup_time": PICKUP_TIME,
    }


@pytest.fixture
def complete_trip(session_factory, trip_request):
    """Factory: create a trip and drive it all the way to Completed."""

    async def _complete(driver_id: str, fare, **overrides) -> str:
        async with session_factory() as session:
            service = TripService(session)
            details = await service.create_trip(**{**trip_request, **overrides})
            trip_id = details.trip.id
            await service.assign_driver(trip_id, driver_id, fare)
            await service.advance_status(trip_id)
            await service.advance_status(trip_id)
            return trip_id

    return _complete
