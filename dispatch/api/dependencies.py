"""FastAPI dependency injection helpers."""

import redis.asyncio as aioredis
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dispatch.infrastructure.database import async_session_factory
from dispatch.infrastructure.redis_client import get_redis
from dispatch.services.settlement import SettlementService
from dispatch.services.trips import TripService


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_redis_client() -> aioredis.Redis:
    return await get_redis()


def get_trip_service(db: AsyncSession = Depends(get_db)) -> TripService:
    return TripService(db)


def get_settlement_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis_client),
) -> SettlementService:
    return SettlementService(db, redis)
