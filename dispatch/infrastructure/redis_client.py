"""
Redis connection pool.

Redis only coordinates settlement: one short-lived
``lock:settle:<driver_id>`` key per settle call.  Nothing else is stored
here, so a small shared pool is enough; it is disconnected when the API
shuts down.
"""

import redis.asyncio as aioredis

from dispatch.config import settings

_pool = aioredis.ConnectionPool.from_url(
    settings.redis_url,
    decode_responses=True,
    max_connections=settings.redis_max_connections,
)


async def get_redis() -> aioredis.Redis:
    """Return a Redis client backed by the shared connection pool."""
    return aioredis.Redis(connection_pool=_pool)


async def close_redis() -> None:
    await _pool.disconnect()
