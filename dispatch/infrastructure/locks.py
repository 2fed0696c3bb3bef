"""
Redis-based distributed lock.

Used by settlement so two dispatchers cannot settle the same driver's
balance at the same moment from different API processes.  Keys look like
``lock:settle:<driver_id>``.

Implementation uses SET NX EX for acquire and a Lua script for
atomic check-and-delete on release.  Acquire errors propagate; a failed
release is only logged, since by then the guarded work is done and the
key expires on its own after the TTL.
"""

from __future__ import annotations

import logging
import uuid

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from dispatch.domain.errors import SettlementInProgress

logger = logging.getLogger(__name__)

_RELEASE_LUA = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class DistributedLock:
    def __init__(
        self, client: aioredis.Redis, key: str, ttl_seconds: int = 30
    ):
        self.redis = client
        self.key = f"lock:{key}"
        self.ttl = ttl_seconds
        self.token = str(uuid.uuid4())

    async def acquire(self) -> bool:
        """Try to acquire. Returns True on success."""
        return bool(
            await self.redis.set(self.key, self.token, nx=True, ex=self.ttl)
        )

    async def release(self) -> bool:
        """Release only if we still own the lock (atomic via Lua)."""
        try:
            return bool(await self.redis.eval(_RELEASE_LUA, 1, self.key, self.token))
        except RedisError as exc:
            logger.warning(
                "Could not release %s (%s); it expires in %ds", self.key, exc, self.ttl
            )
            return False

    # context-manager support
    async def __aenter__(self):
        if not await self.acquire():
            raise SettlementInProgress(f"Could not acquire lock: {self.key}")
        return self

    async def __aexit__(self, *args):
        await self.release()


def settlement_lock(
    client: aioredis.Redis, driver_id: str, ttl_seconds: int = 30
) -> DistributedLock:
    return DistributedLock(client, f"settle:{driver_id}", ttl_seconds=ttl_seconds)
