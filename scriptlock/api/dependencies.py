"""FastAPI dependency injection helpers."""

import redis.asyncio as aioredis

from scriptlock.infrastructure.redis_client import get_redis


async def get_store() -> aioredis.Redis:
    """Return a Redis client on the shared pool; routes never open their own."""
    return await get_redis()
