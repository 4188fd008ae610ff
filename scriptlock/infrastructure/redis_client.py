"""Redis async connection pool."""

import redis.asyncio as aioredis

from scriptlock.config import settings

_pool = aioredis.ConnectionPool.from_url(
    settings.redis_url,
    decode_responses=True,
    max_connections=settings.redis_max_connections,
    health_check_interval=settings.redis_health_check_interval,
    socket_timeout=settings.redis_socket_timeout,
)


async def get_redis() -> aioredis.Redis:
    """Return a Redis client backed by the shared connection pool."""
    return aioredis.Redis(connection_pool=_pool)


async def close_redis() -> None:
    """Drop every pooled connection."""
    await _pool.disconnect()
