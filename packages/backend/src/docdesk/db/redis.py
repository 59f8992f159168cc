"""Redis connection — used for rate-limit counters only.

Learn: Redis is optional. The lifespan tries to connect at startup; if it
can't, get_redis() keeps raising and the rate limiter lets every request
through. Nothing else in the app depends on it.
"""

from typing import Optional

import redis.asyncio as aioredis

# Global Redis connection pool (initialized in lifespan)
_redis: Optional[aioredis.Redis] = None


async def init_redis(url: str) -> aioredis.Redis:
    """Initialize the Redis connection pool and verify it answers."""
    global _redis
    client = aioredis.from_url(url, encoding="utf-8", decode_responses=True)
    await client.ping()
    _redis = client
    return _redis


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def get_redis() -> aioredis.Redis:
    """Get the Redis connection (must be initialized first)."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis
