"""
Optional Redis connection manager.

Provides an async Redis client that degrades gracefully when REDIS_URL is
not set or Redis is unreachable; callers fall back to in-process stores.
"""

import logging
from typing import Optional

_log = logging.getLogger("jobboard.redis")

_redis_client = None  # type: Optional["redis.asyncio.Redis"]


async def init_redis(url: str) -> None:
    """Connect to Redis if a URL is configured. Safe to call always."""
    global _redis_client

    if not url:
        _log.info("[redis] REDIS_URL not set, using in-process stores")
        return

    import redis.asyncio as aioredis
    from redis.exceptions import RedisError

    try:
        _redis_client = aioredis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        await _redis_client.ping()
        _log.info("[redis] Connected successfully")
    except (RedisError, OSError) as exc:
        _log.warning(f"[redis] Connection failed ({exc}), using in-process stores")
        _redis_client = None


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _log.info("[redis] Connection closed")
        _redis_client = None


def get_redis():
    """Return the Redis client or None if unavailable."""
    return _redis_client
