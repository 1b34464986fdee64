"""Redis client for the per-year request counters.

One client per process, created at startup and handed to
``RequestIdGenerator`` through the route dependencies.
"""

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from intake.core.config import get_settings

logger = structlog.get_logger(__name__)

_client: redis.Redis | None = None


def create_redis_client(url: str) -> redis.Redis:
    # decode_responses so counter values come back as str, like fakeredis in tests
    return redis.from_url(url, encoding="utf-8", decode_responses=True, health_check_interval=30)


async def init_redis(url: str | None = None) -> None:
    """Create the shared client and check the server answers."""
    global _client

    if _client is not None:
        return

    _client = create_redis_client(url or get_settings().redis_url)
    await _client.ping()


async def close_redis() -> None:
    global _client

    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """Return the shared client.

    Raises:
        RuntimeError: init_redis() has not run
    """
    if _client is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _client


async def redis_ready() -> bool:
    """True when the shared client exists and the server answers PING."""
    if _client is None:
        return False
    try:
        await _client.ping()
    except RedisError as exc:
        logger.error("redis_check_failed", error=str(exc), error_type=type(exc).__name__)
        return False
    return True
