"""Optional Redis backing for the idempotency cache.

With REDIS_URL set, one pool is opened at import and shared by every
consumer, and the replay cache is shared by every API instance.  Without
it ``redis_pool`` is None and the cache stays in process memory.

Orders, settlements and credentials are never written here; they live in
each process.  A replay served by another instance returns ids that only
the original instance can resolve, so run one instance or route each client
to the same one.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from assetflowx.core.config import SETTINGS

logger = logging.getLogger(__name__)

MAX_CONNECTIONS = 20


def _open_pool(url: str | None) -> aioredis.Redis | None:  # type: ignore[type-arg]
    if not url:
        return None
    return aioredis.from_url(url, decode_responses=True, max_connections=MAX_CONNECTIONS)


redis_pool = _open_pool(SETTINGS.redis_url)


async def ping_redis() -> bool:
    """True when the configured Redis answers; False when it does not."""
    if redis_pool is None:
        return False
    try:
        await redis_pool.ping()  # type: ignore[misc]
    except (RedisError, OSError):
        return False
    return True


@asynccontextmanager
async def lifespan_redis() -> AsyncIterator[None]:
    if redis_pool is None:
        logger.info("REDIS_URL not set, idempotency cache is in-memory")
        yield
        return

    if await ping_redis():
        logger.info("Redis connected: %s", SETTINGS.redis_url)
    else:
        # Startup continues; cached replays fail with 500 until Redis returns.
        logger.error("Redis unreachable on startup: %s", SETTINGS.redis_url)
    try:
        yield
    finally:
        await redis_pool.aclose()
        logger.info("Redis connection pool closed")
