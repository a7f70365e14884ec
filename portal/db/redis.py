"""Redis connection management.

When REDIS_URL is configured we create a real connection pool; when it
is not (local dev, tests) ``redis_pool`` is None and every consumer
falls back to an in-memory implementation.

The portal keeps very little state of its own.  Redis holds the
persisted session token (see portal/services/token_store.py), so a
portal restart or a second portal instance does not log the user out.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from portal.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,  # return str instead of bytes
        max_connections=20,
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis():
    """Startup/shutdown hook: verify connectivity, release the pool on exit."""
    if redis_pool is None:
        logger.info("No REDIS_URL configured, session token kept in memory")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]
        logger.info("Redis connected: %s", SETTINGS.redis_url)
    except Exception:
        # Keep serving; only token persistence is affected.
        logger.exception("Redis connection failed on startup")
        yield
        return

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
