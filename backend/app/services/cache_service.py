"""
Redis caching service for the concert catalog listing.

CACHING STRATEGY
================

What we cache:
  - The concert listing response (JSON-serialized)
  - Cache key: "concerts:list"

Why:
  - The listing is the entry page and the most frequent read
  - Concerts and theaters change only through catalog administration,
    never through claims or releases
  - Serving from Redis: ~1ms vs the database: ~15-50ms

Invalidation strategy:
  - TTL-based expiry (5 minutes by default)
  - `invalidate_concert_cache()` for catalog changes (seeding, admin tooling)

Why NOT cache seat maps:
  - Seat status changes on every claim and release
  - A caller whose claim was rejected refreshes the seat map and must see
    the committed state, not a cached one
"""

import json
from typing import Optional

import redis.asyncio as redis
from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

CONCERT_LIST_KEY = "concerts:list"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            # Test connection
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.close()
        _redis_client = None


async def get_cached_concerts() -> Optional[list]:
    """Retrieve the cached concert listing."""
    client = await get_redis()
    if not client:
        return None

    try:
        data = await client.get(CONCERT_LIST_KEY)
        record_cache_operation("get", hit=data is not None)
        if data:
            logger.debug("cache_hit", key=CONCERT_LIST_KEY)
            return json.loads(data)
        logger.debug("cache_miss", key=CONCERT_LIST_KEY)
    except Exception as e:
        logger.error("cache_get_error", key=CONCERT_LIST_KEY, error=str(e))

    return None


async def set_cached_concerts(data: list) -> None:
    """Cache the concert listing with TTL."""
    client = await get_redis()
    if not client:
        return

    try:
        await client.setex(CONCERT_LIST_KEY, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=CONCERT_LIST_KEY, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=CONCERT_LIST_KEY, error=str(e))


async def invalidate_concert_cache() -> None:
    client = await get_redis()
    if not client:
        return

    try:
        deleted = await client.delete(CONCERT_LIST_KEY)
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        return {
            "status": "connected",
            "hits": info.get("keyspace_hits", 0),
            "misses": info.get("keyspace_misses", 0),
            "hit_rate": (
                round(
                    info.get("keyspace_hits", 0)
                    / max(info.get("keyspace_hits", 0) + info.get("keyspace_misses", 0), 1)
                    * 100,
                    2,
                )
            ),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
