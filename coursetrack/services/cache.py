"""Read-through cache for per-course progress listings.

GET /v1/progress reads the cache first and fills it on a miss.  Entries
carry a TTL as a safety net and are explicitly deleted whenever the
student reports progress in that course, so a reader normally sees its
own writes immediately.

The cache is never the source of truth: a Redis failure is logged and
treated as a miss (or a skipped write), never surfaced to the caller.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from redis.exceptions import RedisError

from coursetrack.db.redis import redis_pool

logger = logging.getLogger(__name__)


@runtime_checkable
class CacheService(Protocol):
    async def get(self, key: str) -> str | None:
        """Fetch a cached value.  Returns None on cache miss."""
        ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def delete(self, key: str) -> None: ...


class InMemoryCacheService:
    """In-memory cache for dev and tests.  No TTL enforcement."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._store[key] = value

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)


class RedisCacheService:
    """Redis-backed cache, shared across API instances."""

    _PREFIX = "cache:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> str | None:
        try:
            return await self._redis.get(f"{self._PREFIX}{key}")
        except RedisError as e:
            logger.warning("Cache read failed key=%s: %s", key, e)
            return None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._redis.setex(f"{self._PREFIX}{key}", ttl_seconds, value)
        except RedisError as e:
            logger.warning("Cache write failed key=%s: %s", key, e)

    async def delete(self, key: str) -> None:
        # A failed invalidation leaves the entry to expire via its TTL.
        try:
            await self._redis.delete(f"{self._PREFIX}{key}")
        except RedisError as e:
            logger.warning("Cache invalidation failed key=%s: %s", key, e)


def progress_key(student_id: str, course_id: object) -> str:
    return f"progress:{student_id}:{course_id}"


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

if redis_pool is not None:
    cache_service: CacheService = RedisCacheService(redis_pool)
else:
    cache_service = InMemoryCacheService()
