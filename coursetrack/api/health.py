"""Health and readiness endpoints.

/health (liveness) always answers 200 while the process can respond;
the ``status`` field reports "degraded" when a configured backing
service fails its check.

/ready (readiness) answers 503 when a configured database is
unreachable, since no progress can be recorded without it.  Redis only
backs the cache and never makes the instance unready.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status
from redis.exceptions import RedisError

from coursetrack.db import engine as db_engine
from coursetrack.db.redis import redis_pool

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_database() -> str:
    if db_engine.async_session_factory is None:
        return "not_configured"
    try:
        await db_engine.ping_database()
    except Exception as e:
        logger.warning("Database health check failed: %s", e)
        return "degraded"
    return "ok"


async def _check_redis() -> str:
    if redis_pool is None:
        return "not_configured"
    try:
        await redis_pool.ping()  # type: ignore[misc]
    except (RedisError, OSError) as e:
        logger.warning("Redis health check failed: %s", e)
        return "degraded"
    return "ok"


@router.get("/health")
async def health() -> dict:
    checks = {
        "database": await _check_database(),
        "redis": await _check_redis(),
    }
    overall = "degraded" if "degraded" in checks.values() else "ok"
    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    if await _check_database() == "degraded":
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
