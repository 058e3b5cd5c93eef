from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from coursetrack.api.courses import router as courses_router
from coursetrack.api.enrollments import router as enrollments_router
from coursetrack.api.errors import progress_error_handler
from coursetrack.api.health import router as health_router
from coursetrack.api.metrics_endpoint import router as metrics_router
from coursetrack.api.progress import router as progress_router
from coursetrack.core.config import SETTINGS
from coursetrack.core.errors import ProgressError
from coursetrack.core.logging import setup_logging
from coursetrack.db.engine import lifespan_db
from coursetrack.db.redis import lifespan_redis
from coursetrack.middleware.metrics import MetricsMiddleware
from coursetrack.middleware.request_context import RequestContextMiddleware

setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order of startup.
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="course-progress-service",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last-added runs first: RequestContext → Metrics → CORS → route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.add_exception_handler(ProgressError, progress_error_handler)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(courses_router)
app.include_router(enrollments_router)
app.include_router(progress_router)

logger.info(
    "course-progress-service started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
