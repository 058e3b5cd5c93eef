"""Async SQLAlchemy engine, session factory and store error translation.

When DATABASE_URL is configured, provides:
- async engine for PostgreSQL via asyncpg
- async session factory used by the Pg* repositories
- FastAPI lifespan hook for startup/shutdown

When DATABASE_URL is None, engine and session factory are None and the
app runs on the in-memory repositories.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from coursetrack.core.config import SETTINGS
from coursetrack.core.errors import ConflictError, DependencyError

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected
_RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all table models."""


if SETTINGS.database_url:
    engine = create_async_engine(
        SETTINGS.database_url,
        echo=SETTINGS.is_dev,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
    )
    async_session_factory: async_sessionmaker[AsyncSession] | None = (
        async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
    )
else:
    engine = None
    async_session_factory = None


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Run one unit of work in its own transaction.

    Commits on success, rolls back on exception.  Driver and SQLAlchemy
    errors are translated into the progress error taxonomy:

      integrity violation, serialization failure, deadlock -> ConflictError
      anything else from the driver, or the network        -> DependencyError
    """
    try:
        async with factory() as session:
            async with session.begin():
                yield session
    except IntegrityError as e:
        logger.warning("Store rejected write: %s", e.orig)
        raise ConflictError(f"write rejected by store: {e.orig}") from e
    except DBAPIError as e:
        if _sqlstate(e) in _RETRYABLE_SQLSTATES:
            logger.warning("Store serialization conflict: %s", e.orig)
            raise ConflictError("concurrent write conflict, retry") from e
        logger.error("Store error: %s", e.orig)
        raise DependencyError("persistence store unavailable") from e
    except (SQLAlchemyError, OSError) as e:
        logger.error("Store unreachable: %s", e)
        raise DependencyError("persistence store unavailable") from e


async def ping_database() -> bool:
    if async_session_factory is None:
        return False
    async with async_session_factory() as session:
        await session.execute(text("SELECT 1"))
    return True


@asynccontextmanager
async def lifespan_db():
    """Startup/shutdown hook for the database engine."""
    if engine is None:
        logger.info("No DATABASE_URL configured, using in-memory repositories")
        yield
        return

    logger.info("Database engine created: %s", engine.url)
    yield
    await engine.dispose()
    logger.info("Database engine disposed")
