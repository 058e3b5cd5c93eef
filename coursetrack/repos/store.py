"""Repository bundle handed to the services.

With DATABASE_URL configured every repository is its Pg* implementation;
each write runs in its own transaction (see session_scope), so the lesson
progress upsert and the enrollment update are independent failure domains.
Without a database the in-memory repositories are used.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from coursetrack.db.engine import async_session_factory
from coursetrack.repos.catalog_repo import CourseCatalog, InMemoryCourseCatalog
from coursetrack.repos.enrollment_repo import EnrollmentRepo, InMemoryEnrollmentRepo
from coursetrack.repos.lesson_progress_repo import (
    InMemoryLessonProgressRepo,
    LessonProgressRepo,
)
from coursetrack.repos.pg_catalog_repo import PgCourseCatalog
from coursetrack.repos.pg_enrollment_repo import PgEnrollmentRepo
from coursetrack.repos.pg_lesson_progress_repo import PgLessonProgressRepo


@dataclass(frozen=True, slots=True)
class Store:
    catalog: CourseCatalog
    enrollments: EnrollmentRepo
    lesson_progress: LessonProgressRepo


def in_memory_store() -> Store:
    return Store(
        catalog=InMemoryCourseCatalog(),
        enrollments=InMemoryEnrollmentRepo(),
        lesson_progress=InMemoryLessonProgressRepo(),
    )


def pg_store(session_factory: async_sessionmaker[AsyncSession]) -> Store:
    return Store(
        catalog=PgCourseCatalog(session_factory),
        enrollments=PgEnrollmentRepo(session_factory),
        lesson_progress=PgLessonProgressRepo(session_factory),
    )


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

if async_session_factory is not None:
    store: Store = pg_store(async_session_factory)
else:
    store = in_memory_store()
