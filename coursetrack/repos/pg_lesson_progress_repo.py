"""PostgreSQL implementation of LessonProgressRepo."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import Insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from coursetrack.db.engine import session_scope
from coursetrack.db.tables import LessonProgressRow
from coursetrack.models.progress import LessonProgress


class PgLessonProgressRepo:
    """Satisfies the LessonProgressRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, student_id: str, lesson_id: UUID) -> LessonProgress | None:
        stmt = select(LessonProgressRow).where(
            LessonProgressRow.student_id == student_id,
            LessonProgressRow.lesson_id == lesson_id,
        )
        async with session_scope(self._session_factory) as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return _row_to_progress(row) if row is not None else None

    async def upsert(self, progress: LessonProgress) -> LessonProgress:
        stmt = upsert_statement(progress)
        async with session_scope(self._session_factory) as session:
            row = (await session.execute(stmt)).scalar_one()
            return _row_to_progress(row)

    async def list_for_lessons(
        self, student_id: str, lesson_ids: Iterable[UUID]
    ) -> list[LessonProgress]:
        return await self._select(student_id, lesson_ids, completed_only=False)

    async def list_completed(
        self, student_id: str, lesson_ids: Iterable[UUID]
    ) -> list[LessonProgress]:
        return await self._select(student_id, lesson_ids, completed_only=True)

    async def _select(
        self, student_id: str, lesson_ids: Iterable[UUID], *, completed_only: bool
    ) -> list[LessonProgress]:
        ids = list(lesson_ids)
        if not ids:
            return []
        stmt = select(LessonProgressRow).where(
            LessonProgressRow.student_id == student_id,
            LessonProgressRow.lesson_id.in_(ids),
        )
        if completed_only:
            stmt = stmt.where(LessonProgressRow.completed.is_(True))
        async with session_scope(self._session_factory) as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [_row_to_progress(r) for r in rows]


def upsert_statement(progress: LessonProgress) -> Insert:
    # INSERT ... ON CONFLICT (student_id, lesson_id) DO UPDATE is atomic
    # per row, so concurrent reports can not create duplicates.  id and
    # created_at keep the values of the first insert.
    stmt = pg_insert(LessonProgressRow).values(
        id=progress.id,
        student_id=progress.student_id,
        lesson_id=progress.lesson_id,
        watch_time=progress.watch_time,
        completed=progress.completed,
        completed_at=progress.completed_at,
        created_at=progress.created_at,
        updated_at=progress.updated_at,
    )
    return stmt.on_conflict_do_update(
        index_elements=["student_id", "lesson_id"],
        set_={
            "watch_time": stmt.excluded.watch_time,
            "completed": stmt.excluded.completed,
            "completed_at": stmt.excluded.completed_at,
            "updated_at": stmt.excluded.updated_at,
        },
    ).returning(LessonProgressRow)

def _row_to_progress(row: LessonProgressRow) -> LessonProgress:
    return LessonProgress(
        id=row.id,
        student_id=row.student_id,
        lesson_id=row.lesson_id,
        watch_time=row.watch_time,
        completed=row.completed,
        completed_at=row.completed_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
