"""PostgreSQL implementation of EnrollmentRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Update, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from coursetrack.db.engine import session_scope
from coursetrack.db.tables import EnrollmentRow
from coursetrack.models.enrollment import Enrollment
from coursetrack.repos.enrollment_repo import ProgressUpdate


class PgEnrollmentRepo:
    """Satisfies the EnrollmentRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, student_id: str, course_id: UUID) -> Enrollment | None:
        stmt = select(EnrollmentRow).where(
            EnrollmentRow.student_id == student_id,
            EnrollmentRow.course_id == course_id,
        )
        async with session_scope(self._session_factory) as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return _row_to_enrollment(row) if row is not None else None

    async def add(self, enrollment: Enrollment) -> None:
        async with session_scope(self._session_factory) as session:
            session.add(
                EnrollmentRow(
                    id=enrollment.id,
                    student_id=enrollment.student_id,
                    course_id=enrollment.course_id,
                    enrolled_at=enrollment.enrolled_at,
                    progress=enrollment.progress,
                    completed_at=enrollment.completed_at,
                )
            )

    async def remove(self, student_id: str, course_id: UUID) -> bool:
        stmt = delete(EnrollmentRow).where(
            EnrollmentRow.student_id == student_id,
            EnrollmentRow.course_id == course_id,
        )
        async with session_scope(self._session_factory) as session:
            result = await session.execute(stmt)
            return result.rowcount > 0

    async def list_by_student(self, student_id: str) -> list[Enrollment]:
        stmt = (
            select(EnrollmentRow)
            .where(EnrollmentRow.student_id == student_id)
            .order_by(EnrollmentRow.enrolled_at.desc())
        )
        async with session_scope(self._session_factory) as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [_row_to_enrollment(r) for r in rows]

    async def update_progress(
        self,
        student_id: str,
        course_id: UUID,
        *,
        progress: float,
        completed_at: int | None,
    ) -> ProgressUpdate | None:
        async with session_scope(self._session_factory) as session:
            if completed_at is not None:
                stmt = completion_statement(
                    student_id, course_id, progress, completed_at
                )
                row = (await session.execute(stmt)).scalar_one_or_none()
                if row is not None:
                    return ProgressUpdate(_row_to_enrollment(row), True)
            stmt = progress_statement(student_id, course_id, progress)
            row = (await session.execute(stmt)).scalar_one_or_none()
            if row is None:
                return None
            return ProgressUpdate(_row_to_enrollment(row), False)


def _for_pair(student_id: str, course_id: UUID) -> Update:
    return update(EnrollmentRow).where(
        EnrollmentRow.student_id == student_id,
        EnrollmentRow.course_id == course_id,
    )


def completion_statement(
    student_id: str, course_id: UUID, progress: float, completed_at: int
) -> Update:
    """Record progress and the first completion time in one statement.

    Matches no row once completed_at is set, so of two racing recomputes
    only one sees its stamp written.
    """
    return (
        _for_pair(student_id, course_id)
        .where(EnrollmentRow.completed_at.is_(None))
        .values(progress=progress, completed_at=completed_at)
        .returning(EnrollmentRow)
    )


def progress_statement(student_id: str, course_id: UUID, progress: float) -> Update:
    # completed_at is not in the SET list, so it is never cleared
    return (
        _for_pair(student_id, course_id)
        .values(progress=progress)
        .returning(EnrollmentRow)
    )


def _row_to_enrollment(row: EnrollmentRow) -> Enrollment:
    return Enrollment(
        id=row.id,
        student_id=row.student_id,
        course_id=row.course_id,
        enrolled_at=row.enrolled_at,
        progress=float(row.progress),
        completed_at=row.completed_at,
    )
