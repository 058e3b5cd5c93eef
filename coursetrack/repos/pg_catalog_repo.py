"""PostgreSQL implementation of CourseCatalog."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from coursetrack.db.engine import session_scope
from coursetrack.db.tables import ChapterRow, CourseRow, LessonRow
from coursetrack.models.course import Chapter, Course, Lesson


class PgCourseCatalog:
    """Satisfies the CourseCatalog Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_course(self, course_id: UUID) -> Course | None:
        async with session_scope(self._session_factory) as session:
            row = await session.get(CourseRow, course_id)
            return _row_to_course(row) if row is not None else None

    async def list_courses(self, *, published_only: bool = True) -> list[Course]:
        stmt = select(CourseRow).order_by(CourseRow.created_at)
        if published_only:
            stmt = stmt.where(CourseRow.status == "published")
        async with session_scope(self._session_factory) as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [_row_to_course(r) for r in rows]

    async def add_course(self, course: Course) -> None:
        async with session_scope(self._session_factory) as session:
            session.add(
                CourseRow(
                    id=course.id,
                    title=course.title,
                    description=course.description,
                    teacher_id=course.teacher_id,
                    status=course.status,
                    created_at=course.created_at,
                )
            )

    async def update_course(self, course: Course) -> bool:
        stmt = (
            update(CourseRow)
            .where(CourseRow.id == course.id)
            .values(
                title=course.title,
                description=course.description,
                status=course.status,
            )
        )
        return await self._affected(stmt)

    async def delete_course(self, course_id: UUID) -> bool:
        # chapters, lessons, enrollments and lesson progress cascade in the schema
        stmt = delete(CourseRow).where(CourseRow.id == course_id)
        return await self._affected(stmt)

    async def set_status(self, course_id: UUID, status: str) -> Course | None:
        stmt = (
            update(CourseRow)
            .where(CourseRow.id == course_id)
            .values(status=status)
            .returning(CourseRow)
        )
        async with session_scope(self._session_factory) as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return _row_to_course(row) if row is not None else None

    async def get_chapter(self, chapter_id: UUID) -> Chapter | None:
        async with session_scope(self._session_factory) as session:
            row = await session.get(ChapterRow, chapter_id)
            return _row_to_chapter(row) if row is not None else None

    async def list_chapters(self, course_id: UUID) -> list[Chapter]:
        stmt = (
            select(ChapterRow)
            .where(ChapterRow.course_id == course_id)
            .order_by(ChapterRow.position)
        )
        async with session_scope(self._session_factory) as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [_row_to_chapter(r) for r in rows]

    async def add_chapter(self, chapter: Chapter) -> None:
        async with session_scope(self._session_factory) as session:
            session.add(
                ChapterRow(
                    id=chapter.id,
                    course_id=chapter.course_id,
                    title=chapter.title,
                    position=chapter.position,
                )
            )

    async def update_chapter(self, chapter: Chapter) -> bool:
        stmt = (
            update(ChapterRow)
            .where(ChapterRow.id == chapter.id)
            .values(title=chapter.title, position=chapter.position)
        )
        return await self._affected(stmt)

    async def delete_chapter(self, chapter_id: UUID) -> bool:
        stmt = delete(ChapterRow).where(ChapterRow.id == chapter_id)
        return await self._affected(stmt)

    async def get_lesson(self, lesson_id: UUID) -> Lesson | None:
        async with session_scope(self._session_factory) as session:
            row = await session.get(LessonRow, lesson_id)
            return _row_to_lesson(row) if row is not None else None

    async def add_lesson(self, lesson: Lesson) -> None:
        async with session_scope(self._session_factory) as session:
            session.add(
                LessonRow(
                    id=lesson.id,
                    chapter_id=lesson.chapter_id,
                    title=lesson.title,
                    position=lesson.position,
                    type=lesson.type,
                    video_duration=lesson.video_duration,
                    is_free=lesson.is_free,
                )
            )

    async def update_lesson(self, lesson: Lesson) -> bool:
        stmt = (
            update(LessonRow)
            .where(LessonRow.id == lesson.id)
            .values(
                title=lesson.title,
                position=lesson.position,
                type=lesson.type,
                video_duration=lesson.video_duration,
                is_free=lesson.is_free,
            )
        )
        return await self._affected(stmt)

    async def delete_lesson(self, lesson_id: UUID) -> bool:
        stmt = delete(LessonRow).where(LessonRow.id == lesson_id)
        return await self._affected(stmt)

    async def lessons_for_course(self, course_id: UUID) -> list[Lesson]:
        stmt = (
            select(LessonRow)
            .join(ChapterRow, LessonRow.chapter_id == ChapterRow.id)
            .where(ChapterRow.course_id == course_id)
            .order_by(ChapterRow.position, LessonRow.position)
        )
        async with session_scope(self._session_factory) as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [_row_to_lesson(r) for r in rows]

    async def _affected(self, stmt) -> bool:
        async with session_scope(self._session_factory) as session:
            result = await session.execute(stmt)
            return result.rowcount > 0


def _row_to_course(row: CourseRow) -> Course:
    return Course(
        id=row.id,
        title=row.title,
        teacher_id=row.teacher_id,
        description=row.description or "",
        status=row.status,
        created_at=row.created_at,
    )


def _row_to_chapter(row: ChapterRow) -> Chapter:
    return Chapter(
        id=row.id, course_id=row.course_id, title=row.title, position=row.position
    )


def _row_to_lesson(row: LessonRow) -> Lesson:
    return Lesson(
        id=row.id,
        chapter_id=row.chapter_id,
        title=row.title,
        position=row.position,
        type=row.type,
        video_duration=row.video_duration,
        is_free=row.is_free,
    )
