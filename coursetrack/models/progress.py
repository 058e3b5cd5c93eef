from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class LessonProgress:
    """One student's watch state for one lesson.

    Unique per (student_id, lesson_id).  completed_at is set if and only
    if completed is true.
    """

    id: UUID
    student_id: str
    lesson_id: UUID
    watch_time: int  # seconds
    completed: bool
    completed_at: int | None
    created_at: int
    updated_at: int

    @staticmethod
    def record(
        *,
        student_id: str,
        lesson_id: UUID,
        watch_time: int,
        completed: bool,
        at: int,
    ) -> LessonProgress:
        return LessonProgress(
            id=uuid4(),
            student_id=student_id,
            lesson_id=lesson_id,
            watch_time=watch_time,
            completed=completed,
            completed_at=at if completed else None,
            created_at=at,
            updated_at=at,
        )
