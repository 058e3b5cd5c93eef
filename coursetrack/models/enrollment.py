from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class Enrollment:
    """A student's registration in a course.

    progress and completed_at are a materialized snapshot of the student's
    lesson_progress rows, written only by the course recompute.
    """

    id: UUID
    student_id: str
    course_id: UUID
    enrolled_at: int
    progress: float = 0.0  # 0..100
    completed_at: int | None = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @staticmethod
    def new(*, student_id: str, course_id: UUID, enrolled_at: int) -> Enrollment:
        return Enrollment(
            id=uuid4(),
            student_id=student_id,
            course_id=course_id,
            enrolled_at=enrolled_at,
        )
