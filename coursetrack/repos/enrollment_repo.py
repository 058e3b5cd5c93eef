from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Protocol
from uuid import UUID

from coursetrack.models.enrollment import Enrollment


@dataclass(frozen=True, slots=True)
class ProgressUpdate:
    enrollment: Enrollment
    newly_completed: bool  # this write recorded completed_at


class EnrollmentRepo(Protocol):
    async def get(self, student_id: str, course_id: UUID) -> Enrollment | None: ...
    async def add(self, enrollment: Enrollment) -> None: ...
    async def remove(self, student_id: str, course_id: UUID) -> bool: ...
    async def list_by_student(self, student_id: str) -> list[Enrollment]: ...
    async def update_progress(
        self,
        student_id: str,
        course_id: UUID,
        *,
        progress: float,
        completed_at: int | None,
    ) -> ProgressUpdate | None:
        """Overwrite progress for the (student, course) row.

        completed_at, when given, is recorded only if the row has none yet;
        None leaves the stored value untouched.  ``newly_completed`` is true
        for exactly one write per enrollment.  Returns None (and writes
        nothing) when no enrollment exists.
        """
        ...


class InMemoryEnrollmentRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[str, UUID], Enrollment] = {}

    async def get(self, student_id: str, course_id: UUID) -> Enrollment | None:
        return self._store.get((student_id, course_id))

    async def add(self, enrollment: Enrollment) -> None:
        key = (enrollment.student_id, enrollment.course_id)
        if key in self._store:
            raise ValueError("enrollment already exists")
        self._store[key] = enrollment

    async def remove(self, student_id: str, course_id: UUID) -> bool:
        return self._store.pop((student_id, course_id), None) is not None

    async def list_by_student(self, student_id: str) -> list[Enrollment]:
        return sorted(
            (e for e in self._store.values() if e.student_id == student_id),
            key=lambda e: e.enrolled_at,
            reverse=True,
        )

    async def update_progress(
        self,
        student_id: str,
        course_id: UUID,
        *,
        progress: float,
        completed_at: int | None,
    ) -> ProgressUpdate | None:
        key = (student_id, course_id)
        existing = self._store.get(key)
        if existing is None:
            return None
        newly_completed = existing.completed_at is None and completed_at is not None
        updated = replace(
            existing,
            progress=progress,
            completed_at=existing.completed_at or completed_at,
        )
        self._store[key] = updated
        return ProgressUpdate(enrollment=updated, newly_completed=newly_completed)

    def clear(self) -> None:
        self._store.clear()
