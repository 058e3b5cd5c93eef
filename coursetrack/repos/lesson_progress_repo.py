from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol
from uuid import UUID

from coursetrack.models.progress import LessonProgress


class LessonProgressRepo(Protocol):
    async def get(self, student_id: str, lesson_id: UUID) -> LessonProgress | None: ...
    async def upsert(self, progress: LessonProgress) -> LessonProgress:
        """Insert or overwrite the row keyed by (student_id, lesson_id).

        On conflict the stored id and created_at are kept; every other
        field takes the incoming value (last write wins).
        """
        ...

    async def list_for_lessons(
        self, student_id: str, lesson_ids: Iterable[UUID]
    ) -> list[LessonProgress]: ...
    async def list_completed(
        self, student_id: str, lesson_ids: Iterable[UUID]
    ) -> list[LessonProgress]: ...


class InMemoryLessonProgressRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[str, UUID], LessonProgress] = {}

    async def get(self, student_id: str, lesson_id: UUID) -> LessonProgress | None:
        return self._store.get((student_id, lesson_id))

    async def upsert(self, progress: LessonProgress) -> LessonProgress:
        key = (progress.student_id, progress.lesson_id)
        existing = self._store.get(key)
        if existing is not None:
            progress = replace(
                progress, id=existing.id, created_at=existing.created_at
            )
        self._store[key] = progress
        return progress

    async def list_for_lessons(
        self, student_id: str, lesson_ids: Iterable[UUID]
    ) -> list[LessonProgress]:
        wanted = set(lesson_ids)
        return [
            p
            for (sid, lid), p in self._store.items()
            if sid == student_id and lid in wanted
        ]

    async def list_completed(
        self, student_id: str, lesson_ids: Iterable[UUID]
    ) -> list[LessonProgress]:
        return [
            p
            for p in await self.list_for_lessons(student_id, lesson_ids)
            if p.completed
        ]

    def clear(self) -> None:
        self._store.clear()
