from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class Course:
    id: UUID
    title: str
    teacher_id: str
    description: str = ""
    status: str = "draft"  # draft|published
    created_at: int = 0

    @property
    def is_published(self) -> bool:
        return self.status == "published"

    @staticmethod
    def new(
        *, title: str, teacher_id: str, description: str = "", created_at: int = 0
    ) -> Course:
        return Course(
            id=uuid4(),
            title=title,
            teacher_id=teacher_id,
            description=description,
            created_at=created_at,
        )


@dataclass(frozen=True, slots=True)
class Chapter:
    id: UUID
    course_id: UUID
    title: str
    position: int

    @staticmethod
    def new(*, course_id: UUID, title: str, position: int) -> Chapter:
        return Chapter(id=uuid4(), course_id=course_id, title=title, position=position)


@dataclass(frozen=True, slots=True)
class Lesson:
    id: UUID
    chapter_id: UUID
    title: str
    position: int
    type: str = "video"  # video|text
    video_duration: int | None = None  # seconds
    is_free: bool = False

    @staticmethod
    def new(
        *,
        chapter_id: UUID,
        title: str,
        position: int,
        type: str = "video",
        video_duration: int | None = None,
        is_free: bool = False,
    ) -> Lesson:
        return Lesson(
            id=uuid4(),
            chapter_id=chapter_id,
            title=title,
            position=position,
            type=type,
            video_duration=video_duration,
            is_free=is_free,
        )
