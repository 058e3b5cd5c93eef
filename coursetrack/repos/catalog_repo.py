from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from coursetrack.models.course import Chapter, Course, Lesson


class CourseCatalog(Protocol):
    async def get_course(self, course_id: UUID) -> Course | None: ...
    async def list_courses(self, *, published_only: bool = True) -> list[Course]: ...
    async def add_course(self, course: Course) -> None: ...
    async def update_course(self, course: Course) -> bool: ...
    async def delete_course(self, course_id: UUID) -> bool:
        """Remove the course with its chapters and lessons."""
        ...

    async def set_status(self, course_id: UUID, status: str) -> Course | None: ...
    async def get_chapter(self, chapter_id: UUID) -> Chapter | None: ...
    async def list_chapters(self, course_id: UUID) -> list[Chapter]: ...
    async def add_chapter(self, chapter: Chapter) -> None: ...
    async def update_chapter(self, chapter: Chapter) -> bool: ...
    async def delete_chapter(self, chapter_id: UUID) -> bool: ...
    async def get_lesson(self, lesson_id: UUID) -> Lesson | None: ...
    async def add_lesson(self, lesson: Lesson) -> None: ...
    async def update_lesson(self, lesson: Lesson) -> bool: ...
    async def delete_lesson(self, lesson_id: UUID) -> bool: ...
    async def lessons_for_course(self, course_id: UUID) -> list[Lesson]:
        """All lessons under every chapter of the course, in reading order."""
        ...


class InMemoryCourseCatalog:
    def __init__(self) -> None:
        self._courses: dict[UUID, Course] = {}
        self._chapters: dict[UUID, Chapter] = {}
        self._lessons: dict[UUID, Lesson] = {}

    async def get_course(self, course_id: UUID) -> Course | None:
        return self._courses.get(course_id)

    async def list_courses(self, *, published_only: bool = True) -> list[Course]:
        courses = sorted(self._courses.values(), key=lambda c: c.created_at)
        if published_only:
            return [c for c in courses if c.is_published]
        return courses

    async def add_course(self, course: Course) -> None:
        if course.id in self._courses:
            raise ValueError("course already exists")
        self._courses[course.id] = course

    async def update_course(self, course: Course) -> bool:
        if course.id not in self._courses:
            return False
        self._courses[course.id] = course
        return True

    async def delete_course(self, course_id: UUID) -> bool:
        if self._courses.pop(course_id, None) is None:
            return False
        for chapter in await self.list_chapters(course_id):
            await self.delete_chapter(chapter.id)
        return True

    async def set_status(self, course_id: UUID, status: str) -> Course | None:
        existing = self._courses.get(course_id)
        if existing is None:
            return None
        updated = replace(existing, status=status)
        self._courses[course_id] = updated
        return updated

    async def get_chapter(self, chapter_id: UUID) -> Chapter | None:
        return self._chapters.get(chapter_id)

    async def list_chapters(self, course_id: UUID) -> list[Chapter]:
        return sorted(
            (ch for ch in self._chapters.values() if ch.course_id == course_id),
            key=lambda ch: ch.position,
        )

    async def add_chapter(self, chapter: Chapter) -> None:
        if chapter.id in self._chapters:
            raise ValueError("chapter already exists")
        self._chapters[chapter.id] = chapter

    async def update_chapter(self, chapter: Chapter) -> bool:
        if chapter.id not in self._chapters:
            return False
        self._chapters[chapter.id] = chapter
        return True

    async def delete_chapter(self, chapter_id: UUID) -> bool:
        if self._chapters.pop(chapter_id, None) is None:
            return False
        for lesson_id in [
            ls.id for ls in self._lessons.values() if ls.chapter_id == chapter_id
        ]:
            del self._lessons[lesson_id]
        return True

    async def get_lesson(self, lesson_id: UUID) -> Lesson | None:
        return self._lessons.get(lesson_id)

    async def add_lesson(self, lesson: Lesson) -> None:
        if lesson.id in self._lessons:
            raise ValueError("lesson already exists")
        self._lessons[lesson.id] = lesson

    async def update_lesson(self, lesson: Lesson) -> bool:
        if lesson.id not in self._lessons:
            return False
        self._lessons[lesson.id] = lesson
        return True

    async def delete_lesson(self, lesson_id: UUID) -> bool:
        return self._lessons.pop(lesson_id, None) is not None

    async def lessons_for_course(self, course_id: UUID) -> list[Lesson]:
        lessons: list[Lesson] = []
        for chapter in await self.list_chapters(course_id):
            in_chapter = [
                ls for ls in self._lessons.values() if ls.chapter_id == chapter.id
            ]
            lessons.extend(sorted(in_chapter, key=lambda ls: ls.position))
        return lessons

    def clear(self) -> None:
        self._courses.clear()
        self._chapters.clear()
        self._lessons.clear()
