"""Course catalog authoring.

Teachers own the courses they create; only the owner or an admin may
change a course, its chapters or its lessons.  Positions default to
"append at the end" when the caller does not give one.

Removing a lesson does not touch stored enrollment progress.  The next
completion report or an explicit recompute brings the percentage in line
with the smaller lesson set.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, replace
from uuid import UUID

from coursetrack.core.errors import ForbiddenError, NotFoundError, ValidationError
from coursetrack.models.course import Chapter, Course, Lesson
from coursetrack.models.principal import Principal
from coursetrack.repos.store import Store

logger = logging.getLogger(__name__)

LESSON_TYPES = ("video", "text")


@dataclass(frozen=True, slots=True)
class ChapterOutline:
    chapter: Chapter
    lessons: list[Lesson]


@dataclass(frozen=True, slots=True)
class CourseOutline:
    course: Course
    chapters: list[ChapterOutline]


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


def _require_title(title: str) -> str:
    title = title.strip()
    if not title:
        raise ValidationError("title must be non-empty")
    return title


async def _owned_course(store: Store, principal: Principal, course_id: UUID) -> Course:
    course = await store.catalog.get_course(course_id)
    if course is None:
        raise NotFoundError("course", course_id)
    if course.teacher_id != principal.user_id and not principal.is_admin():
        logger.warning(
            "Access denied: user=%s does not own course=%s",
            principal.user_id,
            course_id,
        )
        raise ForbiddenError("only the course owner may modify this course")
    return course


async def _visible_course(
    store: Store, principal: Principal, course_id: UUID
) -> Course:
    # drafts are reported missing to everyone but their owner and admins
    course = await store.catalog.get_course(course_id)
    if course is None:
        raise NotFoundError("course", course_id)
    if (
        not course.is_published
        and course.teacher_id != principal.user_id
        and not principal.is_admin()
    ):
        raise NotFoundError("course", course_id)
    return course


async def _chapter_in_course(
    store: Store, course_id: UUID, chapter_id: UUID
) -> Chapter:
    chapter = await store.catalog.get_chapter(chapter_id)
    if chapter is None or chapter.course_id != course_id:
        raise NotFoundError("chapter", chapter_id)
    return chapter


async def _lesson_in_chapter(
    store: Store, course_id: UUID, chapter_id: UUID, lesson_id: UUID
) -> Lesson:
    await _chapter_in_course(store, course_id, chapter_id)
    lesson = await store.catalog.get_lesson(lesson_id)
    if lesson is None or lesson.chapter_id != chapter_id:
        raise NotFoundError("lesson", lesson_id)
    return lesson


def _check_lesson_fields(type: str, video_duration: int | None) -> None:
    if type not in LESSON_TYPES:
        raise ValidationError(f"type must be video|text (got {type!r})")
    if video_duration is not None and video_duration < 0:
        raise ValidationError("video_duration must be >= 0")


async def create_course(
    store: Store, principal: Principal, *, title: str, description: str = ""
) -> Course:
    course = Course.new(
        title=_require_title(title),
        teacher_id=principal.user_id,
        description=description,
        created_at=_now(),
    )
    await store.catalog.add_course(course)
    logger.info("Created course id=%s teacher=%s", course.id, course.teacher_id)
    return course


async def publish_course(store: Store, principal: Principal, course_id: UUID) -> Course:
    await _owned_course(store, principal, course_id)
    course = await store.catalog.set_status(course_id, "published")
    if course is None:
        raise NotFoundError("course", course_id)
    logger.info("Published course id=%s", course_id)
    return course


async def add_chapter(
    store: Store,
    principal: Principal,
    course_id: UUID,
    *,
    title: str,
    position: int | None = None,
) -> Chapter:
    await _owned_course(store, principal, course_id)
    if position is None:
        position = len(await store.catalog.list_chapters(course_id)) + 1
    chapter = Chapter.new(
        course_id=course_id, title=_require_title(title), position=position
    )
    await store.catalog.add_chapter(chapter)
    return chapter


async def add_lesson(
    store: Store,
    principal: Principal,
    course_id: UUID,
    chapter_id: UUID,
    *,
    title: str,
    position: int | None = None,
    type: str = "video",
    video_duration: int | None = None,
    is_free: bool = False,
) -> Lesson:
    await _owned_course(store, principal, course_id)
    await _chapter_in_course(store, course_id, chapter_id)
    _check_lesson_fields(type, video_duration)

    if position is None:
        siblings = [
            ls
            for ls in await store.catalog.lessons_for_course(course_id)
            if ls.chapter_id == chapter_id
        ]
        position = len(siblings) + 1

    lesson = Lesson.new(
        chapter_id=chapter_id,
        title=_require_title(title),
        position=position,
        type=type,
        video_duration=video_duration,
        is_free=is_free,
    )
    await store.catalog.add_lesson(lesson)
    return lesson


async def list_published(store: Store) -> list[Course]:
    return await store.catalog.list_courses(published_only=True)


async def course_outline(
    store: Store, principal: Principal, course_id: UUID
) -> CourseOutline:
    """Course with its chapters and lessons in reading order.

    Drafts are only visible to their owner and admins.
    """
    course = await _visible_course(store, principal, course_id)
    lessons = await store.catalog.lessons_for_course(course_id)
    chapters = [
        ChapterOutline(
            chapter=ch, lessons=[ls for ls in lessons if ls.chapter_id == ch.id]
        )
        for ch in await store.catalog.list_chapters(course_id)
    ]
    return CourseOutline(course=course, chapters=chapters)


async def update_course(
    store: Store,
    principal: Principal,
    course_id: UUID,
    *,
    title: str | None = None,
    description: str | None = None,
) -> Course:
    course = await _owned_course(store, principal, course_id)
    if title is not None:
        course = replace(course, title=_require_title(title))
    if description is not None:
        course = replace(course, description=description)
    if not await store.catalog.update_course(course):
        raise NotFoundError("course", course_id)
    logger.info("Updated course id=%s", course_id)
    return course


async def delete_course(store: Store, principal: Principal, course_id: UUID) -> None:
    await _owned_course(store, principal, course_id)
    if not await store.catalog.delete_course(course_id):
        raise NotFoundError("course", course_id)
    logger.info("Deleted course id=%s by user=%s", course_id, principal.user_id)


async def get_chapter(
    store: Store, principal: Principal, course_id: UUID, chapter_id: UUID
) -> ChapterOutline:
    await _visible_course(store, principal, course_id)
    chapter = await _chapter_in_course(store, course_id, chapter_id)
    lessons = [
        ls
        for ls in await store.catalog.lessons_for_course(course_id)
        if ls.chapter_id == chapter_id
    ]
    return ChapterOutline(chapter=chapter, lessons=lessons)


async def update_chapter(
    store: Store,
    principal: Principal,
    course_id: UUID,
    chapter_id: UUID,
    *,
    title: str | None = None,
    position: int | None = None,
) -> Chapter:
    await _owned_course(store, principal, course_id)
    chapter = await _chapter_in_course(store, course_id, chapter_id)
    if title is not None:
        chapter = replace(chapter, title=_require_title(title))
    if position is not None:
        chapter = replace(chapter, position=position)
    if not await store.catalog.update_chapter(chapter):
        raise NotFoundError("chapter", chapter_id)
    return chapter


async def delete_chapter(
    store: Store, principal: Principal, course_id: UUID, chapter_id: UUID
) -> None:
    await _owned_course(store, principal, course_id)
    await _chapter_in_course(store, course_id, chapter_id)
    if not await store.catalog.delete_chapter(chapter_id):
        raise NotFoundError("chapter", chapter_id)
    logger.info("Deleted chapter id=%s course=%s", chapter_id, course_id)


async def get_lesson(
    store: Store,
    principal: Principal,
    course_id: UUID,
    chapter_id: UUID,
    lesson_id: UUID,
) -> Lesson:
    await _visible_course(store, principal, course_id)
    return await _lesson_in_chapter(store, course_id, chapter_id, lesson_id)


async def update_lesson(
    store: Store,
    principal: Principal,
    course_id: UUID,
    chapter_id: UUID,
    lesson_id: UUID,
    *,
    title: str | None = None,
    position: int | None = None,
    type: str | None = None,
    video_duration: int | None = None,
    is_free: bool | None = None,
) -> Lesson:
    await _owned_course(store, principal, course_id)
    lesson = await _lesson_in_chapter(store, course_id, chapter_id, lesson_id)
    changes: dict[str, object] = {}
    if title is not None:
        changes["title"] = _require_title(title)
    if position is not None:
        changes["position"] = position
    if type is not None:
        changes["type"] = type
    if video_duration is not None:
        changes["video_duration"] = video_duration
    if is_free is not None:
        changes["is_free"] = is_free
    lesson = replace(lesson, **changes)
    _check_lesson_fields(lesson.type, lesson.video_duration)

    if not await store.catalog.update_lesson(lesson):
        raise NotFoundError("lesson", lesson_id)
    return lesson


async def delete_lesson(
    store: Store,
    principal: Principal,
    course_id: UUID,
    chapter_id: UUID,
    lesson_id: UUID,
) -> None:
    await _owned_course(store, principal, course_id)
    await _lesson_in_chapter(store, course_id, chapter_id, lesson_id)
    if not await store.catalog.delete_lesson(lesson_id):
        raise NotFoundError("lesson", lesson_id)
    logger.info("Deleted lesson id=%s course=%s", lesson_id, course_id)
