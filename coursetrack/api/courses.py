"""Course catalog endpoints.

Students browse published courses; teachers author their own courses.
Chapters and lessons are created, changed and removed under a course the
caller owns (or any course, for admins).  PUT bodies are partial: fields
left out keep their stored value.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from coursetrack.api.dependencies import get_store, require_any_role, require_user
from coursetrack.models.course import Chapter, Course, Lesson
from coursetrack.models.principal import Principal
from coursetrack.repos.store import Store
from coursetrack.services import catalog_service

router = APIRouter(prefix="/v1/courses", tags=["courses"])

_require_author = require_any_role({"teacher", "admin"})


class CourseIn(BaseModel):
    title: str
    description: str = ""


class ChapterIn(BaseModel):
    title: str
    position: int | None = Field(default=None, ge=1)


class LessonIn(BaseModel):
    title: str
    position: int | None = Field(default=None, ge=1)
    type: str = "video"
    video_duration: int | None = None
    is_free: bool = False


class CourseUpdateIn(BaseModel):
    title: str | None = None
    description: str | None = None


class ChapterUpdateIn(BaseModel):
    title: str | None = None
    position: int | None = Field(default=None, ge=1)


class LessonUpdateIn(BaseModel):
    title: str | None = None
    position: int | None = Field(default=None, ge=1)
    type: str | None = None
    video_duration: int | None = None
    is_free: bool | None = None


class CourseOut(BaseModel):
    id: str
    title: str
    description: str
    teacher_id: str
    status: str
    created_at: int

    @classmethod
    def from_model(cls, course: Course) -> CourseOut:
        return cls(
            id=str(course.id),
            title=course.title,
            description=course.description,
            teacher_id=course.teacher_id,
            status=course.status,
            created_at=course.created_at,
        )


class LessonOut(BaseModel):
    id: str
    chapter_id: str
    title: str
    position: int
    type: str
    video_duration: int | None
    is_free: bool

    @classmethod
    def from_model(cls, lesson: Lesson) -> LessonOut:
        return cls(
            id=str(lesson.id),
            chapter_id=str(lesson.chapter_id),
            title=lesson.title,
            position=lesson.position,
            type=lesson.type,
            video_duration=lesson.video_duration,
            is_free=lesson.is_free,
        )


class ChapterOut(BaseModel):
    id: str
    course_id: str
    title: str
    position: int
    lessons: list[LessonOut] = []

    @classmethod
    def from_model(
        cls, chapter: Chapter, lessons: list[Lesson] | None = None
    ) -> ChapterOut:
        return cls(
            id=str(chapter.id),
            course_id=str(chapter.course_id),
            title=chapter.title,
            position=chapter.position,
            lessons=[LessonOut.from_model(ls) for ls in lessons or []],
        )


class CourseDetailOut(CourseOut):
    chapters: list[ChapterOut]


@router.get("", response_model=list[CourseOut])
async def list_courses(
    _principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> list[CourseOut]:
    courses = await catalog_service.list_published(store)
    return [CourseOut.from_model(c) for c in courses]


@router.get("/{course_id}", response_model=CourseDetailOut)
async def get_course(
    course_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> CourseDetailOut:
    outline = await catalog_service.course_outline(store, principal, course_id)
    return CourseDetailOut(
        **CourseOut.from_model(outline.course).model_dump(),
        chapters=[
            ChapterOut.from_model(ch.chapter, ch.lessons) for ch in outline.chapters
        ],
    )


@router.post("", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
async def create_course(
    body: CourseIn,
    principal: Annotated[Principal, Depends(_require_author)],
    store: Annotated[Store, Depends(get_store)],
) -> CourseOut:
    course = await catalog_service.create_course(
        store, principal, title=body.title, description=body.description
    )
    return CourseOut.from_model(course)


@router.post("/{course_id}/publish", response_model=CourseOut)
async def publish_course(
    course_id: UUID,
    principal: Annotated[Principal, Depends(_require_author)],
    store: Annotated[Store, Depends(get_store)],
) -> CourseOut:
    course = await catalog_service.publish_course(store, principal, course_id)
    return CourseOut.from_model(course)


@router.post(
    "/{course_id}/chapters",
    response_model=ChapterOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_chapter(
    course_id: UUID,
    body: ChapterIn,
    principal: Annotated[Principal, Depends(_require_author)],
    store: Annotated[Store, Depends(get_store)],
) -> ChapterOut:
    chapter = await catalog_service.add_chapter(
        store, principal, course_id, title=body.title, position=body.position
    )
    return ChapterOut.from_model(chapter)


@router.post(
    "/{course_id}/chapters/{chapter_id}/lessons",
    response_model=LessonOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_lesson(
    course_id: UUID,
    chapter_id: UUID,
    body: LessonIn,
    principal: Annotated[Principal, Depends(_require_author)],
    store: Annotated[Store, Depends(get_store)],
) -> LessonOut:
    lesson = await catalog_service.add_lesson(
        store,
        principal,
        course_id,
        chapter_id,
        title=body.title,
        position=body.position,
        type=body.type,
        video_duration=body.video_duration,
        is_free=body.is_free,
    )
    return LessonOut.from_model(lesson)


@router.put("/{course_id}", response_model=CourseOut)
async def update_course(
    course_id: UUID,
    body: CourseUpdateIn,
    principal: Annotated[Principal, Depends(_require_author)],
    store: Annotated[Store, Depends(get_store)],
) -> CourseOut:
    course = await catalog_service.update_course(
        store,
        principal,
        course_id,
        title=body.title,
        description=body.description,
    )
    return CourseOut.from_model(course)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(
    course_id: UUID,
    principal: Annotated[Principal, Depends(_require_author)],
    store: Annotated[Store, Depends(get_store)],
) -> None:
    await catalog_service.delete_course(store, principal, course_id)


@router.get("/{course_id}/chapters/{chapter_id}", response_model=ChapterOut)
async def get_chapter(
    course_id: UUID,
    chapter_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> ChapterOut:
    outline = await catalog_service.get_chapter(
        store, principal, course_id, chapter_id
    )
    return ChapterOut.from_model(outline.chapter, outline.lessons)


@router.put("/{course_id}/chapters/{chapter_id}", response_model=ChapterOut)
async def update_chapter(
    course_id: UUID,
    chapter_id: UUID,
    body: ChapterUpdateIn,
    principal: Annotated[Principal, Depends(_require_author)],
    store: Annotated[Store, Depends(get_store)],
) -> ChapterOut:
    chapter = await catalog_service.update_chapter(
        store,
        principal,
        course_id,
        chapter_id,
        title=body.title,
        position=body.position,
    )
    return ChapterOut.from_model(chapter)


@router.delete(
    "/{course_id}/chapters/{chapter_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_chapter(
    course_id: UUID,
    chapter_id: UUID,
    principal: Annotated[Principal, Depends(_require_author)],
    store: Annotated[Store, Depends(get_store)],
) -> None:
    await catalog_service.delete_chapter(store, principal, course_id, chapter_id)


@router.get(
    "/{course_id}/chapters/{chapter_id}/lessons/{lesson_id}",
    response_model=LessonOut,
)
async def get_lesson(
    course_id: UUID,
    chapter_id: UUID,
    lesson_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> LessonOut:
    lesson = await catalog_service.get_lesson(
        store, principal, course_id, chapter_id, lesson_id
    )
    return LessonOut.from_model(lesson)


@router.put(
    "/{course_id}/chapters/{chapter_id}/lessons/{lesson_id}",
    response_model=LessonOut,
)
async def update_lesson(
    course_id: UUID,
    chapter_id: UUID,
    lesson_id: UUID,
    body: LessonUpdateIn,
    principal: Annotated[Principal, Depends(_require_author)],
    store: Annotated[Store, Depends(get_store)],
) -> LessonOut:
    lesson = await catalog_service.update_lesson(
        store,
        principal,
        course_id,
        chapter_id,
        lesson_id,
        title=body.title,
        position=body.position,
        type=body.type,
        video_duration=body.video_duration,
        is_free=body.is_free,
    )
    return LessonOut.from_model(lesson)


@router.delete(
    "/{course_id}/chapters/{chapter_id}/lessons/{lesson_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_lesson(
    course_id: UUID,
    chapter_id: UUID,
    lesson_id: UUID,
    principal: Annotated[Principal, Depends(_require_author)],
    store: Annotated[Store, Depends(get_store)],
) -> None:
    await catalog_service.delete_lesson(
        store, principal, course_id, chapter_id, lesson_id
    )
