"""Lesson progress endpoints.

  POST /v1/progress
    -> upsert lesson_progress(student, lesson)
    -> completed: recompute enrollment.progress for the lesson's course
    -> invalidate the cached listing for (student, course)
    -> 200 (recompute skipped or applied)
    -> 202 when the row was saved but the recompute failed

  GET /v1/progress?course_id=...
    -> read-through cache of the student's rows in the course

  POST /v1/progress/courses/{course_id}/recompute
    -> re-derive enrollment.progress from stored rows (retry after a 202)
"""

from __future__ import annotations

import json
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel

from coursetrack.api.dependencies import get_store, require_user
from coursetrack.api.enrollments import EnrollmentOut
from coursetrack.core.errors import PartialProgressError
from coursetrack.core.metrics import CACHE_OPERATIONS
from coursetrack.models.principal import Principal
from coursetrack.models.progress import LessonProgress
from coursetrack.repos.store import Store
from coursetrack.services import progress_service
from coursetrack.services.cache import cache_service, progress_key

router = APIRouter(prefix="/v1/progress", tags=["progress"])

# Short enough that a missed invalidation heals within minutes.
_PROGRESS_CACHE_TTL = 300


class LessonProgressIn(BaseModel):
    # Optional here so a missing lesson_id gets the same 422 body as
    # every other validation failure.
    lesson_id: UUID | None = None
    watch_time: int = 0
    completed: bool = False


class LessonProgressOut(BaseModel):
    id: str
    student_id: str
    lesson_id: str
    watch_time: int
    completed: bool
    completed_at: int | None
    created_at: int
    updated_at: int

    @classmethod
    def from_model(cls, progress: LessonProgress) -> LessonProgressOut:
        return cls(
            id=str(progress.id),
            student_id=progress.student_id,
            lesson_id=str(progress.lesson_id),
            watch_time=progress.watch_time,
            completed=progress.completed,
            completed_at=progress.completed_at,
            created_at=progress.created_at,
            updated_at=progress.updated_at,
        )


class RecomputeErrorOut(BaseModel):
    code: str
    detail: str
    retryable: bool


class ProgressReportOut(BaseModel):
    lesson_progress: LessonProgressOut
    course_id: str
    recompute: str  # skipped|applied|failed
    enrollment: EnrollmentOut | None = None
    error: RecomputeErrorOut | None = None


class LessonRefOut(BaseModel):
    id: str
    title: str
    position: int
    type: str
    video_duration: int | None


class ChapterRefOut(BaseModel):
    id: str
    title: str
    position: int


class LessonProgressDetailOut(LessonProgressOut):
    lesson: LessonRefOut
    chapter: ChapterRefOut


@router.post("", response_model=ProgressReportOut)
async def report_progress(
    body: LessonProgressIn,
    response: Response,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> ProgressReportOut:
    try:
        report = await progress_service.report_lesson_progress(
            store,
            principal.user_id,
            body.lesson_id,
            body.watch_time,
            body.completed,
        )
    except PartialProgressError as e:
        await cache_service.delete(progress_key(principal.user_id, e.course_id))
        response.status_code = status.HTTP_202_ACCEPTED
        return ProgressReportOut(
            lesson_progress=LessonProgressOut.from_model(e.lesson_progress),
            course_id=str(e.course_id),
            recompute="failed",
            error=RecomputeErrorOut(
                code=e.cause.code, detail=e.cause.detail, retryable=e.retryable
            ),
        )

    await cache_service.delete(progress_key(principal.user_id, report.course_id))

    return ProgressReportOut(
        lesson_progress=LessonProgressOut.from_model(report.lesson_progress),
        course_id=str(report.course_id),
        recompute="applied" if report.enrollment is not None else "skipped",
        enrollment=(
            EnrollmentOut.from_model(report.enrollment)
            if report.enrollment is not None
            else None
        ),
    )


@router.get("", response_model=list[LessonProgressDetailOut])
async def get_course_progress(
    course_id: Annotated[UUID, Query()],
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> list[LessonProgressDetailOut]:
    cache_key = progress_key(principal.user_id, course_id)

    cached = await cache_service.get(cache_key)
    if cached is not None:
        CACHE_OPERATIONS.labels(operation="hit").inc()
        return [LessonProgressDetailOut(**row) for row in json.loads(cached)]

    CACHE_OPERATIONS.labels(operation="miss").inc()
    views = await progress_service.list_course_progress(
        store, principal.user_id, course_id
    )
    rows = [
        LessonProgressDetailOut(
            **LessonProgressOut.from_model(v.progress).model_dump(),
            lesson=LessonRefOut(
                id=str(v.lesson.id),
                title=v.lesson.title,
                position=v.lesson.position,
                type=v.lesson.type,
                video_duration=v.lesson.video_duration,
            ),
            chapter=ChapterRefOut(
                id=str(v.chapter.id),
                title=v.chapter.title,
                position=v.chapter.position,
            ),
        )
        for v in views
    ]

    await cache_service.set(
        cache_key,
        json.dumps([r.model_dump() for r in rows]),
        _PROGRESS_CACHE_TTL,
    )
    return rows


@router.post("/courses/{course_id}/recompute", response_model=EnrollmentOut)
async def recompute_progress(
    course_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> EnrollmentOut:
    enrollment = await progress_service.recompute_course_progress(
        store, principal.user_id, course_id
    )
    return EnrollmentOut.from_model(enrollment)
