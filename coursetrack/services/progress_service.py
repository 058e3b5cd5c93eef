"""Lesson progress reporting and course progress aggregation.

A lesson report flows through:
  validate -> resolve lesson -> chapter -> course
  -> upsert lesson_progress(student, lesson)        (source of truth)
  -> completed only: recompute enrollment.progress  (materialized snapshot)

Enrollment.progress is derived from lesson_progress rows and nothing
else, so recompute_course_progress can be retried at any time and always
converges on the stored state.

De-completing a lesson (completed=false) does not trigger a recompute, so
the enrollment keeps its previous, possibly higher, progress until the
next completion in that course.  Clients that need an exact figure after
a de-completion call recompute_course_progress explicitly.

Concurrency: the upsert is last-write-wins per (student, lesson) and the
enrollment update is last-write-wins per (student, course).  There is no
version column; two racing recomputes both read committed rows and settle
on a value consistent with one of them.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Callable
from dataclasses import dataclass
from uuid import UUID

from coursetrack.core.errors import (
    AuthorizationError,
    DataIntegrityError,
    NotFoundError,
    PartialProgressError,
    ProgressError,
    ValidationError,
)
from coursetrack.core.metrics import (
    COURSE_COMPLETIONS,
    COURSE_RECOMPUTES,
    LESSON_PROGRESS_REPORTS,
)
from coursetrack.models.course import Chapter, Lesson
from coursetrack.models.enrollment import Enrollment
from coursetrack.models.progress import LessonProgress
from coursetrack.repos.store import Store

logger = logging.getLogger(__name__)

COMPLETE = 100.0

Clock = Callable[[], int]


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


@dataclass(frozen=True, slots=True)
class ProgressReport:
    lesson_progress: LessonProgress
    course_id: UUID
    enrollment: Enrollment | None = None  # None when no recompute ran


@dataclass(frozen=True, slots=True)
class LessonProgressView:
    progress: LessonProgress
    lesson: Lesson
    chapter: Chapter


def compute_progress(total_lessons: int, completed_lessons: int) -> float:
    """Percentage of completed lessons, unrounded.  0 for an empty course."""
    if total_lessons == 0:
        return 0.0
    return completed_lessons / total_lessons * 100


def _require_student(student_id: str | None) -> str:
    if not student_id:
        raise AuthorizationError("an authenticated student is required")
    return student_id


def _validate_report(
    lesson_id: object, watch_time: object, completed: object
) -> UUID:
    if lesson_id is None:
        raise ValidationError("lesson_id is required")
    if not isinstance(lesson_id, UUID):
        raise ValidationError(f"lesson_id must be a UUID (got {lesson_id!r})")
    # bool is an int subclass; True seconds is not a watch time.
    if isinstance(watch_time, bool) or not isinstance(watch_time, int):
        raise ValidationError(f"watch_time must be an integer (got {watch_time!r})")
    if watch_time < 0:
        raise ValidationError(f"watch_time must be >= 0 (got {watch_time})")
    if not isinstance(completed, bool):
        raise ValidationError(f"completed must be a boolean (got {completed!r})")
    return lesson_id


async def course_id_for_lesson(store: Store, lesson_id: UUID) -> UUID:
    """Walk lesson -> chapter -> course.

    A missing lesson is the caller's mistake (NotFoundError); a lesson or
    chapter pointing at nothing is broken catalog data (DataIntegrityError).
    """
    lesson = await store.catalog.get_lesson(lesson_id)
    if lesson is None:
        raise NotFoundError("lesson", lesson_id)

    chapter = await store.catalog.get_chapter(lesson.chapter_id)
    if chapter is None:
        logger.error(
            "Lesson %s references missing chapter %s", lesson_id, lesson.chapter_id
        )
        raise DataIntegrityError(f"lesson {lesson_id} belongs to no chapter")

    course = await store.catalog.get_course(chapter.course_id)
    if course is None:
        logger.error(
            "Chapter %s references missing course %s", chapter.id, chapter.course_id
        )
        raise DataIntegrityError(f"chapter {chapter.id} belongs to no course")

    return course.id


async def report_lesson_progress(
    store: Store,
    student_id: str | None,
    lesson_id: UUID | None,
    watch_time: int,
    completed: bool,
    *,
    clock: Clock = _now,
) -> ProgressReport:
    """Record a student's watch state for a lesson.

    Writes exactly one lesson_progress row, and at most one enrollment row
    when the lesson is reported completed.  Lower watch times than stored
    are accepted and overwrite.

    Raises:
        AuthorizationError, ValidationError, NotFoundError,
        DataIntegrityError: before anything is written.
        DependencyError, ConflictError: store failure on the upsert.
        PartialProgressError: the upsert succeeded but the recompute did
            not; the row stays persisted.
    """
    student_id = _require_student(student_id)
    lesson_id = _validate_report(lesson_id, watch_time, completed)

    course_id = await course_id_for_lesson(store, lesson_id)

    saved = await store.lesson_progress.upsert(
        LessonProgress.record(
            student_id=student_id,
            lesson_id=lesson_id,
            watch_time=watch_time,
            completed=completed,
            at=clock(),
        )
    )
    LESSON_PROGRESS_REPORTS.labels(completed=str(completed).lower()).inc()
    logger.info(
        "Lesson progress saved student=%s lesson=%s watch_time=%d completed=%s",
        student_id,
        lesson_id,
        watch_time,
        completed,
        extra={
            "student_id": student_id,
            "lesson_id": str(lesson_id),
            "course_id": str(course_id),
        },
    )

    if not completed:
        return ProgressReport(lesson_progress=saved, course_id=course_id)

    try:
        enrollment = await recompute_course_progress(
            store, student_id, course_id, clock=clock
        )
    except ProgressError as e:
        logger.warning(
            "Course recompute failed after lesson progress was saved "
            "student=%s course=%s error=%s",
            student_id,
            course_id,
            e.code,
        )
        raise PartialProgressError(saved, course_id, e) from e

    return ProgressReport(
        lesson_progress=saved, course_id=course_id, enrollment=enrollment
    )


async def recompute_course_progress(
    store: Store,
    student_id: str | None,
    course_id: UUID,
    *,
    clock: Clock = _now,
) -> Enrollment:
    """Refresh enrollment.progress from the student's lesson_progress rows.

    progress >= 100 records completed_at (the first completion time is
    kept); below 100 completed_at is left as it is, never cleared.

    Raises NotFoundError("enrollment") without writing when the student is
    not enrolled in the course.
    """
    student_id = _require_student(student_id)

    try:
        lessons = await store.catalog.lessons_for_course(course_id)
        lesson_ids = [lesson.id for lesson in lessons]
        done = await store.lesson_progress.list_completed(student_id, lesson_ids)
        progress = compute_progress(len(lesson_ids), len(done))
        completed_at = clock() if progress >= COMPLETE else None

        update = await store.enrollments.update_progress(
            student_id,
            course_id,
            progress=progress,
            completed_at=completed_at,
        )
    except ProgressError:
        COURSE_RECOMPUTES.labels(result="error").inc()
        raise

    if update is None:
        COURSE_RECOMPUTES.labels(result="enrollment_not_found").inc()
        logger.warning(
            "Progress recompute for unenrolled student=%s course=%s",
            student_id,
            course_id,
        )
        raise NotFoundError("enrollment", f"{student_id}/{course_id}")

    COURSE_RECOMPUTES.labels(result="ok").inc()
    if update.newly_completed:
        COURSE_COMPLETIONS.inc()
    logger.info(
        "Course progress recomputed student=%s course=%s completed=%d/%d progress=%.2f",
        student_id,
        course_id,
        len(done),
        len(lesson_ids),
        progress,
        extra={"student_id": student_id, "course_id": str(course_id)},
    )
    return update.enrollment


async def list_course_progress(
    store: Store, student_id: str | None, course_id: UUID
) -> list[LessonProgressView]:
    """The student's lesson_progress rows in a course, with lesson and chapter."""
    student_id = _require_student(student_id)

    course = await store.catalog.get_course(course_id)
    if course is None:
        raise NotFoundError("course", course_id)

    chapters = {ch.id: ch for ch in await store.catalog.list_chapters(course_id)}
    lessons = await store.catalog.lessons_for_course(course_id)
    rows = {
        p.lesson_id: p
        for p in await store.lesson_progress.list_for_lessons(
            student_id, [lesson.id for lesson in lessons]
        )
    }

    return [
        LessonProgressView(
            progress=rows[lesson.id],
            lesson=lesson,
            chapter=chapters[lesson.chapter_id],
        )
        for lesson in lessons
        if lesson.id in rows
    ]
