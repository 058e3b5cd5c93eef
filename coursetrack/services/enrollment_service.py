from __future__ import annotations

import datetime
import logging
from uuid import UUID

from coursetrack.core.errors import AlreadyExistsError, ConflictError, NotFoundError
from coursetrack.models.enrollment import Enrollment
from coursetrack.repos.store import Store

logger = logging.getLogger(__name__)


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


async def enroll(store: Store, student_id: str, course_id: UUID) -> Enrollment:
    course = await store.catalog.get_course(course_id)
    if course is None or not course.is_published:
        logger.warning(
            "Rejected enrollment student=%s course=%s: no such published course",
            student_id,
            course_id,
        )
        raise NotFoundError("course", course_id)

    if await store.enrollments.get(student_id, course_id) is not None:
        raise AlreadyExistsError("enrollment", f"{student_id}/{course_id}")

    enrollment = Enrollment.new(
        student_id=student_id, course_id=course_id, enrolled_at=_now()
    )
    try:
        await store.enrollments.add(enrollment)
    except ValueError:
        # Lost a race with a concurrent enroll for the same pair.
        raise AlreadyExistsError("enrollment", f"{student_id}/{course_id}") from None
    except ConflictError:
        # Same race against the unique index in PostgreSQL.
        if await store.enrollments.get(student_id, course_id) is None:
            raise
        raise AlreadyExistsError("enrollment", f"{student_id}/{course_id}") from None

    logger.info("Enrolled student=%s course=%s", student_id, course_id)
    return enrollment


async def unenroll(store: Store, student_id: str, course_id: UUID) -> None:
    if not await store.enrollments.remove(student_id, course_id):
        raise NotFoundError("enrollment", f"{student_id}/{course_id}")
    logger.info("Unenrolled student=%s course=%s", student_id, course_id)


async def list_enrollments(store: Store, student_id: str) -> list[Enrollment]:
    return await store.enrollments.list_by_student(student_id)
