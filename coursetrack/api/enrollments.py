"""Enrollment endpoints.

  POST   /v1/enrollments               enroll the calling student (201)
  GET    /v1/enrollments               the caller's enrollments, newest first
  DELETE /v1/enrollments/{course_id}   unenroll (204)

progress and completed_at are read-only here; they are maintained by the
progress recompute.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from coursetrack.api.dependencies import get_store, require_role, require_user
from coursetrack.models.enrollment import Enrollment
from coursetrack.models.principal import Principal
from coursetrack.repos.store import Store
from coursetrack.services import enrollment_service

router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])


class EnrollIn(BaseModel):
    course_id: UUID


class EnrollmentOut(BaseModel):
    id: str
    student_id: str
    course_id: str
    enrolled_at: int
    progress: float
    completed_at: int | None

    @classmethod
    def from_model(cls, enrollment: Enrollment) -> EnrollmentOut:
        return cls(
            id=str(enrollment.id),
            student_id=enrollment.student_id,
            course_id=str(enrollment.course_id),
            enrolled_at=enrollment.enrolled_at,
            progress=enrollment.progress,
            completed_at=enrollment.completed_at,
        )


@router.get("", response_model=list[EnrollmentOut])
async def list_enrollments(
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> list[EnrollmentOut]:
    enrollments = await enrollment_service.list_enrollments(store, principal.user_id)
    return [EnrollmentOut.from_model(e) for e in enrollments]


@router.post("", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED)
async def enroll(
    body: EnrollIn,
    principal: Annotated[Principal, Depends(require_role("student"))],
    store: Annotated[Store, Depends(get_store)],
) -> EnrollmentOut:
    enrollment = await enrollment_service.enroll(
        store, principal.user_id, body.course_id
    )
    return EnrollmentOut.from_model(enrollment)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unenroll(
    course_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
    store: Annotated[Store, Depends(get_store)],
) -> Response:
    await enrollment_service.unenroll(store, principal.user_id, course_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
