from __future__ import annotations

import uuid

import pytest

from coursetrack.api.errors import error_body, status_for
from coursetrack.core.errors import (
    AlreadyExistsError,
    AuthorizationError,
    ConflictError,
    DataIntegrityError,
    DependencyError,
    ForbiddenError,
    NotFoundError,
    PartialProgressError,
    ProgressError,
    ValidationError,
)
from coursetrack.models.progress import LessonProgress


@pytest.mark.parametrize(
    ("error", "status_code", "retryable"),
    [
        (ValidationError("bad"), 422, False),
        (AuthorizationError("who"), 401, False),
        (ForbiddenError("no"), 403, False),
        (NotFoundError("lesson", "x"), 404, False),
        (AlreadyExistsError("enrollment", "x"), 409, False),
        (ConflictError("race"), 409, True),
        (DependencyError("down"), 503, True),
        (DataIntegrityError("orphan"), 500, False),
        (ProgressError("other"), 500, False),
    ],
)
def test_status_mapping(
    error: ProgressError, status_code: int, retryable: bool
) -> None:
    assert status_for(error) == status_code
    assert error.retryable is retryable


def test_not_found_code_names_the_entity() -> None:
    err = NotFoundError("enrollment", "s1/c1")
    assert err.code == "enrollment_not_found"
    assert "s1/c1" in err.detail


def test_error_body_shape() -> None:
    body = error_body(AlreadyExistsError("enrollment", "s1/c1"))
    assert body == {
        "detail": "enrollment already exists: s1/c1",
        "code": "enrollment_exists",
        "retryable": False,
    }


def test_partial_error_inherits_retryability_from_cause() -> None:
    row = LessonProgress.record(
        student_id="s1", lesson_id=uuid.uuid4(), watch_time=1, completed=True, at=1
    )
    course_id = uuid.uuid4()

    transient = PartialProgressError(row, course_id, DependencyError("down"))
    permanent = PartialProgressError(row, course_id, NotFoundError("enrollment", "x"))

    assert transient.retryable is True
    assert permanent.retryable is False
    assert transient.code == "recompute_failed"
    assert transient.lesson_progress is row
