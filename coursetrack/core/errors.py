"""Error taxonomy for the progress core.

Services raise these; the API layer maps them to HTTP responses
(coursetrack/api/errors.py).  Each error carries
a stable machine-readable ``code`` and a ``retryable`` flag so callers
can decide whether to try again without parsing messages.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from coursetrack.models.progress import LessonProgress


class ProgressError(Exception):
    code = "progress_error"
    retryable = False

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(ProgressError):
    """Malformed input.  Raised before any state is touched."""

    code = "validation_error"


class AuthorizationError(ProgressError):
    """No authenticated student identity was supplied."""

    code = "unauthorized"


class NotFoundError(ProgressError):
    """A referenced lesson, chapter, course or enrollment does not exist.

    ``entity`` tells a bad reference from the caller ("lesson", "course")
    apart from inconsistent upstream state ("enrollment": progress was
    reported for a course the student never enrolled in).
    """

    def __init__(self, entity: str, key: object) -> None:
        super().__init__(f"{entity} not found: {key}")
        self.entity = entity
        self.key = key

    @property
    def code(self) -> str:  # type: ignore[override]
        return f"{self.entity}_not_found"


class ConflictError(ProgressError):
    """The store rejected a concurrent write it could not resolve."""

    code = "conflict"
    retryable = True


class DependencyError(ProgressError):
    """The persistence store or catalog is unreachable or failing."""

    code = "dependency_unavailable"
    retryable = True


class DataIntegrityError(ProgressError):
    """Catalog rows are inconsistent (orphan lesson or chapter).  Not repaired here."""

    code = "data_integrity_error"


class PartialProgressError(ProgressError):
    """Lesson progress was persisted but the course recompute failed.

    The aggregate is stale until a recompute succeeds.  Recompute is a
    pure function of stored rows, so retrying it is always safe.
    """

    code = "recompute_failed"

    def __init__(
        self,
        lesson_progress: LessonProgress,
        course_id: UUID,
        cause: ProgressError,
    ) -> None:
        super().__init__(f"lesson progress saved, course recompute failed: {cause}")
        self.lesson_progress = lesson_progress
        self.course_id = course_id
        self.cause = cause

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.cause.retryable


class ForbiddenError(ProgressError):
    """Authenticated, but not allowed to act on this resource."""

    code = "forbidden"


class AlreadyExistsError(ProgressError):
    """A uniquely keyed row (e.g. an enrollment) already exists."""

    def __init__(self, entity: str, key: object) -> None:
        super().__init__(f"{entity} already exists: {key}")
        self.entity = entity
        self.key = key

    @property
    def code(self) -> str:  # type: ignore[override]
        return f"{self.entity}_exists"
