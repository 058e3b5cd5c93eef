"""Map progress-core errors onto HTTP responses.

Registered on the app in main.py, so endpoints let ProgressError
propagate instead of translating each one to HTTPException by hand.
The body keeps FastAPI's ``detail`` key and adds the error ``code`` and
whether retrying can help.
"""

from __future__ import annotations

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from coursetrack.core.errors import (
    AlreadyExistsError,
    AuthorizationError,
    ConflictError,
    DataIntegrityError,
    DependencyError,
    ForbiddenError,
    NotFoundError,
    ProgressError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[ProgressError], int], ...] = (
    (ValidationError, 422),
    (AuthorizationError, status.HTTP_401_UNAUTHORIZED),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (AlreadyExistsError, status.HTTP_409_CONFLICT),
    (ConflictError, status.HTTP_409_CONFLICT),
    (DependencyError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (DataIntegrityError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: ProgressError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(exc: ProgressError) -> dict[str, object]:
    return {"detail": exc.detail, "code": exc.code, "retryable": exc.retryable}


async def progress_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, ProgressError)
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("Request failed: %s (%s)", exc.detail, exc.code)
    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(
        status_code=status_code, content=error_body(exc), headers=headers
    )
