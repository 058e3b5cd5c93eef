"""Request context middleware.

Every request gets an ID (echoed from X-Request-ID or freshly generated)
kept in ``request_id_var`` for the logging filter, so records from the
progress service and the repositories carry it without passing it around.

The route handler runs in a child task, so a user id bound there by
``require_user`` never reaches this task's ContextVars.  It comes back
through ``request.state`` instead and is put on the summary line, which
makes "who reported this progress" answerable from the access log alone.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from coursetrack.core.logging import request_id_var

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request ID, time the request, log one summary line."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        token = request_id_var.set(req_id)
        try:
            start = time.monotonic()
            response = await call_next(request)
            duration_ms = round((time.monotonic() - start) * 1000, 1)

            user_id = getattr(request.state, "user_id", None)
            level = logging.WARNING if response.status_code >= 500 else logging.INFO
            logger.log(
                level,
                "%s %s -> %d (%.1fms) user=%s",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
                user_id or "-",
                extra={
                    "request_id": req_id,
                    "method": request.method,
                    "path": request.url.path,
                    "user_id": user_id,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = req_id
        return response
