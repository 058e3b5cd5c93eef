"""Prometheus metrics middleware.

Records, for every request except the /metrics scrape itself:
  - ACTIVE_REQUESTS while the request is in flight
  - REQUEST_COUNT by method, route and status code
  - REQUEST_DURATION by method and route

The endpoint label is the matched route template
(/v1/courses/{course_id}), not the raw URL, so ids never become label
values.  Requests no route matched share the "unmatched" label.
"""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import BaseRoute

from coursetrack.core.metrics import ACTIVE_REQUESTS, REQUEST_COUNT, REQUEST_DURATION


def _endpoint_label(request: Request) -> str:
    # the router records the matched route in the shared scope
    route: BaseRoute | None = request.scope.get("route")
    path = getattr(route, "path", None)
    return path if path is not None else "unmatched"


class MetricsMiddleware(BaseHTTPMiddleware):
    """Collect Prometheus metrics for every HTTP request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        ACTIVE_REQUESTS.inc()
        start = time.monotonic()
        status_code: str | None = None

        try:
            response = await call_next(request)
            status_code = str(response.status_code)
        except Exception:
            # Unhandled errors still surface to the client as a 500.
            status_code = "500"
            raise
        finally:
            duration = time.monotonic() - start
            ACTIVE_REQUESTS.dec()
            endpoint = _endpoint_label(request)
            REQUEST_COUNT.labels(
                method=request.method,
                endpoint=endpoint,
                status_code=status_code if status_code is not None else "500",
            ).inc()
            REQUEST_DURATION.labels(
                method=request.method,
                endpoint=endpoint,
            ).observe(duration)

        return response
