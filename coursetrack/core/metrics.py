"""Prometheus metric inventory.

Every metric the service exports is declared here; the modules that own
the behavior import and increment them.  HTTP metrics are fed by
MetricsMiddleware, the rest by the progress service and the API layer.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Progress metrics
# ---------------------------------------------------------------------------

LESSON_PROGRESS_REPORTS = Counter(
    "lesson_progress_reports_total",
    "Lesson progress rows upserted",
    ["completed"],  # "true" or "false"
)

COURSE_RECOMPUTES = Counter(
    "course_progress_recomputes_total",
    "Course progress recomputes by result",
    ["result"],  # "ok", "enrollment_not_found", "error"
)

COURSE_COMPLETIONS = Counter(
    "course_completions_total",
    "Enrollments that reached 100% progress on a recompute",
)

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Cache get operations by result",
    ["operation"],  # "hit" or "miss"
)
