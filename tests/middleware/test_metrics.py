"""Tests for Prometheus metrics.

prometheus-client keeps a global registry and counters cannot be reset
between tests, so every assertion is on the delta around an action.
"""

from __future__ import annotations

import uuid

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from tests.conftest import auth


def _get_sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def test_request_counter_increments(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/health")
    assert _get_sample("http_requests_total", labels) - before >= 1


def test_request_duration_histogram_observes(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health"}
    before = _get_sample("http_request_duration_seconds_count", labels)
    client.get("/health")
    assert _get_sample("http_request_duration_seconds_count", labels) - before >= 1


def test_endpoint_label_is_route_template(client: TestClient, token: str) -> None:
    template = "/v1/progress/courses/{course_id}/recompute"
    labels = {"method": "POST", "endpoint": template, "status_code": "404"}
    before = _get_sample("http_requests_total", labels)

    paths = [f"/v1/progress/courses/{uuid.uuid4()}/recompute" for _ in range(2)]
    for path in paths:
        assert client.post(path, headers=auth(token)).status_code == 404

    assert _get_sample("http_requests_total", labels) - before == 2
    for path in paths:
        raw = {"method": "POST", "endpoint": path, "status_code": "404"}
        assert REGISTRY.get_sample_value("http_requests_total", raw) is None


def test_unrouted_paths_share_one_label(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "unmatched", "status_code": "404"}
    before = _get_sample("http_requests_total", labels)
    client.get(f"/no-such-page/{uuid.uuid4()}")
    client.get(f"/no-such-page/{uuid.uuid4()}")
    assert _get_sample("http_requests_total", labels) - before == 2


def test_metrics_endpoint_not_self_instrumented(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/metrics", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/metrics")
    client.get("/metrics")
    assert _get_sample("http_requests_total", labels) == before


def test_progress_counters(client: TestClient, token: str, course_with_lessons) -> None:
    course, (l1, l2) = course_with_lessons
    client.post(
        "/v1/enrollments", json={"course_id": str(course.id)}, headers=auth(token)
    )

    reports = {"completed": "true"}
    ok = {"result": "ok"}
    before_reports = _get_sample("lesson_progress_reports_total", reports)
    before_ok = _get_sample("course_progress_recomputes_total", ok)
    before_done = _get_sample("course_completions_total")

    for lesson in (l1, l2):
        client.post(
            "/v1/progress",
            json={"lesson_id": str(lesson.id), "watch_time": 60, "completed": True},
            headers=auth(token),
        )

    assert _get_sample("lesson_progress_reports_total", reports) - before_reports == 2
    assert _get_sample("course_progress_recomputes_total", ok) - before_ok == 2
    assert _get_sample("course_completions_total") - before_done == 1


def test_cache_hit_and_miss_counted(
    client: TestClient, token: str, course_with_lessons
) -> None:
    course, _ = course_with_lessons
    url = f"/v1/progress?course_id={course.id}"
    before_miss = _get_sample("cache_operations_total", {"operation": "miss"})
    before_hit = _get_sample("cache_operations_total", {"operation": "hit"})

    client.get(url, headers=auth(token))
    client.get(url, headers=auth(token))

    after_miss = _get_sample("cache_operations_total", {"operation": "miss"})
    after_hit = _get_sample("cache_operations_total", {"operation": "hit"})
    assert after_miss - before_miss == 1
    assert after_hit - before_hit == 1
