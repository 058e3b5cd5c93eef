from __future__ import annotations

import asyncio
import sys
from dataclasses import replace
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from coursetrack.main import app
from coursetrack.models.course import Chapter, Course, Lesson
from coursetrack.repos.store import Store, store
from coursetrack.services import token_service
from coursetrack.services.cache import cache_service

# Ensure repo root is on sys.path so `import coursetrack` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def reset_store() -> None:
    """Clear the in-memory repositories between tests."""
    for repo in (store.catalog, store.enrollments, store.lesson_progress):
        if hasattr(repo, "clear"):
            repo.clear()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Clear cache between tests."""
    if hasattr(cache_service, "_store"):
        cache_service._store.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    username: str = "student-1",
    roles: list[str] | None = None,
) -> str:
    """Create a valid ES256 JWT signed with the dev key."""
    return token_service.create_access_token(sub=username, roles=roles)


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token() -> str:
    """Token for a student."""
    return mint_token()


@pytest.fixture
def teacher_token() -> str:
    return mint_token(username="teacher-1", roles=["teacher"])


@pytest.fixture
def admin_token() -> str:
    return mint_token(username="admin-1", roles=["admin"])


# ---------------------------------------------------------------------------
# Catalog helpers
# ---------------------------------------------------------------------------


def seed_course(
    target: Store,
    lessons_per_chapter: tuple[int, ...] = (2,),
    *,
    teacher_id: str = "teacher-1",
    status: str = "published",
) -> tuple[Course, list[Lesson]]:
    """Create a course with one chapter per entry, holding that many lessons."""

    async def _seed() -> tuple[Course, list[Lesson]]:
        course = replace(
            Course.new(title="Intro to Watercolor", teacher_id=teacher_id),
            status=status,
        )
        await target.catalog.add_course(course)
        lessons: list[Lesson] = []
        for ch_pos, count in enumerate(lessons_per_chapter, start=1):
            chapter = Chapter.new(
                course_id=course.id, title=f"Chapter {ch_pos}", position=ch_pos
            )
            await target.catalog.add_chapter(chapter)
            for pos in range(1, count + 1):
                lesson = Lesson.new(
                    chapter_id=chapter.id,
                    title=f"Lesson {ch_pos}.{pos}",
                    position=pos,
                    video_duration=600,
                )
                await target.catalog.add_lesson(lesson)
                lessons.append(lesson)
        return course, lessons

    return asyncio.run(_seed())


@pytest.fixture
def course_with_lessons() -> tuple[Course, list[Lesson]]:
    """A published two-lesson course in the app's store."""
    return seed_course(store)
