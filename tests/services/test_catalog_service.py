from __future__ import annotations

import asyncio
import uuid

import pytest

from coursetrack.core.errors import ForbiddenError, NotFoundError, ValidationError
from coursetrack.models.principal import Principal
from coursetrack.repos.store import in_memory_store
from coursetrack.services import catalog_service

TEACHER = Principal(user_id="teacher-1", roles=frozenset({"teacher"}))
OTHER_TEACHER = Principal(user_id="teacher-2", roles=frozenset({"teacher"}))
ADMIN = Principal(user_id="admin-1", roles=frozenset({"admin"}))
STUDENT = Principal(user_id="student-1", roles=frozenset({"student"}))


def _course(store, title: str = "Sourdough Basics"):
    return asyncio.run(catalog_service.create_course(store, TEACHER, title=title))


def test_create_course_starts_as_draft_owned_by_caller() -> None:
    store = in_memory_store()
    course = _course(store)
    assert course.status == "draft"
    assert course.teacher_id == "teacher-1"
    assert course.created_at > 0


def test_create_course_rejects_blank_title() -> None:
    store = in_memory_store()
    with pytest.raises(ValidationError):
        _course(store, title="   ")


def test_publish_course_by_owner() -> None:
    store = in_memory_store()
    course = _course(store)
    published = asyncio.run(catalog_service.publish_course(store, TEACHER, course.id))
    assert published.is_published
    assert asyncio.run(catalog_service.list_published(store)) == [published]


def test_publish_course_by_admin() -> None:
    store = in_memory_store()
    course = _course(store)
    published = asyncio.run(catalog_service.publish_course(store, ADMIN, course.id))
    assert published.is_published


def test_publish_course_by_other_teacher_is_forbidden() -> None:
    store = in_memory_store()
    course = _course(store)
    with pytest.raises(ForbiddenError):
        asyncio.run(catalog_service.publish_course(store, OTHER_TEACHER, course.id))


def test_publish_unknown_course() -> None:
    store = in_memory_store()
    with pytest.raises(NotFoundError):
        asyncio.run(catalog_service.publish_course(store, TEACHER, uuid.uuid4()))


def test_chapters_and_lessons_append_by_default() -> None:
    store = in_memory_store()
    course = _course(store)
    ch1 = asyncio.run(catalog_service.add_chapter(store, TEACHER, course.id, title="A"))
    ch2 = asyncio.run(catalog_service.add_chapter(store, TEACHER, course.id, title="B"))
    assert (ch1.position, ch2.position) == (1, 2)

    l1 = asyncio.run(
        catalog_service.add_lesson(store, TEACHER, course.id, ch1.id, title="x")
    )
    l2 = asyncio.run(
        catalog_service.add_lesson(
            store, TEACHER, course.id, ch1.id, title="y", type="text"
        )
    )
    l3 = asyncio.run(
        catalog_service.add_lesson(store, TEACHER, course.id, ch2.id, title="z")
    )
    assert (l1.position, l2.position, l3.position) == (1, 2, 1)
    assert l2.type == "text"


def test_add_lesson_rejects_unknown_type() -> None:
    store = in_memory_store()
    course = _course(store)
    ch = asyncio.run(catalog_service.add_chapter(store, TEACHER, course.id, title="A"))
    with pytest.raises(ValidationError):
        asyncio.run(
            catalog_service.add_lesson(
                store, TEACHER, course.id, ch.id, title="x", type="quiz"
            )
        )


def test_add_lesson_rejects_negative_duration() -> None:
    store = in_memory_store()
    course = _course(store)
    ch = asyncio.run(catalog_service.add_chapter(store, TEACHER, course.id, title="A"))
    with pytest.raises(ValidationError):
        asyncio.run(
            catalog_service.add_lesson(
                store, TEACHER, course.id, ch.id, title="x", video_duration=-5
            )
        )


def test_add_lesson_to_chapter_of_another_course() -> None:
    store = in_memory_store()
    course = _course(store)
    other = _course(store, title="Other")
    ch = asyncio.run(catalog_service.add_chapter(store, TEACHER, other.id, title="A"))

    with pytest.raises(NotFoundError) as excinfo:
        asyncio.run(
            catalog_service.add_lesson(store, TEACHER, course.id, ch.id, title="x")
        )
    assert excinfo.value.code == "chapter_not_found"


def test_add_chapter_by_other_teacher_is_forbidden() -> None:
    store = in_memory_store()
    course = _course(store)
    with pytest.raises(ForbiddenError):
        asyncio.run(
            catalog_service.add_chapter(store, OTHER_TEACHER, course.id, title="A")
        )


def test_outline_of_draft_hidden_from_students() -> None:
    store = in_memory_store()
    course = _course(store)
    with pytest.raises(NotFoundError):
        asyncio.run(catalog_service.course_outline(store, STUDENT, course.id))

    outline = asyncio.run(catalog_service.course_outline(store, TEACHER, course.id))
    assert outline.course.id == course.id


def test_outline_groups_lessons_by_chapter_in_order() -> None:
    store = in_memory_store()
    course = _course(store)
    ch1 = asyncio.run(catalog_service.add_chapter(store, TEACHER, course.id, title="A"))
    ch2 = asyncio.run(catalog_service.add_chapter(store, TEACHER, course.id, title="B"))
    for chapter, title in ((ch2, "b1"), (ch1, "a1"), (ch1, "a2")):
        asyncio.run(
            catalog_service.add_lesson(
                store, TEACHER, course.id, chapter.id, title=title
            )
        )
    asyncio.run(catalog_service.publish_course(store, TEACHER, course.id))

    outline = asyncio.run(catalog_service.course_outline(store, STUDENT, course.id))
    assert [c.chapter.title for c in outline.chapters] == ["A", "B"]
    assert [ls.title for ls in outline.chapters[0].lessons] == ["a1", "a2"]
    assert [ls.title for ls in outline.chapters[1].lessons] == ["b1"]


def _chapter_with_lesson(store, course):
    ch = asyncio.run(catalog_service.add_chapter(store, TEACHER, course.id, title="A"))
    lesson = asyncio.run(
        catalog_service.add_lesson(store, TEACHER, course.id, ch.id, title="x")
    )
    return ch, lesson


def test_update_course_keeps_fields_left_out() -> None:
    store = in_memory_store()
    course = _course(store)
    updated = asyncio.run(
        catalog_service.update_course(store, TEACHER, course.id, description="Rye")
    )
    assert updated.title == "Sourdough Basics"
    assert updated.description == "Rye"
    assert asyncio.run(store.catalog.get_course(course.id)) == updated


def test_update_course_by_other_teacher_is_forbidden() -> None:
    store = in_memory_store()
    course = _course(store)
    with pytest.raises(ForbiddenError):
        asyncio.run(
            catalog_service.update_course(store, OTHER_TEACHER, course.id, title="X")
        )


def test_delete_course_removes_chapters_and_lessons() -> None:
    store = in_memory_store()
    course = _course(store)
    ch, lesson = _chapter_with_lesson(store, course)

    asyncio.run(catalog_service.delete_course(store, ADMIN, course.id))
    assert asyncio.run(store.catalog.get_course(course.id)) is None
    assert asyncio.run(store.catalog.get_chapter(ch.id)) is None
    assert asyncio.run(store.catalog.get_lesson(lesson.id)) is None
    with pytest.raises(NotFoundError):
        asyncio.run(catalog_service.delete_course(store, ADMIN, course.id))


def test_get_chapter_lists_its_lessons() -> None:
    store = in_memory_store()
    course = _course(store)
    ch, lesson = _chapter_with_lesson(store, course)

    outline = asyncio.run(catalog_service.get_chapter(store, TEACHER, course.id, ch.id))
    assert outline.chapter == ch
    assert outline.lessons == [lesson]
    with pytest.raises(NotFoundError):
        asyncio.run(catalog_service.get_chapter(store, STUDENT, course.id, ch.id))


def test_update_chapter_position() -> None:
    store = in_memory_store()
    course = _course(store)
    ch, _ = _chapter_with_lesson(store, course)
    moved = asyncio.run(
        catalog_service.update_chapter(store, TEACHER, course.id, ch.id, position=3)
    )
    assert (moved.title, moved.position) == ("A", 3)


def test_delete_chapter_of_another_course_is_not_found() -> None:
    store = in_memory_store()
    course = _course(store)
    other = _course(store, title="Other")
    ch, _ = _chapter_with_lesson(store, other)
    with pytest.raises(NotFoundError) as excinfo:
        asyncio.run(catalog_service.delete_chapter(store, TEACHER, course.id, ch.id))
    assert excinfo.value.code == "chapter_not_found"
    assert asyncio.run(store.catalog.get_chapter(ch.id)) == ch


def test_update_lesson_revalidates_type() -> None:
    store = in_memory_store()
    course = _course(store)
    ch, lesson = _chapter_with_lesson(store, course)

    with pytest.raises(ValidationError):
        asyncio.run(
            catalog_service.update_lesson(
                store, TEACHER, course.id, ch.id, lesson.id, type="quiz"
            )
        )
    updated = asyncio.run(
        catalog_service.update_lesson(
            store, TEACHER, course.id, ch.id, lesson.id, type="text", is_free=True
        )
    )
    assert (updated.type, updated.is_free, updated.title) == ("text", True, "x")
    fetched = asyncio.run(
        catalog_service.get_lesson(store, TEACHER, course.id, ch.id, lesson.id)
    )
    assert fetched == updated


def test_delete_lesson_by_other_teacher_is_forbidden() -> None:
    store = in_memory_store()
    course = _course(store)
    ch, lesson = _chapter_with_lesson(store, course)
    with pytest.raises(ForbiddenError):
        asyncio.run(
            catalog_service.delete_lesson(
                store, OTHER_TEACHER, course.id, ch.id, lesson.id
            )
        )

    asyncio.run(
        catalog_service.delete_lesson(store, TEACHER, course.id, ch.id, lesson.id)
    )
    assert asyncio.run(store.catalog.lessons_for_course(course.id)) == []
