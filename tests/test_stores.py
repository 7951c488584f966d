"""Tests for the domain stores: libsql CRUD scoped to one user."""

from datetime import date
from pathlib import Path

import pytest

from lifeos.stores.base import NotAuthenticatedError
from lifeos.stores.budgets import BudgetStore
from lifeos.stores.cache import QueryCache
from lifeos.stores.container import Stores
from lifeos.stores.habits import HabitStore
from lifeos.stores.notes import NoteStore
from lifeos.stores.study import StudyStore, status_for_progress
from lifeos.stores.tasks import TaskStore

pytestmark = pytest.mark.usefixtures("_no_turso")


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
def tasks(db_path: Path) -> TaskStore:
    return TaskStore("user-1", db_path=db_path)


# -- create / list / update / delete -----------------------------------------


async def test_create_and_list(tasks: TaskStore) -> None:
    task_id = await tasks.create({"title": "Buy groceries"})

    rows = await tasks.list()
    assert len(rows) == 1
    task = rows[0]
    assert task.id == task_id
    assert task.user_id == "user-1"
    assert task.title == "Buy groceries"
    assert task.status == "todo"
    assert task.priority == "medium"
    assert task.context_type == "general"
    assert task.is_pinned is False
    assert task.created_at


async def test_update_is_partial(tasks: TaskStore) -> None:
    task_id = await tasks.create({"title": "Call mom", "description": "Sunday"})
    await tasks.update(task_id, {"priority": "high"})

    task = await tasks.get(task_id)
    assert task.priority == "high"
    assert task.description == "Sunday"


async def test_delete(tasks: TaskStore) -> None:
    task_id = await tasks.create({"title": "Temp"})
    assert await tasks.delete(task_id) is True
    assert await tasks.list() == []
    assert await tasks.delete(task_id) is False


async def test_unknown_field_rejected(tasks: TaskStore) -> None:
    with pytest.raises(ValueError, match="Unknown tasks fields: colour"):
        await tasks.create({"title": "x", "colour": "red"})


async def test_mark_done_and_reopen(tasks: TaskStore) -> None:
    task_id = await tasks.create({"title": "Report"})
    await tasks.mark_done(task_id, "2025-03-10T09:30:00+06:00")
    task = await tasks.get(task_id)
    assert task.is_done
    assert task.completed_at == "2025-03-10T09:30:00+06:00"

    await tasks.reopen(task_id)
    task = await tasks.get(task_id)
    assert task.status == "todo"
    assert task.completed_at is None


# -- user scoping ---------------------------------------------------------------


async def test_rows_scoped_to_user(db_path: Path) -> None:
    mine = TaskStore("user-1", db_path=db_path)
    theirs = TaskStore("user-2", db_path=db_path)
    task_id = await mine.create({"title": "Private"})

    assert await theirs.list() == []
    await theirs.update(task_id, {"title": "Hijacked"})
    assert await theirs.delete(task_id) is False
    assert (await mine.get(task_id)).title == "Private"


async def test_signed_out_reads_empty(db_path: Path) -> None:
    store = TaskStore(None, db_path=db_path)
    assert await store.list() == []


async def test_signed_out_mutations_raise(db_path: Path) -> None:
    store = TaskStore("", db_path=db_path)
    with pytest.raises(NotAuthenticatedError, match="Not authenticated"):
        await store.create({"title": "x"})
    with pytest.raises(NotAuthenticatedError):
        await store.update("abc", {"title": "y"})
    with pytest.raises(NotAuthenticatedError):
        await store.delete("abc")


# -- cache ------------------------------------------------------------------------


async def test_list_is_cached_until_mutation(db_path: Path) -> None:
    cache = QueryCache()
    store = TaskStore("user-1", db_path=db_path, cache=cache)
    await store.create({"title": "One"})

    await store.list()
    assert "tasks" in cache

    await store.create({"title": "Two"})
    assert "tasks" not in cache
    assert {t.title for t in await store.list()} == {"One", "Two"}


async def test_cache_shared_but_keyed_by_table(db_path: Path) -> None:
    cache = QueryCache()
    tasks = TaskStore("user-1", db_path=db_path, cache=cache)
    notes = NoteStore("user-1", db_path=db_path, cache=cache)
    await tasks.list()
    await notes.list()

    await notes.create({"title": "Idea"})
    assert "tasks" in cache
    assert "notes" not in cache


def test_query_cache_invalidate_all() -> None:
    cache = QueryCache()
    cache.set("tasks", [1])
    cache.set("notes", [2])
    cache.invalidate()
    assert cache.get("tasks") is None
    assert cache.get("notes") is None


# -- notes ------------------------------------------------------------------------


async def test_note_tags_and_flags_round_trip(db_path: Path) -> None:
    notes = NoteStore("user-1", db_path=db_path)
    note_id = await notes.create({"title": "Groceries", "tags": ["shopping", "home"], "is_pinned": True})

    note = await notes.get(note_id)
    assert note.tags == ["shopping", "home"]
    assert note.is_pinned is True
    assert note.is_trashed is False
    assert note.updated_at


# -- budgets ----------------------------------------------------------------------


async def test_budgets_and_savings_views(db_path: Path) -> None:
    store = BudgetStore("user-1", db_path=db_path)
    await store.create({"name": "Food", "type": "budget", "target_amount": 8000})
    goal_id = await store.create({"name": "Laptop", "type": "savings", "target_amount": 50000})

    assert [b.name for b in await store.budgets()] == ["Food"]
    assert [g.name for g in await store.savings_goals()] == ["Laptop"]

    assert await store.add_to_savings(goal_id, 2000) == 2000
    assert await store.add_to_savings(goal_id, 500) == 2500
    assert (await store.get(goal_id)).current_amount == 2500


async def test_add_to_missing_goal_raises(db_path: Path) -> None:
    store = BudgetStore("user-1", db_path=db_path)
    with pytest.raises(LookupError):
        await store.add_to_savings("nope", 100)


# -- habits -----------------------------------------------------------------------


class TestHabitStreaks:
    async def test_first_completion_starts_streak(self, db_path: Path):
        store = HabitStore("user-1", db_path=db_path)
        habit_id = await store.create({"name": "Read"})
        habit = await store.get(habit_id)

        assert await store.complete(habit, date(2025, 3, 10)) is True
        habit = await store.get(habit_id)
        assert habit.streak_count == 1
        assert habit.last_completed_date == "2025-03-10"

    async def test_yesterday_extends_streak(self, db_path: Path):
        store = HabitStore("user-1", db_path=db_path)
        habit_id = await store.create(
            {"name": "Gym", "streak_count": 4, "last_completed_date": "2025-03-09"}
        )
        await store.complete(await store.get(habit_id), date(2025, 3, 10))
        assert (await store.get(habit_id)).streak_count == 5

    async def test_gap_resets_streak(self, db_path: Path):
        store = HabitStore("user-1", db_path=db_path)
        habit_id = await store.create(
            {"name": "Gym", "streak_count": 4, "last_completed_date": "2025-03-07"}
        )
        await store.complete(await store.get(habit_id), date(2025, 3, 10))
        assert (await store.get(habit_id)).streak_count == 1

    async def test_already_done_today_is_noop(self, db_path: Path):
        store = HabitStore("user-1", db_path=db_path)
        habit_id = await store.create(
            {"name": "Gym", "streak_count": 4, "last_completed_date": "2025-03-10"}
        )
        assert await store.complete(await store.get(habit_id), date(2025, 3, 10)) is False
        assert (await store.get(habit_id)).streak_count == 4


# -- study ------------------------------------------------------------------------


class TestStudyStore:
    async def test_progress_clamped_and_status_derived(self, db_path: Path):
        study = StudyStore("user-1", db_path=db_path)
        subject_id = await study.add_subject("Physics")
        chapter_id = await study.add_chapter(subject_id, "Optics")

        assert await study.update_progress(chapter_id, 140) == 100
        chapter = (await study.list_chapters(subject_id))[0]
        assert chapter.status == "completed"
        assert chapter.last_studied_at

        assert await study.update_progress(chapter_id, -5) == 0
        assert (await study.list_chapters())[0].status == "not-started"

    async def test_delete_chapter_removes_parts(self, db_path: Path):
        study = StudyStore("user-1", db_path=db_path)
        subject_id = await study.add_subject("Math")
        chapter_id = await study.add_chapter(subject_id, "Limits")
        await study.add_parts(chapter_id, ["Read", "Summarize"])
        assert len(await study.list_parts(chapter_id)) == 2

        assert await study.delete_chapter(chapter_id) is True
        assert await study.list_parts(chapter_id) == []
        assert await study.list_chapters() == []

    def test_status_for_progress(self):
        assert status_for_progress(0) == "not-started"
        assert status_for_progress(40) == "in-progress"
        assert status_for_progress(100) == "completed"


# -- container --------------------------------------------------------------------


def test_stores_share_one_cache(db_path: Path) -> None:
    stores = Stores.for_user("user-1", db_path=db_path)
    assert stores.tasks._cache is stores.cache
    assert stores.notes._cache is stores.cache
    assert stores.study.chapters._cache is stores.cache


def test_stores_singleton_uses_configured_user(monkeypatch) -> None:
    monkeypatch.setattr("lifeos.stores.container.settings.lifeos_user_id", "owner")
    Stores._reset()
    try:
        stores = Stores.get()
        assert stores.tasks.user_id == "owner"
        assert Stores.get() is stores
    finally:
        Stores._reset()
