"""Tests for the context snapshot builder."""

from datetime import date, datetime
from unittest.mock import AsyncMock

import pytest

from lifeos.assistant.context import (
    AppState,
    build_context_snapshot,
    checklist_progress,
    gather_app_state,
    period_start,
    time_of_day,
)
from lifeos.stores.models import Budget, FinanceEntry, Habit, Note, Task

NOW = datetime(2025, 3, 10, 9, 30)


def _task(title: str, **kwargs) -> Task:
    return Task(id=title.lower(), user_id="u", title=title, **kwargs)


def _entry(entry_id: str, amount: float, entry_type: str = "expense", day: str = "2025-03-10", **kwargs) -> FinanceEntry:
    return FinanceEntry(
        id=entry_id,
        user_id="u",
        type=entry_type,
        amount=amount,
        category=kwargs.pop("category", "Food"),
        date=f"{day}T12:00:00.000Z",
        created_at=kwargs.pop("created_at", f"{day}T00:00:00"),
        **kwargs,
    )


# -- helpers ----------------------------------------------------------------------


@pytest.mark.parametrize(
    ("hour", "bucket"),
    [(0, "Late Night"), (4, "Late Night"), (5, "Morning"), (11, "Morning"), (12, "Afternoon"),
     (16, "Afternoon"), (17, "Evening"), (21, "Evening"), (22, "Night"), (23, "Night")],
)
def test_time_of_day(hour, bucket) -> None:
    assert time_of_day(hour) == bucket


def test_checklist_progress() -> None:
    assert checklist_progress("- [x] milk\n- [ ] eggs\n- [X] bread") == (2, 3)
    assert checklist_progress("no boxes here") == (0, 0)
    assert checklist_progress("") == (0, 0)


def test_period_start() -> None:
    today = date(2025, 3, 13)  # Thursday
    assert period_start("weekly", today) == date(2025, 3, 10)
    assert period_start("monthly", today) == date(2025, 3, 1)
    assert period_start("yearly", today) == date(2025, 1, 1)
    assert period_start(None, today) == date(2025, 3, 1)


# -- snapshot ---------------------------------------------------------------------


def test_header_has_time_and_location() -> None:
    text = build_context_snapshot(AppState(), NOW, "/finance")
    assert "Monday, 2025-03-10 09:30 (Morning)" in text
    assert "Current page: /finance" in text


def test_task_sections() -> None:
    state = AppState(tasks=[
        _task("Late report", priority="high", due_date="2025-03-08"),
        _task("Late invoice", due_date="2025-03-09"),
        _task("Dentist", due_date="2025-03-10"),
        _task("Taxes", priority="urgent", due_date="2025-04-01"),
        _task("Old chore", status="done", due_date="2025-03-01"),
    ])
    text = build_context_snapshot(state, NOW, "/")
    assert "TASKS: 4 active, 1 done, 5 total" in text
    assert "Overdue (2):" in text
    assert "Due today (1):" in text
    assert "High/urgent priority (2):" in text
    overdue = text.index("Overdue (2):")
    assert text.index("Late report") > overdue
    assert text.index("Dentist") > text.index("Due today (1):")
    assert text.index("Taxes") > text.index("High/urgent priority (2):")
    assert text.count("Late report") == 2
    assert "Other active" not in text
    assert "Old chore" not in text


def test_habit_completion_today() -> None:
    state = AppState(habits=[
        Habit(id="1", user_id="u", name="Read", streak_count=5, last_completed_date="2025-03-10"),
        Habit(id="2", user_id="u", name="Gym", streak_count=2, last_completed_date="2025-03-09"),
    ])
    text = build_context_snapshot(state, NOW, "/")
    assert "HABITS: 1/2 done today" in text
    assert "✓ Read (daily, streak 5)" in text
    assert "○ Gym" in text


def test_finance_totals_exclude_specials() -> None:
    state = AppState(finance=[
        _entry("i1", 30000, "income", day="2025-03-01", category="Salary"),
        _entry("e1", 500, day="2025-03-10"),
        _entry("e2", 1000, day="2025-03-05"),
        _entry("s1", 20000, day="2025-03-02", is_special=True, category="Wedding"),
    ])
    text = build_context_snapshot(state, NOW, "/")
    assert "Income: ৳30,000 | Expenses: ৳1,500 | Balance: ৳28,500" in text
    assert "Spent today: ৳500" in text
    assert "Special (not in balance): income ৳0, expenses ৳20,000" in text


def test_recent_transactions_limited_and_newest_first() -> None:
    entries = [_entry(f"e{i}", 10 + i, day=f"2025-03-{i:02d}") for i in range(1, 13)]
    text = build_context_snapshot(AppState(finance=entries), NOW, "/")
    assert "Recent transactions (latest 10):" in text
    assert "[e12]" in text
    assert "[e3]" in text
    assert "[e2]" not in text
    assert text.index("[e12]") < text.index("[e11]")


def test_budget_spending_within_period_and_category() -> None:
    state = AppState(
        finance=[
            _entry("e1", 700, day="2025-03-04", category="Food"),
            _entry("e2", 300, day="2025-02-28", category="Food"),
            _entry("e3", 900, day="2025-03-04", category="Transport"),
        ],
        budgets=[
            Budget(id="b1", user_id="u", name="Food", type="budget", target_amount=5000, period="monthly", category="food"),
            Budget(id="g1", user_id="u", name="Laptop", type="savings", target_amount=50000, current_amount=12500),
        ],
    )
    text = build_context_snapshot(state, NOW, "/")
    assert "spent ৳700 of ৳5,000, ৳4,300 left" in text
    assert "Laptop: ৳12,500 of ৳50,000 (25%)" in text


def test_notes_pinned_first_trashed_hidden_and_checklists() -> None:
    state = AppState(notes=[
        Note(id="1", user_id="u", title="Recent", content="hello", updated_at="2025-03-09"),
        Note(id="2", user_id="u", title="Pinned", content="- [x] a\n- [ ] b", is_pinned=True, updated_at="2025-01-01"),
        Note(id="3", user_id="u", title="Binned", content="gone", is_trashed=True, updated_at="2025-03-10"),
    ])
    text = build_context_snapshot(state, NOW, "/")
    assert "NOTES: 2 total" in text
    assert text.index("Pinned") < text.index("Recent")
    assert "[1/2 checked]" in text
    assert "Binned" not in text


def test_note_preview_truncated(monkeypatch) -> None:
    monkeypatch.setattr("lifeos.assistant.context.settings.snapshot_note_preview_chars", 5)
    state = AppState(notes=[Note(id="1", user_id="u", title="Long", content="abcdefghij")])
    text = build_context_snapshot(state, NOW, "/")
    assert "Long: abcde..." in text


def test_snapshot_is_pure() -> None:
    state = AppState(tasks=[_task("A")], habits=[Habit(id="h", user_id="u", name="Read")])
    assert build_context_snapshot(state, NOW, "/") == build_context_snapshot(state, NOW, "/")


# -- gather -----------------------------------------------------------------------


async def test_gather_tolerates_failing_store(stores, monkeypatch) -> None:
    await stores.tasks.create({"title": "Still here"})
    monkeypatch.setattr(stores.notes, "list", AsyncMock(side_effect=RuntimeError("db down")))

    state = await gather_app_state(stores)

    assert [t.title for t in state.tasks] == ["Still here"]
    assert state.notes == []
