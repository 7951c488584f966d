"""Context snapshot: a bounded text summary of the user's data for the model."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING

from lifeos.config import settings
from lifeos.stores.models import (
    Budget,
    FinanceEntry,
    Habit,
    InventoryItem,
    Note,
    StudyChapter,
    StudySubject,
    Task,
)

if TYPE_CHECKING:
    from lifeos.stores.container import Stores

logger = logging.getLogger(__name__)

_CHECKBOX = re.compile(r"\[( |x)\]", re.IGNORECASE)
_URGENT = ("high", "urgent")


@dataclass
class AppState:
    """Read-only projection of every store, loaded once per turn."""

    tasks: list[Task] = field(default_factory=list)
    finance: list[FinanceEntry] = field(default_factory=list)
    budgets: list[Budget] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)
    habits: list[Habit] = field(default_factory=list)
    inventory: list[InventoryItem] = field(default_factory=list)
    subjects: list[StudySubject] = field(default_factory=list)
    chapters: list[StudyChapter] = field(default_factory=list)


async def gather_app_state(stores: Stores) -> AppState:
    """Load every store.  A store that fails to load contributes nothing."""
    loaders = {
        "tasks": stores.tasks.list,
        "finance": stores.finance.list,
        "budgets": stores.budgets.list,
        "notes": stores.notes.list,
        "habits": stores.habits.list,
        "inventory": stores.inventory.list,
        "subjects": stores.study.list_subjects,
        "chapters": stores.study.list_chapters,
    }
    state = AppState()
    for name, load in loaders.items():
        try:
            setattr(state, name, await load())
        except Exception:
            logger.warning("Could not load %s for the context snapshot", name, exc_info=True)
    return state


# -- Helpers -------------------------------------------------------------------


def time_of_day(hour: int) -> str:
    if hour < 5:
        return "Late Night"
    if hour < 12:
        return "Morning"
    if hour < 17:
        return "Afternoon"
    if hour < 22:
        return "Evening"
    return "Night"


def checklist_progress(content: str) -> tuple[int, int]:
    """``(done, total)`` over ``[ ]`` / ``[x]`` markers in *content*."""
    marks = _CHECKBOX.findall(content or "")
    done = sum(1 for m in marks if m.lower() == "x")
    return done, len(marks)


def period_start(period: str | None, today: date) -> date:
    if period == "weekly":
        return today - timedelta(days=today.weekday())
    if period == "yearly":
        return today.replace(month=1, day=1)
    return today.replace(day=1)


def _money(amount: float, currency: str) -> str:
    return f"{currency}{amount:,.0f}" if float(amount).is_integer() else f"{currency}{amount:,.2f}"


def _task_line(task: Task) -> str:
    extras = [task.priority]
    if task.due_date:
        extras.append(f"due {task.due_date[:10]}")
    if task.start_time:
        extras.append(f"{task.start_time}-{task.end_time or '?'}")
    if task.is_finance_linked:
        extras.append(f"{task.finance_type or 'expense'} {task.expected_cost:g}")
    return f"- {task.title} ({', '.join(extras)})"


# -- Sections ------------------------------------------------------------------


def _tasks_section(tasks: list[Task], today: str) -> list[str]:
    active = [t for t in tasks if not t.is_done]
    lines = [f"TASKS: {len(active)} active, {len(tasks) - len(active)} done, {len(tasks)} total"]
    overdue = [t for t in active if t.due_date and t.due_date[:10] < today]
    due_today = [t for t in active if t.due_date and t.due_date[:10] == today]
    urgent = [t for t in active if t.priority in _URGENT]
    groups = (("Overdue", overdue), ("Due today", due_today), ("High/urgent priority", urgent))
    for label, group in groups:
        if group:
            lines.append(f"{label} ({len(group)}):")
            lines.extend(_task_line(t) for t in group)
    rest = [t for t in active if t not in overdue and t not in due_today and t not in urgent]
    if rest:
        lines.append("Other active:")
        lines.extend(_task_line(t) for t in rest[:10])
    return lines


def _habits_section(habits: list[Habit], today: str) -> list[str]:
    done = [h for h in habits if h.completed_on(today)]
    lines = [f"HABITS: {len(done)}/{len(habits)} done today"]
    for h in habits:
        mark = "✓" if h.completed_on(today) else "○"
        lines.append(f"- {mark} {h.name} ({h.frequency}, streak {h.streak_count})")
    return lines


def _finance_section(
    entries: list[FinanceEntry], budgets: list[Budget], today: date, currency: str, limit: int
) -> list[str]:
    regular = [e for e in entries if not e.is_special]
    special = [e for e in entries if e.is_special]
    income = sum(e.amount for e in regular if e.type == "income")
    expenses = sum(e.amount for e in regular if e.type == "expense")
    spent_today = sum(
        e.amount for e in regular if e.type == "expense" and e.date[:10] == today.isoformat()
    )
    lines = [
        "FINANCE:",
        f"Income: {_money(income, currency)} | Expenses: {_money(expenses, currency)} | "
        f"Balance: {_money(income - expenses, currency)}",
        f"Spent today: {_money(spent_today, currency)}",
    ]
    if special:
        s_in = sum(e.amount for e in special if e.type == "income")
        s_out = sum(e.amount for e in special if e.type == "expense")
        lines.append(
            f"Special (not in balance): income {_money(s_in, currency)}, expenses {_money(s_out, currency)}"
        )
    recent = sorted(entries, key=lambda e: (e.date, e.created_at), reverse=True)[:limit]
    if recent:
        lines.append(f"Recent transactions (latest {len(recent)}):")
        for e in recent:
            desc = f" - {e.description}" if e.description else ""
            lines.append(f"- [{e.id}] {e.date[:10]} {e.type} {_money(e.amount, currency)} {e.category}{desc}")

    plain_budgets = [b for b in budgets if b.type == "budget"]
    if plain_budgets:
        lines.append("Budgets:")
        for b in plain_budgets:
            start = period_start(b.period, today).isoformat()
            spent = sum(
                e.amount
                for e in regular
                if e.type == "expense"
                and e.date[:10] >= start
                and (not b.category or e.category.lower() == b.category.lower())
            )
            lines.append(
                f"- {b.name} ({b.period or 'monthly'}{', ' + b.category if b.category else ''}): "
                f"spent {_money(spent, currency)} of {_money(b.target_amount, currency)}, "
                f"{_money(b.target_amount - spent, currency)} left"
            )

    goals = [b for b in budgets if b.type == "savings"]
    if goals:
        lines.append("Savings goals:")
        for g in goals:
            pct = round(g.current_amount / g.target_amount * 100) if g.target_amount else 0
            lines.append(
                f"- {g.name}: {_money(g.current_amount, currency)} of "
                f"{_money(g.target_amount, currency)} ({pct}%)"
            )
    return lines


def _study_section(subjects: list[StudySubject], chapters: list[StudyChapter]) -> list[str]:
    lines = ["STUDY:"]
    for s in subjects:
        own = [c for c in chapters if c.subject_id == s.id]
        completed = sum(1 for c in own if c.is_completed)
        lines.append(f"- {s.name}: {completed}/{len(own)} chapters completed")
        lines.extend(
            f"  - {c.chapter_name} {c.progress_percentage}% ({c.status})" for c in own if not c.is_completed
        )
    return lines


def _notes_section(notes: list[Note], limit: int, preview_chars: int) -> list[str]:
    visible = [n for n in notes if not n.is_trashed]
    visible.sort(key=lambda n: (n.is_pinned, n.updated_at), reverse=True)
    lines = [f"NOTES: {len(visible)} total (showing up to {limit})"]
    for n in visible[:limit]:
        flags = "📌 " if n.is_pinned else ""
        if n.is_archived:
            flags += "(archived) "
        done, total = checklist_progress(n.content)
        checklist = f" [{done}/{total} checked]" if total else ""
        tags = f" #{' #'.join(n.tags)}" if n.tags else ""
        preview = n.content[:preview_chars].replace("\n", " / ")
        if len(n.content) > preview_chars:
            preview += "..."
        lines.append(f"- {flags}{n.title}{checklist}{tags}: {preview}")
    return lines


def _inventory_section(items: list[InventoryItem], currency: str) -> list[str]:
    active = [i for i in items if i.status == "active"]
    value = sum((i.cost or 0) * i.quantity for i in active)
    lines = [f"INVENTORY: {len(active)} active items, total value {_money(value, currency)}"]
    for i in active:
        cost = f" {_money(i.cost, currency)}" if i.cost else ""
        warranty = f", warranty until {i.warranty_expiry}" if i.warranty_expiry else ""
        lines.append(f"- {i.item_name} ×{i.quantity} ({i.category}){cost}{warranty}")
    return lines


def build_context_snapshot(state: AppState, now: datetime, location: str) -> str:
    """Render *state* as the CURRENT APP CONTEXT block.

    Pure: the same state, time and location always give the same text.
    """
    today = now.date()
    today_iso = today.isoformat()
    currency = settings.currency_symbol

    header = [
        f"Current time: {now.strftime('%A')}, {today_iso} {now.strftime('%H:%M')} ({time_of_day(now.hour)})",
        f"Current page: {location or '/'}",
    ]
    sections = [
        header,
        _tasks_section(state.tasks, today_iso),
        _habits_section(state.habits, today_iso),
        _finance_section(
            state.finance, state.budgets, today, currency, settings.snapshot_transaction_limit
        ),
        _study_section(state.subjects, state.chapters),
        _notes_section(state.notes, settings.snapshot_note_limit, settings.snapshot_note_preview_chars),
        _inventory_section(state.inventory, currency),
    ]
    return "\n\n".join("\n".join(lines) for lines in sections)
