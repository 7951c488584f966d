"""TaskStore: to-dos, optionally linked to a budget or savings goal."""

from __future__ import annotations

from lifeos.stores.base import RecordStore
from lifeos.stores.models import Task

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS tasks (
    id                 TEXT PRIMARY KEY,
    user_id            TEXT NOT NULL,
    title              TEXT NOT NULL,
    description        TEXT,
    status             TEXT NOT NULL DEFAULT 'todo',
    priority           TEXT NOT NULL DEFAULT 'medium',
    due_date           TEXT,
    completed_at       TEXT,
    context_type       TEXT NOT NULL DEFAULT 'general',
    context_id         TEXT,
    budget_id          TEXT,
    expected_cost      REAL,
    finance_type       TEXT,
    start_time         TEXT,
    end_time           TEXT,
    estimated_duration INTEGER,
    is_pinned          INTEGER NOT NULL DEFAULT 0,
    created_at         TEXT NOT NULL
)
"""


class TaskStore(RecordStore):
    table = "tasks"
    columns = (
        "id",
        "user_id",
        "title",
        "description",
        "status",
        "priority",
        "due_date",
        "completed_at",
        "context_type",
        "context_id",
        "budget_id",
        "expected_cost",
        "finance_type",
        "start_time",
        "end_time",
        "estimated_duration",
        "is_pinned",
        "created_at",
    )
    entity = Task
    create_sql = _CREATE_TABLE
    bool_columns = frozenset({"is_pinned"})

    async def mark_done(self, task_id: str, completed_at: str) -> None:
        await self.update(task_id, {"status": "done", "completed_at": completed_at})

    async def reopen(self, task_id: str, status: str = "todo") -> None:
        """Undo ``mark_done``, putting the task back in *status*."""
        await self.update(task_id, {"status": status, "completed_at": None})
