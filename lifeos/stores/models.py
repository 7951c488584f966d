"""Entity types owned by the domain stores.

Each dataclass mirrors one table row.  Field order matches the column order
of the store that persists it, so rows can be zipped straight into them.
"""

from __future__ import annotations

from dataclasses import dataclass, field

TASK_STATUSES = ("todo", "in-progress", "done")
TASK_PRIORITIES = ("low", "medium", "high", "urgent")
TASK_CONTEXTS = ("general", "study", "finance", "habit", "project", "inventory")
INVENTORY_STATUSES = ("active", "sold", "disposed", "lost")


@dataclass
class Task:
    id: str
    user_id: str
    title: str
    description: str | None = None
    status: str = "todo"
    priority: str = "medium"
    due_date: str | None = None
    completed_at: str | None = None
    context_type: str = "general"
    context_id: str | None = None
    budget_id: str | None = None
    expected_cost: float | None = None
    finance_type: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    estimated_duration: int | None = None
    is_pinned: bool = False
    created_at: str = ""

    @property
    def is_done(self) -> bool:
        return self.status == "done"

    @property
    def is_finance_linked(self) -> bool:
        return self.context_type == "finance" and (self.expected_cost or 0) > 0


@dataclass
class FinanceEntry:
    id: str
    user_id: str
    type: str
    amount: float
    category: str
    description: str | None = None
    date: str = ""
    is_special: bool = False
    created_at: str = ""


@dataclass
class Budget:
    """A spending budget or a savings goal (``type`` tells them apart)."""

    id: str
    user_id: str
    name: str
    type: str
    target_amount: float = 0
    current_amount: float = 0
    period: str | None = None
    category: str | None = None
    start_date: str | None = None
    is_special: bool = False
    created_at: str = ""

    @property
    def is_savings(self) -> bool:
        return self.type == "savings"


@dataclass
class Note:
    id: str
    user_id: str
    title: str
    content: str = ""
    tags: list[str] = field(default_factory=list)
    color: str | None = None
    is_pinned: bool = False
    is_archived: bool = False
    is_trashed: bool = False
    created_at: str = ""
    updated_at: str = ""


@dataclass
class Habit:
    id: str
    user_id: str
    name: str
    frequency: str = "daily"
    streak_count: int = 0
    last_completed_date: str | None = None
    created_at: str = ""

    def completed_on(self, day: str) -> bool:
        """True when the habit's last completion falls on *day* (``YYYY-MM-DD``)."""
        return bool(self.last_completed_date) and self.last_completed_date[:10] == day


@dataclass
class InventoryItem:
    id: str
    user_id: str
    item_name: str
    category: str = "General"
    quantity: int = 1
    cost: float | None = None
    purchase_date: str | None = None
    store: str | None = None
    notes: str | None = None
    status: str = "active"
    warranty_expiry: str | None = None
    finance_entry_id: str | None = None
    created_at: str = ""


@dataclass
class StudySubject:
    id: str
    user_id: str
    name: str
    created_at: str = ""


@dataclass
class StudyChapter:
    id: str
    user_id: str
    subject_id: str
    chapter_name: str
    progress_percentage: int = 0
    status: str = "not-started"
    last_studied_at: str | None = None
    created_at: str = ""

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


@dataclass
class StudyPart:
    id: str
    user_id: str
    chapter_id: str
    name: str
    status: str = "todo"
    created_at: str = ""
