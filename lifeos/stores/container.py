"""Stores: every domain store for one user, sharing one read cache."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from lifeos.config import settings
from lifeos.stores.budgets import BudgetStore
from lifeos.stores.cache import QueryCache
from lifeos.stores.finance import FinanceStore
from lifeos.stores.habits import HabitStore
from lifeos.stores.inventory import InventoryStore
from lifeos.stores.notes import NoteStore
from lifeos.stores.study import StudyStore
from lifeos.stores.tasks import TaskStore

if TYPE_CHECKING:
    from pathlib import Path


@dataclass
class Stores:
    """The seven domain stores the assistant reads and mutates.

    Singleton accessed via ``Stores.get()`` (scoped to ``LIFEOS_USER_ID``).
    Use ``Stores.for_user()`` with an explicit *db_path* for test isolation.
    """

    tasks: TaskStore
    finance: FinanceStore
    budgets: BudgetStore
    notes: NoteStore
    habits: HabitStore
    inventory: InventoryStore
    study: StudyStore
    cache: QueryCache = field(default_factory=QueryCache)

    _instance = None

    @classmethod
    def for_user(cls, user_id: str | None, db_path: Path | None = None) -> Stores:
        cache = QueryCache()
        return cls(
            tasks=TaskStore(user_id, db_path=db_path, cache=cache),
            finance=FinanceStore(user_id, db_path=db_path, cache=cache),
            budgets=BudgetStore(user_id, db_path=db_path, cache=cache),
            notes=NoteStore(user_id, db_path=db_path, cache=cache),
            habits=HabitStore(user_id, db_path=db_path, cache=cache),
            inventory=InventoryStore(user_id, db_path=db_path, cache=cache),
            study=StudyStore(user_id, db_path=db_path, cache=cache),
            cache=cache,
        )

    @classmethod
    def get(cls) -> Stores:
        """Return the shared Stores for the configured user."""
        if cls._instance is None:
            cls._instance = cls.for_user(settings.lifeos_user_id)
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None
