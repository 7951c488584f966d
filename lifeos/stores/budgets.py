"""BudgetStore: spending budgets and savings goals share one table."""

from __future__ import annotations

from lifeos.stores.base import RecordStore
from lifeos.stores.models import Budget

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS budgets (
    id             TEXT PRIMARY KEY,
    user_id        TEXT NOT NULL,
    name           TEXT NOT NULL,
    type           TEXT NOT NULL,
    target_amount  REAL NOT NULL DEFAULT 0,
    current_amount REAL NOT NULL DEFAULT 0,
    period         TEXT,
    category       TEXT,
    start_date     TEXT,
    is_special     INTEGER NOT NULL DEFAULT 0,
    created_at     TEXT NOT NULL
)
"""


class BudgetStore(RecordStore):
    table = "budgets"
    columns = (
        "id",
        "user_id",
        "name",
        "type",
        "target_amount",
        "current_amount",
        "period",
        "category",
        "start_date",
        "is_special",
        "created_at",
    )
    entity = Budget
    create_sql = _CREATE_TABLE
    order_by = "created_at ASC"
    bool_columns = frozenset({"is_special"})

    async def budgets(self) -> list[Budget]:
        return [b for b in await self.list() if b.type == "budget"]

    async def savings_goals(self) -> list[Budget]:
        return [b for b in await self.list() if b.type == "savings"]

    async def add_to_savings(self, goal_id: str, amount: float) -> float:
        """Deposit *amount* into a savings goal.  Returns the new balance."""
        goal = await self.get(goal_id)
        if goal is None:
            msg = f"Savings goal not found: {goal_id}"
            raise LookupError(msg)
        new_amount = (goal.current_amount or 0) + amount
        await self.update(goal_id, {"current_amount": new_amount})
        return new_amount
