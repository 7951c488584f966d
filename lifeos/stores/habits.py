"""HabitStore: recurring habits with completion streaks."""

from __future__ import annotations

import logging
from datetime import date, timedelta

from lifeos.stores.base import RecordStore
from lifeos.stores.models import Habit

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS habits (
    id                  TEXT PRIMARY KEY,
    user_id             TEXT NOT NULL,
    name                TEXT NOT NULL,
    frequency           TEXT NOT NULL DEFAULT 'daily',
    streak_count        INTEGER NOT NULL DEFAULT 0,
    last_completed_date TEXT,
    created_at          TEXT NOT NULL
)
"""


class HabitStore(RecordStore):
    table = "habits"
    columns = (
        "id",
        "user_id",
        "name",
        "frequency",
        "streak_count",
        "last_completed_date",
        "created_at",
    )
    entity = Habit
    create_sql = _CREATE_TABLE
    order_by = "created_at ASC"

    async def complete(self, habit: Habit, today: date) -> bool:
        """Record a completion for *today*.

        A completion yesterday extends the streak, anything older resets it
        to 1.  Returns False (and changes nothing) if the habit was already
        completed today.
        """
        day = today.isoformat()
        if habit.completed_on(day):
            logger.info("Habit already completed today: %s", habit.name)
            return False

        yesterday = (today - timedelta(days=1)).isoformat()
        streak = habit.streak_count + 1 if habit.completed_on(yesterday) else 1
        await self.update(habit.id, {"streak_count": streak, "last_completed_date": day})
        return True

    async def restore(self, habit: Habit) -> None:
        """Put back the streak fields captured in *habit*."""
        await self.update(
            habit.id,
            {
                "streak_count": habit.streak_count,
                "last_completed_date": habit.last_completed_date,
            },
        )
