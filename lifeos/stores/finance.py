"""FinanceStore: income and expense entries."""

from __future__ import annotations

from lifeos.stores.base import RecordStore
from lifeos.stores.models import FinanceEntry

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS finance (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    type        TEXT NOT NULL,
    amount      REAL NOT NULL DEFAULT 0,
    category    TEXT NOT NULL,
    description TEXT,
    date        TEXT NOT NULL,
    is_special  INTEGER NOT NULL DEFAULT 0,
    created_at  TEXT NOT NULL
)
"""


class FinanceStore(RecordStore):
    table = "finance"
    columns = (
        "id",
        "user_id",
        "type",
        "amount",
        "category",
        "description",
        "date",
        "is_special",
        "created_at",
    )
    entity = FinanceEntry
    create_sql = _CREATE_TABLE
    order_by = "date DESC, created_at DESC"
    bool_columns = frozenset({"is_special"})
