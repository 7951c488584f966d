"""InventoryStore: things the user owns, bought or sold."""

from __future__ import annotations

from lifeos.stores.base import RecordStore
from lifeos.stores.models import InventoryItem

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS inventory (
    id               TEXT PRIMARY KEY,
    user_id          TEXT NOT NULL,
    item_name        TEXT NOT NULL,
    category         TEXT NOT NULL DEFAULT 'General',
    quantity         INTEGER NOT NULL DEFAULT 1,
    cost             REAL,
    purchase_date    TEXT,
    store            TEXT,
    notes            TEXT,
    status           TEXT NOT NULL DEFAULT 'active',
    warranty_expiry  TEXT,
    finance_entry_id TEXT,
    created_at       TEXT NOT NULL
)
"""


class InventoryStore(RecordStore):
    table = "inventory"
    columns = (
        "id",
        "user_id",
        "item_name",
        "category",
        "quantity",
        "cost",
        "purchase_date",
        "store",
        "notes",
        "status",
        "warranty_expiry",
        "finance_entry_id",
        "created_at",
    )
    entity = InventoryItem
    create_sql = _CREATE_TABLE

    async def mark_sold(self, item_id: str) -> None:
        await self.update(item_id, {"status": "sold"})

    async def active_items(self) -> list[InventoryItem]:
        return [i for i in await self.list() if i.status == "active"]
