"""NoteStore: free-form notes with tags and pin/archive/trash flags."""

from __future__ import annotations

from lifeos.stores.base import RecordStore
from lifeos.stores.models import Note

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS notes (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    title       TEXT NOT NULL,
    content     TEXT NOT NULL DEFAULT '',
    tags        TEXT NOT NULL DEFAULT '[]',
    color       TEXT,
    is_pinned   INTEGER NOT NULL DEFAULT 0,
    is_archived INTEGER NOT NULL DEFAULT 0,
    is_trashed  INTEGER NOT NULL DEFAULT 0,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
)
"""


class NoteStore(RecordStore):
    table = "notes"
    columns = (
        "id",
        "user_id",
        "title",
        "content",
        "tags",
        "color",
        "is_pinned",
        "is_archived",
        "is_trashed",
        "created_at",
        "updated_at",
    )
    entity = Note
    create_sql = _CREATE_TABLE
    order_by = "is_pinned DESC, updated_at DESC"
    bool_columns = frozenset({"is_pinned", "is_archived", "is_trashed"})
    json_columns = frozenset({"tags"})
