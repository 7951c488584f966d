"""RecordStore: user-scoped CRUD over one libsql table."""

from __future__ import annotations

import dataclasses
import json
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, ClassVar

from lifeos.db import transaction
from lifeos.stores.cache import QueryCache

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    from lifeos.db import Connection

logger = logging.getLogger(__name__)


class NotAuthenticatedError(Exception):
    """Raised when a mutation is attempted without a signed-in user."""

    def __init__(self) -> None:
        super().__init__("Not authenticated")


class RecordStore:
    """Base class for the domain stores.

    Subclasses declare ``table``, ``columns`` (in the entity's field order),
    ``entity`` and the ``create_sql`` statement.  Columns listed in
    ``bool_columns`` are stored as 0/1 and ``json_columns`` as JSON text.

    Every row carries ``user_id``; reads only ever see the configured user's
    rows and mutations require one.  Pass an explicit *db_path* for test
    isolation (e.g. ``tmp_path / "test.db"``).
    """

    table: ClassVar[str] = ""
    columns: ClassVar[tuple[str, ...]] = ()
    entity: ClassVar[type] = dict
    create_sql: ClassVar[str] = ""
    order_by: ClassVar[str] = "created_at DESC"
    bool_columns: ClassVar[frozenset[str]] = frozenset()
    json_columns: ClassVar[frozenset[str]] = frozenset()

    def __init__(
        self,
        user_id: str | None,
        db_path: Path | None = None,
        cache: QueryCache | None = None,
    ) -> None:
        self.user_id = user_id or None
        self._db_path = db_path
        self._cache = cache if cache is not None else QueryCache()
        self._initialised = False

    # -- Internal helpers ------------------------------------------------------

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[Connection]:
        async with transaction(self._db_path) as db:
            if not self._initialised:
                await db.execute(self.create_sql)
            yield db
        self._initialised = True

    def _require_user(self) -> str:
        if not self.user_id:
            raise NotAuthenticatedError
        return self.user_id

    def _row_to_entity(self, row: tuple) -> Any:
        values = dict(zip(self.columns, row, strict=True))
        for col in self.bool_columns:
            values[col] = bool(values[col])
        for col in self.json_columns:
            values[col] = json.loads(values[col]) if values[col] else []
        return self.entity(**values)

    def _encode(self, col: str, value: Any) -> Any:
        if col in self.bool_columns and value is not None:
            return 1 if value else 0
        if col in self.json_columns:
            return json.dumps(value or [])
        return value

    def _defaults(self) -> dict[str, Any]:
        """Column values taken from the entity's field defaults (None if required)."""
        values: dict[str, Any] = {}
        for f in dataclasses.fields(self.entity):
            if f.default is not dataclasses.MISSING:
                values[f.name] = f.default
            elif f.default_factory is not dataclasses.MISSING:
                values[f.name] = f.default_factory()
            else:
                values[f.name] = None
        return values

    def _check_columns(self, fields: dict[str, Any]) -> None:
        unknown = set(fields) - set(self.columns)
        if unknown:
            msg = f"Unknown {self.table} fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

    def _invalidate(self) -> None:
        self._cache.invalidate(self.table)

    # -- CRUD ------------------------------------------------------------------

    async def list(self) -> list[Any]:
        """All of the user's rows, newest first.  Empty when signed out."""
        if not self.user_id:
            return []
        cached = self._cache.get(self.table)
        if cached is not None:
            return list(cached)

        async with self._transaction() as db:
            result = await db.execute(
                f"SELECT {', '.join(self.columns)} FROM {self.table} "  # noqa: S608
                f"WHERE user_id = ? ORDER BY {self.order_by}",
                (self.user_id,),
            )
            rows = await result.all()

        entities = [self._row_to_entity(row) for row in rows]
        self._cache.set(self.table, entities)
        return list(entities)

    async def get(self, record_id: str) -> Any | None:
        for entity in await self.list():
            if entity.id == record_id:
                return entity
        return None

    async def create(self, fields: dict[str, Any]) -> str:
        """Insert a row and return its new id."""
        user_id = self._require_user()
        self._check_columns(fields)
        now = datetime.now(UTC).isoformat()

        values = self._defaults()
        values.update({k: v for k, v in fields.items() if v is not None})
        values["id"] = fields.get("id") or uuid.uuid4().hex
        values["user_id"] = user_id
        for stamp in ("created_at", "updated_at"):
            if stamp in values and not values[stamp]:
                values[stamp] = now

        placeholders = ", ".join("?" for _ in self.columns)
        params = tuple(self._encode(col, values[col]) for col in self.columns)
        async with self._transaction() as db:
            await db.execute(
                f"INSERT INTO {self.table} ({', '.join(self.columns)}) VALUES ({placeholders})",  # noqa: S608
                params,
            )

        self._invalidate()
        logger.info("Created %s row %s", self.table, values["id"])
        return values["id"]

    async def update(self, record_id: str, fields: dict[str, Any]) -> None:
        """Apply a partial update to one of the user's rows."""
        user_id = self._require_user()
        self._check_columns(fields)
        fields = {k: v for k, v in fields.items() if k not in ("id", "user_id")}
        if "updated_at" in self.columns:
            fields["updated_at"] = datetime.now(UTC).isoformat()
        if not fields:
            return

        assignments = ", ".join(f"{col} = ?" for col in fields)
        params = tuple(self._encode(col, v) for col, v in fields.items())
        async with self._transaction() as db:
            await db.execute(
                f"UPDATE {self.table} SET {assignments} WHERE id = ? AND user_id = ?",  # noqa: S608
                (*params, record_id, user_id),
            )

        self._invalidate()
        logger.info("Updated %s row %s: %s", self.table, record_id, sorted(fields))

    async def delete(self, record_id: str) -> bool:
        """Delete one of the user's rows.  Returns True if a row was removed."""
        user_id = self._require_user()
        async with self._transaction() as db:
            result = await db.execute(
                f"DELETE FROM {self.table} WHERE id = ? AND user_id = ?",  # noqa: S608
                (record_id, user_id),
            )
            removed = result.rowcount > 0

        self._invalidate()
        if removed:
            logger.info("Deleted %s row %s", self.table, record_id)
        return removed
