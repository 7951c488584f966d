"""libsql access for the domain stores.

The ``libsql`` driver is synchronous, so every call runs on a worker thread.
Stores go through ``transaction()``, which opens a connection, commits when the
block exits cleanly and always closes it.  An exception inside the block skips
the commit, so nothing the block wrote is kept.

Where the data lives, first match wins:

1. an explicit *path* (tests pass ``tmp_path / "test.db"``)
2. ``TURSO_DATABASE_URL`` + ``TURSO_AUTH_TOKEN``, the hosted Turso database
3. ``database_path``, a local SQLite file
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import libsql

from lifeos.config import settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

logger = logging.getLogger(__name__)


class Result:
    """Rows produced by one statement."""

    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor

    @property
    def rowcount(self) -> int:
        return self._cursor.rowcount

    async def first(self) -> tuple | None:
        return await asyncio.to_thread(self._cursor.fetchone)

    async def all(self) -> list[tuple]:
        return await asyncio.to_thread(self._cursor.fetchall)


class Connection:
    def __init__(self, raw: Any, target: str) -> None:
        self._raw = raw
        self.target = target

    async def execute(self, sql: str, params: tuple = ()) -> Result:
        return Result(await asyncio.to_thread(self._raw.execute, sql, params))

    async def commit(self) -> None:
        await asyncio.to_thread(self._raw.commit)

    async def close(self) -> None:
        await asyncio.to_thread(self._raw.close)


def _open_file(path: Path) -> Any:
    path.parent.mkdir(parents=True, exist_ok=True)
    raw = libsql.connect(str(path))
    raw.execute("PRAGMA journal_mode=WAL")
    raw.execute("PRAGMA busy_timeout=5000")
    return raw


def _open(path: Path | None) -> tuple[Any, str]:
    if path is not None:
        return _open_file(path), str(path)
    if settings.turso_database_url:
        raw = libsql.connect(
            database=settings.turso_database_url,
            auth_token=settings.turso_auth_token,
        )
        return raw, settings.turso_database_url
    return _open_file(settings.database_path), str(settings.database_path)


async def connect(path: Path | None = None) -> Connection:
    """Open a connection to *path*, or to the configured database."""
    raw, target = await asyncio.to_thread(_open, path)
    logger.debug("Opened database %s", target)
    return Connection(raw, target)


@asynccontextmanager
async def transaction(path: Path | None = None) -> AsyncIterator[Connection]:
    conn = await connect(path)
    try:
        yield conn
        await conn.commit()
    finally:
        await conn.close()
