"""In-memory read cache shared by the domain stores."""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


class QueryCache:
    """Caches ``list()`` results keyed by table name.

    A store writes through the database and then calls ``invalidate()`` for
    its table, so the next read (and the next context snapshot) is fresh.
    """

    def __init__(self) -> None:
        self._entries: dict[str, list[Any]] = {}

    def get(self, key: str) -> list[Any] | None:
        return self._entries.get(key)

    def set(self, key: str, rows: list[Any]) -> None:
        self._entries[key] = rows

    def invalidate(self, *keys: str) -> None:
        """Drop the cached entries for *keys*, or everything when none are given."""
        if not keys:
            self._entries.clear()
            return
        for key in keys:
            if self._entries.pop(key, None) is not None:
                logger.debug("Cache invalidated: %s", key)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
