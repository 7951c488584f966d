"""Find the record an intent refers to."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = logging.getLogger(__name__)

BULK_NAMES = frozenset({"all", "all habits", "every habit", "everything"})


@dataclass
class Resolution:
    """The record that matched, plus any others the query also matched."""

    entity: Any
    others: list[Any] = field(default_factory=list)

    @property
    def ambiguous(self) -> bool:
        return bool(self.others)


def resolve(
    items: Iterable[Any],
    query: str | None,
    *,
    record_id: str | None = None,
    key: Callable[[Any], str | None] = lambda item: getattr(item, "title", None),
) -> Resolution | None:
    """Pick one of *items* for an intent.

    An explicit *record_id* wins.  Otherwise the first item whose ``key``
    contains *query* (case-insensitive) is chosen; later matches are kept
    as ``others`` so the caller can mention the ambiguity.  An empty query
    matches nothing.
    """
    items = list(items)
    if record_id:
        for item in items:
            if item.id == record_id:
                return Resolution(item)

    if not query or not query.strip():
        return None

    needle = query.strip().lower()
    matches = [item for item in items if needle in (key(item) or "").lower()]
    if not matches:
        return None
    if len(matches) > 1:
        logger.warning(
            "Query %r matched %d records; using the first (%s)",
            query,
            len(matches),
            matches[0].id,
        )
    return Resolution(matches[0], matches[1:])


def is_bulk(name: str | None) -> bool:
    """True for names like "all" or "every habit" that mean every record."""
    return bool(name) and name.strip().lower() in BULK_NAMES


def ambiguity_note(resolution: Resolution, label: Callable[[Any], str]) -> str:
    if not resolution.ambiguous:
        return ""
    names = ", ".join(f"'{label(other)}'" for other in resolution.others[:3])
    return f" (also matched {names})"
