"""Base types for action payloads, handler context and outcomes."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING, Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict

if TYPE_CHECKING:
    from collections.abc import Callable

    from lifeos.actions.kinds import ActionKind
    from lifeos.stores.container import Stores

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")
_TRUTHY = {"true", "yes", "y", "1", "on"}
_FALSY = {"false", "no", "n", "0", "off"}


# -- Field coercion ----------------------------------------------------------


def coerce_number(value: Any) -> float | None:
    """Turn model-supplied numbers into floats.

    Numbers pass through; strings like ``"500"``, ``"1,200"`` or ``"৳300"``
    are parsed; anything else (including booleans) becomes None.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        match = _NUMBER.search(value.replace(",", ""))
        if match:
            return float(match.group())
    return None


def coerce_text(value: Any) -> str | None:
    """Strip strings, stringify scalars, and treat blanks and non-scalars as missing."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        value = str(value)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return None


def coerce_flag(value: Any) -> bool | None:
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, int | float):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUTHY:
            return True
        if lowered in _FALSY:
            return False
    return None


def coerce_tags(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, list | tuple):
        return [str(t).strip().lstrip("#") for t in value if str(t).strip()]
    return []


Amount = Annotated[float | None, BeforeValidator(coerce_number)]
Text = Annotated[str | None, BeforeValidator(coerce_text)]
Required = Annotated[str, BeforeValidator(coerce_text)]
Flag = Annotated[bool | None, BeforeValidator(coerce_flag)]
Tags = Annotated[list[str], BeforeValidator(coerce_tags)]


class ActionParams(BaseModel):
    """Base class for action payload models.

    Keys the model invents are ignored; missing or malformed optional values
    become None rather than failing the whole intent.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RecordRef(ActionParams):
    """Payload that only names an existing record."""

    id: Text = None


# -- Dates -------------------------------------------------------------------


def resolve_date(value: str | None, today: date) -> str | None:
    """``YYYY-MM-DD`` for ISO dates and the words today/tomorrow/yesterday."""
    if not value:
        return None
    lowered = value.lower()
    if lowered == "today":
        return today.isoformat()
    if lowered == "tomorrow":
        return (today + timedelta(days=1)).isoformat()
    if lowered == "yesterday":
        return (today - timedelta(days=1)).isoformat()
    try:
        return date.fromisoformat(value[:10]).isoformat()
    except ValueError:
        return None


def entry_timestamp(value: str | None, today: date) -> str:
    """Timestamp for a finance entry: the given day (or today) at noon UTC."""
    day = resolve_date(value, today) or today.isoformat()
    return f"{day}T12:00:00.000Z"


# -- Context and outcomes ----------------------------------------------------


@dataclass
class ActionContext:
    """What a handler gets besides its payload."""

    stores: Stores
    now: datetime
    navigate: Callable[[str], None] | None = None

    @property
    def today(self) -> date:
        return self.now.date()


class OutcomeStatus(StrEnum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    NOOP = "noop"
    UNRECOGNIZED = "unrecognized"
    NAVIGATED = "navigated"


@dataclass
class ActionOutcome:
    """What happened when an intent was executed.

    ``detail`` is user-facing text describing the result; the reply is built
    from it rather than from whatever the model promised up front.
    """

    action: ActionKind
    status: OutcomeStatus
    detail: str = ""
    entity_id: str | None = None

    @property
    def applied(self) -> bool:
        return self.status == OutcomeStatus.APPLIED

    @classmethod
    def done(cls, action: ActionKind, detail: str, entity_id: str | None = None) -> ActionOutcome:
        return cls(action, OutcomeStatus.APPLIED, detail, entity_id)

    @classmethod
    def skipped(cls, action: ActionKind, detail: str) -> ActionOutcome:
        return cls(action, OutcomeStatus.SKIPPED, detail)

    @classmethod
    def noop(cls, action: ActionKind, detail: str = "") -> ActionOutcome:
        return cls(action, OutcomeStatus.NOOP, detail)
