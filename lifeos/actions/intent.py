"""Intent: one typed action the model asked for."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from lifeos.actions import registry
from lifeos.actions.base import ActionParams
from lifeos.actions.conversation import ClarifyParams
from lifeos.actions.kinds import ActionKind

logger = logging.getLogger(__name__)

_NEEDS_CATEGORY = {ActionKind.ADD_EXPENSE: "expense", ActionKind.ADD_INCOME: "income"}


@dataclass
class Intent:
    """A validated action request.

    ``raw_action`` keeps the model's original action string, which matters
    when it was not recognized and ``action`` is ``UNKNOWN``.
    """

    action: ActionKind
    data: ActionParams
    response_text: str = ""
    raw_action: str = ""

    @classmethod
    def chat(cls, response_text: str) -> Intent:
        return cls(ActionKind.CHAT, ActionParams(), response_text, ActionKind.CHAT.value)


def _field_name(error: dict[str, Any]) -> str:
    if error.get("loc"):
        return str(error["loc"][0])
    msg = str(error.get("msg", ""))
    return msg.removeprefix("Value error, ").removesuffix(" is required")


def clarify(kind: ActionKind, missing: list[str], raw_action: str = "") -> Intent:
    """A CLARIFY intent asking for the *missing* fields of *kind*."""
    if kind in _NEEDS_CATEGORY and missing == ["category"]:
        question = f"What category should this {_NEEDS_CATEGORY[kind]} go under?"
    else:
        verb = kind.value.lower().replace("_", " ")
        question = f"I need a bit more to {verb}: what's the {' and '.join(missing)}?"
    return Intent(
        ActionKind.CLARIFY,
        ClarifyParams(question=question, missing=missing),
        question,
        raw_action or kind.value,
    )


def normalize_intent(raw_action: Any, data: Any, response_text: Any = "") -> Intent:
    """Turn one ``{action, data}`` pair from the model into an Intent.

    Unknown action strings become ``UNKNOWN``.  A payload that fails its
    action's validation, or a finance entry without a category, becomes a
    ``CLARIFY`` intent instead of being dispatched.
    """
    raw = raw_action if isinstance(raw_action, str) else str(raw_action or "")
    text = response_text if isinstance(response_text, str) else ""
    payload = data if isinstance(data, dict) else {}

    kind = ActionKind.parse(raw_action)
    if kind is None:
        logger.warning("Unrecognized action from model: %r", raw_action)
        return Intent(ActionKind.UNKNOWN, ActionParams(), text, raw)

    action_def = registry.get(kind)
    params_model = action_def.params_model if action_def else ActionParams
    try:
        params = params_model.model_validate(payload)
    except ValidationError as exc:
        missing = sorted({_field_name(err) for err in exc.errors()})
        logger.info("Payload for %s is missing %s; asking to clarify", kind, missing)
        return clarify(kind, missing, raw)

    if kind in _NEEDS_CATEGORY and not getattr(params, "category", None):
        logger.info("%s without a category; asking to clarify", kind)
        return clarify(kind, ["category"], raw)

    return Intent(kind, params, text, raw)
