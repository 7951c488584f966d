"""Intent parser: user text + history + context → list of Intents.

Never raises.  Any transport or parse failure turns into a single CHAT
intent carrying a generic apology, so a turn always has something to say.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from lifeos.actions.intent import Intent, normalize_intent
from lifeos.config import settings
from lifeos.llm.client import complete_json
from lifeos.llm.prompt import build_system_prompt

logger = logging.getLogger(__name__)

FALLBACK_TEXT = "Oops! Something went wrong. Mind trying again?"


def _fallback() -> list[Intent]:
    return [Intent.chat(FALLBACK_TEXT)]


def parse_model_json(text: str) -> dict[str, Any] | None:
    """Parse the model's reply, tolerating markdown fences around the JSON."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        start = text.find("{")
        end = text.rfind("}") + 1
        if start < 0 or end <= start:
            logger.warning("Model reply is not JSON: %r", text[:200])
            return None
        try:
            data = json.loads(text[start:end])
        except json.JSONDecodeError:
            logger.warning("Model reply is not JSON: %r", text[:200])
            return None
    if not isinstance(data, dict):
        logger.warning("Model reply is JSON but not an object: %r", text[:200])
        return None
    return data


def intents_from_response(data: dict[str, Any]) -> list[Intent]:
    """Normalize a single-action or batch response into Intents.

    In the batch form only the first intent carries the response text.
    """
    response_text = data.get("response_text") or ""

    batch = data.get("actions")
    if isinstance(batch, list) and batch:
        items = [item for item in batch if isinstance(item, dict) and item.get("action")]
        if not items:
            logger.warning("Batch reply has no usable actions")
            return _fallback()
        return [
            normalize_intent(item["action"], item.get("data"), response_text if i == 0 else "")
            for i, item in enumerate(items)
        ]

    if not data.get("action"):
        logger.warning("Model reply has no action: %s", sorted(data))
        return _fallback()
    return [normalize_intent(data["action"], data.get("data"), response_text)]


def _history_messages(history: list[dict[str, str]]) -> list[dict[str, str]]:
    window = history[-settings.history_window :] if settings.history_window > 0 else []
    return [
        {"role": m["role"], "content": m["content"]}
        for m in window
        if m.get("role") in ("user", "assistant") and isinstance(m.get("content"), str)
    ]


async def parse(
    user_message: str,
    history: list[dict[str, str]],
    context: str,
    *,
    model: str | None = None,
) -> list[Intent]:
    """Ask the model what *user_message* wants done.

    *history* holds the earlier turns (oldest first); only the most recent
    ``history_window`` of them are sent.
    """
    messages = [*_history_messages(history), {"role": "user", "content": user_message}]
    try:
        raw = await complete_json(messages, system=build_system_prompt(context), model=model)
    except TimeoutError:
        logger.warning("Model request timed out after %.0fs", settings.llm_timeout_seconds)
        return _fallback()
    except Exception:
        logger.exception("Model request failed")
        return _fallback()

    data = parse_model_json(raw)
    if data is None:
        return _fallback()

    intents = intents_from_response(data)
    logger.info("Parsed intents: %s", [i.action.value for i in intents])
    return intents
