"""The model that turns messages into intents, switchable at runtime with /model."""

from __future__ import annotations

import logging
from typing import NamedTuple

from lifeos.config import settings

logger = logging.getLogger(__name__)


class ModelInfo(NamedTuple):
    model_id: str
    provider: str


MODELS: dict[str, ModelInfo] = {
    "llama-70b": ModelInfo("llama-3.3-70b-versatile", "groq"),
    "llama-8b": ModelInfo("llama-3.1-8b-instant", "groq"),
    "haiku": ModelInfo("claude-haiku-4-5-20251001", "anthropic"),
    "sonnet": ModelInfo("claude-sonnet-4-5-20250929", "anthropic"),
}

DEFAULT_MODEL = "llama-70b"

# Short name → full model ID
MODEL_MAP: dict[str, str] = {name: info.model_id for name, info in MODELS.items()}

_NAMES_BY_ID: dict[str, str] = {info.model_id: name for name, info in MODELS.items()}


def lookup(name_or_id: str) -> str | None:
    """Full model ID for a short name or a known ID; None for anything else."""
    key = name_or_id.strip()
    if key.lower() in MODEL_MAP:
        return MODEL_MAP[key.lower()]
    return key if key in _NAMES_BY_ID else None


def friendly(model_id: str) -> str:
    return _NAMES_BY_ID.get(model_id, model_id)


def provider_for(model_id: str) -> str:
    """``"anthropic"`` or ``"groq"``.  IDs we don't list are judged by prefix."""
    name = _NAMES_BY_ID.get(model_id)
    if name is not None:
        return MODELS[name].provider
    return "anthropic" if model_id.startswith("claude-") else "groq"


class ModelManager:
    """Process-wide holder of the parsing model."""

    _instance: ModelManager | None = None

    def __init__(self) -> None:
        model_id = lookup(settings.default_chat_model)
        if model_id is None:
            logger.warning(
                "Unknown DEFAULT_CHAT_MODEL %r, using %s", settings.default_chat_model, DEFAULT_MODEL
            )
            model_id = MODEL_MAP[DEFAULT_MODEL]
        self._chat_model = model_id

    @classmethod
    def get(cls) -> ModelManager:
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def get_chat_model(self) -> str:
        return self._chat_model

    def set_chat_model(self, name: str) -> str | None:
        """Switch models by short name or ID.  Returns the new ID, or None if unknown."""
        model_id = lookup(name)
        if model_id is None:
            logger.info("Ignoring switch to unknown model %r", name)
            return None
        self._chat_model = model_id
        logger.info("Parsing with %s via %s", friendly(model_id), provider_for(model_id))
        return model_id
