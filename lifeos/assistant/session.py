"""Conversation session persisted as a JSON file per chat."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from lifeos.config import settings

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

ROLES = ("user", "assistant")


@dataclass
class Message:
    """A single conversation turn."""

    role: str  # "user" or "assistant"
    content: str


@dataclass
class ConversationSession:
    """Ordered message history for one chat.

    Every append is written through to *path*; nothing is ever trimmed in
    storage.  ``to_history()`` applies the window when building model input.
    """

    path: Path | None = None
    messages: list[Message] = field(default_factory=list)
    _loaded: bool = field(default=False, repr=False)

    def load(self) -> None:
        """Read the stored history once.  Corrupt data is discarded."""
        if self._loaded:
            return
        self._loaded = True
        if self.path is None or not self.path.exists():
            return
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(raw, list):
                msg = "history is not a list"
                raise ValueError(msg)
            messages = []
            for item in raw:
                if item.get("role") not in ROLES or not isinstance(item.get("content"), str):
                    msg = f"bad history entry: {item!r}"
                    raise ValueError(msg)
                messages.append(Message(role=item["role"], content=item["content"]))
        except (OSError, ValueError, AttributeError):
            logger.warning("Discarding unreadable conversation history at %s", self.path, exc_info=True)
            self.messages = []
            return
        self.messages = messages

    def append(self, role: str, content: str) -> None:
        """Append a message and persist."""
        if role not in ROLES:
            msg = f"Unknown role: {role}"
            raise ValueError(msg)
        self.messages.append(Message(role=role, content=content))
        self._save()

    def clear(self) -> int:
        """Clear all messages. Returns the count of cleared messages."""
        count = len(self.messages)
        self.messages.clear()
        if self.path is not None:
            self.path.unlink(missing_ok=True)
        return count

    def to_history(self, limit: int | None = None) -> list[dict[str, str]]:
        """The last *limit* messages (all when None) as role/content dicts."""
        messages = self.messages if limit is None else self.messages[-limit:] if limit > 0 else []
        return [{"role": m.role, "content": m.content} for m in messages]

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [{"role": m.role, "content": m.content} for m in self.messages]
        self.path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")


# Global session store keyed by chat ID
_sessions: dict[str, ConversationSession] = {}


def get_session(session_id: str | int) -> ConversationSession:
    """Get or create (and load) the session for a chat."""
    key = str(session_id)
    if key not in _sessions:
        session = ConversationSession(path=settings.history_dir / f"{key}.json")
        session.load()
        _sessions[key] = session
    return _sessions[key]
