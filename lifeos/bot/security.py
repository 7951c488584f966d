"""Who may talk to Nova.

LifeOS data belongs to a single owner, so the bot only answers the Telegram
accounts listed in ``ALLOWED_USER_IDS``. Strangers get no reply at all, and
each stranger is logged once rather than on every message.
"""

from __future__ import annotations

import logging

from telegram import Update

from lifeos.config import settings

logger = logging.getLogger(__name__)


class _Gate:
    def __init__(self) -> None:
        self.owners: frozenset[int] | None = None
        self.strangers: set[int] = set()

    def load(self) -> frozenset[int]:
        if self.owners is None:
            self.owners = frozenset(settings.get_allowed_user_ids())
            if self.owners:
                logger.info("Nova answers %d Telegram account(s)", len(self.owners))
            else:
                logger.warning("No Telegram accounts configured; Nova will stay silent")
        return self.owners


_gate = _Gate()


def _reset() -> None:
    """Reload the owner list on next use (for testing)."""
    global _gate  # noqa: PLW0603
    _gate = _Gate()


def is_allowed(update: Update) -> bool:
    """Whether *update* was sent by one of the configured owners."""
    sender = update.effective_user
    owners = _gate.load()
    if sender is None or sender.id not in owners:
        if sender is not None and owners and sender.id not in _gate.strangers:
            _gate.strangers.add(sender.id)
            logger.info("Telegram account %s is not an owner, staying silent", sender.id)
        return False
    return True
