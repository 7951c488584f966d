"""One assistant turn: snapshot, parse, dispatch, reply."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from lifeos.actions.base import ActionOutcome, OutcomeStatus
from lifeos.actions.dispatch import FAILURE_MESSAGE, ActionExecutionError, IntentDispatcher, local_now
from lifeos.actions.kinds import ActionKind
from lifeos.assistant import parser
from lifeos.assistant.context import build_context_snapshot, gather_app_state
from lifeos.config import settings

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from lifeos.actions.intent import Intent
    from lifeos.assistant.session import ConversationSession
    from lifeos.stores.container import Stores

logger = logging.getLogger(__name__)


class TurnInProgressError(Exception):
    """A message arrived while the previous turn was still running."""

    def __init__(self) -> None:
        super().__init__("Still working on the previous message")


@dataclass
class TurnResult:
    reply: str
    outcomes: list[ActionOutcome] = field(default_factory=list)
    notification: str | None = None
    failed: bool = False


def _model_text(intents: list[Intent]) -> str:
    return "\n".join(i.response_text for i in intents if i.response_text)


def compose_reply(intents: list[Intent], outcomes: list[ActionOutcome]) -> str:
    """Merge the model's reply with what actually happened.

    When nothing was applied and something was skipped, the model's text is
    dropped: it was written before execution and may claim a change that
    never happened.
    """
    text = _model_text(intents)
    skipped = [o for o in outcomes if o.status == OutcomeStatus.SKIPPED]
    unknown = [
        o for o in outcomes if o.status == OutcomeStatus.UNRECOGNIZED and o.detail != ActionKind.UNKNOWN
    ]
    applied = [o for o in outcomes if o.applied]

    lines: list[str] = []
    if skipped and not applied:
        lines.extend(o.detail for o in skipped)
    else:
        if text:
            lines.append(text)
        elif applied:
            lines.extend(o.detail for o in applied)
        lines.extend(f"Heads up: {o.detail}" for o in skipped)
    lines.extend(f"I don't know how to do '{o.detail}' yet." for o in unknown)

    if not lines:
        lines.append(text or "Done.")
    return "\n".join(lines)


def compose_failure(exc: ActionExecutionError) -> str:
    lines = [f"Sorry, something went wrong: {FAILURE_MESSAGE.lower()} ({exc.step or exc.action})."]
    done = [o.detail for o in exc.applied if o.applied]
    if done:
        lines.append("These went through before the failure:")
        lines.extend(f"- {d}" for d in done)
    if exc.unreconciled:
        lines.append("These may need a manual check:")
        lines.extend(f"- {u}" for u in exc.unreconciled)
    return "\n".join(lines)


def notification_for(outcomes: list[ActionOutcome], *, failed: bool = False) -> str | None:
    if failed:
        return f"⚠️ {FAILURE_MESSAGE}"
    count = sum(1 for o in outcomes if o.applied)
    if not count:
        return None
    return f"✅ {count} action{'s' if count != 1 else ''} applied"


class Assistant:
    """Runs turns for one conversation, one at a time.

    ``location`` is the page the user is on; ``NAVIGATE`` intents move it.
    """

    def __init__(
        self,
        stores: Stores,
        session: ConversationSession,
        *,
        location: str = "/",
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self.stores = stores
        self.session = session
        self.location = location
        self._clock = clock
        self._busy = False
        self._dispatcher = IntentDispatcher(stores, clock=clock, navigate=self._navigate)

    @property
    def busy(self) -> bool:
        return self._busy

    def _navigate(self, route: str) -> None:
        logger.info("Navigating %s -> %s", self.location, route)
        self.location = route

    async def handle_message(self, text: str) -> TurnResult:
        if self._busy:
            raise TurnInProgressError
        self._busy = True
        try:
            return await self._run_turn(text)
        finally:
            self._busy = False

    async def _run_turn(self, text: str) -> TurnResult:
        history = self.session.to_history(settings.history_window)
        self.session.append("user", text)

        state = await gather_app_state(self.stores)
        snapshot = build_context_snapshot(state, self._clock(), self.location)
        intents = await parser.parse(text, history, snapshot)

        try:
            outcomes = await self._dispatcher.execute_all(intents)
        except ActionExecutionError as exc:
            result = TurnResult(
                reply=compose_failure(exc),
                outcomes=exc.applied,
                notification=notification_for(exc.applied, failed=True),
                failed=True,
            )
        else:
            result = TurnResult(
                reply=compose_reply(intents, outcomes),
                outcomes=outcomes,
                notification=notification_for(outcomes),
            )

        self.session.append("assistant", result.reply)
        return result
