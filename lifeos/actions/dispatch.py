"""Intent dispatcher: runs intents against the domain stores."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from lifeos.actions import registry
from lifeos.actions.base import ActionContext, ActionOutcome, OutcomeStatus
from lifeos.actions.kinds import ActionKind
from lifeos.actions.saga import SagaError
from lifeos.config import settings

if TYPE_CHECKING:
    from collections.abc import Callable

    from lifeos.actions.intent import Intent
    from lifeos.stores.container import Stores

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Failed to execute action"


class ActionExecutionError(Exception):
    """A store call failed while executing an intent.

    Attributes:
        action: The intent's action.
        step: What was being done when it failed.
        unreconciled: Side effects that could not be undone.
        applied: Outcomes of the intents that ran before this one in a batch.
    """

    def __init__(
        self,
        action: ActionKind,
        step: str = "",
        unreconciled: list[str] | None = None,
    ) -> None:
        self.action = action
        self.step = step
        self.unreconciled = unreconciled or []
        self.applied: list[ActionOutcome] = []
        super().__init__(FAILURE_MESSAGE)


def local_now() -> datetime:
    return datetime.now(settings.tz)


class IntentDispatcher:
    """Executes intents one at a time.

    Entity lists are read through the stores on every intent, so a later
    intent in a batch sees what an earlier one wrote.
    """

    def __init__(
        self,
        stores: Stores,
        *,
        clock: Callable[[], datetime] = local_now,
        navigate: Callable[[str], None] | None = None,
    ) -> None:
        self._stores = stores
        self._clock = clock
        self._navigate = navigate

    async def execute(self, intent: Intent) -> ActionOutcome:
        if intent.action == ActionKind.UNKNOWN or registry.get(intent.action) is None:
            logger.info("Unrecognized action: %r", intent.raw_action)
            return ActionOutcome(
                ActionKind.UNKNOWN,
                OutcomeStatus.UNRECOGNIZED,
                intent.raw_action or intent.action.value,
            )

        ctx = ActionContext(stores=self._stores, now=self._clock(), navigate=self._navigate)
        try:
            return await registry.execute(intent.action, ctx, intent.data)
        except SagaError as exc:
            logger.exception("%s: %s failed", FAILURE_MESSAGE, intent.action)
            if exc.unreconciled:
                logger.error("Needs reconciliation after %s: %s", intent.action, exc.unreconciled)
            raise ActionExecutionError(intent.action, exc.failed_step, exc.unreconciled) from exc
        except Exception as exc:
            logger.exception("%s: %s failed", FAILURE_MESSAGE, intent.action)
            raise ActionExecutionError(intent.action, intent.action.value.lower()) from exc

    async def execute_all(self, intents: list[Intent]) -> list[ActionOutcome]:
        """Run *intents* in order, stopping at the first failure.

        Earlier intents are not rolled back; the raised error carries their
        outcomes in ``applied``.
        """
        outcomes: list[ActionOutcome] = []
        for intent in intents:
            try:
                outcomes.append(await self.execute(intent))
            except ActionExecutionError as exc:
                exc.applied = outcomes
                raise
        return outcomes
