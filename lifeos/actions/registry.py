"""Action registry: the dispatch table from ActionKind to handler."""

from __future__ import annotations

import inspect
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from lifeos.actions.base import ActionContext, ActionOutcome, ActionParams

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from lifeos.actions.kinds import ActionKind

logger = logging.getLogger(__name__)


@dataclass
class ActionDef:
    """Internal representation of a registered action."""

    kind: ActionKind
    description: str
    category: str
    handler: Callable[[ActionContext, Any], Awaitable[ActionOutcome]]
    params_model: type[ActionParams] = ActionParams


class ActionRegistry:
    """Central registry for action handlers.

    Handlers register with a decorator in their domain module::

        @registry.action(
            ActionKind.ADD_HABIT,
            description="Start tracking a habit",
            category="habits",
            params_model=AddHabitParams,
        )
        async def add_habit(ctx: ActionContext, params: AddHabitParams) -> ActionOutcome:
            ...

    Each domain also registers the prompt rules the model sees for it with
    ``registry.rules(category, text)``.
    """

    def __init__(self) -> None:
        self._actions: dict[ActionKind, ActionDef] = {}
        self._rules: dict[str, str] = {}

    def action(
        self,
        kind: ActionKind,
        *,
        description: str,
        category: str,
        params_model: type[ActionParams] = ActionParams,
    ) -> Callable:
        """Decorator to register an async function as an action handler."""

        def decorator(fn: Callable[..., Awaitable[ActionOutcome]]) -> Callable:
            if not inspect.iscoroutinefunction(fn):
                msg = f"Action handler '{kind}' must be an async function"
                raise TypeError(msg)
            if kind in self._actions:
                msg = f"Action '{kind}' is already registered"
                raise ValueError(msg)

            self._actions[kind] = ActionDef(
                kind=kind,
                description=description,
                category=category,
                handler=fn,
                params_model=params_model,
            )
            return fn

        return decorator

    def rules(self, category: str, text: str) -> None:
        self._rules[category] = text.strip()

    def get(self, kind: ActionKind) -> ActionDef | None:
        return self._actions.get(kind)

    @property
    def kinds(self) -> list[ActionKind]:
        return list(self._actions)

    def get_actions_by_category(self) -> dict[str, list[ActionDef]]:
        """Group registered actions by category, in registration order."""
        groups: dict[str, list[ActionDef]] = {}
        for action_def in self._actions.values():
            groups.setdefault(action_def.category, []).append(action_def)
        return groups

    def get_rules(self, category: str) -> str:
        return self._rules.get(category, "")

    async def execute(
        self, kind: ActionKind, ctx: ActionContext, params: ActionParams
    ) -> ActionOutcome:
        """Run the handler for *kind*.

        Unlike a lookup miss, handler exceptions propagate: the dispatcher
        decides how a failed store call is reported.
        """
        action_def = self._actions.get(kind)
        if action_def is None:
            msg = f"No handler registered for {kind}"
            raise LookupError(msg)

        logger.info("Action '%s' called with %s", kind, params.model_dump(exclude_none=True))
        t0 = time.monotonic()
        try:
            outcome = await action_def.handler(ctx, params)
        except Exception:
            logger.warning("Action '%s' raised after %.2fs", kind, time.monotonic() - t0)
            raise
        logger.info(
            "Action '%s' %s in %.2fs: %s",
            kind,
            outcome.status,
            time.monotonic() - t0,
            outcome.detail,
        )
        return outcome


# Global registry. Domain modules register into this on import.
registry = ActionRegistry()
