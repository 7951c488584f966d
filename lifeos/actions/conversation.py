"""Conversational actions: answered in text, never touch a store."""

from __future__ import annotations

import logging

from pydantic import AliasChoices, Field

from lifeos.actions.base import (
    ActionContext,
    ActionOutcome,
    ActionParams,
    OutcomeStatus,
    Required,
    Text,
)
from lifeos.actions.kinds import ActionKind
from lifeos.actions.registry import registry

logger = logging.getLogger(__name__)

ROUTES = {
    "dashboard": "/",
    "home": "/",
    "tasks": "/tasks",
    "finance": "/finance",
    "money": "/finance",
    "budget": "/finance",
    "notes": "/notes",
    "habits": "/habits",
    "study": "/study",
    "inventory": "/inventory",
    "settings": "/settings",
}

registry.rules(
    "conversation",
    """
CONVERSATION RULES:
Use UNKNOWN when the request is something LifeOS cannot do.
Use CHAT for greetings, questions and advice; answer from the app context.
Use GET_SUMMARY for "how am I doing" style overviews and ANALYZE_BUDGET for spending analysis;
put the summary or analysis itself in response_text.
Use CLARIFY with a question in response_text when something required is missing or ambiguous.
Use NAVIGATE with data.page (one of: dashboard, tasks, finance, notes, habits, study, inventory, settings)
when the user wants to open a page.
""",
)


class ClarifyParams(ActionParams):
    question: Text = None
    missing: list[str] = []


class NavigateParams(ActionParams):
    page: Required = Field(validation_alias=AliasChoices("page", "route", "path", "to"))


def normalize_route(page: str) -> str | None:
    key = page.strip().lower().strip("/")
    if not key:
        return "/"
    if key in ROUTES:
        return ROUTES[key]
    if f"/{key}" in ROUTES.values():
        return f"/{key}"
    return None


@registry.action(
    ActionKind.CHAT,
    description="Just talk: greetings, questions, advice",
    category="conversation",
)
async def chat(ctx: ActionContext, params: ActionParams) -> ActionOutcome:
    return ActionOutcome.noop(ActionKind.CHAT)


@registry.action(
    ActionKind.GET_SUMMARY,
    description="Summarize the user's day, money or progress",
    category="conversation",
)
async def get_summary(ctx: ActionContext, params: ActionParams) -> ActionOutcome:
    return ActionOutcome.noop(ActionKind.GET_SUMMARY)


@registry.action(
    ActionKind.ANALYZE_BUDGET,
    description="Analyze spending against budgets",
    category="conversation",
)
async def analyze_budget(ctx: ActionContext, params: ActionParams) -> ActionOutcome:
    return ActionOutcome.noop(ActionKind.ANALYZE_BUDGET)


@registry.action(
    ActionKind.CLARIFY,
    description="Ask the user for missing details",
    category="conversation",
    params_model=ClarifyParams,
)
async def clarify(ctx: ActionContext, params: ClarifyParams) -> ActionOutcome:
    return ActionOutcome.noop(ActionKind.CLARIFY, params.question or "")


@registry.action(
    ActionKind.NAVIGATE,
    description="Open a page of the app",
    category="conversation",
    params_model=NavigateParams,
)
async def navigate(ctx: ActionContext, params: NavigateParams) -> ActionOutcome:
    route = normalize_route(params.page)
    if route is None:
        return ActionOutcome.skipped(ActionKind.NAVIGATE, f"There's no '{params.page}' page.")
    if ctx.navigate is None:
        return ActionOutcome.noop(ActionKind.NAVIGATE, f"Open {route} to see it.")
    ctx.navigate(route)
    logger.info("Navigated to %s", route)
    return ActionOutcome(ActionKind.NAVIGATE, OutcomeStatus.NAVIGATED, f"Opened {route}.")
