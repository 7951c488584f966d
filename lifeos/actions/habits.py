"""Habit actions.

COMPLETE_HABIT and DELETE_HABIT accept bulk names ("all", "every habit",
"everything") which are checked before substring matching, so "all" never
fuzzy-matches a habit that happens to contain those letters.
"""

from __future__ import annotations

import logging

from lifeos.actions.base import ActionContext, ActionOutcome, ActionParams, Required, Text
from lifeos.actions.kinds import ActionKind
from lifeos.actions.registry import registry
from lifeos.actions.resolve import ambiguity_note, is_bulk, resolve
from lifeos.actions.saga import Saga
from lifeos.stores.models import Habit

logger = logging.getLogger(__name__)

registry.rules(
    "habits",
    """
HABIT RULES:
For ADD_HABIT: name (string), frequency (optional: 'daily'/'weekly', default daily).
For COMPLETE_HABIT / DELETE_HABIT: id or name. Use name "all" to complete or delete every habit.

Habit Examples:
- "add habit drink water" → ADD_HABIT with name "Drink water", frequency "daily"
- "I did my exercise today" → COMPLETE_HABIT with name "exercise"
- "done with all my habits" → COMPLETE_HABIT with name "all"
""",
)


class AddHabitParams(ActionParams):
    name: Required
    frequency: Text = None


class HabitRefParams(ActionParams):
    id: Text = None
    name: Text = None


def _not_found(kind: ActionKind, params: HabitRefParams) -> ActionOutcome:
    return ActionOutcome.skipped(kind, f"I couldn't find a habit matching '{params.name or params.id or ''}'.")


@registry.action(
    ActionKind.ADD_HABIT,
    description="Start tracking a habit",
    category="habits",
    params_model=AddHabitParams,
)
async def add_habit(ctx: ActionContext, params: AddHabitParams) -> ActionOutcome:
    frequency = params.frequency if params.frequency in ("daily", "weekly") else "daily"
    habit_id = await ctx.stores.habits.create({"name": params.name, "frequency": frequency})
    logger.info("Added habit: %s (%s)", params.name, habit_id)
    return ActionOutcome.done(ActionKind.ADD_HABIT, f"Started tracking '{params.name}' ({frequency}).", habit_id)


@registry.action(
    ActionKind.COMPLETE_HABIT,
    description="Mark a habit (or all habits) done for today",
    category="habits",
    params_model=HabitRefParams,
)
async def complete_habit(ctx: ActionContext, params: HabitRefParams) -> ActionOutcome:
    store = ctx.stores.habits
    habits = await store.list()

    if not params.id and is_bulk(params.name):
        pending = [h for h in habits if not h.completed_on(ctx.today.isoformat())]
        if not pending:
            return ActionOutcome.skipped(ActionKind.COMPLETE_HABIT, "All habits are already done today.")
        async with Saga("complete all habits") as saga:
            for habit in pending:
                await saga.run(
                    f"complete {habit.name}",
                    lambda h=habit: store.complete(h, ctx.today),
                    compensate=lambda _, h=habit: store.restore(h),
                )
        names = ", ".join(h.name for h in pending)
        return ActionOutcome.done(ActionKind.COMPLETE_HABIT, f"Completed {len(pending)} habits: {names}.")

    match = resolve(habits, params.name, record_id=params.id, key=lambda h: h.name)
    if match is None:
        return _not_found(ActionKind.COMPLETE_HABIT, params)
    habit: Habit = match.entity
    if not await store.complete(habit, ctx.today):
        return ActionOutcome.skipped(ActionKind.COMPLETE_HABIT, f"'{habit.name}' is already done today.")
    note = ambiguity_note(match, lambda h: h.name)
    return ActionOutcome.done(ActionKind.COMPLETE_HABIT, f"Completed '{habit.name}'{note}.", habit.id)


@registry.action(
    ActionKind.DELETE_HABIT,
    description="Stop tracking a habit (or all habits)",
    category="habits",
    params_model=HabitRefParams,
)
async def delete_habit(ctx: ActionContext, params: HabitRefParams) -> ActionOutcome:
    store = ctx.stores.habits
    habits = await store.list()

    if not params.id and is_bulk(params.name):
        if not habits:
            return ActionOutcome.skipped(ActionKind.DELETE_HABIT, "There are no habits to delete.")
        for habit in habits:
            await store.delete(habit.id)
        return ActionOutcome.done(ActionKind.DELETE_HABIT, f"Deleted all {len(habits)} habits.")

    match = resolve(habits, params.name, record_id=params.id, key=lambda h: h.name)
    if match is None:
        return _not_found(ActionKind.DELETE_HABIT, params)
    habit: Habit = match.entity
    await store.delete(habit.id)
    note = ambiguity_note(match, lambda h: h.name)
    return ActionOutcome.done(ActionKind.DELETE_HABIT, f"Deleted habit '{habit.name}'{note}.", habit.id)
