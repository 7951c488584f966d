"""Budget and savings-goal actions."""

from __future__ import annotations

import logging

from lifeos.actions.base import (
    ActionContext,
    ActionOutcome,
    ActionParams,
    Amount,
    Text,
    entry_timestamp,
    resolve_date,
)
from lifeos.actions.kinds import ActionKind
from lifeos.actions.registry import registry
from lifeos.actions.resolve import ambiguity_note, resolve
from lifeos.actions.saga import Saga
from lifeos.stores.models import Budget

logger = logging.getLogger(__name__)

PERIODS = ("weekly", "monthly", "yearly")

registry.rules(
    "budgets",
    """
BUDGET RULES:
For ADD_BUDGET: name (default "Monthly Budget"), target_amount (number), period ('weekly'/'monthly'/'yearly',
default monthly), category (optional, limits the budget to one spending category), start_date (optional).
For UPDATE_BUDGET / DELETE_BUDGET: name (to find the budget), plus the fields to change (new_name to rename).
ADD_SPECIAL_BUDGET creates a budget for a one-off event (trip, wedding, festival).

Budget Examples:
- "set a food budget of 8000 per month" → ADD_BUDGET with name "Food", target_amount 8000, category "Food"
- "raise my food budget to 10000" → UPDATE_BUDGET with name "food", target_amount 10000
""",
)

registry.rules(
    "savings",
    """
SAVINGS RULES:
For ADD_SAVINGS: name (default "Savings Goal"), target_amount (number), current_amount (optional).
For ADD_TO_SAVINGS / WITHDRAW_FROM_SAVINGS: name or id of the goal, amount (number).
Withdrawing also records the amount as an expense.
For UPDATE_SAVINGS / DELETE_SAVINGS: name (to find the goal), plus target_amount / current_amount / new_name.
ADD_SPECIAL_SAVINGS creates a goal for a one-off purchase or event.

Savings Examples:
- "I want to save 50000 for a laptop" → ADD_SAVINGS with name "Laptop", target_amount 50000
- "put 2000 into laptop fund" → ADD_TO_SAVINGS with name "laptop", amount 2000
- "take 1000 out of laptop savings" → WITHDRAW_FROM_SAVINGS with name "laptop", amount 1000
""",
)


class BudgetParams(ActionParams):
    name: Text = None
    target_amount: Amount = None
    period: Text = None
    category: Text = None
    start_date: Text = None


class SavingsParams(ActionParams):
    name: Text = None
    target_amount: Amount = None
    current_amount: Amount = None


class GoalRefParams(ActionParams):
    id: Text = None
    name: Text = None


class UpdateGoalParams(GoalRefParams):
    new_name: Text = None
    target_amount: Amount = None
    current_amount: Amount = None
    period: Text = None
    category: Text = None
    start_date: Text = None


class GoalAmountParams(GoalRefParams):
    amount: Amount = None


def _not_found(kind: ActionKind, params: GoalRefParams, what: str) -> ActionOutcome:
    return ActionOutcome.skipped(kind, f"I couldn't find a {what} matching '{params.name or params.id or ''}'.")


async def _find(ctx: ActionContext, params: GoalRefParams, *, savings: bool):  # noqa: ANN202
    store = ctx.stores.budgets
    goals = await (store.savings_goals() if savings else store.budgets())
    return resolve(goals, params.name, record_id=params.id, key=lambda g: g.name)


# -- Budgets -------------------------------------------------------------------


async def _create_budget(
    ctx: ActionContext, kind: ActionKind, params: BudgetParams, *, special: bool = False
) -> ActionOutcome:
    name = params.name or "Monthly Budget"
    budget_id = await ctx.stores.budgets.create({
        "name": name,
        "type": "budget",
        "target_amount": params.target_amount or 0,
        "current_amount": 0,
        "period": params.period if params.period in PERIODS else "monthly",
        "category": params.category,
        "start_date": resolve_date(params.start_date, ctx.today),
        "is_special": special,
    })
    logger.info("Added budget: %s (%s)", name, budget_id)
    return ActionOutcome.done(kind, f"Created budget '{name}' of {params.target_amount or 0:g}.", budget_id)


@registry.action(
    ActionKind.ADD_BUDGET,
    description="Create a spending budget",
    category="budgets",
    params_model=BudgetParams,
)
async def add_budget(ctx: ActionContext, params: BudgetParams) -> ActionOutcome:
    return await _create_budget(ctx, ActionKind.ADD_BUDGET, params)


@registry.action(
    ActionKind.ADD_SPECIAL_BUDGET,
    description="Create a budget for a one-off event",
    category="budgets",
    params_model=BudgetParams,
)
async def add_special_budget(ctx: ActionContext, params: BudgetParams) -> ActionOutcome:
    return await _create_budget(ctx, ActionKind.ADD_SPECIAL_BUDGET, params, special=True)


def _goal_changes(ctx: ActionContext, params: UpdateGoalParams) -> dict:
    changes = {
        "name": params.new_name,
        "target_amount": params.target_amount,
        "current_amount": params.current_amount,
        "period": params.period if params.period in PERIODS else None,
        "category": params.category,
        "start_date": resolve_date(params.start_date, ctx.today),
    }
    return {k: v for k, v in changes.items() if v is not None}


@registry.action(
    ActionKind.UPDATE_BUDGET,
    description="Change a budget",
    category="budgets",
    params_model=UpdateGoalParams,
)
async def update_budget(ctx: ActionContext, params: UpdateGoalParams) -> ActionOutcome:
    match = await _find(ctx, params, savings=False)
    if match is None:
        return _not_found(ActionKind.UPDATE_BUDGET, params, "budget")
    budget: Budget = match.entity
    changes = _goal_changes(ctx, params)
    if not changes:
        return ActionOutcome.skipped(ActionKind.UPDATE_BUDGET, f"Nothing to change on '{budget.name}'.")
    await ctx.stores.budgets.update(budget.id, changes)
    note = ambiguity_note(match, lambda b: b.name)
    return ActionOutcome.done(ActionKind.UPDATE_BUDGET, f"Updated budget '{budget.name}'{note}.", budget.id)


@registry.action(
    ActionKind.DELETE_BUDGET,
    description="Delete a budget",
    category="budgets",
    params_model=GoalRefParams,
)
async def delete_budget(ctx: ActionContext, params: GoalRefParams) -> ActionOutcome:
    match = await _find(ctx, params, savings=False)
    if match is None:
        return _not_found(ActionKind.DELETE_BUDGET, params, "budget")
    budget: Budget = match.entity
    await ctx.stores.budgets.delete(budget.id)
    note = ambiguity_note(match, lambda b: b.name)
    return ActionOutcome.done(ActionKind.DELETE_BUDGET, f"Deleted budget '{budget.name}'{note}.", budget.id)


# -- Savings goals -------------------------------------------------------------


async def _create_savings(
    ctx: ActionContext, kind: ActionKind, params: SavingsParams, *, special: bool = False
) -> ActionOutcome:
    name = params.name or "Savings Goal"
    goal_id = await ctx.stores.budgets.create({
        "name": name,
        "type": "savings",
        "target_amount": params.target_amount or 0,
        "current_amount": params.current_amount or 0,
        "is_special": special,
    })
    logger.info("Added savings goal: %s (%s)", name, goal_id)
    return ActionOutcome.done(kind, f"Created savings goal '{name}' of {params.target_amount or 0:g}.", goal_id)


@registry.action(
    ActionKind.ADD_SAVINGS,
    description="Create a savings goal",
    category="savings",
    params_model=SavingsParams,
)
async def add_savings(ctx: ActionContext, params: SavingsParams) -> ActionOutcome:
    return await _create_savings(ctx, ActionKind.ADD_SAVINGS, params)


@registry.action(
    ActionKind.ADD_SPECIAL_SAVINGS,
    description="Create a savings goal for a one-off purchase or event",
    category="savings",
    params_model=SavingsParams,
)
async def add_special_savings(ctx: ActionContext, params: SavingsParams) -> ActionOutcome:
    return await _create_savings(ctx, ActionKind.ADD_SPECIAL_SAVINGS, params, special=True)


@registry.action(
    ActionKind.ADD_TO_SAVINGS,
    description="Deposit money into a savings goal",
    category="savings",
    params_model=GoalAmountParams,
)
async def add_to_savings(ctx: ActionContext, params: GoalAmountParams) -> ActionOutcome:
    if not params.amount or params.amount <= 0:
        return ActionOutcome.skipped(ActionKind.ADD_TO_SAVINGS, "How much should I add?")
    match = await _find(ctx, params, savings=True)
    if match is None:
        return _not_found(ActionKind.ADD_TO_SAVINGS, params, "savings goal")
    goal: Budget = match.entity
    balance = await ctx.stores.budgets.add_to_savings(goal.id, params.amount)
    note = ambiguity_note(match, lambda g: g.name)
    return ActionOutcome.done(
        ActionKind.ADD_TO_SAVINGS,
        f"Added {params.amount:g} to '{goal.name}' (now {balance:g} of {goal.target_amount:g}){note}.",
        goal.id,
    )


@registry.action(
    ActionKind.WITHDRAW_FROM_SAVINGS,
    description="Take money out of a savings goal (recorded as an expense)",
    category="savings",
    params_model=GoalAmountParams,
)
async def withdraw_from_savings(ctx: ActionContext, params: GoalAmountParams) -> ActionOutcome:
    if not params.amount or params.amount <= 0:
        return ActionOutcome.skipped(ActionKind.WITHDRAW_FROM_SAVINGS, "How much should I withdraw?")
    match = await _find(ctx, params, savings=True)
    if match is None:
        return _not_found(ActionKind.WITHDRAW_FROM_SAVINGS, params, "savings goal")
    goal: Budget = match.entity

    amount = params.amount
    previous = goal.current_amount or 0
    remaining = max(0, previous - amount)
    stores = ctx.stores
    async with Saga("withdraw from savings") as saga:
        await saga.run(
            "reduce savings balance",
            lambda: stores.budgets.update(goal.id, {"current_amount": remaining}),
            compensate=lambda _: stores.budgets.update(goal.id, {"current_amount": previous}),
        )
        await saga.run(
            "record withdrawal expense",
            lambda: stores.finance.create({
                "type": "expense",
                "amount": amount,
                "category": f"Savings: {goal.name}",
                "description": f"Withdrawn from {goal.name}",
                "date": entry_timestamp(None, ctx.today),
                "is_special": False,
            }),
            compensate=stores.finance.delete,
        )

    note = ambiguity_note(match, lambda g: g.name)
    return ActionOutcome.done(
        ActionKind.WITHDRAW_FROM_SAVINGS,
        f"Withdrew {amount:g} from '{goal.name}' ({remaining:g} left){note}.",
        goal.id,
    )


@registry.action(
    ActionKind.UPDATE_SAVINGS,
    description="Change a savings goal",
    category="savings",
    params_model=UpdateGoalParams,
)
async def update_savings(ctx: ActionContext, params: UpdateGoalParams) -> ActionOutcome:
    match = await _find(ctx, params, savings=True)
    if match is None:
        return _not_found(ActionKind.UPDATE_SAVINGS, params, "savings goal")
    goal: Budget = match.entity
    changes = _goal_changes(ctx, params)
    changes.pop("period", None)
    if not changes:
        return ActionOutcome.skipped(ActionKind.UPDATE_SAVINGS, f"Nothing to change on '{goal.name}'.")
    await ctx.stores.budgets.update(goal.id, changes)
    note = ambiguity_note(match, lambda g: g.name)
    return ActionOutcome.done(ActionKind.UPDATE_SAVINGS, f"Updated savings goal '{goal.name}'{note}.", goal.id)


@registry.action(
    ActionKind.DELETE_SAVINGS,
    description="Delete a savings goal",
    category="savings",
    params_model=GoalRefParams,
)
async def delete_savings(ctx: ActionContext, params: GoalRefParams) -> ActionOutcome:
    match = await _find(ctx, params, savings=True)
    if match is None:
        return _not_found(ActionKind.DELETE_SAVINGS, params, "savings goal")
    goal: Budget = match.entity
    await ctx.stores.budgets.delete(goal.id)
    note = ambiguity_note(match, lambda g: g.name)
    return ActionOutcome.done(ActionKind.DELETE_SAVINGS, f"Deleted savings goal '{goal.name}'{note}.", goal.id)
