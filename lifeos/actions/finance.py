"""Income and expense actions."""

from __future__ import annotations

import logging

from lifeos.actions.base import (
    ActionContext,
    ActionOutcome,
    ActionParams,
    Amount,
    Text,
    entry_timestamp,
)
from lifeos.actions.kinds import ActionKind
from lifeos.actions.registry import registry
from lifeos.actions.resolve import Resolution, ambiguity_note, resolve
from lifeos.stores.models import FinanceEntry

logger = logging.getLogger(__name__)

registry.rules(
    "finance",
    """
FINANCE RULES:
For ADD_EXPENSE / ADD_INCOME, data must include: amount (number), category (string).
Optional: description (string), date (YYYY-MM-DD, default today).
If the category or whether it is income or expense is unclear, answer CLARIFY instead of guessing.
ADD_SPECIAL_EXPENSE / ADD_SPECIAL_INCOME record one-off entries kept out of the regular balance.
For DELETE_EXPENSE: id, or description (text to find the entry), or amount.
For EDIT_EXPENSE / EDIT_INCOME: id or description (to find the entry), plus the fields to change
(new_description to rename).
For TOGGLE_SPECIAL: id or description; flips whether the entry counts as special.

Finance Examples:
- "spent 200 on coffee" → ADD_EXPENSE with amount 200, category "Food", description "Coffee"
- "got 5000 salary" → ADD_INCOME with amount 5000, category "Salary"
- "delete the coffee expense" → DELETE_EXPENSE with description "coffee"
""",
)


class EntryParams(ActionParams):
    amount: Amount = None
    category: Text = None
    description: Text = None
    date: Text = None


class EntryRefParams(ActionParams):
    id: Text = None
    description: Text = None
    amount: Amount = None


class EditEntryParams(EntryRefParams):
    new_description: Text = None
    new_amount: Amount = None
    category: Text = None
    date: Text = None


def _label(entry: FinanceEntry) -> str:
    return entry.description or entry.category


async def _create_entry(
    ctx: ActionContext,
    kind: ActionKind,
    entry_type: str,
    params: EntryParams,
    *,
    special: bool = False,
) -> ActionOutcome:
    amount = params.amount or 0
    category = params.category or "Other"
    entry_id = await ctx.stores.finance.create({
        "type": entry_type,
        "amount": amount,
        "category": category,
        "description": params.description,
        "date": entry_timestamp(params.date, ctx.today),
        "is_special": special,
    })
    logger.info("Added %s: %s %s", entry_type, amount, category)
    prefix = "special " if special else ""
    return ActionOutcome.done(kind, f"Recorded {prefix}{entry_type} of {amount:g} ({category}).", entry_id)


async def _find_entry(
    ctx: ActionContext,
    params: EntryRefParams,
    entry_type: str | None = None,
    *,
    by_amount: bool = True,
) -> Resolution | None:
    entries = await ctx.stores.finance.list()
    if entry_type is not None:
        entries = [e for e in entries if e.type == entry_type]
    match = resolve(entries, params.description, record_id=params.id, key=_label)
    if match is None and by_amount and params.amount is not None:
        same_amount = [e for e in entries if e.amount == params.amount]
        if same_amount:
            match = Resolution(same_amount[0], same_amount[1:])
    return match


def _not_found(kind: ActionKind, params: EntryRefParams) -> ActionOutcome:
    what = params.description or (f"{params.amount:g}" if params.amount is not None else params.id or "")
    return ActionOutcome.skipped(kind, f"I couldn't find an entry matching '{what}'.")


@registry.action(
    ActionKind.ADD_EXPENSE,
    description="Record money spent",
    category="finance",
    params_model=EntryParams,
)
async def add_expense(ctx: ActionContext, params: EntryParams) -> ActionOutcome:
    return await _create_entry(ctx, ActionKind.ADD_EXPENSE, "expense", params)


@registry.action(
    ActionKind.ADD_INCOME,
    description="Record money received",
    category="finance",
    params_model=EntryParams,
)
async def add_income(ctx: ActionContext, params: EntryParams) -> ActionOutcome:
    return await _create_entry(ctx, ActionKind.ADD_INCOME, "income", params)


@registry.action(
    ActionKind.ADD_SPECIAL_EXPENSE,
    description="Record a one-off expense outside the regular balance",
    category="finance",
    params_model=EntryParams,
)
async def add_special_expense(ctx: ActionContext, params: EntryParams) -> ActionOutcome:
    return await _create_entry(ctx, ActionKind.ADD_SPECIAL_EXPENSE, "expense", params, special=True)


@registry.action(
    ActionKind.ADD_SPECIAL_INCOME,
    description="Record a one-off income outside the regular balance",
    category="finance",
    params_model=EntryParams,
)
async def add_special_income(ctx: ActionContext, params: EntryParams) -> ActionOutcome:
    return await _create_entry(ctx, ActionKind.ADD_SPECIAL_INCOME, "income", params, special=True)


@registry.action(
    ActionKind.DELETE_EXPENSE,
    description="Delete a finance entry",
    category="finance",
    params_model=EntryRefParams,
)
async def delete_expense(ctx: ActionContext, params: EntryRefParams) -> ActionOutcome:
    match = await _find_entry(ctx, params)
    if match is None:
        return _not_found(ActionKind.DELETE_EXPENSE, params)
    entry: FinanceEntry = match.entity
    await ctx.stores.finance.delete(entry.id)
    note = ambiguity_note(match, _label)
    return ActionOutcome.done(
        ActionKind.DELETE_EXPENSE,
        f"Deleted {entry.type} '{_label(entry)}' ({entry.amount:g}){note}.",
        entry.id,
    )


async def _edit_entry(
    ctx: ActionContext, kind: ActionKind, entry_type: str, params: EditEntryParams
) -> ActionOutcome:
    match = await _find_entry(ctx, params, entry_type, by_amount=False)
    if match is None:
        return _not_found(kind, params)
    entry: FinanceEntry = match.entity

    changes = {
        "amount": params.new_amount,
        "category": params.category,
        "description": params.new_description,
        "date": entry_timestamp(params.date, ctx.today) if params.date else None,
    }
    if params.new_amount is None and params.amount is not None:
        changes["amount"] = params.amount
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        return ActionOutcome.skipped(kind, f"Nothing to change on '{_label(entry)}'.")

    await ctx.stores.finance.update(entry.id, changes)
    note = ambiguity_note(match, _label)
    return ActionOutcome.done(kind, f"Updated {entry_type} '{_label(entry)}'{note}.", entry.id)


@registry.action(
    ActionKind.EDIT_EXPENSE,
    description="Change an expense",
    category="finance",
    params_model=EditEntryParams,
)
async def edit_expense(ctx: ActionContext, params: EditEntryParams) -> ActionOutcome:
    return await _edit_entry(ctx, ActionKind.EDIT_EXPENSE, "expense", params)


@registry.action(
    ActionKind.EDIT_INCOME,
    description="Change an income entry",
    category="finance",
    params_model=EditEntryParams,
)
async def edit_income(ctx: ActionContext, params: EditEntryParams) -> ActionOutcome:
    return await _edit_entry(ctx, ActionKind.EDIT_INCOME, "income", params)


@registry.action(
    ActionKind.TOGGLE_SPECIAL,
    description="Flip whether an entry counts as special",
    category="finance",
    params_model=EntryRefParams,
)
async def toggle_special(ctx: ActionContext, params: EntryRefParams) -> ActionOutcome:
    match = await _find_entry(ctx, params)
    if match is None:
        return _not_found(ActionKind.TOGGLE_SPECIAL, params)
    entry: FinanceEntry = match.entity
    await ctx.stores.finance.update(entry.id, {"is_special": not entry.is_special})
    state = "regular" if entry.is_special else "special"
    return ActionOutcome.done(
        ActionKind.TOGGLE_SPECIAL, f"'{_label(entry)}' is now {state}.", entry.id
    )
