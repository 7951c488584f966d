"""Task actions, including completion side effects on finance and savings."""

from __future__ import annotations

import logging

from lifeos.actions.base import (
    ActionContext,
    ActionOutcome,
    ActionParams,
    Amount,
    Flag,
    Required,
    Text,
    entry_timestamp,
    resolve_date,
)
from lifeos.actions.kinds import ActionKind
from lifeos.actions.registry import registry
from lifeos.actions.resolve import ambiguity_note, resolve
from lifeos.actions.saga import Saga
from lifeos.stores.models import TASK_CONTEXTS, TASK_PRIORITIES, TASK_STATUSES, Budget, Task

logger = logging.getLogger(__name__)

registry.rules(
    "tasks",
    """
TASK RULES:
For ADD_TASK, data must include:
- title (string, required)
- priority (optional: 'low'/'medium'/'high'/'urgent', default medium)
- due_date (optional YYYY-MM-DD, default today)
- context_type (optional: 'general'/'study'/'finance'/'habit'/'project')
- expected_cost (optional number, for finance-linked tasks)
- finance_type (optional: 'income'/'expense', default expense when expected_cost is set)
- budget_name / savings_name (optional: which budget or savings goal to link)
- start_time/end_time (optional HH:MM), estimated_duration (optional minutes)
For UPDATE_TASK: id or title (to find the task), new_title to rename, and any fields to change.
For DELETE_TASK and COMPLETE_TASK: id or title.
Completing a finance-linked task automatically records the expected_cost in finance.

Task Examples:
- "add task buy groceries" → ADD_TASK with title "Buy groceries"
- "remind me to call mom tomorrow" → ADD_TASK with title "Call mom", due_date tomorrow
- "add expense task shopping for 500 taka" → ADD_TASK with title "Shopping", expected_cost 500, finance_type "expense"
- "complete the groceries task" → COMPLETE_TASK with title "groceries"
""",
)


class AddTaskParams(ActionParams):
    title: Required
    description: Text = None
    priority: Text = None
    due_date: Text = None
    context_type: Text = None
    context_id: Text = None
    budget_id: Text = None
    budget_name: Text = None
    savings_name: Text = None
    expected_cost: Amount = None
    finance_type: Text = None
    start_time: Text = None
    end_time: Text = None
    estimated_duration: Amount = None


class TaskRefParams(ActionParams):
    id: Text = None
    title: Text = None


class UpdateTaskParams(TaskRefParams):
    new_title: Text = None
    description: Text = None
    priority: Text = None
    status: Text = None
    due_date: Text = None
    context_type: Text = None
    expected_cost: Amount = None
    finance_type: Text = None
    start_time: Text = None
    end_time: Text = None
    estimated_duration: Amount = None
    is_pinned: Flag = None


def _pick_goal(goals: list[Budget], name: str | None) -> Budget | None:
    """The goal matching *name*, or the first one when nothing matches."""
    if not goals:
        return None
    match = resolve(goals, name, key=lambda g: g.name)
    return match.entity if match else goals[0]


async def _find_task(ctx: ActionContext, params: TaskRefParams):  # noqa: ANN202
    tasks = await ctx.stores.tasks.list()
    return resolve(tasks, params.title, record_id=params.id)


def _not_found(kind: ActionKind, params: TaskRefParams) -> ActionOutcome:
    return ActionOutcome.skipped(kind, f"I couldn't find a task matching '{params.title or params.id or ''}'.")


@registry.action(
    ActionKind.ADD_TASK,
    description="Create a task",
    category="tasks",
    params_model=AddTaskParams,
)
async def add_task(ctx: ActionContext, params: AddTaskParams) -> ActionOutcome:
    fields = {
        "title": params.title,
        "description": params.description,
        "status": "todo",
        "priority": params.priority if params.priority in TASK_PRIORITIES else "medium",
        "due_date": resolve_date(params.due_date, ctx.today) or ctx.today.isoformat(),
        "context_type": params.context_type if params.context_type in TASK_CONTEXTS else "general",
        "context_id": params.context_id,
        "budget_id": params.budget_id,
        "start_time": params.start_time,
        "end_time": params.end_time,
        "estimated_duration": int(params.estimated_duration) if params.estimated_duration else None,
    }

    cost = params.expected_cost
    if cost and cost > 0:
        finance_type = params.finance_type if params.finance_type in ("income", "expense") else "expense"
        fields.update(context_type="finance", expected_cost=cost, finance_type=finance_type)
        if finance_type == "expense" and not params.budget_id:
            budget = _pick_goal(await ctx.stores.budgets.budgets(), params.budget_name)
            fields["budget_id"] = budget.id if budget else None
        elif finance_type == "income" and not params.context_id:
            goal = _pick_goal(await ctx.stores.budgets.savings_goals(), params.savings_name)
            fields["context_id"] = goal.id if goal else None

    task_id = await ctx.stores.tasks.create(fields)
    logger.info("Added task: %s (%s)", params.title, task_id)
    return ActionOutcome.done(ActionKind.ADD_TASK, f"Added task '{params.title}'.", task_id)


@registry.action(
    ActionKind.UPDATE_TASK,
    description="Change fields of an existing task",
    category="tasks",
    params_model=UpdateTaskParams,
)
async def update_task(ctx: ActionContext, params: UpdateTaskParams) -> ActionOutcome:
    match = await _find_task(ctx, params)
    if match is None:
        return _not_found(ActionKind.UPDATE_TASK, params)
    task: Task = match.entity

    changes = {
        "title": params.new_title,
        "description": params.description,
        "priority": params.priority if params.priority in TASK_PRIORITIES else None,
        "status": params.status if params.status in TASK_STATUSES else None,
        "due_date": resolve_date(params.due_date, ctx.today),
        "context_type": params.context_type if params.context_type in TASK_CONTEXTS else None,
        "expected_cost": params.expected_cost,
        "finance_type": params.finance_type if params.finance_type in ("income", "expense") else None,
        "start_time": params.start_time,
        "end_time": params.end_time,
        "estimated_duration": int(params.estimated_duration) if params.estimated_duration else None,
        "is_pinned": params.is_pinned,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        return ActionOutcome.skipped(ActionKind.UPDATE_TASK, f"Nothing to change on '{task.title}'.")

    await ctx.stores.tasks.update(task.id, changes)
    note = ambiguity_note(match, lambda t: t.title)
    return ActionOutcome.done(ActionKind.UPDATE_TASK, f"Updated '{task.title}'{note}.", task.id)


@registry.action(
    ActionKind.DELETE_TASK,
    description="Delete a task",
    category="tasks",
    params_model=TaskRefParams,
)
async def delete_task(ctx: ActionContext, params: TaskRefParams) -> ActionOutcome:
    match = await _find_task(ctx, params)
    if match is None:
        return _not_found(ActionKind.DELETE_TASK, params)
    task: Task = match.entity
    await ctx.stores.tasks.delete(task.id)
    note = ambiguity_note(match, lambda t: t.title)
    return ActionOutcome.done(ActionKind.DELETE_TASK, f"Deleted '{task.title}'{note}.", task.id)


@registry.action(
    ActionKind.COMPLETE_TASK,
    description="Mark a task done (finance-linked tasks also record money)",
    category="tasks",
    params_model=TaskRefParams,
)
async def complete_task(ctx: ActionContext, params: TaskRefParams) -> ActionOutcome:
    match = await _find_task(ctx, params)
    if match is None:
        return _not_found(ActionKind.COMPLETE_TASK, params)
    task: Task = match.entity
    if task.is_done:
        return ActionOutcome.skipped(ActionKind.COMPLETE_TASK, f"'{task.title}' is already done.")

    stores = ctx.stores
    prior_status = task.status
    detail = f"Completed '{task.title}'"
    extra = ""
    async with Saga("complete task") as saga:
        await saga.run(
            "mark task done",
            lambda: stores.tasks.mark_done(task.id, ctx.now.isoformat()),
            compensate=lambda _: stores.tasks.reopen(task.id, prior_status),
        )

        if task.is_finance_linked:
            cost = task.expected_cost
            entry_type = task.finance_type or "expense"
            await saga.run(
                "record finance entry",
                lambda: stores.finance.create({
                    "type": entry_type,
                    "amount": cost,
                    "category": task.title,
                    "description": task.description or f"From task: {task.title}",
                    "date": entry_timestamp(None, ctx.today),
                    "is_special": False,
                }),
                compensate=stores.finance.delete,
            )
            detail += f" and recorded {entry_type} of {cost:g}"

            goal_id = task.context_id if entry_type == "income" else None
            if goal_id and await stores.budgets.get(goal_id) is None:
                logger.warning("Task %s links to missing savings goal %s", task.id, goal_id)
                extra = " (the linked savings goal no longer exists, so nothing was deposited)"
            elif goal_id:
                await saga.run(
                    "deposit into savings goal",
                    lambda: stores.budgets.add_to_savings(goal_id, cost),
                    compensate=lambda _: stores.budgets.add_to_savings(goal_id, -cost),
                )

    note = ambiguity_note(match, lambda t: t.title)
    return ActionOutcome.done(ActionKind.COMPLETE_TASK, f"{detail}{note}{extra}.", task.id)
