"""Inventory actions: purchases and sales flow into finance."""

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
from lifeos.stores.models import INVENTORY_STATUSES, InventoryItem

logger = logging.getLogger(__name__)

registry.rules(
    "inventory",
    """
INVENTORY RULES:
For ADD_INVENTORY: item_name (string), quantity (number, default 1), category (string), cost (optional number),
store (optional), purchase_date (optional), warranty_expiry (optional YYYY-MM-DD).
Set record_purchase true (with a cost) to also record the purchase as an expense.
For UPDATE_INVENTORY: item_name (to identify) and the fields to change (quantity, status, notes, warranty_expiry,
category). status is one of 'active'/'sold'/'disposed'/'lost'.
For SELL_INVENTORY: item_name and sale_price; a sale price is recorded as income.
For DELETE_INVENTORY: item_name.

Inventory Examples:
- "bought 5 pens" → ADD_INVENTORY with item_name "Pens", quantity 5
- "bought a keyboard for 3500" → ADD_INVENTORY with item_name "Keyboard", cost 3500, record_purchase true
- "sold my old phone for 8000" → SELL_INVENTORY with item_name "Phone", sale_price 8000
""",
)


class AddInventoryParams(ActionParams):
    item_name: Required
    category: Text = None
    quantity: Amount = None
    cost: Amount = None
    purchase_date: Text = None
    store: Text = None
    notes: Text = None
    warranty_expiry: Text = None
    record_purchase: Flag = None
    finance_category: Text = None


class ItemRefParams(ActionParams):
    id: Text = None
    item_name: Text = None


class UpdateInventoryParams(ItemRefParams):
    new_name: Text = None
    category: Text = None
    quantity: Amount = None
    cost: Amount = None
    store: Text = None
    notes: Text = None
    status: Text = None
    warranty_expiry: Text = None
    sale_price: Amount = None


class SellInventoryParams(ItemRefParams):
    sale_price: Amount = None


async def _find_item(ctx: ActionContext, params: ItemRefParams):  # noqa: ANN202
    items = await ctx.stores.inventory.list()
    return resolve(items, params.item_name, record_id=params.id, key=lambda i: i.item_name)


def _not_found(kind: ActionKind, params: ItemRefParams) -> ActionOutcome:
    return ActionOutcome.skipped(kind, f"I couldn't find an item matching '{params.item_name or params.id or ''}'.")


@registry.action(
    ActionKind.ADD_INVENTORY,
    description="Add an item to inventory (optionally recording the purchase)",
    category="inventory",
    params_model=AddInventoryParams,
)
async def add_inventory(ctx: ActionContext, params: AddInventoryParams) -> ActionOutcome:
    stores = ctx.stores
    fields = {
        "item_name": params.item_name,
        "category": params.category or "General",
        "quantity": int(params.quantity) if params.quantity and params.quantity > 0 else 1,
        "cost": params.cost,
        "purchase_date": resolve_date(params.purchase_date, ctx.today),
        "store": params.store,
        "notes": params.notes,
        "status": "active",
        "warranty_expiry": resolve_date(params.warranty_expiry, ctx.today),
    }

    if not (params.record_purchase and params.cost and params.cost > 0):
        item_id = await stores.inventory.create(fields)
        logger.info("Added inventory item: %s (%s)", params.item_name, item_id)
        return ActionOutcome.done(ActionKind.ADD_INVENTORY, f"Added {fields['quantity']} × {params.item_name} to inventory.", item_id)

    async with Saga("add inventory purchase") as saga:
        entry_id = await saga.run(
            "record purchase expense",
            lambda: stores.finance.create({
                "type": "expense",
                "amount": params.cost,
                "category": params.finance_category or "Shopping",
                "description": f"Purchase: {params.item_name}",
                "date": entry_timestamp(params.purchase_date, ctx.today),
                "is_special": False,
            }),
            compensate=stores.finance.delete,
        )
        item_id = await saga.run(
            "create inventory item",
            lambda: stores.inventory.create({**fields, "finance_entry_id": entry_id}),
            compensate=stores.inventory.delete,
        )

    logger.info("Added inventory item with purchase: %s (%s)", params.item_name, item_id)
    return ActionOutcome.done(
        ActionKind.ADD_INVENTORY,
        f"Added {params.item_name} to inventory and recorded the {params.cost:g} purchase.",
        item_id,
    )


async def _sell(ctx: ActionContext, item: InventoryItem, sale_price: float | None) -> str:
    stores = ctx.stores
    async with Saga("sell inventory item") as saga:
        await saga.run(
            "mark item sold",
            lambda: stores.inventory.mark_sold(item.id),
            compensate=lambda _: stores.inventory.update(item.id, {"status": item.status}),
        )
        if sale_price and sale_price > 0:
            await saga.run(
                "record sale income",
                lambda: stores.finance.create({
                    "type": "income",
                    "amount": sale_price,
                    "category": "Sales",
                    "description": f"Sold: {item.item_name}",
                    "date": entry_timestamp(None, ctx.today),
                    "is_special": False,
                }),
                compensate=stores.finance.delete,
            )
            return f"Marked {item.item_name} as sold and recorded {sale_price:g} income"
    return f"Marked {item.item_name} as sold"


@registry.action(
    ActionKind.SELL_INVENTORY,
    description="Mark an item sold and record the sale as income",
    category="inventory",
    params_model=SellInventoryParams,
)
async def sell_inventory(ctx: ActionContext, params: SellInventoryParams) -> ActionOutcome:
    match = await _find_item(ctx, params)
    if match is None:
        return _not_found(ActionKind.SELL_INVENTORY, params)
    item: InventoryItem = match.entity
    if item.status == "sold":
        return ActionOutcome.skipped(ActionKind.SELL_INVENTORY, f"{item.item_name} is already sold.")
    detail = await _sell(ctx, item, params.sale_price)
    note = ambiguity_note(match, lambda i: i.item_name)
    return ActionOutcome.done(ActionKind.SELL_INVENTORY, f"{detail}{note}.", item.id)


@registry.action(
    ActionKind.UPDATE_INVENTORY,
    description="Change an inventory item",
    category="inventory",
    params_model=UpdateInventoryParams,
)
async def update_inventory(ctx: ActionContext, params: UpdateInventoryParams) -> ActionOutcome:
    match = await _find_item(ctx, params)
    if match is None:
        return _not_found(ActionKind.UPDATE_INVENTORY, params)
    item: InventoryItem = match.entity
    note = ambiguity_note(match, lambda i: i.item_name)

    status = params.status.lower() if params.status else None
    if status == "sold" and item.status != "sold":
        detail = await _sell(ctx, item, params.sale_price)
        return ActionOutcome.done(ActionKind.UPDATE_INVENTORY, f"{detail}{note}.", item.id)

    changes = {
        "item_name": params.new_name,
        "category": params.category,
        "quantity": int(params.quantity) if params.quantity is not None else None,
        "cost": params.cost,
        "store": params.store,
        "notes": params.notes,
        "status": status if status in INVENTORY_STATUSES else None,
        "warranty_expiry": resolve_date(params.warranty_expiry, ctx.today),
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        return ActionOutcome.skipped(ActionKind.UPDATE_INVENTORY, f"Nothing to change on {item.item_name}.")

    await ctx.stores.inventory.update(item.id, changes)
    return ActionOutcome.done(ActionKind.UPDATE_INVENTORY, f"Updated {item.item_name}{note}.", item.id)


@registry.action(
    ActionKind.DELETE_INVENTORY,
    description="Remove an item from inventory",
    category="inventory",
    params_model=ItemRefParams,
)
async def delete_inventory(ctx: ActionContext, params: ItemRefParams) -> ActionOutcome:
    match = await _find_item(ctx, params)
    if match is None:
        return _not_found(ActionKind.DELETE_INVENTORY, params)
    item: InventoryItem = match.entity
    await ctx.stores.inventory.delete(item.id)
    note = ambiguity_note(match, lambda i: i.item_name)
    return ActionOutcome.done(ActionKind.DELETE_INVENTORY, f"Removed {item.item_name} from inventory{note}.", item.id)
