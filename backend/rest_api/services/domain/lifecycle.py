"""
Order and order-item status transitions.

Every status change, whether requested explicitly or triggered by a KOT
print, an item update or a payment, goes through `transition_order` /
`transition_item`, which check the transition tables in
shared.config.constants and raise InvalidTransitionError otherwise.
Nothing here commits: callers run these inside `transaction(db)`.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import TYPE_CHECKING

from shared.config.constants import (
    OrderItemStatus,
    OrderStatus,
    TableStatus,
    can_transition_item,
    can_transition_order,
)
from shared.utils.exceptions import InvalidTransitionError
from rest_api.models.base import as_utc, utc_now

if TYPE_CHECKING:
    from rest_api.models import Order, OrderItem, Table


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, rounded up."""
    seconds = (as_utc(end) - as_utc(start)).total_seconds()
    return max(0, math.ceil(seconds / 60))


def stamp_prep_started(order: "Order", now: datetime) -> None:
    if order.prep_started_at is None:
        order.prep_started_at = now


def stamp_prep_completed(order: "Order", now: datetime) -> None:
    """Record when the kitchen finished, once."""
    if order.prep_completed_at is not None:
        return
    order.prep_completed_at = now
    order.actual_minutes = elapsed_minutes(order.prep_started_at or order.created_at, now)


def transition_order(order: "Order", new_status: str, now: datetime | None = None) -> str:
    """
    Move an order to `new_status` and return the previous status.

    Raises:
        InvalidTransitionError: The move is not in ORDER_TRANSITIONS.
    """
    previous = order.status
    if not can_transition_order(previous, new_status):
        raise InvalidTransitionError("Order", previous, new_status, order_id=order.id)

    now = now or utc_now()
    order.status = new_status
    if new_status == OrderStatus.PREPARING:
        stamp_prep_started(order, now)
    elif new_status == OrderStatus.READY:
        stamp_prep_completed(order, now)
    return previous


def transition_item(item: "OrderItem", new_status: str, now: datetime | None = None) -> str:
    """
    Move one order line to `new_status` and return the previous status.

    Raises:
        InvalidTransitionError: The move is not in ORDER_ITEM_TRANSITIONS.
    """
    previous = item.status
    if not can_transition_item(previous, new_status):
        raise InvalidTransitionError("Order item", previous, new_status, order_item_id=item.id)

    now = now or utc_now()
    item.status = new_status
    if new_status == OrderItemStatus.READY:
        item.prepared_at = now
    elif new_status == OrderItemStatus.SERVED:
        item.served_at = now
    return previous


def roll_up(order: "Order", now: datetime | None = None) -> str | None:
    """
    Derive the order status from its items after an item changed.

    - an item in preparation moves a confirmed order to preparing
    - all items ready or served move a confirmed/preparing order to ready

    Returns the new order status when it changed, else None.
    """
    now = now or utc_now()
    changed = None

    if order.status == OrderStatus.CONFIRMED and any(
        item.status == OrderItemStatus.PREPARING for item in order.items
    ):
        transition_order(order, OrderStatus.PREPARING, now)
        changed = OrderStatus.PREPARING

    if order.status in (OrderStatus.CONFIRMED, OrderStatus.PREPARING) and all(
        item.status in OrderItemStatus.DONE for item in order.items
    ):
        transition_order(order, OrderStatus.READY, now)
        changed = OrderStatus.READY

    return changed


def occupy_table(table: "Table", order: "Order", now: datetime) -> None:
    table.status = TableStatus.OCCUPIED
    table.current_order_id = order.id
    table.occupied_at = now


def settle_table(table: "Table | None", order: "Order", now: datetime) -> bool:
    """
    Apply the table side effect of a terminal order status.

    completed: table goes to cleaning and its counters grow.
    cancelled: table becomes available again.
    The table is only released if this order is still the one seated
    there. Returns True when the table changed.
    """
    if table is None:
        return False

    if order.status == OrderStatus.COMPLETED:
        table.total_orders += 1
        table.total_revenue_cents += order.total_cents
        if table.current_order_id == order.id:
            table.release(TableStatus.CLEANING, now)
        return True

    if order.status == OrderStatus.CANCELLED and table.current_order_id == order.id:
        table.release(TableStatus.AVAILABLE, now)
        return True

    return False
