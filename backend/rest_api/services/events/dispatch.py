"""
Real-time event dispatch for REST handlers.

Routers call the `publish_*` helpers after the service has committed. Each
helper builds the payload from the committed rows right away and hands the
Redis fan-out to FastAPI BackgroundTasks, so the HTTP response never waits
on Redis and a Redis failure is only logged.
"""

from typing import Any, Iterable, Optional, TYPE_CHECKING

from shared.config.constants import EventType, OrderStatus
from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.infrastructure.events import Event, get_redis_client, publish_to_audience

if TYPE_CHECKING:
    from fastapi import BackgroundTasks

    from rest_api.models import AppSetting, InventoryItem, Order, SettingsBackup, StockMovement, Table, User

logger = get_logger(__name__)


async def _publish(event: Event) -> None:
    """Fan one event out to its role rooms. Failures are logged, never raised."""
    try:
        redis_client = await get_redis_client()
        channels = await publish_to_audience(redis_client, event)
        logger.debug("Event published", event_type=event.type, channels=channels)
    except Exception as e:
        logger.error(
            "Failed to publish event",
            event_type=event.type,
            error=str(e),
            error_type=type(e).__name__,
        )


def _actor(user: Optional["User"]) -> dict[str, Any]:
    if user is None:
        return {}
    return {"user_id": user.id, "role": user.role, "name": user.full_name}


def emit(
    background_tasks: "BackgroundTasks",
    event_type: str,
    entity: dict[str, Any],
    user: Optional["User"] = None,
    target_roles: Optional[list[str]] = None,
) -> Event:
    """Schedule one event for publishing once the response is sent."""
    event = Event(
        type=event_type,
        restaurant_id=settings.restaurant_id,
        entity=entity,
        actor=_actor(user),
        target_roles=target_roles,
    )
    background_tasks.add_task(_publish, event)
    return event


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


# =============================================================================
# Payloads
# =============================================================================


def order_summary(order: "Order") -> dict[str, Any]:
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "order_type": order.order_type,
        "status": order.status,
        "table_id": order.table_id,
        "table_number": order.table.table_number if order.table else None,
        "waiter_id": order.waiter_id,
        "total_cents": order.total_cents,
        "item_count": len(order.items),
    }


def ticket_items(order: "Order") -> list[dict[str, Any]]:
    return [
        {
            "name": item.name,
            "quantity": item.quantity,
            "variant": item.variant,
            "special_instructions": item.special_instructions,
        }
        for item in sorted(order.items, key=lambda i: i.position)
    ]


def table_summary(table: "Table") -> dict[str, Any]:
    return {
        "table_id": table.id,
        "table_number": table.table_number,
        "status": table.status,
        "current_order_id": table.current_order_id,
        "assigned_waiter_id": table.assigned_waiter_id,
    }


def stock_summary(item: "InventoryItem") -> dict[str, Any]:
    return {
        "item_id": item.id,
        "name": item.name,
        "sku": item.sku,
        "current_stock": item.current_stock,
        "reorder_level": item.reorder_level,
        "unit": item.unit,
    }


# =============================================================================
# Orders
# =============================================================================


def publish_new_order(background_tasks: "BackgroundTasks", order: "Order", user: "User") -> None:
    entity = order_summary(order)
    entity.update(
        items=ticket_items(order),
        special_instructions=order.special_instructions,
        created_at=_iso(order.created_at),
    )
    emit(background_tasks, EventType.NEW_ORDER, entity, user)


def publish_order_status(
    background_tasks: "BackgroundTasks",
    order: "Order",
    previous_status: str,
    user: "User",
) -> None:
    if order.status == previous_status:
        return
    entity = order_summary(order)
    entity["previous_status"] = previous_status
    emit(background_tasks, EventType.ORDER_STATUS_UPDATE, entity, user)


def publish_payment(background_tasks: "BackgroundTasks", order: "Order", amount_cents: int, method: str, user: "User") -> None:
    entity = order_summary(order)
    entity.update(
        amount_cents=amount_cents,
        method=method,
        paid_cents=order.paid_cents,
        payment_status=order.payment_status,
    )
    emit(background_tasks, EventType.PAYMENT_RECEIVED, entity, user)


# =============================================================================
# Kitchen
# =============================================================================


def publish_kot_printed(background_tasks: "BackgroundTasks", order: "Order", is_reprint: bool, user: "User") -> None:
    entity = order_summary(order)
    entity.update(
        kot_number=order.kot_number,
        kot_printed_at=_iso(order.kot_printed_at),
        is_reprint=is_reprint,
        reprint_count=len(order.kot_reprints),
        items=ticket_items(order),
    )
    emit(background_tasks, EventType.KOT_PRINTED, entity, user)


def publish_item_status(
    background_tasks: "BackgroundTasks",
    order: "Order",
    item_index: int,
    previous_item_status: str,
    user: "User",
) -> None:
    item = order.items[item_index]
    entity = order_summary(order)
    entity.update(
        kot_number=order.kot_number,
        item_index=item_index,
        item_name=item.name,
        item_status=item.status,
        previous_item_status=previous_item_status,
    )
    emit(background_tasks, EventType.KOT_ITEM_STATUS_UPDATE, entity, user)


def publish_order_ready(background_tasks: "BackgroundTasks", order: "Order", user: "User") -> None:
    entity = order_summary(order)
    entity.update(kot_number=order.kot_number, actual_minutes=order.actual_minutes)
    emit(background_tasks, EventType.ORDER_READY, entity, user)


def publish_kot_completed(background_tasks: "BackgroundTasks", order: "Order", user: "User") -> None:
    entity = order_summary(order)
    entity.update(
        kot_number=order.kot_number,
        actual_minutes=order.actual_minutes,
        prep_completed_at=_iso(order.prep_completed_at),
    )
    emit(background_tasks, EventType.KOT_COMPLETED, entity, user)


# =============================================================================
# Composite changes
# =============================================================================


def publish_status_change(background_tasks: "BackgroundTasks", change, user: "User") -> None:
    """
    Events for a StatusChange: the order move, order-ready when it just
    became ready, and its table when that moved too.
    """
    order = change.order
    publish_order_status(background_tasks, order, change.previous_status, user)
    if order.status == OrderStatus.READY and change.previous_status != OrderStatus.READY:
        publish_order_ready(background_tasks, order, user)
    if change.table_changed:
        publish_table_status(background_tasks, order.table, user)


def publish_item_change(background_tasks: "BackgroundTasks", change, user: "User") -> None:
    """Events for an ItemStatusChange, including the roll-up into the order."""
    publish_item_status(background_tasks, change.order, change.item_index, change.previous_item_status, user)
    if change.rolled_up_to:
        publish_order_status(background_tasks, change.order, change.previous_order_status, user)
        if change.rolled_up_to == OrderStatus.READY:
            publish_order_ready(background_tasks, change.order, user)


# =============================================================================
# Tables
# =============================================================================


def publish_table_status(background_tasks: "BackgroundTasks", table: Optional["Table"], user: Optional["User"]) -> None:
    if table is None:
        return
    emit(background_tasks, EventType.TABLE_STATUS_UPDATE, table_summary(table), user)


def publish_table_assignment(background_tasks: "BackgroundTasks", table: "Table", user: "User") -> None:
    entity = table_summary(table)
    waiter = table.assigned_waiter
    entity["waiter_name"] = waiter.full_name if waiter else None
    emit(background_tasks, EventType.TABLE_ASSIGNMENT, entity, user)


# =============================================================================
# Inventory
# =============================================================================


def publish_low_stock(background_tasks: "BackgroundTasks", items: Iterable["InventoryItem"], user: Optional["User"]) -> None:
    for item in items:
        emit(background_tasks, EventType.LOW_STOCK_ALERT, stock_summary(item), user)


def publish_inventory_updated(
    background_tasks: "BackgroundTasks",
    item: "InventoryItem",
    movement: "StockMovement",
    user: "User",
) -> None:
    entity = stock_summary(item)
    entity.update(movement_type=movement.type, quantity=movement.quantity, movement_id=movement.id)
    emit(background_tasks, EventType.INVENTORY_UPDATED, entity, user)


# =============================================================================
# Settings
# =============================================================================


def publish_settings(background_tasks: "BackgroundTasks", setting: "AppSetting", user: "User", reset: bool = False) -> None:
    event_type = EventType.SETTINGS_RESET if reset else EventType.SETTINGS_UPDATED
    entity = {
        "category": setting.category,
        "settings": setting.settings,
        "updated_by_id": setting.updated_by_id,
        "updated_at": _iso(setting.updated_at),
    }
    emit(background_tasks, event_type, entity, user)


def publish_backup_created(background_tasks: "BackgroundTasks", backup: "SettingsBackup", user: "User") -> None:
    entity = {
        "backup_id": backup.id,
        "name": backup.name,
        "size_bytes": backup.size_bytes,
        "created_at": _iso(backup.created_at),
    }
    emit(background_tasks, EventType.BACKUP_CREATED, entity, user)
