"""
Event Services - Real-time notifications for role rooms.

Routers schedule events through the `publish_*` helpers once a service
call has committed; publishing runs as a FastAPI background task.
"""

from .dispatch import (
    emit,
    publish_new_order,
    publish_order_status,
    publish_payment,
    publish_kot_printed,
    publish_item_status,
    publish_order_ready,
    publish_kot_completed,
    publish_status_change,
    publish_item_change,
    publish_table_status,
    publish_table_assignment,
    publish_low_stock,
    publish_inventory_updated,
    publish_settings,
    publish_backup_created,
)

__all__ = [
    "emit",
    # Orders
    "publish_new_order",
    "publish_order_status",
    "publish_payment",
    # Kitchen
    "publish_kot_printed",
    "publish_item_status",
    "publish_order_ready",
    "publish_kot_completed",
    # Composite
    "publish_status_change",
    "publish_item_change",
    # Tables
    "publish_table_status",
    "publish_table_assignment",
    # Inventory
    "publish_low_stock",
    "publish_inventory_updated",
    # Settings
    "publish_settings",
    "publish_backup_created",
]
