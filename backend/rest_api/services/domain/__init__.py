"""
Domain Services.

Services hold the business rules and own the transaction boundary of each
operation. Routers stay thin: parse the request, call one service method,
build the response and schedule events.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Model (entity)

Usage:
    from rest_api.services.domain import OrderService

    # In router
    service = OrderService(db)
    result = service.create_order(body, user, idempotency_key)
"""

from .order_service import OrderService, CreateOrderResult, StatusChange, ItemStatusChange
from .kot_service import KotService, KotPrint
from .table_service import TableService
from .inventory_service import InventoryService
from .menu_service import MenuService
from .user_service import UserService
from .settings_service import SettingsService

__all__ = [
    # Orders and kitchen
    "OrderService",
    "CreateOrderResult",
    "StatusChange",
    "ItemStatusChange",
    "KotService",
    "KotPrint",
    # Floor and stock
    "TableService",
    "InventoryService",
    # Back office
    "MenuService",
    "UserService",
    "SettingsService",
]
