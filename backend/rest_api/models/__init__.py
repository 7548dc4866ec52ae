"""
SQLAlchemy ORM Models Package.

- base: Base class, TimestampMixin, AuditMixin
- user: User, UserPermission
- menu: Category, MenuItem, MenuItemVariant, MenuItemAddOn, RecipeIngredient
- table: Table
- order: Order, OrderItem, OrderItemAddOn, OrderPayment, KotReprint
- inventory: InventoryItem, StockMovement, PurchaseOrder, PurchaseOrderLine
- settings: AppSetting, SettingsBackup, DailyCounter
"""

from .base import Base, TimestampMixin, AuditMixin, UtcDateTime, utc_now, as_utc

from .user import User, UserPermission

from .menu import Category, MenuItem, MenuItemVariant, MenuItemAddOn, RecipeIngredient

from .table import Table

from .order import Order, OrderItem, OrderItemAddOn, OrderPayment, KotReprint

from .inventory import InventoryItem, StockMovement, PurchaseOrder, PurchaseOrderLine

from .settings import AppSetting, SettingsBackup, DailyCounter

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "AuditMixin",
    "UtcDateTime",
    "utc_now",
    "as_utc",
    # Users
    "User",
    "UserPermission",
    # Menu
    "Category",
    "MenuItem",
    "MenuItemVariant",
    "MenuItemAddOn",
    "RecipeIngredient",
    # Tables
    "Table",
    # Orders
    "Order",
    "OrderItem",
    "OrderItemAddOn",
    "OrderPayment",
    "KotReprint",
    # Inventory
    "InventoryItem",
    "StockMovement",
    "PurchaseOrder",
    "PurchaseOrderLine",
    # Settings
    "AppSetting",
    "SettingsBackup",
    "DailyCounter",
]
