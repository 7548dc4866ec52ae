"""
Centralized constants for the backend application.

Usage:
    from shared.config.constants import Roles, OrderStatus, can_transition_order

    if role in MANAGEMENT_ROLES:
        ...

    if not can_transition_order(order.status, OrderStatus.READY):
        ...
"""

from typing import Final


# =============================================================================
# User Roles
# =============================================================================


class Roles:
    """User role constants."""

    ADMIN: Final[str] = "admin"
    MANAGER: Final[str] = "manager"
    CASHIER: Final[str] = "cashier"
    WAITER: Final[str] = "waiter"
    KITCHEN_STAFF: Final[str] = "kitchen_staff"
    CUSTOMER: Final[str] = "customer"

    ALL: Final[list[str]] = [ADMIN, MANAGER, CASHIER, WAITER, KITCHEN_STAFF, CUSTOMER]
    STAFF: Final[list[str]] = [ADMIN, MANAGER, CASHIER, WAITER, KITCHEN_STAFF]


MANAGEMENT_ROLES: Final[frozenset[str]] = frozenset({Roles.ADMIN, Roles.MANAGER})


# =============================================================================
# Permission model
# =============================================================================


class Modules:
    """Permission modules a user can be granted actions on."""

    DASHBOARD: Final[str] = "dashboard"
    SALES: Final[str] = "sales"
    MENU: Final[str] = "menu"
    INVENTORY: Final[str] = "inventory"
    REPORTS: Final[str] = "reports"
    USERS: Final[str] = "users"
    TABLES: Final[str] = "tables"
    KOT: Final[str] = "kot"
    ORDERS: Final[str] = "orders"

    ALL: Final[list[str]] = [DASHBOARD, SALES, MENU, INVENTORY, REPORTS, USERS, TABLES, KOT, ORDERS]


class Actions:
    """CRUD actions inside a permission module."""

    CREATE: Final[str] = "create"
    READ: Final[str] = "read"
    UPDATE: Final[str] = "update"
    DELETE: Final[str] = "delete"

    ALL: Final[list[str]] = [CREATE, READ, UPDATE, DELETE]


_C, _R, _U, _D = Actions.CREATE, Actions.READ, Actions.UPDATE, Actions.DELETE

# Role defaults applied when a user has no explicit permission rows.
DEFAULT_ROLE_PERMISSIONS: Final[dict[str, dict[str, frozenset[str]]]] = {
    Roles.ADMIN: {module: frozenset(Actions.ALL) for module in Modules.ALL},
    Roles.MANAGER: {
        Modules.DASHBOARD: frozenset({_R}),
        Modules.SALES: frozenset({_C, _R, _U}),
        Modules.MENU: frozenset({_R, _U}),
        Modules.INVENTORY: frozenset({_C, _R, _U}),
        Modules.REPORTS: frozenset({_R}),
        Modules.USERS: frozenset({_R}),
        Modules.TABLES: frozenset({_R, _U}),
        Modules.KOT: frozenset({_C, _R, _U}),
        Modules.ORDERS: frozenset({_C, _R, _U, _D}),
    },
    Roles.CASHIER: {
        Modules.DASHBOARD: frozenset({_R}),
        Modules.SALES: frozenset({_C, _R}),
        Modules.MENU: frozenset({_R}),
        Modules.TABLES: frozenset({_R, _U}),
        Modules.KOT: frozenset({_C, _R}),
        Modules.ORDERS: frozenset({_C, _R, _U, _D}),
    },
    Roles.WAITER: {
        Modules.DASHBOARD: frozenset({_R}),
        Modules.MENU: frozenset({_R}),
        Modules.TABLES: frozenset({_R, _U}),
        Modules.KOT: frozenset({_C, _R}),
        Modules.ORDERS: frozenset({_C, _R, _U}),
    },
    Roles.KITCHEN_STAFF: {
        Modules.DASHBOARD: frozenset({_R}),
        Modules.KOT: frozenset({_C, _R, _U}),
        Modules.ORDERS: frozenset({_R, _U}),
    },
    Roles.CUSTOMER: {
        Modules.MENU: frozenset({_R}),
        Modules.ORDERS: frozenset({_C, _R}),
    },
}


# =============================================================================
# Entity Status Constants
# =============================================================================


class OrderStatus:
    """Order lifecycle status constants."""

    PENDING: Final[str] = "pending"
    CONFIRMED: Final[str] = "confirmed"
    PREPARING: Final[str] = "preparing"
    READY: Final[str] = "ready"
    SERVED: Final[str] = "served"
    COMPLETED: Final[str] = "completed"
    CANCELLED: Final[str] = "cancelled"

    ALL: Final[list[str]] = [PENDING, CONFIRMED, PREPARING, READY, SERVED, COMPLETED, CANCELLED]
    TERMINAL: Final[list[str]] = [COMPLETED, CANCELLED]
    KITCHEN_QUEUE: Final[list[str]] = [PENDING, CONFIRMED, PREPARING]
    AWAITING_SETTLEMENT: Final[list[str]] = [READY, SERVED]


class OrderItemStatus:
    """Per-line kitchen status."""

    PENDING: Final[str] = "pending"
    PREPARING: Final[str] = "preparing"
    READY: Final[str] = "ready"
    SERVED: Final[str] = "served"

    ALL: Final[list[str]] = [PENDING, PREPARING, READY, SERVED]
    DONE: Final[frozenset[str]] = frozenset({READY, SERVED})
    # The kitchen surface never marks an item served
    KITCHEN: Final[list[str]] = [PENDING, PREPARING, READY]


class OrderType:
    DINE_IN: Final[str] = "dine_in"
    TAKEAWAY: Final[str] = "takeaway"
    DELIVERY: Final[str] = "delivery"
    ONLINE: Final[str] = "online"

    ALL: Final[list[str]] = [DINE_IN, TAKEAWAY, DELIVERY, ONLINE]


class OrderSource:
    POS: Final[str] = "pos"
    WEBSITE: Final[str] = "website"
    MOBILE_APP: Final[str] = "mobile_app"
    PHONE: Final[str] = "phone"
    WALK_IN: Final[str] = "walk_in"

    ALL: Final[list[str]] = [POS, WEBSITE, MOBILE_APP, PHONE, WALK_IN]


class DiscountType:
    PERCENTAGE: Final[str] = "percentage"
    FIXED: Final[str] = "fixed"
    COUPON: Final[str] = "coupon"

    ALL: Final[list[str]] = [PERCENTAGE, FIXED, COUPON]


class PaymentStatus:
    """Order-level settlement status."""

    PENDING: Final[str] = "pending"
    PARTIAL: Final[str] = "partial"
    PAID: Final[str] = "paid"
    REFUNDED: Final[str] = "refunded"

    ALL: Final[list[str]] = [PENDING, PARTIAL, PAID, REFUNDED]


class PaymentMethod:
    CASH: Final[str] = "cash"
    CARD: Final[str] = "card"
    UPI: Final[str] = "upi"
    WALLET: Final[str] = "wallet"
    ONLINE: Final[str] = "online"

    ALL: Final[list[str]] = [CASH, CARD, UPI, WALLET, ONLINE]


class PaymentEntryStatus:
    """Status of a single entry in the payments ledger."""

    SUCCESS: Final[str] = "success"
    FAILED: Final[str] = "failed"
    PENDING: Final[str] = "pending"

    ALL: Final[list[str]] = [SUCCESS, FAILED, PENDING]


class TableStatus:
    AVAILABLE: Final[str] = "available"
    OCCUPIED: Final[str] = "occupied"
    RESERVED: Final[str] = "reserved"
    CLEANING: Final[str] = "cleaning"
    OUT_OF_ORDER: Final[str] = "out_of_order"

    ALL: Final[list[str]] = [AVAILABLE, OCCUPIED, RESERVED, CLEANING, OUT_OF_ORDER]


class TableLocation:
    INDOOR: Final[str] = "indoor"
    OUTDOOR: Final[str] = "outdoor"
    PRIVATE_ROOM: Final[str] = "private_room"
    BAR: Final[str] = "bar"
    PATIO: Final[str] = "patio"

    ALL: Final[list[str]] = [INDOOR, OUTDOOR, PRIVATE_ROOM, BAR, PATIO]


class InventoryCategory:
    ALL: Final[list[str]] = ["ingredients", "beverages", "supplies", "raw_materials", "packaging"]


class InventoryUnit:
    ALL: Final[list[str]] = ["kg", "g", "l", "ml", "pieces", "packets", "boxes", "bottles"]


class MovementType:
    """Stock movement types. Inbound types add to stock, the rest subtract."""

    PURCHASE: Final[str] = "purchase"
    USAGE: Final[str] = "usage"
    WASTAGE: Final[str] = "wastage"
    ADJUSTMENT: Final[str] = "adjustment"
    RETURN: Final[str] = "return"
    TRANSFER: Final[str] = "transfer"

    ALL: Final[list[str]] = [PURCHASE, USAGE, WASTAGE, ADJUSTMENT, RETURN, TRANSFER]
    # Types accepted by the manual stock-update endpoint
    MANUAL: Final[list[str]] = [PURCHASE, USAGE, WASTAGE, ADJUSTMENT, RETURN]
    INBOUND: Final[frozenset[str]] = frozenset({PURCHASE, RETURN})


class PurchaseOrderStatus:
    DRAFT: Final[str] = "draft"
    SENT: Final[str] = "sent"
    CONFIRMED: Final[str] = "confirmed"
    PARTIAL: Final[str] = "partial"
    RECEIVED: Final[str] = "received"
    CANCELLED: Final[str] = "cancelled"

    ALL: Final[list[str]] = [DRAFT, SENT, CONFIRMED, PARTIAL, RECEIVED, CANCELLED]


class SettingsCategory:
    RESTAURANT: Final[str] = "restaurant"
    SYSTEM: Final[str] = "system"
    NOTIFICATION: Final[str] = "notification"
    PAYMENT: Final[str] = "payment"
    UI: Final[str] = "ui"

    ALL: Final[list[str]] = [RESTAURANT, SYSTEM, NOTIFICATION, PAYMENT, UI]


# =============================================================================
# Status Transitions
# =============================================================================

# Valid order status transitions (from -> [allowed to states])
# Flow: pending → confirmed → preparing → ready → served → completed
ORDER_TRANSITIONS: Final[dict[str, list[str]]] = {
    OrderStatus.PENDING: [OrderStatus.CONFIRMED, OrderStatus.CANCELLED],
    # Orders with nothing to cook can skip preparing
    OrderStatus.CONFIRMED: [OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.CANCELLED],
    OrderStatus.PREPARING: [OrderStatus.READY, OrderStatus.CANCELLED],
    # Takeaway orders are settled straight from ready
    OrderStatus.READY: [OrderStatus.SERVED, OrderStatus.COMPLETED, OrderStatus.CANCELLED],
    OrderStatus.SERVED: [OrderStatus.COMPLETED, OrderStatus.CANCELLED],
    OrderStatus.COMPLETED: [],  # Terminal state
    OrderStatus.CANCELLED: [],  # Terminal state
}

ORDER_ITEM_TRANSITIONS: Final[dict[str, list[str]]] = {
    OrderItemStatus.PENDING: [OrderItemStatus.PREPARING, OrderItemStatus.READY],
    OrderItemStatus.PREPARING: [OrderItemStatus.READY],
    OrderItemStatus.READY: [OrderItemStatus.SERVED],
    OrderItemStatus.SERVED: [],
}


def can_transition_order(current_status: str, new_status: str) -> bool:
    """Return True if the order may move from current_status to new_status."""
    return new_status in ORDER_TRANSITIONS.get(current_status, [])


def can_transition_item(current_status: str, new_status: str) -> bool:
    """Return True if an order item may move from current_status to new_status."""
    return new_status in ORDER_ITEM_TRANSITIONS.get(current_status, [])


# =============================================================================
# Validation Constants
# =============================================================================


class Limits:
    """Validation limits."""

    MIN_QUANTITY: Final[int] = 1
    MAX_QUANTITY: Final[int] = 99

    MIN_TABLE_CAPACITY: Final[int] = 1
    MAX_TABLE_CAPACITY: Final[int] = 20

    # Money (in cents)
    MAX_PRICE_CENTS: Final[int] = 100_000_00

    MAX_NAME_LENGTH: Final[int] = 200
    MAX_NOTES_LENGTH: Final[int] = 1000
    MAX_SEARCH_TERM_LENGTH: Final[int] = 100

    # Pagination defaults
    DEFAULT_PAGE_SIZE: Final[int] = 20
    KOT_HISTORY_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 200

    # Numbering: ORD-YYYYMMDD-NNNN
    SEQUENCE_PAD: Final[int] = 4


class NumberPrefix:
    ORDER: Final[str] = "ORD"
    KOT: Final[str] = "KOT"
    PURCHASE_ORDER: Final[str] = "PO"


# =============================================================================
# Event Types (Redis / WebSocket)
# =============================================================================


class EventType:
    """Real-time event names delivered to role rooms."""

    # Orders
    NEW_ORDER: Final[str] = "new-order"
    ORDER_STATUS_UPDATE: Final[str] = "order-status-update"
    PAYMENT_RECEIVED: Final[str] = "payment-received"

    # Kitchen
    KOT_PRINTED: Final[str] = "kot-printed"
    KOT_ITEM_STATUS_UPDATE: Final[str] = "kot-item-status-update"
    ORDER_READY: Final[str] = "order-ready"
    KOT_COMPLETED: Final[str] = "kot-completed"

    # Inventory
    LOW_STOCK_ALERT: Final[str] = "low-stock-alert"
    INVENTORY_UPDATED: Final[str] = "inventory-updated"

    # Tables
    TABLE_STATUS_UPDATE: Final[str] = "table-status-update"
    TABLE_ASSIGNMENT: Final[str] = "table-assignment"

    # Settings
    SETTINGS_UPDATED: Final[str] = "settings-updated"
    SETTINGS_RESET: Final[str] = "settings-reset"
    BACKUP_CREATED: Final[str] = "backup-created"

    # System
    SYSTEM_ALERT: Final[str] = "system-alert"
    SYSTEM_HEARTBEAT: Final[str] = "system-heartbeat"
    USER_JOINED: Final[str] = "user-joined"
    USER_LEFT: Final[str] = "user-left"


# =============================================================================
# Error messages
# =============================================================================


class ErrorMessages:
    """User-facing error messages."""

    NOT_AUTHENTICATED: Final[str] = "Not authorized, no token"
    INVALID_TOKEN: Final[str] = "Not authorized, token failed"
    TOKEN_EXPIRED: Final[str] = "Token has expired"
    USER_INACTIVE: Final[str] = "User account is deactivated"
    INSUFFICIENT_PERMISSIONS: Final[str] = "Insufficient permissions"
    INVALID_CREDENTIALS: Final[str] = "Invalid credentials"

    MENU_ITEM_NOT_FOUND: Final[str] = "Menu item not found"
    ITEM_UNAVAILABLE: Final[str] = "{name} is currently unavailable"
    TABLE_REQUIRED: Final[str] = "Table is required for dine-in orders"
    ORDER_TYPE_AND_ITEMS_REQUIRED: Final[str] = "Order type and items are required"
    INVALID_ITEM_INDEX: Final[str] = "Invalid item index"
    CANNOT_CANCEL: Final[str] = "Cannot cancel completed or already cancelled order"
    INSUFFICIENT_STOCK: Final[str] = "Insufficient stock"
    RATE_LIMIT_EXCEEDED: Final[str] = "Too many requests. Please try again later."
