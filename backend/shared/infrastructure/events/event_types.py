"""
Event Type Constants and audiences.

Each event type is delivered to a fixed set of role rooms.
"""

from typing import Final

from shared.config.constants import EventType, Roles
from shared.config.settings import settings

# =============================================================================
# Audience table: event type -> role rooms it fans out to
# =============================================================================

_KITCHEN_DESK: Final[tuple[str, ...]] = (Roles.KITCHEN_STAFF, Roles.MANAGER, Roles.ADMIN)
_FLOOR: Final[tuple[str, ...]] = (Roles.WAITER, Roles.MANAGER, Roles.ADMIN)
_KITCHEN_TO_FLOOR: Final[tuple[str, ...]] = (Roles.KITCHEN_STAFF, Roles.WAITER, Roles.MANAGER)
_BACK_OFFICE: Final[tuple[str, ...]] = (Roles.MANAGER, Roles.ADMIN)
_ADMIN_ONLY: Final[tuple[str, ...]] = (Roles.ADMIN,)

EVENT_AUDIENCES: Final[dict[str, tuple[str, ...]]] = {
    # Orders
    EventType.NEW_ORDER: _KITCHEN_DESK,
    EventType.ORDER_STATUS_UPDATE: _FLOOR,
    EventType.PAYMENT_RECEIVED: _BACK_OFFICE,
    # Kitchen
    EventType.KOT_PRINTED: _KITCHEN_DESK,
    EventType.KOT_ITEM_STATUS_UPDATE: _KITCHEN_TO_FLOOR,
    EventType.ORDER_READY: _KITCHEN_TO_FLOOR,
    EventType.KOT_COMPLETED: _KITCHEN_TO_FLOOR,
    # Inventory
    EventType.LOW_STOCK_ALERT: _BACK_OFFICE,
    EventType.INVENTORY_UPDATED: _KITCHEN_DESK,
    # Tables
    EventType.TABLE_STATUS_UPDATE: _FLOOR,
    EventType.TABLE_ASSIGNMENT: _FLOOR,
    # Settings
    EventType.SETTINGS_UPDATED: _ADMIN_ONLY,
    EventType.SETTINGS_RESET: _ADMIN_ONLY,
    EventType.BACKUP_CREATED: _ADMIN_ONLY,
}


def audience_for(event_type: str) -> tuple[str, ...]:
    """Role rooms an event type is delivered to (empty for unrouted types)."""
    return EVENT_AUDIENCES.get(event_type, ())


# =============================================================================
# Size limits
# =============================================================================

# Same bound the WebSocket gateway enforces on frames
MAX_EVENT_SIZE: Final[int] = settings.ws_max_message_size
