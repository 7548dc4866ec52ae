"""
Redis Channel Naming.

One channel per role room: restaurant:{restaurant_id}:{role}.
"""

from __future__ import annotations

from shared.config.constants import Roles

CHANNEL_PREFIX = "restaurant"

# Pattern the WebSocket gateway subscribes with
ROLE_ROOM_PATTERN = f"{CHANNEL_PREFIX}:*:*"


def _validate_key(value: str, name: str) -> None:
    if not isinstance(value, str) or not value or ":" in value:
        raise ValueError(f"{name} must be a non-empty string without ':', got {value!r}")


def channel_role_room(restaurant_id: str, role: str) -> str:
    """Channel for every connection joined to `role` in a restaurant."""
    _validate_key(restaurant_id, "restaurant_id")
    if role not in Roles.ALL:
        raise ValueError(f"Unknown role {role!r}")
    return f"{CHANNEL_PREFIX}:{restaurant_id}:{role}"


def parse_role_room(channel: str) -> tuple[str, str] | None:
    """Inverse of channel_role_room: (restaurant_id, role), or None if not a room channel."""
    parts = channel.split(":")
    if len(parts) != 3 or parts[0] != CHANNEL_PREFIX or parts[2] not in Roles.ALL:
        return None
    return parts[1], parts[2]
