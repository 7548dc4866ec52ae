"""
Event Schema.

One envelope for every real-time notification. `entity` carries the
event payload, `actor` who caused it.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class Event:
    """
    Envelope published to role-room channels.

    Invalid envelopes are rejected at construction so nothing malformed
    reaches Redis.
    """

    type: str
    restaurant_id: str
    entity: dict[str, Any] = field(default_factory=dict)
    actor: dict[str, Any] = field(default_factory=dict)
    # Explicit rooms for events without a fixed audience (system-alert)
    target_roles: list[str] | None = None
    ts: str | None = None
    v: int = 1  # Schema version

    def __post_init__(self) -> None:
        if not self.type or not isinstance(self.type, str):
            raise ValueError("Event type must be a non-empty string")

        if not self.restaurant_id or not isinstance(self.restaurant_id, str):
            raise ValueError("Event restaurant_id must be a non-empty string")

        if self.entity is not None and not isinstance(self.entity, dict):
            raise ValueError("Event entity must be a dict or None")

        if self.actor is not None and not isinstance(self.actor, dict):
            raise ValueError("Event actor must be a dict or None")

        if self.target_roles is not None and not isinstance(self.target_roles, list):
            raise ValueError("Event target_roles must be a list or None")

    def to_json(self) -> str:
        """Serialize to JSON, stamping `ts` if unset."""
        data = asdict(self)
        data["entity"] = data["entity"] or {}
        data["actor"] = data["actor"] or {}
        data["ts"] = data["ts"] or datetime.now(timezone.utc).isoformat()
        return json.dumps(data, ensure_ascii=False, default=str)

    @classmethod
    def from_json(cls, json_str: str) -> "Event":
        data = json.loads(json_str)
        return cls(**data)
