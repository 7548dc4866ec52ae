"""
Redis pub/sub subscriber for the WebSocket gateway.
Listens on every role-room channel and hands events to the gateway.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable

from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.infrastructure.events import ROLE_ROOM_PATTERN, get_redis_pool, parse_role_room

logger = get_logger(__name__)

REQUIRED_EVENT_FIELDS = {"type", "restaurant_id"}

# on_message(restaurant_id, role, event)
EventHandler = Callable[[str, str, dict[str, Any]], Awaitable[None]]


def validate_event_schema(data: Any) -> tuple[bool, str | None]:
    """Returns (is_valid, error_message)."""
    if not isinstance(data, dict):
        return False, "Event must be a dictionary"

    missing = REQUIRED_EVENT_FIELDS - set(data)
    if missing:
        return False, f"Missing required fields: {sorted(missing)}"

    if not isinstance(data["type"], str) or not data["type"]:
        return False, "type must be a non-empty string"

    if not isinstance(data["restaurant_id"], str):
        return False, f"restaurant_id must be a string, got {type(data['restaurant_id']).__name__}"

    return True, None


async def dispatch_message(msg: dict[str, Any], on_message: EventHandler) -> bool:
    """
    Decode one pub/sub message and pass it on.

    Returns True when the handler was called. Malformed payloads and
    channels outside the role-room scheme are logged and skipped.
    """
    if msg.get("type") not in ("message", "pmessage"):
        return False

    room = parse_role_room(msg.get("channel") or "")
    if room is None:
        logger.warning("Message on unexpected channel", channel=msg.get("channel"))
        return False

    try:
        data = json.loads(msg["data"])
    except (TypeError, json.JSONDecodeError) as e:
        logger.warning("Failed to parse Redis message", error=str(e))
        return False

    is_valid, error = validate_event_schema(data)
    if not is_valid:
        logger.warning("Invalid event schema", error=error, channel=msg.get("channel"))
        return False

    restaurant_id, role = room
    await on_message(restaurant_id, role, data)
    return True


async def run_subscriber(on_message: EventHandler, pattern: str = ROLE_ROOM_PATTERN) -> None:
    """
    Subscribe to role-room channels and dispatch messages until cancelled.

    The connection is re-established with a capped backoff when Redis
    drops, up to `redis_max_reconnect_attempts` consecutive failures.
    """
    attempts = 0
    while True:
        redis_pool = await get_redis_pool()
        pubsub = redis_pool.pubsub()
        try:
            await pubsub.psubscribe(pattern)
            logger.info("Redis subscriber started", pattern=pattern)
            attempts = 0

            async for msg in pubsub.listen():
                if msg is None:
                    continue
                try:
                    await dispatch_message(msg, on_message)
                except Exception as e:
                    logger.error("Error handling Redis message", error=str(e), exc_info=True)

        except asyncio.CancelledError:
            logger.info("Redis subscriber cancelled")
            raise
        except Exception as e:
            attempts += 1
            if attempts > settings.redis_max_reconnect_attempts:
                logger.error("Redis subscriber giving up", attempts=attempts, error=str(e))
                raise
            delay = min(2 ** attempts * 0.5, 30.0)
            logger.warning("Redis subscriber disconnected, retrying", attempt=attempts, delay=delay, error=str(e))
            await asyncio.sleep(delay)
        finally:
            try:
                await pubsub.punsubscribe(pattern)
                await pubsub.aclose()
            except Exception as e:
                logger.debug("Pubsub cleanup failed", error=str(e))
