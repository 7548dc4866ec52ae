"""
Core Event Publishing with retry, size check and circuit breaker.
"""

from __future__ import annotations

import asyncio

import redis.asyncio as redis

from shared.config.logging import get_logger
from shared.config.settings import settings

from .channels import channel_role_room
from .circuit_breaker import calculate_retry_delay_with_jitter, get_event_circuit_breaker
from .event_schema import Event
from .event_types import MAX_EVENT_SIZE, audience_for

logger = get_logger(__name__)


def _validate_event_size(event_json: str, event_type: str) -> None:
    size = len(event_json.encode("utf-8"))
    if size > MAX_EVENT_SIZE:
        raise ValueError(f"Event {event_type} exceeds max size: {size} > {MAX_EVENT_SIZE} bytes")


async def publish_event(redis_client: redis.Redis, channel: str, event: Event) -> int:
    """
    Publish an event to one Redis channel.

    Retries with exponential backoff and jitter. Returns the number of
    subscribers that received it, or 0 when the circuit breaker is open.

    Raises:
        ValueError: If the event is too large.
        Exception: The last Redis error once retries are exhausted.
    """
    event_json = event.to_json()
    _validate_event_size(event_json, event.type)

    breaker = get_event_circuit_breaker()
    if not breaker.can_execute():
        logger.warning("Event publish skipped, circuit open", channel=channel, event_type=event.type)
        return 0

    max_retries = settings.redis_publish_max_retries
    last_error: Exception | None = None
    for attempt in range(max_retries):
        try:
            receivers = await redis_client.publish(channel, event_json)
            breaker.record_success()
            return receivers
        except Exception as e:
            last_error = e
            if attempt == max_retries - 1:
                logger.error(
                    "Redis publish failed after all retries",
                    channel=channel,
                    event_type=event.type,
                    error=str(e),
                )
                break
            delay = calculate_retry_delay_with_jitter(attempt, settings.redis_publish_retry_delay)
            logger.warning(
                "Redis publish failed, retrying",
                channel=channel,
                event_type=event.type,
                attempt=attempt + 1,
                delay_seconds=round(delay, 2),
                error=str(e),
            )
            await asyncio.sleep(delay)

    breaker.record_failure()
    raise last_error  # type: ignore[misc]


async def publish_to_audience(redis_client: redis.Redis, event: Event) -> list[str]:
    """
    Fan an event out to every role room in its audience.

    The audience is `event.target_roles` when given, else the fixed
    audience of the event type. A failure on one room is logged and the
    remaining rooms still get the event. Returns the channels published to.

    Raises:
        ValueError: If the event is too large.
    """
    roles = event.target_roles or list(audience_for(event.type))
    if not roles:
        logger.warning("Event has no audience, dropped", event_type=event.type)
        return []
    _validate_event_size(event.to_json(), event.type)

    delivered = []
    for role in roles:
        channel = channel_role_room(event.restaurant_id, role)
        try:
            await publish_event(redis_client, channel, event)
        except Exception as e:
            logger.error(
                "Event not delivered to role room",
                channel=channel,
                event_type=event.type,
                error=str(e),
            )
            continue
        delivered.append(channel)
    return delivered
