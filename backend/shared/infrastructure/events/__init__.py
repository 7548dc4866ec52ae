"""
Event System for real-time notifications via Redis pub/sub.

- circuit_breaker.py: Circuit breaker for publishing
- event_types.py: Event audiences and size limit
- event_schema.py: Event dataclass with validation
- channels.py: Role-room channel naming
- redis_pool.py: Connection pool management
- publisher.py: publish_event with retry, publish_to_audience fan-out
"""

# =============================================================================
# Circuit Breaker
# =============================================================================

from .circuit_breaker import (
    CircuitState,
    EventCircuitBreaker,
    get_event_circuit_breaker,
    calculate_retry_delay_with_jitter,
)

# =============================================================================
# Event Types and Schema
# =============================================================================

from .event_types import EVENT_AUDIENCES, MAX_EVENT_SIZE, audience_for
from .event_schema import Event

# =============================================================================
# Channels
# =============================================================================

from .channels import ROLE_ROOM_PATTERN, channel_role_room, parse_role_room

# =============================================================================
# Redis Pool
# =============================================================================

from .redis_pool import get_redis_pool, get_redis_client, ping_redis, close_redis_pool

# =============================================================================
# Publishing
# =============================================================================

from .publisher import publish_event, publish_to_audience

__all__ = [
    # Circuit breaker
    "CircuitState",
    "EventCircuitBreaker",
    "get_event_circuit_breaker",
    "calculate_retry_delay_with_jitter",
    # Types and schema
    "EVENT_AUDIENCES",
    "MAX_EVENT_SIZE",
    "audience_for",
    "Event",
    # Channels
    "ROLE_ROOM_PATTERN",
    "channel_role_room",
    "parse_role_room",
    # Redis pool
    "get_redis_pool",
    "get_redis_client",
    "ping_redis",
    "close_redis_pool",
    # Publishing
    "publish_event",
    "publish_to_audience",
]
