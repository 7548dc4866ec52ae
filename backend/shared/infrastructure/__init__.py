"""
Infrastructure module: Database and Redis/events.

Provides:
- Database sessions and transactions (db.py)
- Request correlation ids (correlation.py)
- Redis pub/sub for real-time events (events/)
"""

from shared.infrastructure.db import (
    engine,
    SessionLocal,
    get_db,
    get_db_context,
    safe_commit,
    transaction,
)
from shared.infrastructure.events import (
    get_redis_pool,
    close_redis_pool,
    publish_event,
    publish_to_audience,
)

__all__ = [
    # db
    "engine",
    "SessionLocal",
    "get_db",
    "get_db_context",
    "safe_commit",
    "transaction",
    # events (Redis)
    "get_redis_pool",
    "close_redis_pool",
    "publish_event",
    "publish_to_audience",
]
