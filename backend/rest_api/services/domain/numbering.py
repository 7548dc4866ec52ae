"""
Daily sequence numbers: ORD-YYYYMMDD-NNNN, KOT-YYYYMMDD-NNNN, PO-YYYYMMDD-NNNN.

Numbers come from an upsert-increment on the daily_counter row, executed
in the caller's transaction. On PostgreSQL the conflicting insert takes
the row lock, so two concurrent callers can never read the same value.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from shared.config.constants import Limits
from rest_api.models import DailyCounter
from rest_api.models.base import utc_now

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def counter_key(prefix: str, now: datetime | None = None) -> str:
    """`<PREFIX>-<YYYYMMDD>` on the UTC date."""
    return f"{prefix}-{(now or utc_now()).strftime('%Y%m%d')}"


def format_number(key: str, value: int) -> str:
    return f"{key}-{value:0{Limits.SEQUENCE_PAD}d}"


def next_value(db: Session, key: str) -> int:
    """Increment and return the counter stored under `key` (first call returns 1)."""
    dialect = db.get_bind().dialect.name
    try:
        insert = _DIALECT_INSERTS[dialect]
    except KeyError:
        raise RuntimeError(f"Daily counters are not supported on {dialect}") from None

    stmt = (
        insert(DailyCounter)
        .values(key=key, value=1)
        .on_conflict_do_update(
            index_elements=[DailyCounter.key],
            set_={"value": DailyCounter.value + 1},
        )
        .returning(DailyCounter.value)
    )
    return db.execute(stmt).scalar_one()


def next_number(db: Session, prefix: str, now: datetime | None = None) -> str:
    """Allocate the next human-readable number for today, e.g. ORD-20261019-0001."""
    key = counter_key(prefix, now)
    return format_number(key, next_value(db, key))
