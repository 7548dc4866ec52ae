"""
Base class and mixins for all SQLAlchemy ORM models.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

# BIGINT in PostgreSQL; SQLite only autoincrements INTEGER primary keys
BigIntId = BigInteger().with_variant(Integer, "sqlite")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize a stored timestamp to an aware UTC datetime (SQLite drops tzinfo)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UtcDateTime(TypeDecorator):
    """Timezone-aware DateTime that always loads as UTC, on SQLite too."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return as_utc(value)

    def process_result_value(self, value, dialect):
        return as_utc(value)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TimestampMixin:
    """created_at / updated_at, set from Python so values are usable before a refresh."""

    created_at: Mapped[datetime] = mapped_column(
        UtcDateTime(), default=utc_now, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        UtcDateTime(), onupdate=utc_now, nullable=True
    )


class AuditMixin(TimestampMixin):
    """
    Soft delete plus creator tracking for catalog-like entities.

    Fields added:
    - is_active: False once the row is soft deleted
    - deleted_at: when it was soft deleted
    - created_by_id: user who created the row (no FK, users may be removed)
    """

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime(), nullable=True)
    created_by_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    def soft_delete(self) -> None:
        self.is_active = False
        self.deleted_at = utc_now()

    def __repr__(self) -> str:
        state = "active" if self.is_active else "deleted"
        return f"<{self.__class__.__name__}(id={getattr(self, 'id', None)}, {state})>"
