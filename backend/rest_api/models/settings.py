"""
Settings and Counter Models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, BigInteger, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, BigIntId, UtcDateTime, TimestampMixin, utc_now


class AppSetting(TimestampMixin, Base):
    """One JSON settings blob per category (restaurant, system, notification, payment, ui)."""

    __tablename__ = "app_setting"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    category: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    settings: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    updated_by_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("app_user.id"))

    def __repr__(self) -> str:
        return f"<AppSetting(category='{self.category}')>"


class SettingsBackup(Base):
    """Point-in-time snapshot of all settings plus entity counts."""

    __tablename__ = "settings_backup"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    created_by_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("app_user.id"))
    created_at: Mapped[datetime] = mapped_column(UtcDateTime(), default=utc_now, nullable=False)


class DailyCounter(Base):
    """
    Per-day sequence backing human-readable numbers.

    key is "<PREFIX>-<YYYYMMDD>", value the last number handed out.
    """

    __tablename__ = "daily_counter"

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<DailyCounter(key='{self.key}', value={self.value})>"
