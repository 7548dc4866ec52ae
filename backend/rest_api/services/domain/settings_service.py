"""
Settings Service.

One JSON blob per category, created from defaults on first read.
Updates merge key by key; reset restores the defaults. A backup stores a
snapshot of every category together with row counts of the main tables.
"""

from __future__ import annotations

import copy
import json
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shared.config.constants import SettingsCategory
from shared.config.logging import get_logger
from shared.infrastructure.db import transaction
from shared.utils.exceptions import ValidationError
from rest_api.models import (
    AppSetting,
    Category,
    InventoryItem,
    MenuItem,
    Order,
    SettingsBackup,
    Table,
    User,
)
from rest_api.models.base import utc_now

logger = get_logger(__name__)

_WEEKDAY = {"open": "09:00", "close": "22:00", "closed": False}
_WEEKEND = {"open": "09:00", "close": "23:00", "closed": False}

DEFAULT_SETTINGS: dict[str, dict[str, Any]] = {
    SettingsCategory.RESTAURANT: {
        "name": "Restaurant POS System",
        "address": "123 Main Street, City, State 12345",
        "phone": "+1 (555) 123-4567",
        "email": "info@restaurant.com",
        "website": "www.restaurant.com",
        "logo": "",
        "timezone": "UTC",
        "currency": "USD",
        "tax_rate": 8.5,
        "service_charge": 10,
        "operating_hours": {
            "monday": _WEEKDAY,
            "tuesday": _WEEKDAY,
            "wednesday": _WEEKDAY,
            "thursday": _WEEKDAY,
            "friday": _WEEKEND,
            "saturday": _WEEKEND,
            "sunday": {"open": "10:00", "close": "21:00", "closed": False},
        },
    },
    SettingsCategory.SYSTEM: {
        "auto_backup": True,
        "backup_frequency": "daily",
        "max_login_attempts": 5,
        "session_timeout": 30,
        "enable_two_factor": False,
        "allow_remote_access": True,
        "log_level": "info",
        "max_log_size": 100,
        "enable_audit_log": True,
        "data_retention_days": 365,
    },
    SettingsCategory.NOTIFICATION: {
        "email_notifications": True,
        "sms_notifications": False,
        "push_notifications": True,
        "order_alerts": True,
        "inventory_alerts": True,
        "system_alerts": True,
        "low_stock_threshold": 10,
    },
    SettingsCategory.PAYMENT: {
        "accept_cash": True,
        "accept_card": True,
        "accept_digital_wallet": True,
        "enable_tips": True,
        "default_tip_percentage": 15,
        "allow_custom_tips": True,
        "receipt": {
            "print_automatically": True,
            "email_receipts": True,
            "include_qr_code": True,
            "footer_message": "Thank you for dining with us!",
        },
    },
    SettingsCategory.UI: {
        "theme": "light",
        "primary_color": "#1976d2",
        "language": "en",
        "date_format": "MM/DD/YYYY",
        "time_format": "12h",
        "currency": "USD",
        "show_welcome_screen": True,
        "enable_animations": True,
        "compact_mode": False,
        "sound_enabled": True,
    },
}


def default_settings(category: str) -> dict[str, Any]:
    """Deep copy of the defaults for a category."""
    return copy.deepcopy(DEFAULT_SETTINGS.get(category, {}))


class SettingsService:
    """Service for application settings and backups."""

    def __init__(self, db: Session):
        self._db = db

    @staticmethod
    def _check_category(category: str) -> None:
        if category not in SettingsCategory.ALL:
            raise ValidationError("Invalid settings category", category=category)

    def _find(self, category: str) -> AppSetting | None:
        return self._db.scalar(select(AppSetting).where(AppSetting.category == category))

    def get_or_create(self, category: str, user_id: int | None = None) -> AppSetting:
        self._check_category(category)
        setting = self._find(category)
        if setting is None:
            with transaction(self._db):
                setting = AppSetting(
                    category=category, settings=default_settings(category), updated_by_id=user_id
                )
                self._db.add(setting)
            logger.info("Settings initialized from defaults", category=category)
        return setting

    def update(self, category: str, values: dict[str, Any], user_id: int) -> AppSetting:
        """Shallow merge of `values` over the stored settings."""
        self._check_category(category)
        setting = self._find(category)
        with transaction(self._db):
            if setting is None:
                setting = AppSetting(category=category, settings={}, updated_by_id=user_id)
                self._db.add(setting)
                base = default_settings(category)
            else:
                base = dict(setting.settings or {})
            # Reassign so the JSON column is flagged dirty
            setting.settings = {**base, **values}
            setting.updated_by_id = user_id
            setting.updated_at = utc_now()

        logger.info("Settings updated", category=category, keys=sorted(values), user_id=user_id)
        return setting

    def reset(self, category: str, user_id: int) -> AppSetting:
        self._check_category(category)
        setting = self._find(category)
        with transaction(self._db):
            if setting is None:
                setting = AppSetting(category=category, updated_by_id=user_id)
                self._db.add(setting)
            setting.settings = default_settings(category)
            setting.updated_by_id = user_id
            setting.updated_at = utc_now()

        logger.info("Settings reset to defaults", category=category, user_id=user_id)
        return setting

    def entity_counts(self) -> dict[str, int]:
        counted = {
            "users": User,
            "categories": Category,
            "menu_items": MenuItem,
            "tables": Table,
            "orders": Order,
            "inventory_items": InventoryItem,
        }
        return {
            name: self._db.scalar(select(func.count()).select_from(model)) or 0
            for name, model in counted.items()
        }

    def create_backup(self, user_id: int) -> SettingsBackup:
        """Snapshot every settings category plus entity counts."""
        now = utc_now()
        settings = {row.category: row.settings for row in self._db.scalars(select(AppSetting)).all()}
        payload = {
            "created_at": now.isoformat(),
            "settings": settings,
            "entity_counts": self.entity_counts(),
        }
        encoded = json.dumps(payload, default=str)

        with transaction(self._db):
            backup = SettingsBackup(
                name=f"backup_{now.strftime('%Y%m%dT%H%M%S%f')}",
                payload=payload,
                size_bytes=len(encoded.encode("utf-8")),
                created_by_id=user_id,
                created_at=now,
            )
            self._db.add(backup)

        logger.info("Backup created", backup_id=backup.id, size_bytes=backup.size_bytes, user_id=user_id)
        return backup
