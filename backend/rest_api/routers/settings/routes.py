"""
Settings router.
Managers and admins read settings; only admins change them.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from shared.config.constants import MANAGEMENT_ROLES, Roles
from shared.infrastructure.db import get_db
from shared.utils.admin_schemas import BackupOutput, SettingsCategoryValue, SettingsOutput, SettingsUpdate
from rest_api.models import User
from rest_api.services.domain import SettingsService
from rest_api.services.events import publish_backup_created, publish_settings
from rest_api.services.order_view import build_backup_output, build_settings_output
from rest_api.services.permissions import require_role


router = APIRouter(prefix="/api/settings", tags=["settings"])


# Declared before /{category} routes so "backup" is never read as a category
@router.post("/backup", response_model=BackupOutput, status_code=status.HTTP_201_CREATED)
def create_backup(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_role(Roles.ADMIN)),
) -> BackupOutput:
    """Snapshot every settings category together with entity counts."""
    backup = SettingsService(db).create_backup(user.id)
    publish_backup_created(background_tasks, backup, user)
    return build_backup_output(backup)


@router.get("/{category}", response_model=SettingsOutput)
def get_settings(
    category: SettingsCategoryValue,
    db: Session = Depends(get_db),
    user: User = Depends(require_role(*MANAGEMENT_ROLES)),
) -> SettingsOutput:
    """Settings of one category, created from defaults on first read."""
    return build_settings_output(SettingsService(db).get_or_create(category, user.id))


@router.put("/{category}", response_model=SettingsOutput)
def update_settings(
    category: SettingsCategoryValue,
    body: SettingsUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_role(Roles.ADMIN)),
) -> SettingsOutput:
    """Merge the given keys over the stored settings."""
    setting = SettingsService(db).update(category, body.settings, user.id)
    publish_settings(background_tasks, setting, user)
    return build_settings_output(setting)


@router.post("/{category}/reset", response_model=SettingsOutput)
def reset_settings(
    category: SettingsCategoryValue,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_role(Roles.ADMIN)),
) -> SettingsOutput:
    setting = SettingsService(db).reset(category, user.id)
    publish_settings(background_tasks, setting, user, reset=True)
    return build_settings_output(setting)
