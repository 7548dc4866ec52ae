"""
User Service.

Staff and customer accounts: credential checks, listing, creation and the
explicit permission table that overrides role defaults.
"""

from __future__ import annotations

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from shared.config.constants import Actions, Modules
from shared.config.logging import auth_logger as logger, mask_email
from shared.infrastructure.db import transaction
from shared.security.password import hash_password, verify_password
from shared.utils.admin_schemas import UserCreate
from shared.utils.exceptions import DuplicateEntityError, NotFoundError, ValidationError
from shared.utils.schemas import PermissionEntry
from shared.utils.validators import contains_pattern
from rest_api.models import User, UserPermission
from rest_api.models.base import utc_now


class UserService:
    """Service for user accounts and their permissions."""

    def __init__(self, db: Session):
        self._db = db

    def authenticate(self, email: str, password: str) -> User | None:
        """
        Return the active user matching the credentials, or None.

        A successful check stamps last_login_at.
        """
        normalized = email.strip().lower()
        user = self._db.scalar(select(User).where(User.email == normalized))
        if not user or not user.is_active or not verify_password(password, user.password):
            logger.warning("LOGIN_FAILED", email=mask_email(normalized))
            return None

        with transaction(self._db):
            user.last_login_at = utc_now()
        logger.info("LOGIN_SUCCESS", user_id=user.id, role=user.role)
        return user

    def get_user(self, user_id: int) -> User:
        user = self._db.get(User, user_id)
        if not user:
            raise NotFoundError("User", user_id)
        return user

    def list_users(
        self,
        *,
        roles: list[str] | None = None,
        is_active: bool | None = None,
        search: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[User], int]:
        query = select(User)
        if roles:
            query = query.where(User.role.in_(roles))
        if is_active is not None:
            query = query.where(User.is_active.is_(is_active))
        if search:
            pattern = contains_pattern(search)
            query = query.where(
                or_(
                    User.first_name.ilike(pattern, escape="\\"),
                    User.last_name.ilike(pattern, escape="\\"),
                    User.email.ilike(pattern, escape="\\"),
                    User.phone.ilike(pattern, escape="\\"),
                )
            )

        total = self._db.scalar(select(func.count()).select_from(query.subquery())) or 0
        users = self._db.scalars(
            query.order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(limit)
        ).all()
        return list(users), total

    def create_user(self, data: UserCreate, created_by_id: int | None = None) -> User:
        """
        Create an account with a bcrypt-hashed password.

        Raises:
            DuplicateEntityError: The email is already registered.
            ValidationError: A permission entry names an unknown module or action.
        """
        email = data.email.strip().lower()
        if self._db.scalar(select(User.id).where(User.email == email)):
            raise DuplicateEntityError("Email", mask_email(email))

        rows = self._permission_rows(data.permissions or [])
        with transaction(self._db):
            user = User(
                email=email,
                password=hash_password(data.password),
                first_name=data.first_name.strip(),
                last_name=data.last_name.strip(),
                phone=data.phone,
                role=data.role,
                created_by_id=created_by_id,
                permissions=rows,
            )
            self._db.add(user)

        self._db.refresh(user)
        logger.info("User created", user_id=user.id, role=user.role, created_by=created_by_id)
        return user

    def update_permissions(self, user_id: int, entries: list[PermissionEntry]) -> User:
        """
        Replace the explicit permission rows of a user.

        An empty list drops back to the role defaults.
        """
        user = self.get_user(user_id)
        rows = self._permission_rows(entries)
        with transaction(self._db):
            user.permissions.clear()
            self._db.flush()
            user.permissions.extend(rows)

        self._db.refresh(user)
        logger.info("Permissions updated", user_id=user.id, modules=[row.module for row in rows])
        return user

    @staticmethod
    def _permission_rows(entries: list[PermissionEntry]) -> list[UserPermission]:
        rows: dict[str, UserPermission] = {}
        for entry in entries:
            if entry.module not in Modules.ALL:
                raise ValidationError(f"Unknown permission module: {entry.module}")
            unknown = set(entry.actions) - set(Actions.ALL)
            if unknown:
                raise ValidationError(f"Unknown permission actions: {', '.join(sorted(unknown))}")
            # Later entries for the same module win
            rows[entry.module] = UserPermission(module=entry.module, actions=sorted(set(entry.actions)))
        return list(rows.values())
