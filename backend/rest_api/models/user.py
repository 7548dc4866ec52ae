"""
User and Permission Models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, BigInteger, CheckConstraint, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import Roles

from .base import AuditMixin, Base, BigIntId, UtcDateTime


class User(AuditMixin, Base):
    """
    Staff member or registered customer.

    `role` picks the default permission set; explicit `permissions` rows,
    when present, replace the defaults entirely.
    """

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True, index=True)
    password: Mapped[str] = mapped_column(Text, nullable=False)  # bcrypt hash
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    last_name: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(Text)
    role: Mapped[str] = mapped_column(Text, nullable=False, default=Roles.WAITER)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime())

    permissions: Mapped[list["UserPermission"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", lazy="selectin"
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'manager', 'cashier', 'waiter', 'kitchen_staff', 'customer')",
            name="chk_user_role",
        ),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


class UserPermission(Base):
    """Actions granted to a user on one module, e.g. ("orders", ["read", "update"])."""

    __tablename__ = "user_permission"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    module: Mapped[str] = mapped_column(Text, nullable=False)
    actions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    user: Mapped["User"] = relationship(back_populates="permissions")

    __table_args__ = (
        UniqueConstraint("user_id", "module", name="uq_user_permission_module"),
    )

    def __repr__(self) -> str:
        return f"<UserPermission(user_id={self.user_id}, module='{self.module}', actions={self.actions})>"
