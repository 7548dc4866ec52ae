"""
Data-driven permission checks.

A user's capabilities are a table of module -> actions. Explicit
UserPermission rows win; a user without any rows gets the defaults
for their role from DEFAULT_ROLE_PERMISSIONS.
"""

from typing import Protocol, Sequence

from shared.config.constants import DEFAULT_ROLE_PERMISSIONS, MANAGEMENT_ROLES, Roles


class PermissionRow(Protocol):
    module: str
    actions: Sequence[str]


class PermissionSubject(Protocol):
    """Anything carrying a role and optional explicit permission rows (User does)."""

    id: int
    role: str
    permissions: Sequence[PermissionRow]


def effective_permissions(user: PermissionSubject) -> dict[str, frozenset[str]]:
    """Resolve the module -> actions table that applies to `user`."""
    rows = list(user.permissions or [])
    if rows:
        return {row.module: frozenset(row.actions or []) for row in rows}
    return dict(DEFAULT_ROLE_PERMISSIONS.get(user.role, {}))


def authorize(user: PermissionSubject, module: str, action: str) -> bool:
    """Return True if `user` may perform `action` on `module`."""
    return action in effective_permissions(user).get(module, frozenset())


class PermissionContext:
    """
    Permission checks bound to one user.

    Usage:
        ctx = PermissionContext(user)

        if ctx.can("orders", "update"):
            ...

        if ctx.is_management:
            ...
    """

    def __init__(self, user: PermissionSubject):
        self._user = user
        self._table = effective_permissions(user)

    @property
    def user(self) -> PermissionSubject:
        return self._user

    @property
    def user_id(self) -> int:
        return self._user.id

    @property
    def role(self) -> str:
        return self._user.role

    @property
    def is_admin(self) -> bool:
        return self.role == Roles.ADMIN

    @property
    def is_management(self) -> bool:
        return self.role in MANAGEMENT_ROLES

    def can(self, module: str, action: str) -> bool:
        return action in self._table.get(module, frozenset())

    def as_list(self) -> list[dict[str, object]]:
        """Serializable form: [{"module": ..., "actions": [...]}]."""
        return [
            {"module": module, "actions": sorted(actions)}
            for module, actions in sorted(self._table.items())
        ]
