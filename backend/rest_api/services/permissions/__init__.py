"""
Permission checks backed by the module/action table.

Usage:
    from rest_api.services.permissions import authorize, require_permission

    if not authorize(user, "inventory", "update"):
        raise PermissionDeniedError("inventory", "update")

    @router.get("/inventory/items")
    def list_items(user: User = Depends(require_permission("inventory", "read"))):
        ...
"""

from .context import PermissionContext, authorize, effective_permissions
from .dependencies import get_current_user, require_permission, require_role

__all__ = [
    # Context
    "PermissionContext",
    "authorize",
    "effective_permissions",
    # Dependencies
    "get_current_user",
    "require_permission",
    "require_role",
]
