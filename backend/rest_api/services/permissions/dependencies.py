"""
FastAPI dependencies that resolve the caller and gate routes on permissions.
"""

from typing import Any, Callable

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from rest_api.models import User
from shared.config.constants import ErrorMessages
from shared.config.logging import get_logger
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context
from shared.utils.exceptions import PermissionDeniedError

from .context import authorize

logger = get_logger(__name__)


def get_current_user(
    ctx: dict[str, Any] = Depends(current_user_context),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the bearer token to an active User.

    Raises 401 if the user no longer exists or has been deactivated.
    """
    user = db.get(User, int(ctx["sub"]))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=ErrorMessages.INVALID_TOKEN,
        )
    if not user.is_active:
        logger.warning("Deactivated user rejected", user_id=user.id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=ErrorMessages.USER_INACTIVE,
        )
    return user


def require_permission(module: str, action: str) -> Callable[..., User]:
    """
    Dependency factory gating a route on (module, action).

    Usage:
        @router.patch("/{order_id}/status")
        def update_status(user: User = Depends(require_permission("orders", "update"))):
            ...
    """

    def dependency(user: User = Depends(get_current_user)) -> User:
        if not authorize(user, module, action):
            raise PermissionDeniedError(module, action, user_id=user.id, role=user.role)
        return user

    return dependency


def require_role(*roles: str) -> Callable[..., User]:
    """Dependency factory gating a route on the caller's role."""

    def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User role {user.role} is not authorized to access this route",
            )
        return user

    return dependency
