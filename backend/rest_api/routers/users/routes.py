"""
Users router.
Account creation is admin only; listing follows the users permission.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from shared.config.constants import Actions, Modules, Roles
from shared.infrastructure.db import get_db
from shared.utils.admin_schemas import UpdatePermissionsRequest, UserCreate, UserListResponse, UserOutput
from shared.utils.validators import parse_status_list
from rest_api.models import User
from rest_api.routers._common import Pagination, get_pagination
from rest_api.services.domain import UserService
from rest_api.services.order_view import build_user_output
from rest_api.services.permissions import require_permission, require_role


router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=UserListResponse)
def list_users(
    role: Optional[str] = Query(default=None, description="Comma separated roles"),
    is_active: Optional[bool] = Query(default=None),
    search: Optional[str] = Query(default=None, max_length=100),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.USERS, Actions.READ)),
) -> UserListResponse:
    users, total = UserService(db).list_users(
        roles=parse_status_list(role, Roles.ALL, field="role"),
        is_active=is_active,
        search=search,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    return UserListResponse(
        users=[build_user_output(u) for u in users],
        pagination=pagination.to_dict(total),
    )


@router.post("", response_model=UserOutput, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_role(Roles.ADMIN)),
) -> UserOutput:
    return build_user_output(UserService(db).create_user(body, created_by_id=user.id))


@router.patch("/{user_id}/permissions", response_model=UserOutput)
def update_permissions(
    user_id: int,
    body: UpdatePermissionsRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_role(Roles.ADMIN)),
) -> UserOutput:
    """
    Replace a user's explicit permissions.

    An empty list removes the overrides so the role defaults apply again.
    """
    return build_user_output(UserService(db).update_permissions(user_id, body.permissions))
