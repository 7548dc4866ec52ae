"""
Menu router.
Every signed-in user can browse the menu; changes need menu permissions.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from shared.config.constants import Actions, Modules, Roles
from shared.infrastructure.db import get_db
from shared.utils.admin_schemas import (
    AvailabilityRequest,
    MenuCategoryCreate,
    MenuCategoryOutput,
    MenuItemCreate,
    MenuItemListResponse,
    MenuItemOutput,
)
from rest_api.models import User
from rest_api.routers._common import Pagination, get_pagination
from rest_api.services.domain import MenuService
from rest_api.services.order_view import build_menu_item_output
from rest_api.services.permissions import get_current_user, require_permission, require_role


router = APIRouter(prefix="/api/menu", tags=["menu"])


@router.get("/categories", response_model=list[MenuCategoryOutput])
def list_categories(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> list[MenuCategoryOutput]:
    return [MenuCategoryOutput.model_validate(c) for c in MenuService(db).list_categories()]


@router.post("/categories", response_model=MenuCategoryOutput, status_code=status.HTTP_201_CREATED)
def create_category(
    body: MenuCategoryCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.MENU, Actions.CREATE)),
) -> MenuCategoryOutput:
    return MenuCategoryOutput.model_validate(MenuService(db).create_category(body, user.id))


@router.get("/items", response_model=MenuItemListResponse)
def list_items(
    category_id: Optional[int] = Query(default=None),
    search: Optional[str] = Query(default=None, max_length=100),
    is_available: Optional[bool] = Query(default=None),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> MenuItemListResponse:
    items, total = MenuService(db).list_items(
        category_id=category_id,
        search=search,
        is_available=is_available,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    return MenuItemListResponse(
        items=[build_menu_item_output(i) for i in items],
        pagination=pagination.to_dict(total),
    )


@router.get("/items/{item_id}", response_model=MenuItemOutput)
def get_item(
    item_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> MenuItemOutput:
    return build_menu_item_output(MenuService(db).get_item(item_id))


@router.post("/items", response_model=MenuItemOutput, status_code=status.HTTP_201_CREATED)
def create_item(
    body: MenuItemCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.MENU, Actions.CREATE)),
) -> MenuItemOutput:
    """Create a menu item with its variants, add-on links and recipe."""
    return build_menu_item_output(MenuService(db).create_item(body, user.id))


@router.patch("/items/{item_id}/availability", response_model=MenuItemOutput)
def set_availability(
    item_id: int,
    body: AvailabilityRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_role(*Roles.STAFF)),
) -> MenuItemOutput:
    """Mark an item sold out or back on. Any staff member may do this."""
    return build_menu_item_output(MenuService(db).set_availability(item_id, body.is_available, user.id))
