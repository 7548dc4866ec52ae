"""
Inventory router.
Handles stock items, manual stock movements and purchase orders.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from shared.config.constants import Actions, InventoryCategory, Modules, MovementType, PurchaseOrderStatus
from shared.infrastructure.db import get_db
from shared.utils.admin_schemas import (
    InventoryItemCreate,
    InventoryItemOutput,
    InventoryListResponse,
    InventoryStatsOutput,
    MovementListResponse,
    PurchaseOrderCreate,
    PurchaseOrderListResponse,
    PurchaseOrderOutput,
    StockUpdateRequest,
    StockUpdateResponse,
)
from shared.utils.validators import ensure_aware, parse_status_list
from rest_api.models import User
from rest_api.routers._common import Pagination, get_pagination
from rest_api.services.domain import InventoryService
from rest_api.services.events import publish_inventory_updated, publish_low_stock
from rest_api.services.order_view import build_movement_output
from rest_api.services.permissions import require_permission


router = APIRouter(prefix="/api/inventory", tags=["inventory"])


@router.get("/items", response_model=InventoryListResponse)
def list_items(
    category: Optional[str] = Query(default=None),
    low_stock: bool = Query(default=False),
    search: Optional[str] = Query(default=None, max_length=100),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.INVENTORY, Actions.READ)),
) -> InventoryListResponse:
    if category:
        parse_status_list(category, InventoryCategory.ALL, field="category")
    items, total = InventoryService(db).list_items(
        category=category,
        low_stock=low_stock,
        search=search,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    return InventoryListResponse(
        items=[InventoryItemOutput.model_validate(i) for i in items],
        pagination=pagination.to_dict(total),
    )


@router.post("/items", response_model=InventoryItemOutput, status_code=status.HTTP_201_CREATED)
def create_item(
    body: InventoryItemCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.INVENTORY, Actions.CREATE)),
) -> InventoryItemOutput:
    """Create a stock item. Opening stock is recorded as an adjustment movement."""
    return InventoryItemOutput.model_validate(InventoryService(db).create_item(body, user.id))


@router.patch("/items/{item_id}/stock", response_model=StockUpdateResponse)
def update_stock(
    item_id: int,
    body: StockUpdateRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.INVENTORY, Actions.UPDATE)),
) -> StockUpdateResponse:
    """
    Record a manual stock movement.

    Purchases and returns add stock; usage, wastage and adjustments
    subtract it. Stock never goes below zero.
    """
    item, movement = InventoryService(db).update_stock(item_id, body, user.id)
    publish_inventory_updated(background_tasks, item, movement, user)
    if item.is_low_stock:
        publish_low_stock(background_tasks, [item], user)

    return StockUpdateResponse(
        message="Stock updated successfully",
        item=InventoryItemOutput.model_validate(item),
        movement=build_movement_output(movement, item.name),
    )


@router.get("/low-stock", response_model=list[InventoryItemOutput])
def low_stock_items(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.INVENTORY, Actions.READ)),
) -> list[InventoryItemOutput]:
    """Items at or below their reorder level, emptiest first."""
    return [InventoryItemOutput.model_validate(i) for i in InventoryService(db).low_stock_items()]


@router.get("/movements", response_model=MovementListResponse)
def list_movements(
    item_id: Optional[int] = Query(default=None),
    movement_type: Optional[str] = Query(default=None, alias="type"),
    start_date: Optional[datetime] = Query(default=None),
    end_date: Optional[datetime] = Query(default=None),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.INVENTORY, Actions.READ)),
) -> MovementListResponse:
    if movement_type:
        parse_status_list(movement_type, MovementType.ALL, field="type")
    rows, total = InventoryService(db).list_movements(
        item_id=item_id,
        movement_type=movement_type,
        start_date=ensure_aware(start_date),
        end_date=ensure_aware(end_date),
        offset=pagination.offset,
        limit=pagination.limit,
    )
    return MovementListResponse(
        movements=[build_movement_output(movement, name) for movement, name in rows],
        pagination=pagination.to_dict(total),
    )


@router.get("/purchase-orders", response_model=PurchaseOrderListResponse)
def list_purchase_orders(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.INVENTORY, Actions.READ)),
) -> PurchaseOrderListResponse:
    if status_filter:
        parse_status_list(status_filter, PurchaseOrderStatus.ALL)
    rows, total = InventoryService(db).list_purchase_orders(
        status=status_filter, offset=pagination.offset, limit=pagination.limit
    )
    return PurchaseOrderListResponse(
        purchase_orders=[PurchaseOrderOutput.model_validate(po) for po in rows],
        pagination=pagination.to_dict(total),
    )


@router.post("/purchase-orders", response_model=PurchaseOrderOutput, status_code=status.HTTP_201_CREATED)
def create_purchase_order(
    body: PurchaseOrderCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.INVENTORY, Actions.CREATE)),
) -> PurchaseOrderOutput:
    return PurchaseOrderOutput.model_validate(InventoryService(db).create_purchase_order(body, user.id))


@router.get("/analytics/stats", response_model=InventoryStatsOutput)
def inventory_stats(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.INVENTORY, Actions.READ)),
) -> InventoryStatsOutput:
    """Stock value by category, low and empty item counts, movements by type."""
    return InventoryStatsOutput(**InventoryService(db).stats())
