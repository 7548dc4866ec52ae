"""
KOT router.
Handles operations for kitchen staff.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from shared.config.constants import Actions, Modules
from shared.infrastructure.db import get_db
from shared.utils.kitchen_schemas import (
    KotHistoryResponse,
    KotPrintResponse,
    KotQueueResponse,
    KotStatsOutput,
    PrintKotRequest,
    UpdateKotItemStatusRequest,
)
from shared.utils.schemas import OrderOutput
from shared.utils.validators import ensure_aware
from rest_api.models import User
from rest_api.models.base import utc_now
from rest_api.routers._common import Pagination, get_kot_history_pagination
from rest_api.services.domain import KotService
from rest_api.services.events import (
    publish_item_change,
    publish_kot_completed,
    publish_kot_printed,
    publish_order_status,
    publish_status_change,
)
from rest_api.services.order_view import build_kot_queue_entry, build_order_output
from rest_api.services.permissions import require_permission


router = APIRouter(prefix="/api/kot", tags=["kot"])


@router.post("/{order_id}/print", response_model=KotPrintResponse)
def print_kot(
    order_id: int,
    background_tasks: BackgroundTasks,
    body: Optional[PrintKotRequest] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.KOT, Actions.CREATE)),
) -> KotPrintResponse:
    """
    Print the kitchen ticket of an order.

    The first print numbers the ticket and confirms a pending order;
    later prints are logged as reprints with their reason.
    """
    result = KotService(db).print_kot(order_id, user, reason=body.reason if body else None)
    publish_kot_printed(background_tasks, result.order, result.is_reprint, user)
    publish_order_status(background_tasks, result.order, result.previous_status, user)

    return KotPrintResponse(
        message="KOT reprinted successfully" if result.is_reprint else "KOT printed successfully",
        kot_number=result.order.kot_number,
        reprint=result.is_reprint,
        order=build_order_output(result.order),
    )


@router.get("/queue", response_model=KotQueueResponse)
def get_queue(
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.KOT, Actions.READ)),
) -> KotQueueResponse:
    """
    Open tickets for the kitchen board.

    Returns orders that are pending, confirmed or preparing, ordered by
    creation time (oldest first).
    """
    service = KotService(db)
    now = utc_now()
    orders = service.queue()
    return KotQueueResponse(
        orders=[build_kot_queue_entry(order, service.elapsed(order, now)) for order in orders],
        total=len(orders),
    )


@router.patch("/{order_id}/items/{item_index}/status", response_model=OrderOutput)
def update_kot_item_status(
    order_id: int,
    item_index: int,
    body: UpdateKotItemStatusRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.KOT, Actions.UPDATE)),
) -> OrderOutput:
    change = KotService(db).update_item_status(order_id, item_index, body.status, user)
    publish_item_change(background_tasks, change, user)
    return build_order_output(change.order)


@router.patch("/{order_id}/complete", response_model=OrderOutput)
def complete_kot(
    order_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.KOT, Actions.UPDATE)),
) -> OrderOutput:
    """Mark every line ready and the order ready, recording the prep time."""
    change = KotService(db).complete(order_id, user)
    publish_kot_completed(background_tasks, change.order, user)
    publish_status_change(background_tasks, change, user)
    return build_order_output(change.order)


@router.get("/history", response_model=KotHistoryResponse)
def kot_history(
    start_date: Optional[datetime] = Query(default=None),
    end_date: Optional[datetime] = Query(default=None),
    pagination: Pagination = Depends(get_kot_history_pagination),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.KOT, Actions.READ)),
) -> KotHistoryResponse:
    """Printed tickets, most recently printed first."""
    orders, total = KotService(db).history(
        start_date=ensure_aware(start_date),
        end_date=ensure_aware(end_date),
        offset=pagination.offset,
        limit=pagination.limit,
    )
    return KotHistoryResponse(
        orders=[build_order_output(o) for o in orders],
        pagination=pagination.to_dict(total),
    )


@router.get("/stats", response_model=KotStatsOutput)
def kot_stats(
    start_date: Optional[datetime] = Query(default=None),
    end_date: Optional[datetime] = Query(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.KOT, Actions.READ)),
) -> KotStatsOutput:
    """Preparation times, orders by status and the five busiest hours."""
    return KotStatsOutput(**KotService(db).stats(ensure_aware(start_date), ensure_aware(end_date)))
