"""
Orders router.

Thin controller: each endpoint resolves the caller, calls OrderService,
schedules the real-time events for what changed and builds the response.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Query, Response, status
from sqlalchemy.orm import Session

from shared.config.constants import Actions, Modules, OrderStatus, OrderType
from shared.infrastructure.db import get_db
from shared.utils.schemas import (
    AddPaymentRequest,
    CancelOrderRequest,
    CreateOrderRequest,
    OrderListResponse,
    OrderOutput,
    OrderStatsOutput,
    PaymentResponse,
    UpdateItemStatusRequest,
    UpdateOrderStatusRequest,
)
from shared.utils.validators import ensure_aware, parse_status_list
from rest_api.models import User
from rest_api.routers._common import Pagination, get_pagination
from rest_api.services.domain import OrderService
from rest_api.services.events import (
    publish_item_change,
    publish_low_stock,
    publish_new_order,
    publish_payment,
    publish_status_change,
    publish_table_status,
)
from rest_api.services.order_view import build_order_output
from rest_api.services.permissions import require_permission


router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", response_model=OrderOutput, status_code=status.HTTP_201_CREATED)
def create_order(
    body: CreateOrderRequest,
    response: Response,
    background_tasks: BackgroundTasks,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key", max_length=200),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.ORDERS, Actions.CREATE)),
) -> OrderOutput:
    """
    Create an order.

    Retries carrying the same Idempotency-Key header (or client_request_id)
    return the original order with 200 instead of creating a new one.
    """
    result = OrderService(db).create_order(body, user, idempotency_key)
    if not result.created:
        response.status_code = status.HTTP_200_OK
        return build_order_output(result.order)

    publish_new_order(background_tasks, result.order, user)
    if result.order.table is not None:
        publish_table_status(background_tasks, result.order.table, user)
    publish_low_stock(background_tasks, result.low_stock, user)
    return build_order_output(result.order)


@router.get("", response_model=OrderListResponse)
def list_orders(
    status_filter: Optional[str] = Query(default=None, alias="status", description="Comma separated statuses"),
    order_type: Optional[str] = Query(default=None),
    table_id: Optional[int] = Query(default=None),
    waiter_id: Optional[int] = Query(default=None),
    start_date: Optional[datetime] = Query(default=None),
    end_date: Optional[datetime] = Query(default=None),
    sort_by: str = Query(default="created_at"),
    sort_order: str = Query(default="desc", pattern="^(asc|desc)$"),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.ORDERS, Actions.READ)),
) -> OrderListResponse:
    """
    List orders with filters.

    Waiters see the orders they serve; customers see their own orders.
    """
    statuses = parse_status_list(status_filter, OrderStatus.ALL)
    if order_type:
        parse_status_list(order_type, OrderType.ALL, field="order_type")

    orders, total = OrderService(db).list_orders(
        user,
        statuses=statuses,
        order_type=order_type,
        table_id=table_id,
        waiter_id=waiter_id,
        start_date=ensure_aware(start_date),
        end_date=ensure_aware(end_date),
        sort_by=sort_by,
        sort_order=sort_order,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    return OrderListResponse(
        orders=[build_order_output(o) for o in orders],
        pagination=pagination.to_dict(total),
    )


@router.get("/analytics/stats", response_model=OrderStatsOutput)
def order_stats(
    start_date: Optional[datetime] = Query(default=None),
    end_date: Optional[datetime] = Query(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.REPORTS, Actions.READ)),
) -> OrderStatsOutput:
    """Order count, revenue and breakdowns over an optional date range."""
    stats = OrderService(db).stats(ensure_aware(start_date), ensure_aware(end_date))
    return OrderStatsOutput(**stats)


@router.get("/{order_id}", response_model=OrderOutput)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.ORDERS, Actions.READ)),
) -> OrderOutput:
    return build_order_output(OrderService(db).get_visible_order(order_id, user))


@router.patch("/{order_id}/status", response_model=OrderOutput)
def update_order_status(
    order_id: int,
    body: UpdateOrderStatusRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.ORDERS, Actions.UPDATE)),
) -> OrderOutput:
    """Move an order to another status. Illegal moves are rejected with 400."""
    change = OrderService(db).update_status(order_id, body.status, user, notes=body.notes)
    publish_status_change(background_tasks, change, user)
    return build_order_output(change.order)


@router.patch("/{order_id}/items/{item_index}/status", response_model=OrderOutput)
def update_item_status(
    order_id: int,
    item_index: int,
    body: UpdateItemStatusRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.ORDERS, Actions.UPDATE)),
) -> OrderOutput:
    """Move one order line; the order follows when its lines agree."""
    change = OrderService(db).update_item_status(order_id, item_index, body.status, user)
    publish_item_change(background_tasks, change, user)
    return build_order_output(change.order)


@router.post("/{order_id}/payments", response_model=PaymentResponse)
def add_payment(
    order_id: int,
    body: AddPaymentRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.ORDERS, Actions.UPDATE)),
) -> PaymentResponse:
    """Record a payment. Full payment completes a ready or served order."""
    change = OrderService(db).add_payment(order_id, body, user)
    publish_payment(background_tasks, change.order, body.amount_cents, body.method, user)
    publish_status_change(background_tasks, change, user)
    return PaymentResponse(message="Payment added successfully", order=build_order_output(change.order))


@router.delete("/{order_id}", response_model=OrderOutput)
def cancel_order(
    order_id: int,
    background_tasks: BackgroundTasks,
    body: Optional[CancelOrderRequest] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission(Modules.ORDERS, Actions.DELETE)),
) -> OrderOutput:
    """Cancel an open order, free its table and return its stock."""
    change = OrderService(db).cancel_order(order_id, body.reason if body else None, user)
    publish_status_change(background_tasks, change, user)
    return build_order_output(change.order)
