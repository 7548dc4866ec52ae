"""
Kitchen Order Ticket (KOT) Domain Service.

Ticket numbering, the print/reprint ledger, the kitchen queue, line and
ticket completion, and kitchen analytics.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import extract, func, select
from sqlalchemy.orm import Session

from shared.config.constants import NumberPrefix, OrderItemStatus, OrderStatus
from shared.config.logging import kitchen_logger as logger
from shared.infrastructure.db import transaction
from shared.utils.exceptions import ValidationError
from rest_api.models import KotReprint, Order, User
from rest_api.models.base import utc_now
from rest_api.services.domain.lifecycle import elapsed_minutes, transition_item, transition_order
from rest_api.services.domain.numbering import next_number
from rest_api.services.domain.order_service import ItemStatusChange, OrderService, StatusChange

DEFAULT_REPRINT_REASON = "reprint"


@dataclass
class KotPrint:
    order: Order
    is_reprint: bool
    previous_status: str


class KotService:
    """Domain service for kitchen tickets."""

    def __init__(self, db: Session):
        self._db = db
        self._orders = OrderService(db)

    def print_kot(self, order_id: int, user: User, reason: str | None = None) -> KotPrint:
        """
        Print the ticket of an order.

        The first print numbers the ticket, stamps kot_printed_at and
        confirms a pending order. Later prints only add a reprint entry.

        Raises:
            ValidationError: The order is completed or cancelled.
        """
        order = self._orders.get_order(order_id)
        if order.is_terminal:
            raise ValidationError(
                f"Cannot print KOT for a {order.status} order", order_id=order_id, status=order.status
            )

        previous = order.status
        is_reprint = order.kot_printed_at is not None
        now = utc_now()
        with transaction(self._db):
            if order.kot_number is None:
                order.kot_number = next_number(self._db, NumberPrefix.KOT, now)
            if is_reprint:
                order.kot_reprints.append(
                    KotReprint(printed_at=now, reason=reason or DEFAULT_REPRINT_REASON, printed_by_id=user.id)
                )
            else:
                order.kot_printed_at = now
                if order.status == OrderStatus.PENDING:
                    transition_order(order, OrderStatus.CONFIRMED, now)

        logger.info(
            "KOT printed",
            order_id=order.id,
            kot_number=order.kot_number,
            reprint=is_reprint,
            user_id=user.id,
        )
        return KotPrint(order=order, is_reprint=is_reprint, previous_status=previous)

    def queue(self) -> list[Order]:
        """Open tickets, oldest first."""
        return list(
            self._db.scalars(
                select(Order)
                .where(Order.status.in_(OrderStatus.KITCHEN_QUEUE))
                .order_by(Order.created_at.asc(), Order.id.asc())
            ).all()
        )

    def update_item_status(self, order_id: int, item_index: int, new_status: str, user: User) -> ItemStatusChange:
        return self._orders.update_item_status(order_id, item_index, new_status, user)

    def complete(self, order_id: int, user: User) -> StatusChange:
        """
        Mark every line ready and the order ready with its timing.

        Raises:
            InvalidTransitionError: The order cannot move to ready.
        """
        order = self._orders.get_order(order_id)
        previous = order.status
        now = utc_now()
        with transaction(self._db):
            for item in order.items:
                if item.status not in OrderItemStatus.DONE:
                    transition_item(item, OrderItemStatus.READY, now)
            if order.status != OrderStatus.READY:
                transition_order(order, OrderStatus.READY, now)

        logger.info(
            "KOT completed",
            order_id=order.id,
            kot_number=order.kot_number,
            actual_minutes=order.actual_minutes,
            user_id=user.id,
        )
        return StatusChange(order=order, previous_status=previous)

    def history(
        self,
        *,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[Order], int]:
        """Printed tickets, most recently printed first."""
        query = select(Order).where(Order.kot_printed_at.is_not(None))
        if start_date:
            query = query.where(Order.kot_printed_at >= start_date)
        if end_date:
            query = query.where(Order.kot_printed_at <= end_date)

        total = self._db.scalar(select(func.count()).select_from(query.subquery())) or 0
        orders = self._db.scalars(
            query.order_by(Order.kot_printed_at.desc(), Order.id.desc()).offset(offset).limit(limit)
        ).all()
        return list(orders), total

    def stats(self, start_date: datetime | None = None, end_date: datetime | None = None) -> dict:
        conditions = []
        if start_date:
            conditions.append(Order.created_at >= start_date)
        if end_date:
            conditions.append(Order.created_at <= end_date)

        avg_minutes, min_minutes, max_minutes, timed = self._db.execute(
            select(
                func.avg(Order.actual_minutes),
                func.min(Order.actual_minutes),
                func.max(Order.actual_minutes),
                func.count(Order.id),
            ).where(Order.actual_minutes > 0, *conditions)
        ).one()

        by_status = dict(
            self._db.execute(
                select(Order.status, func.count(Order.id)).where(*conditions).group_by(Order.status)
            ).all()
        )

        hour = extract("hour", Order.created_at)
        peak_rows = self._db.execute(
            select(hour.label("hour"), func.count(Order.id).label("order_count"))
            .where(*conditions)
            .group_by(hour)
            .order_by(func.count(Order.id).desc())
            .limit(5)
        ).all()

        return {
            "preparation": {
                "average_minutes": round(float(avg_minutes or 0), 1),
                "min_minutes": int(min_minutes or 0),
                "max_minutes": int(max_minutes or 0),
                "total_orders": timed,
            },
            "orders_by_status": by_status,
            "peak_hours": [{"hour": int(row.hour), "order_count": row.order_count} for row in peak_rows],
        }

    @staticmethod
    def elapsed(order: Order, now: datetime | None = None) -> int:
        """Minutes since the order was placed."""
        return elapsed_minutes(order.created_at, now or utc_now())
