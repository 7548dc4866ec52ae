"""
Order Domain Service.

Creation (priced, numbered, idempotent), listing with role scoping, and
every status change an order goes through outside the kitchen: explicit
status updates, item updates, payments and cancellation. Table and stock
side effects are written in the same transaction as the order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shared.config.constants import (
    ErrorMessages,
    NumberPrefix,
    OrderStatus,
    OrderType,
    PaymentEntryStatus,
    PaymentStatus,
    Roles,
    TableStatus,
)
from shared.config.logging import orders_logger as logger
from shared.infrastructure.db import transaction
from shared.utils.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from shared.utils.schemas import AddPaymentRequest, CreateOrderRequest
from rest_api.models import (
    InventoryItem,
    MenuItem,
    Order,
    OrderItem,
    OrderItemAddOn,
    OrderPayment,
    Table,
    User,
)
from rest_api.models.base import utc_now
from rest_api.services.domain.inventory_service import InventoryService
from rest_api.services.domain.lifecycle import (
    occupy_table,
    roll_up,
    settle_table,
    transition_item,
    transition_order,
)
from rest_api.services.domain.numbering import next_number
from rest_api.services.domain.pricing import CatalogEntry, PricedOrder, price_order
from rest_api.services.domain.requester import (
    Guest,
    Registered,
    Requester,
    apply_requester,
    can_view_order,
)

SORTABLE_FIELDS = {
    "created_at": Order.created_at,
    "updated_at": Order.updated_at,
    "order_number": Order.order_number,
    "total_cents": Order.total_cents,
    "status": Order.status,
}


@dataclass
class CreateOrderResult:
    order: Order
    created: bool
    low_stock: list[InventoryItem] = field(default_factory=list)


@dataclass
class StatusChange:
    """Outcome of a status-changing operation, used to pick the events to emit."""

    order: Order
    previous_status: str
    table_changed: bool = False


@dataclass
class ItemStatusChange:
    order: Order
    item_index: int
    previous_item_status: str
    previous_order_status: str
    rolled_up_to: str | None = None


class OrderService:
    """Domain service for Order operations."""

    def __init__(self, db: Session):
        self._db = db
        self._inventory = InventoryService(db)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_order(self, order_id: int) -> Order:
        order = self._db.get(Order, order_id)
        if not order:
            raise NotFoundError("Order", order_id)
        return order

    def get_visible_order(self, order_id: int, user: User) -> Order:
        """Order the user may see: waiters their own, customers the ones they requested."""
        order = self.get_order(order_id)
        if not can_view_order(order, user):
            raise ForbiddenError("access this order", user_id=user.id, order_id=order_id)
        return order

    def find_by_idempotency_key(self, key: str) -> Order | None:
        return self._db.scalar(select(Order).where(Order.idempotency_key == key))

    def list_orders(
        self,
        user: User,
        *,
        statuses: list[str] | None = None,
        order_type: str | None = None,
        table_id: int | None = None,
        waiter_id: int | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Order], int]:
        """
        Filtered, paginated orders.

        Waiters only see orders they serve; customers only see orders they
        requested, by account or by guest email.
        """
        query = select(Order)
        if statuses:
            query = query.where(Order.status.in_(statuses))
        if order_type:
            query = query.where(Order.order_type == order_type)
        if table_id is not None:
            query = query.where(Order.table_id == table_id)
        if waiter_id is not None:
            query = query.where(Order.waiter_id == waiter_id)
        if start_date:
            query = query.where(Order.created_at >= start_date)
        if end_date:
            query = query.where(Order.created_at <= end_date)

        if user.role == Roles.WAITER:
            query = query.where(Order.waiter_id == user.id)
        elif user.role == Roles.CUSTOMER:
            query = query.where(
                or_(
                    Order.customer_user_id == user.id,
                    func.lower(Order.customer_email) == user.email.lower(),
                )
            )

        column = SORTABLE_FIELDS.get(sort_by)
        if column is None:
            raise ValidationError(f"Cannot sort by {sort_by}", sort_by=sort_by)
        ordering = column.asc() if sort_order == "asc" else column.desc()

        total = self._db.scalar(select(func.count()).select_from(query.subquery())) or 0
        orders = self._db.scalars(query.order_by(ordering, Order.id.desc()).offset(offset).limit(limit)).all()
        return list(orders), total

    # =========================================================================
    # Creation
    # =========================================================================

    def _load_catalog(self, request: CreateOrderRequest) -> dict[int, CatalogEntry]:
        """Snapshot every menu item the cart references, add-ons included."""
        ids = {line.menu_item_id for line in request.items}
        ids.update(add_on.menu_item_id for line in request.items for add_on in line.add_ons)

        items = self._db.scalars(
            select(MenuItem).where(MenuItem.id.in_(ids), MenuItem.is_active.is_(True))
        ).all()
        return {
            item.id: CatalogEntry(
                menu_item_id=item.id,
                name=item.name,
                price_cents=item.price_cents,
                is_available=item.is_available,
                variants={variant.name: variant.price_cents for variant in item.variants},
                preparation_minutes=item.preparation_minutes,
            )
            for item in items
        }

    def _resolve_table(self, table_id: int) -> Table:
        """
        Table that can take a new dine-in order.

        Raises:
            NotFoundError: Unknown or inactive table.
            ConflictError: Out of order, or already seating an open order.
        """
        table = self._db.scalar(
            select(Table).where(Table.id == table_id, Table.is_active.is_(True)).with_for_update()
        )
        if not table:
            raise NotFoundError("Table", table_id)
        if table.status == TableStatus.OUT_OF_ORDER:
            raise ConflictError(f"Table {table.table_number} is out of order", table_id=table_id)
        if table.current_order_id is not None:
            current = self._db.get(Order, table.current_order_id)
            if current is not None and not current.is_terminal:
                raise ConflictError(
                    f"Table {table.table_number} already has an open order",
                    table_id=table_id,
                    current_order_id=current.id,
                )
        return table

    @staticmethod
    def _requester_for(request: CreateOrderRequest, user: User) -> Requester | None:
        if user.role == Roles.CUSTOMER:
            return Registered(user_id=user.id)
        if request.customer_user_id is not None:
            return Registered(user_id=request.customer_user_id)
        if request.customer is not None:
            return Guest(
                name=request.customer.name,
                phone=request.customer.phone,
                email=request.customer.email,
            )
        return None

    def _build_order(
        self,
        request: CreateOrderRequest,
        priced: PricedOrder,
        user: User,
        table: Table | None,
        idempotency_key: str | None,
    ) -> Order:
        if table is not None and table.assigned_waiter_id is not None:
            waiter_id = table.assigned_waiter_id
        elif request.waiter_id is not None:
            waiter_id = request.waiter_id
        else:
            waiter_id = None if user.role == Roles.CUSTOMER else user.id

        order = Order(
            order_number=next_number(self._db, NumberPrefix.ORDER),
            idempotency_key=idempotency_key,
            order_type=request.order_type,
            source=request.source,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            table_id=table.id if table is not None else None,
            waiter_id=waiter_id,
            customer_address=request.customer.address if request.customer else None,
            subtotal_cents=priced.subtotal_cents,
            tax_rate=priced.tax_rate,
            tax_cents=priced.tax_cents,
            discount_type=priced.discount_type,
            discount_value=priced.discount_value,
            discount_cents=priced.discount_cents,
            discount_reason=priced.discount_reason,
            service_charge_rate=priced.service_charge_rate,
            service_charge_cents=priced.service_charge_cents,
            delivery_charge_cents=priced.delivery_charge_cents,
            total_cents=priced.total_cents,
            estimated_minutes=priced.estimated_minutes,
            special_instructions=request.special_instructions,
        )
        apply_requester(order, self._requester_for(request, user))

        for position, line in enumerate(priced.lines):
            order.items.append(
                OrderItem(
                    position=position,
                    menu_item_id=line.menu_item_id,
                    name=line.name,
                    quantity=line.quantity,
                    variant=line.variant,
                    unit_price_cents=line.unit_price_cents,
                    line_total_cents=line.line_total_cents,
                    special_instructions=line.special_instructions,
                    add_ons=[
                        OrderItemAddOn(
                            menu_item_id=add_on.menu_item_id,
                            name=add_on.name,
                            price_cents=add_on.price_cents,
                            quantity=add_on.quantity,
                        )
                        for add_on in line.add_ons
                    ],
                )
            )
        return order

    def create_order(
        self,
        request: CreateOrderRequest,
        user: User,
        idempotency_key: str | None = None,
    ) -> CreateOrderResult:
        """
        Create a priced order.

        A repeated idempotency key returns the order created first, both on
        a plain retry and when two requests race to insert it.

        Raises:
            ValidationError: Missing type/items/table, unknown or unavailable item.
            NotFoundError: Unknown table.
            ConflictError: Table out of order or already occupied.
            InsufficientStockError: Recipe stock would go negative.
        """
        key = idempotency_key or request.client_request_id
        if not request.order_type or not request.items:
            raise ValidationError(ErrorMessages.ORDER_TYPE_AND_ITEMS_REQUIRED)

        if key:
            existing = self.find_by_idempotency_key(key)
            if existing:
                logger.info("Idempotent order replay", order_id=existing.id, idempotency_key=key)
                return CreateOrderResult(order=existing, created=False)

        is_dine_in = request.order_type == OrderType.DINE_IN
        if is_dine_in and request.table_id is None:
            raise ValidationError(ErrorMessages.TABLE_REQUIRED)

        priced = price_order(
            request.items,
            self._load_catalog(request),
            discount=request.discount,
            tax_rate=request.tax.rate if request.tax else 0,
            service_charge_rate=request.service_charge.rate if request.service_charge else 0,
            delivery_charge_cents=request.delivery_charge_cents,
        )

        now = utc_now()
        try:
            with transaction(self._db):
                table = self._resolve_table(request.table_id) if is_dine_in else None
                order = self._build_order(request, priced, user, table, key)
                self._db.add(order)
                self._db.flush()

                if table is not None:
                    occupy_table(table, order, now)
                low_stock = self._inventory.consume_for_order(order, user.id, now)
        except IntegrityError:
            if not key:
                raise
            winner = self.find_by_idempotency_key(key)
            if winner is None:
                raise
            logger.info("Idempotent order race resolved", order_id=winner.id, idempotency_key=key)
            return CreateOrderResult(order=winner, created=False)

        logger.info(
            "Order created",
            order_id=order.id,
            order_number=order.order_number,
            order_type=order.order_type,
            total_cents=order.total_cents,
            items=len(order.items),
        )
        return CreateOrderResult(order=order, created=True, low_stock=low_stock)

    # =========================================================================
    # Status changes
    # =========================================================================

    def _close_out(self, order: Order, user: User, now: datetime) -> bool:
        """Table and stock effects of reaching completed or cancelled."""
        table_changed = settle_table(order.table, order, now)
        if order.status == OrderStatus.CANCELLED:
            self._inventory.return_for_order(order, user.id, now)
        return table_changed

    def update_status(
        self,
        order_id: int,
        new_status: str,
        user: User,
        notes: str | None = None,
    ) -> StatusChange:
        """
        Explicit status update.

        Raises:
            InvalidTransitionError: Not allowed from the current status.
        """
        order = self.get_order(order_id)
        now = utc_now()
        with transaction(self._db):
            previous = transition_order(order, new_status, now)
            if notes:
                order.notes = notes
            table_changed = False
            if order.is_terminal:
                table_changed = self._close_out(order, user, now)

        logger.info(
            "Order status updated",
            order_id=order.id,
            from_status=previous,
            to_status=new_status,
            user_id=user.id,
        )
        return StatusChange(order=order, previous_status=previous, table_changed=table_changed)

    def update_item_status(
        self,
        order_id: int,
        item_index: int,
        new_status: str,
        user: User,
    ) -> ItemStatusChange:
        """
        Move one line and roll the result up into the order status.

        Raises:
            ValidationError: Index out of range.
            InvalidStateError: The order is already closed.
            InvalidTransitionError: Not allowed from the line's current status.
        """
        order = self.get_order(order_id)
        if not 0 <= item_index < len(order.items):
            raise ValidationError(ErrorMessages.INVALID_ITEM_INDEX, order_id=order_id, item_index=item_index)
        if order.is_terminal:
            raise InvalidStateError("Order", order.status, OrderStatus.KITCHEN_QUEUE + OrderStatus.AWAITING_SETTLEMENT)

        item = order.items[item_index]
        previous_order_status = order.status
        now = utc_now()
        with transaction(self._db):
            previous_item_status = transition_item(item, new_status, now)
            rolled_up_to = roll_up(order, now)

        logger.info(
            "Order item status updated",
            order_id=order.id,
            item_index=item_index,
            from_status=previous_item_status,
            to_status=new_status,
            order_status=order.status,
        )
        return ItemStatusChange(
            order=order,
            item_index=item_index,
            previous_item_status=previous_item_status,
            previous_order_status=previous_order_status,
            rolled_up_to=rolled_up_to,
        )

    def add_payment(self, order_id: int, data: AddPaymentRequest, user: User) -> StatusChange:
        """
        Append a successful payment.

        Once payments cover the total the order is paid, and a ready or
        served order is completed.

        Raises:
            InvalidStateError: The order is cancelled.
        """
        order = self.get_order(order_id)
        if order.status == OrderStatus.CANCELLED:
            raise InvalidStateError("Order", order.status, detail="Cannot add payment to a cancelled order")

        previous = order.status
        table_changed = False
        now = utc_now()
        with transaction(self._db):
            order.payments.append(
                OrderPayment(
                    amount_cents=data.amount_cents,
                    method=data.method,
                    transaction_id=data.transaction_id,
                    status=PaymentEntryStatus.SUCCESS,
                    paid_at=now,
                    received_by_id=user.id,
                )
            )
            if order.paid_cents >= order.total_cents:
                order.payment_status = PaymentStatus.PAID
                if order.status in OrderStatus.AWAITING_SETTLEMENT:
                    transition_order(order, OrderStatus.COMPLETED, now)
                    table_changed = self._close_out(order, user, now)
            else:
                order.payment_status = PaymentStatus.PARTIAL

        logger.info(
            "Payment recorded",
            order_id=order.id,
            amount_cents=data.amount_cents,
            method=data.method,
            paid_cents=order.paid_cents,
            payment_status=order.payment_status,
        )
        return StatusChange(order=order, previous_status=previous, table_changed=table_changed)

    def cancel_order(self, order_id: int, reason: str | None, user: User) -> StatusChange:
        """
        Cancel an open order, free its table and put its stock back.

        Raises:
            ValidationError: Already completed or cancelled.
        """
        order = self.get_order(order_id)
        if order.is_terminal:
            raise ValidationError(ErrorMessages.CANNOT_CANCEL, order_id=order_id, status=order.status)

        now = utc_now()
        with transaction(self._db):
            previous = transition_order(order, OrderStatus.CANCELLED, now)
            order.notes = f"Cancelled: {reason or 'No reason provided'}"
            table_changed = self._close_out(order, user, now)

        logger.info("Order cancelled", order_id=order.id, from_status=previous, user_id=user.id)
        return StatusChange(order=order, previous_status=previous, table_changed=table_changed)

    # =========================================================================
    # Analytics
    # =========================================================================

    def stats(self, start_date: datetime | None = None, end_date: datetime | None = None) -> dict:
        conditions = []
        if start_date:
            conditions.append(Order.created_at >= start_date)
        if end_date:
            conditions.append(Order.created_at <= end_date)

        total_orders, revenue = self._db.execute(
            select(func.count(Order.id), func.coalesce(func.sum(Order.total_cents), 0)).where(*conditions)
        ).one()
        by_status = dict(
            self._db.execute(select(Order.status, func.count(Order.id)).where(*conditions).group_by(Order.status)).all()
        )
        by_type = dict(
            self._db.execute(
                select(Order.order_type, func.count(Order.id)).where(*conditions).group_by(Order.order_type)
            ).all()
        )

        return {
            "total_orders": total_orders,
            "total_revenue_cents": int(revenue),
            "average_order_value_cents": round(revenue / total_orders) if total_orders else 0,
            "orders_by_status": by_status,
            "orders_by_type": by_type,
        }
