"""
Tests for OrderService: creation, idempotency, status changes, payments
and cancellation, with their table and stock side effects.
"""

from datetime import timezone

import pytest
from sqlalchemy import func, select

from rest_api.models import Order, StockMovement
from rest_api.services.domain import OrderService
from shared.config.constants import OrderItemStatus, OrderStatus, PaymentStatus, TableStatus
from shared.utils.exceptions import (
    ConflictError,
    ForbiddenError,
    InsufficientStockError,
    InvalidStateError,
    InvalidTransitionError,
    ValidationError,
)
from shared.utils.schemas import AddPaymentRequest, CreateOrderRequest


def dine_in(seed_menu, table, quantity=1, **extra):
    return CreateOrderRequest(
        order_type="dine_in",
        table_id=table.id,
        items=[{"menu_item_id": seed_menu["pizza"].id, "quantity": quantity, "variant": "Regular"}],
        **extra,
    )


def takeaway(seed_menu, **extra):
    return CreateOrderRequest(
        order_type="takeaway",
        items=[{"menu_item_id": seed_menu["burger"].id, "quantity": 2}],
        **extra,
    )


class TestCreateOrder:
    """Test order creation."""

    def test_prices_and_numbers_the_order(self, db_session, seed_menu, cashier_user):
        result = OrderService(db_session).create_order(
            CreateOrderRequest(
                order_type="takeaway",
                items=[
                    {
                        "menu_item_id": seed_menu["pizza"].id,
                        "quantity": 2,
                        "variant": "Large",
                        "add_ons": [{"menu_item_id": seed_menu["extra_cheese"].id}],
                    },
                ],
                tax={"rate": 10},
            ),
            cashier_user,
        )
        order = result.order
        assert result.created is True
        assert order.order_number.startswith("ORD-")
        assert order.order_number.endswith("-0001")
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.subtotal_cents == (1400 + 150) * 2
        assert order.tax_cents == 310
        assert order.total_cents == 3410
        assert order.items[0].add_ons[0].name == "Extra cheese"
        assert order.estimated_minutes == 20
        assert order.waiter_id == cashier_user.id

    def test_sequential_numbers(self, db_session, seed_menu, cashier_user):
        service = OrderService(db_session)
        first = service.create_order(takeaway(seed_menu), cashier_user).order
        second = service.create_order(takeaway(seed_menu), cashier_user).order
        assert first.order_number.endswith("-0001")
        assert second.order_number.endswith("-0002")

    def test_missing_items_rejected(self, db_session, cashier_user):
        with pytest.raises(ValidationError) as exc_info:
            OrderService(db_session).create_order(CreateOrderRequest(order_type="takeaway"), cashier_user)
        assert exc_info.value.detail == "Order type and items are required"

    def test_dine_in_requires_table(self, db_session, seed_menu, cashier_user):
        request = CreateOrderRequest(
            order_type="dine_in", items=[{"menu_item_id": seed_menu["burger"].id, "quantity": 1}]
        )
        with pytest.raises(ValidationError) as exc_info:
            OrderService(db_session).create_order(request, cashier_user)
        assert exc_info.value.detail == "Table is required for dine-in orders"

    def test_unavailable_item_rejected(self, db_session, seed_menu, cashier_user):
        seed_menu["burger"].is_available = False
        db_session.commit()
        with pytest.raises(ValidationError):
            OrderService(db_session).create_order(takeaway(seed_menu), cashier_user)

    def test_dine_in_occupies_table(self, db_session, seed_menu, seed_table, waiter_user):
        order = OrderService(db_session).create_order(dine_in(seed_menu, seed_table), waiter_user).order
        db_session.refresh(seed_table)
        assert seed_table.status == TableStatus.OCCUPIED
        assert seed_table.current_order_id == order.id
        assert seed_table.occupied_at is not None

    def test_table_with_open_order_rejected(self, db_session, seed_menu, seed_table, waiter_user):
        service = OrderService(db_session)
        service.create_order(dine_in(seed_menu, seed_table), waiter_user)
        with pytest.raises(ConflictError):
            service.create_order(dine_in(seed_menu, seed_table), waiter_user)

    def test_assigned_waiter_wins(self, db_session, seed_menu, seed_table, waiter_user, cashier_user):
        seed_table.assigned_waiter_id = waiter_user.id
        db_session.commit()
        order = OrderService(db_session).create_order(dine_in(seed_menu, seed_table), cashier_user).order
        assert order.waiter_id == waiter_user.id

    def test_customer_order_is_registered_and_unassigned(self, db_session, seed_menu, customer_user):
        order = OrderService(db_session).create_order(takeaway(seed_menu), customer_user).order
        assert order.customer_user_id == customer_user.id
        assert order.waiter_id is None

    def test_guest_details_stored(self, db_session, seed_menu, cashier_user):
        order = OrderService(db_session).create_order(
            takeaway(seed_menu, customer={"name": "Ana", "email": "ana@test.com"}), cashier_user
        ).order
        assert order.customer_name == "Ana"
        assert order.customer_email == "ana@test.com"
        assert order.customer_user_id is None


class TestIdempotency:
    """Test repeated creates with the same key."""

    def test_same_key_returns_first_order(self, db_session, seed_menu, cashier_user):
        service = OrderService(db_session)
        first = service.create_order(takeaway(seed_menu), cashier_user, idempotency_key="abc-1")
        again = service.create_order(takeaway(seed_menu), cashier_user, idempotency_key="abc-1")
        assert first.created is True
        assert again.created is False
        assert again.order.id == first.order.id
        _, total = service.list_orders(cashier_user)
        assert total == 1

    def test_concurrent_insert_returns_winner(self, db_session, seed_menu, cashier_user, monkeypatch):
        """A create that loses the unique-key race returns the order that won it."""
        service = OrderService(db_session)
        winner = service.create_order(takeaway(seed_menu), cashier_user, idempotency_key="race-1").order

        lookup = service.find_by_idempotency_key
        calls = []

        def miss_first_lookup(key):
            calls.append(key)
            return None if len(calls) == 1 else lookup(key)

        monkeypatch.setattr(service, "find_by_idempotency_key", miss_first_lookup)
        result = service.create_order(takeaway(seed_menu), cashier_user, idempotency_key="race-1")
        assert result.created is False
        assert result.order.id == winner.id
        assert len(calls) == 2
        assert db_session.scalar(select(func.count(Order.id))) == 1

    def test_timestamps_reload_as_utc(self, db_session, seed_menu, cashier_user):
        order = OrderService(db_session).create_order(takeaway(seed_menu), cashier_user).order
        created_at = order.created_at
        db_session.expire_all()
        assert order.created_at.tzinfo == timezone.utc
        assert order.created_at == created_at

    def test_client_request_id_is_a_key(self, db_session, seed_menu, cashier_user):
        service = OrderService(db_session)
        first = service.create_order(takeaway(seed_menu, client_request_id="tab-42"), cashier_user)
        again = service.create_order(takeaway(seed_menu, client_request_id="tab-42"), cashier_user)
        assert again.order.id == first.order.id

    def test_replay_does_not_consume_stock_twice(self, db_session, seed_menu, seed_stock, cashier_user):
        service = OrderService(db_session)
        request = CreateOrderRequest(
            order_type="takeaway", items=[{"menu_item_id": seed_menu["pizza"].id, "quantity": 1}]
        )
        service.create_order(request, cashier_user, idempotency_key="k")
        service.create_order(request, cashier_user, idempotency_key="k")
        db_session.refresh(seed_stock["flour"])
        assert seed_stock["flour"].current_stock == pytest.approx(9.75)

    def test_replay_skips_validation_of_new_table_state(self, db_session, seed_menu, seed_table, waiter_user):
        """A retry of a dine-in create must not trip over the table it occupied."""
        service = OrderService(db_session)
        first = service.create_order(dine_in(seed_menu, seed_table), waiter_user, idempotency_key="t1")
        again = service.create_order(dine_in(seed_menu, seed_table), waiter_user, idempotency_key="t1")
        assert again.order.id == first.order.id


class TestStock:
    """Test recipe consumption and returns."""

    def test_consumes_recipe_ingredients(self, db_session, seed_menu, seed_stock, seed_table, waiter_user):
        order = OrderService(db_session).create_order(dine_in(seed_menu, seed_table, quantity=2), waiter_user).order
        db_session.refresh(seed_stock["flour"])
        db_session.refresh(seed_stock["cheese"])
        assert seed_stock["flour"].current_stock == pytest.approx(9.5)
        assert seed_stock["cheese"].current_stock == pytest.approx(0.6)

        movements = db_session.scalars(
            select(StockMovement).where(StockMovement.reference == order.order_number)
        ).all()
        assert {m.type for m in movements} == {"usage"}
        assert len(movements) == 2

    def test_reports_low_stock(self, db_session, seed_menu, seed_stock, seed_table, waiter_user):
        result = OrderService(db_session).create_order(dine_in(seed_menu, seed_table, quantity=3), waiter_user)
        # cheese: 1 - 0.6 = 0.4 <= 0.5
        assert [item.sku for item in result.low_stock] == ["ING-CHEESE"]

    def test_insufficient_stock_rolls_back_everything(
        self, db_session, seed_menu, seed_stock, seed_table, waiter_user
    ):
        service = OrderService(db_session)
        with pytest.raises(InsufficientStockError):
            service.create_order(dine_in(seed_menu, seed_table, quantity=6), waiter_user)

        db_session.refresh(seed_stock["flour"])
        db_session.refresh(seed_table)
        assert seed_stock["flour"].current_stock == 10
        assert seed_table.status == TableStatus.AVAILABLE
        _, total = service.list_orders(waiter_user)
        assert total == 0

    def test_items_without_recipe_do_not_touch_stock(self, db_session, seed_menu, seed_stock, cashier_user):
        OrderService(db_session).create_order(takeaway(seed_menu), cashier_user)
        assert db_session.scalars(select(StockMovement)).all() == []


class TestStatusChanges:
    """Test explicit and item-driven status changes."""

    def test_valid_progression(self, db_session, seed_menu, cashier_user):
        service = OrderService(db_session)
        order = service.create_order(takeaway(seed_menu), cashier_user).order
        for status in (OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY):
            change = service.update_status(order.id, status, cashier_user)
        assert change.previous_status == OrderStatus.PREPARING
        assert order.status == OrderStatus.READY
        assert order.actual_minutes is not None

    def test_invalid_transition_rejected(self, db_session, seed_menu, cashier_user):
        service = OrderService(db_session)
        order = service.create_order(takeaway(seed_menu), cashier_user).order
        with pytest.raises(InvalidTransitionError):
            service.update_status(order.id, OrderStatus.SERVED, cashier_user)
        db_session.refresh(order)
        assert order.status == OrderStatus.PENDING

    def test_completion_sends_table_to_cleaning(self, db_session, seed_menu, seed_table, waiter_user):
        service = OrderService(db_session)
        order = service.create_order(dine_in(seed_menu, seed_table), waiter_user).order
        for status in (OrderStatus.CONFIRMED, OrderStatus.READY, OrderStatus.SERVED):
            service.update_status(order.id, status, waiter_user)
        change = service.update_status(order.id, OrderStatus.COMPLETED, waiter_user, notes="Paid at bar")

        assert change.table_changed is True
        assert order.notes == "Paid at bar"
        db_session.refresh(seed_table)
        assert seed_table.status == TableStatus.CLEANING
        assert seed_table.total_orders == 1
        assert seed_table.total_revenue_cents == order.total_cents

    def test_item_updates_roll_up(self, db_session, seed_menu, cashier_user):
        service = OrderService(db_session)
        order = service.create_order(
            CreateOrderRequest(
                order_type="takeaway",
                items=[
                    {"menu_item_id": seed_menu["burger"].id, "quantity": 1},
                    {"menu_item_id": seed_menu["pizza"].id, "quantity": 1},
                ],
            ),
            cashier_user,
        ).order
        service.update_status(order.id, OrderStatus.CONFIRMED, cashier_user)

        change = service.update_item_status(order.id, 0, OrderItemStatus.PREPARING, cashier_user)
        assert change.rolled_up_to == OrderStatus.PREPARING
        service.update_item_status(order.id, 0, OrderItemStatus.READY, cashier_user)
        change = service.update_item_status(order.id, 1, OrderItemStatus.READY, cashier_user)
        assert change.rolled_up_to == OrderStatus.READY
        assert change.previous_order_status == OrderStatus.PREPARING
        assert order.status == OrderStatus.READY

    def test_item_index_out_of_range(self, db_session, seed_menu, cashier_user):
        service = OrderService(db_session)
        order = service.create_order(takeaway(seed_menu), cashier_user).order
        with pytest.raises(ValidationError) as exc_info:
            service.update_item_status(order.id, 5, OrderItemStatus.READY, cashier_user)
        assert exc_info.value.detail == "Invalid item index"

    def test_item_update_on_closed_order(self, db_session, seed_menu, cashier_user):
        service = OrderService(db_session)
        order = service.create_order(takeaway(seed_menu), cashier_user).order
        service.cancel_order(order.id, None, cashier_user)
        with pytest.raises(InvalidStateError):
            service.update_item_status(order.id, 0, OrderItemStatus.READY, cashier_user)


class TestPayments:
    """Test the payments ledger and settlement."""

    def test_partial_then_paid_completes_ready_order(self, db_session, seed_menu, seed_table, waiter_user, cashier_user):
        service = OrderService(db_session)
        order = service.create_order(dine_in(seed_menu, seed_table), waiter_user).order
        service.update_status(order.id, OrderStatus.CONFIRMED, waiter_user)
        service.update_status(order.id, OrderStatus.READY, waiter_user)

        change = service.add_payment(order.id, AddPaymentRequest(amount_cents=400, method="cash"), cashier_user)
        assert order.payment_status == PaymentStatus.PARTIAL
        assert order.status == OrderStatus.READY
        assert change.table_changed is False

        change = service.add_payment(
            order.id, AddPaymentRequest(amount_cents=600, method="card", transaction_id="tx-1"), cashier_user
        )
        assert order.paid_cents == 1000
        assert order.payment_status == PaymentStatus.PAID
        assert order.status == OrderStatus.COMPLETED
        assert change.previous_status == OrderStatus.READY
        assert change.table_changed is True
        db_session.refresh(seed_table)
        assert seed_table.status == TableStatus.CLEANING

    def test_prepaid_order_stays_open(self, db_session, seed_menu, cashier_user):
        service = OrderService(db_session)
        order = service.create_order(takeaway(seed_menu), cashier_user).order
        service.add_payment(order.id, AddPaymentRequest(amount_cents=order.total_cents, method="upi"), cashier_user)
        assert order.payment_status == PaymentStatus.PAID
        assert order.status == OrderStatus.PENDING

    def test_cancelled_order_rejects_payment(self, db_session, seed_menu, cashier_user):
        service = OrderService(db_session)
        order = service.create_order(takeaway(seed_menu), cashier_user).order
        service.cancel_order(order.id, "Changed mind", cashier_user)
        with pytest.raises(InvalidStateError):
            service.add_payment(order.id, AddPaymentRequest(amount_cents=100, method="cash"), cashier_user)


class TestCancel:
    """Test cancellation effects."""

    def test_cancel_frees_table_and_returns_stock(self, db_session, seed_menu, seed_stock, seed_table, waiter_user):
        service = OrderService(db_session)
        order = service.create_order(dine_in(seed_menu, seed_table, quantity=2), waiter_user).order

        change = service.cancel_order(order.id, "Guest left", waiter_user)
        assert order.status == OrderStatus.CANCELLED
        assert order.notes == "Cancelled: Guest left"
        assert change.table_changed is True

        db_session.refresh(seed_table)
        db_session.refresh(seed_stock["flour"])
        assert seed_table.status == TableStatus.AVAILABLE
        assert seed_table.current_order_id is None
        assert seed_stock["flour"].current_stock == pytest.approx(10)
        types = sorted(
            m.type
            for m in db_session.scalars(
                select(StockMovement).where(StockMovement.reference == order.order_number)
            ).all()
        )
        assert types == ["return", "return", "usage", "usage"]

    def test_cancel_without_reason(self, db_session, seed_menu, cashier_user):
        service = OrderService(db_session)
        order = service.create_order(takeaway(seed_menu), cashier_user).order
        service.cancel_order(order.id, None, cashier_user)
        assert order.notes == "Cancelled: No reason provided"

    def test_cancel_twice_rejected(self, db_session, seed_menu, cashier_user):
        service = OrderService(db_session)
        order = service.create_order(takeaway(seed_menu), cashier_user).order
        service.cancel_order(order.id, None, cashier_user)
        with pytest.raises(ValidationError) as exc_info:
            service.cancel_order(order.id, None, cashier_user)
        assert exc_info.value.detail == "Cannot cancel completed or already cancelled order"


class TestVisibility:
    """Test role scoping of reads."""

    def test_waiter_lists_only_own_orders(self, db_session, seed_menu, waiter_user, cashier_user):
        service = OrderService(db_session)
        service.create_order(takeaway(seed_menu), cashier_user)
        mine = service.create_order(takeaway(seed_menu), waiter_user).order
        orders, total = service.list_orders(waiter_user)
        assert total == 1
        assert orders[0].id == mine.id

    def test_customer_cannot_read_other_orders(self, db_session, seed_menu, cashier_user, customer_user):
        service = OrderService(db_session)
        order = service.create_order(takeaway(seed_menu), cashier_user).order
        with pytest.raises(ForbiddenError):
            service.get_visible_order(order.id, customer_user)

    def test_customer_sees_guest_order_with_own_email(self, db_session, seed_menu, cashier_user, customer_user):
        service = OrderService(db_session)
        order = service.create_order(
            takeaway(seed_menu, customer={"name": "Test", "email": customer_user.email.upper()}), cashier_user
        ).order
        assert service.get_visible_order(order.id, customer_user).id == order.id
        _, total = service.list_orders(customer_user)
        assert total == 1

    def test_unknown_sort_field_rejected(self, db_session, cashier_user):
        with pytest.raises(ValidationError):
            OrderService(db_session).list_orders(cashier_user, sort_by="password")

    def test_stats(self, db_session, seed_menu, cashier_user):
        service = OrderService(db_session)
        service.create_order(takeaway(seed_menu), cashier_user)
        order = service.create_order(takeaway(seed_menu), cashier_user).order
        service.cancel_order(order.id, None, cashier_user)
        stats = service.stats()
        assert stats["total_orders"] == 2
        assert stats["total_revenue_cents"] == 5000
