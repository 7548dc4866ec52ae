"""
Tests for order and item status transitions, roll-up and table effects.

These work on transient model instances: nothing touches the database.
"""

from datetime import datetime, timedelta, timezone

import pytest

from rest_api.models import Order, OrderItem, Table
from rest_api.services.domain.lifecycle import (
    elapsed_minutes,
    roll_up,
    settle_table,
    transition_item,
    transition_order,
)
from shared.config.constants import (
    ORDER_ITEM_TRANSITIONS,
    ORDER_TRANSITIONS,
    OrderItemStatus,
    OrderStatus,
    TableStatus,
    can_transition_order,
)
from shared.utils.exceptions import InvalidTransitionError


NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def make_order(status, item_statuses=(), **kwargs):
    order = Order(
        order_number="ORD-20261019-0001",
        order_type="dine_in",
        status=status,
        subtotal_cents=1000,
        total_cents=1000,
        created_at=NOW - timedelta(minutes=30),
        **kwargs,
    )
    order.items = [
        OrderItem(
            position=i,
            menu_item_id=1,
            name=f"Item {i}",
            quantity=1,
            unit_price_cents=500,
            line_total_cents=500,
            status=item_status,
        )
        for i, item_status in enumerate(item_statuses)
    ]
    return order


class TestTransitionTables:
    """Test the shape of the transition tables."""

    def test_terminal_states_have_no_exits(self):
        assert ORDER_TRANSITIONS[OrderStatus.COMPLETED] == []
        assert ORDER_TRANSITIONS[OrderStatus.CANCELLED] == []
        assert ORDER_ITEM_TRANSITIONS[OrderItemStatus.SERVED] == []

    def test_every_status_is_listed(self):
        assert set(ORDER_TRANSITIONS) == set(OrderStatus.ALL)
        assert set(ORDER_ITEM_TRANSITIONS) == set(OrderItemStatus.ALL)

    @pytest.mark.parametrize("status", [s for s in OrderStatus.ALL if s not in OrderStatus.TERMINAL])
    def test_every_open_status_can_be_cancelled(self, status):
        assert can_transition_order(status, OrderStatus.CANCELLED)

    def test_no_going_back(self):
        assert not can_transition_order(OrderStatus.READY, OrderStatus.PREPARING)
        assert not can_transition_order(OrderStatus.CONFIRMED, OrderStatus.PENDING)


class TestTransitionOrder:

    def test_allowed_move_returns_previous(self):
        order = make_order(OrderStatus.PENDING)
        assert transition_order(order, OrderStatus.CONFIRMED, NOW) == OrderStatus.PENDING
        assert order.status == OrderStatus.CONFIRMED

    def test_rejected_move_leaves_status(self):
        order = make_order(OrderStatus.COMPLETED)
        with pytest.raises(InvalidTransitionError) as exc_info:
            transition_order(order, OrderStatus.PENDING, NOW)
        assert exc_info.value.status_code == 400
        assert "completed to pending" in exc_info.value.detail
        assert order.status == OrderStatus.COMPLETED

    def test_skipping_confirmation_rejected(self):
        order = make_order(OrderStatus.PENDING)
        with pytest.raises(InvalidTransitionError):
            transition_order(order, OrderStatus.READY, NOW)

    def test_preparing_stamps_start(self):
        order = make_order(OrderStatus.CONFIRMED)
        transition_order(order, OrderStatus.PREPARING, NOW)
        assert order.prep_started_at == NOW

    def test_ready_stamps_completion_from_prep_start(self):
        order = make_order(OrderStatus.PREPARING, prep_started_at=NOW - timedelta(minutes=12))
        transition_order(order, OrderStatus.READY, NOW)
        assert order.prep_completed_at == NOW
        assert order.actual_minutes == 12

    def test_ready_without_prep_start_uses_created_at(self):
        order = make_order(OrderStatus.CONFIRMED)
        transition_order(order, OrderStatus.READY, NOW)
        assert order.actual_minutes == 30


class TestTransitionItem:

    def test_ready_stamps_prepared_at(self):
        order = make_order(OrderStatus.CONFIRMED, [OrderItemStatus.PENDING])
        item = order.items[0]
        assert transition_item(item, OrderItemStatus.READY, NOW) == OrderItemStatus.PENDING
        assert item.prepared_at == NOW

    def test_served_stamps_served_at(self):
        order = make_order(OrderStatus.READY, [OrderItemStatus.READY])
        transition_item(order.items[0], OrderItemStatus.SERVED, NOW)
        assert order.items[0].served_at == NOW

    def test_backwards_rejected(self):
        order = make_order(OrderStatus.READY, [OrderItemStatus.READY])
        with pytest.raises(InvalidTransitionError):
            transition_item(order.items[0], OrderItemStatus.PREPARING, NOW)


class TestRollUp:
    """Test deriving the order status from its items."""

    def test_first_item_preparing_moves_order(self):
        order = make_order(OrderStatus.CONFIRMED, [OrderItemStatus.PREPARING, OrderItemStatus.PENDING])
        assert roll_up(order, NOW) == OrderStatus.PREPARING
        assert order.status == OrderStatus.PREPARING

    def test_all_done_moves_order_to_ready(self):
        order = make_order(OrderStatus.PREPARING, [OrderItemStatus.READY, OrderItemStatus.READY])
        assert roll_up(order, NOW) == OrderStatus.READY
        assert order.prep_completed_at == NOW

    def test_confirmed_straight_to_ready(self):
        order = make_order(OrderStatus.CONFIRMED, [OrderItemStatus.READY])
        assert roll_up(order, NOW) == OrderStatus.READY

    def test_partial_progress_is_no_change(self):
        order = make_order(OrderStatus.PREPARING, [OrderItemStatus.READY, OrderItemStatus.PREPARING])
        assert roll_up(order, NOW) is None
        assert order.status == OrderStatus.PREPARING

    def test_pending_order_not_rolled(self):
        order = make_order(OrderStatus.PENDING, [OrderItemStatus.READY])
        assert roll_up(order, NOW) is None
        assert order.status == OrderStatus.PENDING


class TestSettleTable:
    """Test table effects of terminal order states."""

    def make_table(self, order_id):
        return Table(
            table_number="T1",
            capacity=4,
            status=TableStatus.OCCUPIED,
            current_order_id=order_id,
            occupied_at=NOW - timedelta(hours=1),
            total_orders=0,
            total_revenue_cents=0,
        )

    def test_completed_goes_to_cleaning(self):
        order = make_order(OrderStatus.COMPLETED, id=5)
        table = self.make_table(5)
        assert settle_table(table, order, NOW) is True
        assert table.status == TableStatus.CLEANING
        assert table.current_order_id is None
        assert table.total_orders == 1
        assert table.total_revenue_cents == 1000

    def test_cancelled_frees_table(self):
        order = make_order(OrderStatus.CANCELLED, id=5)
        table = self.make_table(5)
        assert settle_table(table, order, NOW) is True
        assert table.status == TableStatus.AVAILABLE
        assert table.occupied_at is None

    def test_other_order_seated_is_left_alone(self):
        order = make_order(OrderStatus.CANCELLED, id=5)
        table = self.make_table(9)
        assert settle_table(table, order, NOW) is False
        assert table.status == TableStatus.OCCUPIED
        assert table.current_order_id == 9

    def test_no_table(self):
        assert settle_table(None, make_order(OrderStatus.COMPLETED), NOW) is False


class TestElapsedMinutes:

    def test_rounds_up(self):
        assert elapsed_minutes(NOW, NOW + timedelta(seconds=61)) == 2

    def test_partial_minute_counts_as_whole(self):
        assert elapsed_minutes(NOW, NOW + timedelta(minutes=12.2)) == 13

    def test_naive_start_treated_as_utc(self):
        naive = (NOW - timedelta(minutes=5)).replace(tzinfo=None)
        assert elapsed_minutes(naive, NOW) == 5

    def test_never_negative(self):
        assert elapsed_minutes(NOW, NOW - timedelta(minutes=5)) == 0
