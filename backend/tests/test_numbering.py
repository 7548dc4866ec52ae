"""
Tests for daily sequence numbers and the order requester variant.
"""

from datetime import datetime, timezone

from rest_api.models import DailyCounter, Order, User
from rest_api.services.domain.numbering import counter_key, format_number, next_number
from rest_api.services.domain.requester import (
    Guest,
    Registered,
    apply_requester,
    can_view_order,
    is_requested_by,
    requester_of,
)


DAY = datetime(2026, 10, 19, 23, 59, tzinfo=timezone.utc)
NEXT_DAY = datetime(2026, 10, 20, 0, 1, tzinfo=timezone.utc)


class TestNumberFormat:

    def test_counter_key_uses_utc_date(self):
        assert counter_key("ORD", DAY) == "ORD-20261019"

    def test_format_pads_to_four(self):
        assert format_number("KOT-20261019", 7) == "KOT-20261019-0007"

    def test_format_grows_past_pad(self):
        assert format_number("ORD-20261019", 12345) == "ORD-20261019-12345"


class TestNextNumber:
    """Test the upsert-increment counter."""

    def test_first_number_of_the_day(self, db_session):
        assert next_number(db_session, "ORD", DAY) == "ORD-20261019-0001"

    def test_increments(self, db_session):
        numbers = [next_number(db_session, "ORD", DAY) for _ in range(3)]
        assert numbers == ["ORD-20261019-0001", "ORD-20261019-0002", "ORD-20261019-0003"]

    def test_prefixes_count_separately(self, db_session):
        next_number(db_session, "ORD", DAY)
        next_number(db_session, "ORD", DAY)
        assert next_number(db_session, "KOT", DAY) == "KOT-20261019-0001"

    def test_resets_on_a_new_day(self, db_session):
        next_number(db_session, "ORD", DAY)
        next_number(db_session, "ORD", DAY)
        assert next_number(db_session, "ORD", NEXT_DAY) == "ORD-20261020-0001"

    def test_counter_row_persisted(self, db_session):
        next_number(db_session, "PO", DAY)
        next_number(db_session, "PO", DAY)
        db_session.commit()
        assert db_session.get(DailyCounter, "PO-20261019").value == 2

    def test_rolled_back_numbers_are_reused(self, db_session):
        next_number(db_session, "ORD", DAY)
        db_session.rollback()
        assert next_number(db_session, "ORD", DAY) == "ORD-20261019-0001"


class TestRequester:
    """Test the Guest | Registered requester variant."""

    def order(self, **kwargs):
        return Order(order_number="ORD-1", order_type="takeaway", **kwargs)

    def user(self, role="customer", user_id=10, email="ana@test.com"):
        return User(id=user_id, email=email, role=role, first_name="Ana", last_name="Diaz", password="x")

    def test_registered_round_trip(self):
        order = self.order()
        apply_requester(order, Registered(user_id=10))
        assert order.customer_user_id == 10
        assert requester_of(order) == Registered(user_id=10)

    def test_guest_round_trip(self):
        order = self.order()
        apply_requester(order, Guest(name="Ana", phone="555", email="ana@test.com"))
        assert requester_of(order) == Guest(name="Ana", phone="555", email="ana@test.com")
        assert requester_of(order).kind == "guest"

    def test_no_requester(self):
        order = self.order()
        apply_requester(order, None)
        assert requester_of(order) is None

    def test_registered_match_by_id(self):
        assert is_requested_by(Registered(user_id=10), self.user())
        assert not is_requested_by(Registered(user_id=11), self.user())

    def test_guest_match_by_email_case_insensitive(self):
        assert is_requested_by(Guest(email="ANA@test.com"), self.user())
        assert not is_requested_by(Guest(name="Ana"), self.user())

    def test_customer_sees_only_own_orders(self):
        mine = self.order(customer_user_id=10)
        theirs = self.order(customer_user_id=11)
        assert can_view_order(mine, self.user())
        assert not can_view_order(theirs, self.user())

    def test_waiter_sees_own_and_unassigned(self):
        waiter = self.user(role="waiter", user_id=3)
        assert can_view_order(self.order(waiter_id=3), waiter)
        assert can_view_order(self.order(waiter_id=None), waiter)
        assert not can_view_order(self.order(waiter_id=4), waiter)

    def test_staff_sees_everything(self):
        cashier = self.user(role="cashier", user_id=5)
        assert can_view_order(self.order(waiter_id=4, customer_user_id=11), cashier)
