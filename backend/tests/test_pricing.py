"""
Tests for order pricing.

Pure functions, no database. Property tests pin the arithmetic invariants;
the direct cases pin rounding and precedence rules.
"""

import pytest
from hypothesis import given, settings, strategies as st

from rest_api.services.domain.pricing import (
    CatalogEntry,
    discount_amount,
    percent_of,
    price_line,
    price_order,
)
from shared.utils.exceptions import ValidationError
from shared.utils.schemas import AddOnInput, DiscountInput, OrderItemInput


PIZZA = CatalogEntry(
    menu_item_id=1,
    name="Margherita pizza",
    price_cents=1000,
    variants={"Regular": 1000, "Large": 1400},
    preparation_minutes=20,
)
BURGER = CatalogEntry(menu_item_id=2, name="Classic burger", price_cents=1250, preparation_minutes=15)
CHEESE = CatalogEntry(menu_item_id=3, name="Extra cheese", price_cents=150, preparation_minutes=1)
SOLD_OUT = CatalogEntry(menu_item_id=4, name="Tiramisu", price_cents=700, is_available=False)

CATALOG = {entry.menu_item_id: entry for entry in (PIZZA, BURGER, CHEESE, SOLD_OUT)}


class TestPercentOf:
    """Test half-up rounding to the cent."""

    def test_exact(self):
        assert percent_of(10000, 8.5) == 850

    def test_rounds_half_up(self):
        # 1 * 50 / 100 = 0.5 cents
        assert percent_of(1, 50) == 1
        # 333 * 15 / 100 = 49.95 cents
        assert percent_of(333, 15) == 50

    def test_rounds_down_below_half(self):
        # 101 * 10 / 100 = 10.1 cents
        assert percent_of(101, 10) == 10

    def test_zero_rate(self):
        assert percent_of(12345, 0) == 0


class TestDiscountAmount:

    def test_none(self):
        assert discount_amount(5000, None) == 0

    def test_percentage_of_subtotal(self):
        assert discount_amount(5000, DiscountInput(type="percentage", value=10)) == 500

    def test_fixed_is_cents(self):
        assert discount_amount(5000, DiscountInput(type="fixed", value=300)) == 300

    def test_coupon_is_cents(self):
        assert discount_amount(5000, DiscountInput(type="coupon", value=250)) == 250


class TestPriceLine:
    """Test unit price precedence and add-ons."""

    def test_base_price(self):
        line = price_line(OrderItemInput(menu_item_id=2, quantity=2), CATALOG)
        assert line.unit_price_cents == 1250
        assert line.line_total_cents == 2500
        assert line.name == "Classic burger"

    def test_variant_price(self):
        line = price_line(OrderItemInput(menu_item_id=1, quantity=1, variant="Large"), CATALOG)
        assert line.unit_price_cents == 1400

    def test_unknown_variant_falls_back_to_base(self):
        line = price_line(OrderItemInput(menu_item_id=1, quantity=1, variant="Family"), CATALOG)
        assert line.unit_price_cents == 1000
        assert line.variant == "Family"

    def test_explicit_price_wins(self):
        line = price_line(
            OrderItemInput(menu_item_id=1, quantity=1, variant="Large", price_cents=900), CATALOG
        )
        assert line.unit_price_cents == 900

    def test_add_ons_count_per_unit(self):
        line = price_line(
            OrderItemInput(
                menu_item_id=1,
                quantity=2,
                variant="Large",
                add_ons=[AddOnInput(menu_item_id=3, quantity=2)],
            ),
            CATALOG,
        )
        # (1400 + 2 * 150) * 2
        assert line.line_total_cents == 3400
        assert line.add_ons[0].name == "Extra cheese"

    def test_unknown_add_on_dropped(self):
        line = price_line(
            OrderItemInput(menu_item_id=2, quantity=1, add_ons=[AddOnInput(menu_item_id=999)]),
            CATALOG,
        )
        assert line.add_ons == ()
        assert line.line_total_cents == 1250

    def test_unknown_item_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            price_line(OrderItemInput(menu_item_id=999, quantity=1), CATALOG)
        assert exc_info.value.detail == "Menu item not found"

    def test_unavailable_item_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            price_line(OrderItemInput(menu_item_id=4, quantity=1), CATALOG)
        assert exc_info.value.detail == "Tiramisu is currently unavailable"


class TestPriceOrder:
    """Test the order totals."""

    def test_full_breakdown(self):
        priced = price_order(
            [
                OrderItemInput(menu_item_id=1, quantity=2, variant="Large"),
                OrderItemInput(menu_item_id=2, quantity=1),
            ],
            CATALOG,
            discount=DiscountInput(type="percentage", value=10, reason="Regular"),
            tax_rate=8.5,
            service_charge_rate=10,
            delivery_charge_cents=300,
        )
        # 2 * 1400 + 1250
        assert priced.subtotal_cents == 4050
        assert priced.tax_cents == 344  # 344.25
        assert priced.service_charge_cents == 405
        assert priced.discount_cents == 405
        assert priced.total_cents == 4050 + 344 + 405 + 300 - 405
        assert priced.discount_reason == "Regular"
        assert priced.estimated_minutes == 20

    def test_discount_exceeding_total_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            price_order(
                [OrderItemInput(menu_item_id=2, quantity=1)],
                CATALOG,
                discount=DiscountInput(type="fixed", value=5000),
            )
        assert exc_info.value.detail == "Discount exceeds order amount"

    def test_discount_equal_to_total_is_free(self):
        priced = price_order(
            [OrderItemInput(menu_item_id=2, quantity=1)],
            CATALOG,
            discount=DiscountInput(type="fixed", value=1250),
        )
        assert priced.total_cents == 0


quantities = st.integers(min_value=1, max_value=99)
rates = st.decimals(min_value=0, max_value=100, places=2).map(float)


class TestPricingProperties:
    """Arithmetic invariants over random carts."""

    @settings(max_examples=100)
    @given(
        lines=st.lists(
            st.tuples(st.sampled_from([1, 2, 3]), quantities, st.sampled_from([None, "Regular", "Large"])),
            min_size=1,
            max_size=8,
        ),
        tax_rate=rates,
        service_rate=rates,
        delivery=st.integers(min_value=0, max_value=10_000),
    )
    def test_total_is_sum_of_rounded_components(self, lines, tax_rate, service_rate, delivery):
        items = [
            OrderItemInput(menu_item_id=item_id, quantity=qty, variant=variant)
            for item_id, qty, variant in lines
        ]
        priced = price_order(
            items,
            CATALOG,
            tax_rate=tax_rate,
            service_charge_rate=service_rate,
            delivery_charge_cents=delivery,
        )
        assert priced.subtotal_cents == sum(line.line_total_cents for line in priced.lines)
        assert priced.total_cents == (
            priced.subtotal_cents
            + priced.tax_cents
            + priced.service_charge_cents
            + priced.delivery_charge_cents
            - priced.discount_cents
        )
        assert priced.total_cents >= priced.subtotal_cents

    @settings(max_examples=100)
    @given(amount=st.integers(min_value=0, max_value=10_000_000), rate=rates)
    def test_percent_within_half_cent(self, amount, rate):
        exact = amount * rate / 100
        assert abs(percent_of(amount, rate) - exact) <= 0.5 + 1e-6

    @settings(max_examples=50)
    @given(qty=quantities, percent=st.decimals(min_value=0, max_value=100, places=2).map(float))
    def test_percentage_discount_never_negative_total(self, qty, percent):
        priced = price_order(
            [OrderItemInput(menu_item_id=2, quantity=qty)],
            CATALOG,
            discount=DiscountInput(type="percentage", value=percent),
        )
        assert 0 <= priced.total_cents <= priced.subtotal_cents
