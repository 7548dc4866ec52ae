"""
Order Pricing.

Pure functions turning a cart plus a catalog snapshot into a priced order.
No database access: the caller resolves the menu items first and passes
them in as CatalogEntry values.

Money is integer cents. Tax, service charge and percentage discounts are
computed with Decimal and rounded half-up to the cent, each component on
its own; the total is the exact sum of the rounded components.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Sequence

from shared.config.constants import DiscountType, ErrorMessages
from shared.utils.exceptions import ValidationError
from shared.utils.schemas import DiscountInput, OrderItemInput

_CENT = Decimal("1")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class CatalogEntry:
    """Snapshot of a menu item as seen at order time."""

    menu_item_id: int
    name: str
    price_cents: int
    is_available: bool = True
    variants: Mapping[str, int] = field(default_factory=dict)
    preparation_minutes: int = 15


@dataclass(frozen=True)
class PricedAddOn:
    menu_item_id: int
    name: str
    price_cents: int
    quantity: int


@dataclass(frozen=True)
class PricedLine:
    menu_item_id: int
    name: str
    quantity: int
    variant: str | None
    unit_price_cents: int
    add_ons: tuple[PricedAddOn, ...]
    line_total_cents: int
    special_instructions: str | None
    preparation_minutes: int


@dataclass(frozen=True)
class PricedOrder:
    lines: tuple[PricedLine, ...]
    subtotal_cents: int
    tax_rate: float
    tax_cents: int
    discount_type: str | None
    discount_value: float | None
    discount_cents: int
    discount_reason: str | None
    service_charge_rate: float
    service_charge_cents: int
    delivery_charge_cents: int
    total_cents: int

    @property
    def estimated_minutes(self) -> int | None:
        """The slowest line sets the kitchen estimate."""
        if not self.lines:
            return None
        return max(line.preparation_minutes for line in self.lines)


def percent_of(amount_cents: int, rate: float | Decimal) -> int:
    """`amount * rate / 100` rounded half-up to the cent."""
    value = Decimal(amount_cents) * Decimal(str(rate)) / _HUNDRED
    return int(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def discount_amount(subtotal_cents: int, discount: DiscountInput | None) -> int:
    """
    Percentage discounts apply to the subtotal; fixed and coupon
    discounts carry their value in cents as given.
    """
    if discount is None:
        return 0
    if discount.type == DiscountType.PERCENTAGE:
        return percent_of(subtotal_cents, discount.value)
    return int(Decimal(str(discount.value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def price_line(line: OrderItemInput, catalog: Mapping[int, CatalogEntry]) -> PricedLine:
    """
    Price one cart line.

    Raises:
        ValidationError: Unknown or unavailable menu item.
    """
    entry = catalog.get(line.menu_item_id)
    if entry is None:
        raise ValidationError(ErrorMessages.MENU_ITEM_NOT_FOUND, menu_item_id=line.menu_item_id)
    if not entry.is_available:
        raise ValidationError(
            ErrorMessages.ITEM_UNAVAILABLE.format(name=entry.name),
            menu_item_id=entry.menu_item_id,
        )

    if line.price_cents is not None:
        unit_price = line.price_cents
    elif line.variant and line.variant in entry.variants:
        unit_price = entry.variants[line.variant]
    else:
        unit_price = entry.price_cents

    add_ons: list[PricedAddOn] = []
    per_unit_extras = 0
    for add_on in line.add_ons:
        add_on_entry = catalog.get(add_on.menu_item_id)
        if add_on_entry is None:
            # Unknown add-ons are dropped, not rejected
            continue
        add_on_price = add_on.price_cents if add_on.price_cents is not None else add_on_entry.price_cents
        add_ons.append(
            PricedAddOn(
                menu_item_id=add_on_entry.menu_item_id,
                name=add_on_entry.name,
                price_cents=add_on_price,
                quantity=add_on.quantity,
            )
        )
        per_unit_extras += add_on_price * add_on.quantity

    return PricedLine(
        menu_item_id=entry.menu_item_id,
        name=entry.name,
        quantity=line.quantity,
        variant=line.variant,
        unit_price_cents=unit_price,
        add_ons=tuple(add_ons),
        line_total_cents=(unit_price + per_unit_extras) * line.quantity,
        special_instructions=line.special_instructions,
        preparation_minutes=entry.preparation_minutes,
    )


def price_order(
    items: Sequence[OrderItemInput],
    catalog: Mapping[int, CatalogEntry],
    *,
    discount: DiscountInput | None = None,
    tax_rate: float = 0,
    service_charge_rate: float = 0,
    delivery_charge_cents: int = 0,
) -> PricedOrder:
    """
    Price a whole cart.

    total = subtotal + tax + service charge + delivery - discount

    Raises:
        ValidationError: Unknown or unavailable item, or a discount larger
            than everything it is taken from.
    """
    lines = tuple(price_line(item, catalog) for item in items)
    subtotal = sum(line.line_total_cents for line in lines)

    tax = percent_of(subtotal, tax_rate)
    service = percent_of(subtotal, service_charge_rate)
    discount_cents = discount_amount(subtotal, discount)
    total = subtotal + tax + service + delivery_charge_cents - discount_cents
    if total < 0:
        raise ValidationError("Discount exceeds order amount", discount_cents=discount_cents)

    return PricedOrder(
        lines=lines,
        subtotal_cents=subtotal,
        tax_rate=tax_rate,
        tax_cents=tax,
        discount_type=discount.type if discount else None,
        discount_value=discount.value if discount else None,
        discount_cents=discount_cents,
        discount_reason=discount.reason if discount else None,
        service_charge_rate=service_charge_rate,
        service_charge_cents=service,
        delivery_charge_cents=delivery_charge_cents,
        total_cents=total,
    )
