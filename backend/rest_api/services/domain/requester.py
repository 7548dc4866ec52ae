"""
Who placed an order.

An order is requested either by a guest (contact details embedded on the
order) or by a registered customer account. Ownership checks dispatch on
the variant.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from shared.config.constants import Roles

if TYPE_CHECKING:
    from rest_api.models import Order, User


@dataclass(frozen=True)
class Guest:
    name: str | None = None
    phone: str | None = None
    email: str | None = None

    kind = "guest"


@dataclass(frozen=True)
class Registered:
    user_id: int

    kind = "registered"


Requester = Union[Guest, Registered]


def requester_of(order: "Order") -> Requester | None:
    """Read the requester back from the order columns."""
    if order.customer_user_id is not None:
        return Registered(user_id=order.customer_user_id)
    if order.customer_name or order.customer_phone or order.customer_email:
        return Guest(
            name=order.customer_name,
            phone=order.customer_phone,
            email=order.customer_email,
        )
    return None


def apply_requester(order: "Order", requester: Requester | None) -> None:
    """Write the requester onto the order columns."""
    if isinstance(requester, Registered):
        order.customer_user_id = requester.user_id
    elif isinstance(requester, Guest):
        order.customer_name = requester.name
        order.customer_phone = requester.phone
        order.customer_email = requester.email


def is_requested_by(requester: Requester | None, user: "User") -> bool:
    """
    A registered requester matches by user id; a guest matches a
    customer account with the same email (case-insensitive).
    """
    if isinstance(requester, Registered):
        return requester.user_id == user.id
    if isinstance(requester, Guest):
        return bool(requester.email) and requester.email.lower() == user.email.lower()
    return False


def can_view_order(order: "Order", user: "User") -> bool:
    """Row-level read access on top of the module permission."""
    if user.role == Roles.CUSTOMER:
        return is_requested_by(requester_of(order), user)
    if user.role == Roles.WAITER:
        return order.waiter_id is None or order.waiter_id == user.id
    return True
