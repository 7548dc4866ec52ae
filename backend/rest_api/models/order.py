"""
Order Models: Order, OrderItem, OrderItemAddOn, OrderPayment, KotReprint.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import OrderItemStatus, OrderSource, OrderStatus, PaymentEntryStatus, PaymentStatus

from .base import Base, BigIntId, UtcDateTime, TimestampMixin, utc_now

if TYPE_CHECKING:
    from .menu import MenuItem
    from .table import Table
    from .user import User


class Order(TimestampMixin, Base):
    """
    A customer order and its kitchen ticket.

    Money columns are derived once at creation and never recomputed:
    total_cents == subtotal + tax + service_charge + delivery_charge - discount.
    Orders are never deleted; cancellation is a terminal status.
    """

    __tablename__ = "customer_order"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    order_number: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    # Unique but nullable; NULLs never collide
    idempotency_key: Mapped[Optional[str]] = mapped_column(Text, unique=True)

    order_type: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str] = mapped_column(Text, default=OrderSource.POS, nullable=False)
    status: Mapped[str] = mapped_column(Text, default=OrderStatus.PENDING, nullable=False, index=True)

    table_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("restaurant_table.id"), index=True
    )
    waiter_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("app_user.id"), index=True
    )

    # Requester: a registered user id, or guest contact details
    customer_user_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("app_user.id"), index=True
    )
    customer_name: Mapped[Optional[str]] = mapped_column(Text)
    customer_phone: Mapped[Optional[str]] = mapped_column(Text)
    customer_email: Mapped[Optional[str]] = mapped_column(Text, index=True)
    customer_address: Mapped[Optional[str]] = mapped_column(Text)

    # Money
    subtotal_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    tax_rate: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), default=0, nullable=False)
    tax_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    discount_type: Mapped[Optional[str]] = mapped_column(Text)
    discount_value: Mapped[Optional[float]] = mapped_column(Numeric(12, 2, asdecimal=False))
    discount_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    discount_reason: Mapped[Optional[str]] = mapped_column(Text)
    service_charge_rate: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), default=0, nullable=False)
    service_charge_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    delivery_charge_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    payment_status: Mapped[str] = mapped_column(Text, default=PaymentStatus.PENDING, nullable=False)

    # Kitchen ticket
    kot_number: Mapped[Optional[str]] = mapped_column(Text, unique=True)
    kot_printed_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime(), index=True)

    # Preparation timing
    estimated_minutes: Mapped[Optional[int]] = mapped_column(Integer)
    actual_minutes: Mapped[Optional[int]] = mapped_column(Integer)
    prep_started_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime())
    prep_completed_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime())

    special_instructions: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    # Relationships
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
        lazy="selectin",
    )
    payments: Mapped[list["OrderPayment"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderPayment.id",
        lazy="selectin",
    )
    kot_reprints: Mapped[list["KotReprint"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="KotReprint.id",
        lazy="selectin",
    )
    table: Mapped[Optional["Table"]] = relationship(foreign_keys=[table_id])
    waiter: Mapped[Optional["User"]] = relationship(foreign_keys=[waiter_id])
    customer_user: Mapped[Optional["User"]] = relationship(foreign_keys=[customer_user_id])

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'preparing', 'ready', 'served', 'completed', 'cancelled')",
            name="chk_order_status",
        ),
        CheckConstraint(
            "order_type IN ('dine_in', 'takeaway', 'delivery', 'online')",
            name="chk_order_type",
        ),
        CheckConstraint("total_cents >= 0", name="chk_order_total_non_negative"),
        # Kitchen queue: status filter ordered by creation
        Index("ix_order_status_created", "status", "created_at"),
        Index("ix_order_waiter_created", "waiter_id", "created_at"),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in OrderStatus.TERMINAL

    @property
    def paid_cents(self) -> int:
        return sum(
            p.amount_cents for p in self.payments if p.status == PaymentEntryStatus.SUCCESS
        )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, number='{self.order_number}', status='{self.status}')>"


class OrderItem(Base):
    """One line of an order with its price snapshot and kitchen status."""

    __tablename__ = "order_item"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("customer_order.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    menu_item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("menu_item.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)  # Snapshot at order time
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    variant: Mapped[Optional[str]] = mapped_column(Text)
    unit_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    line_total_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    special_instructions: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(Text, default=OrderItemStatus.PENDING, nullable=False)
    prepared_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime())
    served_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime())

    order: Mapped["Order"] = relationship(back_populates="items")
    menu_item: Mapped["MenuItem"] = relationship()
    add_ons: Mapped[list["OrderItemAddOn"]] = relationship(
        back_populates="order_item", cascade="all, delete-orphan", lazy="selectin"
    )

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="chk_order_item_quantity_positive"),
        CheckConstraint(
            "status IN ('pending', 'preparing', 'ready', 'served')",
            name="chk_order_item_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, name='{self.name}', qty={self.quantity})>"


class OrderItemAddOn(Base):
    __tablename__ = "order_item_add_on"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    order_item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("order_item.id", ondelete="CASCADE"), nullable=False, index=True
    )
    menu_item_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("menu_item.id"), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    order_item: Mapped["OrderItem"] = relationship(back_populates="add_ons")


class OrderPayment(Base):
    """Append-only payments ledger entry."""

    __tablename__ = "order_payment"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("customer_order.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    method: Mapped[str] = mapped_column(Text, nullable=False)
    transaction_id: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(Text, default=PaymentEntryStatus.SUCCESS, nullable=False)
    paid_at: Mapped[datetime] = mapped_column(UtcDateTime(), default=utc_now, nullable=False)
    received_by_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("app_user.id"))

    order: Mapped["Order"] = relationship(back_populates="payments")

    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="chk_payment_amount_positive"),
    )


class KotReprint(Base):
    """A print of the kitchen ticket after the first one."""

    __tablename__ = "kot_reprint"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("customer_order.id", ondelete="CASCADE"), nullable=False, index=True
    )
    printed_at: Mapped[datetime] = mapped_column(UtcDateTime(), default=utc_now, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    printed_by_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("app_user.id"))

    order: Mapped["Order"] = relationship(back_populates="kot_reprints")
