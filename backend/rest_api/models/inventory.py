"""
Inventory Models: InventoryItem, StockMovement, PurchaseOrder, PurchaseOrderLine.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, CheckConstraint, Float, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import PurchaseOrderStatus

from .base import AuditMixin, Base, BigIntId, UtcDateTime, TimestampMixin, utc_now


class InventoryItem(AuditMixin, Base):
    """
    A stocked ingredient or supply.

    Invariant: current_stock >= 0. Every change is paired with a StockMovement.
    """

    __tablename__ = "inventory_item"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    sku: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    unit: Mapped[str] = mapped_column(Text, nullable=False)

    current_stock: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    minimum_stock: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    maximum_stock: Mapped[float] = mapped_column(Float, default=100, nullable=False)
    reorder_level: Mapped[float] = mapped_column(Float, default=10, nullable=False)

    cost_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    selling_price_cents: Mapped[Optional[int]] = mapped_column(Integer)
    supplier_name: Mapped[Optional[str]] = mapped_column(Text)
    supplier_contact: Mapped[Optional[str]] = mapped_column(Text)

    last_restocked_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime())
    total_purchased: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    total_used: Mapped[float] = mapped_column(Float, default=0, nullable=False)

    movements: Mapped[list["StockMovement"]] = relationship(back_populates="inventory_item")

    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="chk_inventory_stock_non_negative"),
    )

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.reorder_level

    @property
    def stock_value_cents(self) -> int:
        return round(self.current_stock * self.cost_price_cents)

    def __repr__(self) -> str:
        return f"<InventoryItem(id={self.id}, sku='{self.sku}', stock={self.current_stock})>"


class StockMovement(Base):
    """Immutable stock ledger entry."""

    __tablename__ = "stock_movement"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    inventory_item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("inventory_item.id"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit_cost_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    total_cost_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    stock_after: Mapped[float] = mapped_column(Float, nullable=False)
    # Order number or purchase order number that caused the movement
    reference: Mapped[Optional[str]] = mapped_column(Text, index=True)
    reason: Mapped[Optional[str]] = mapped_column(Text)
    performed_by_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("app_user.id"))
    created_at: Mapped[datetime] = mapped_column(UtcDateTime(), default=utc_now, nullable=False)

    inventory_item: Mapped["InventoryItem"] = relationship(back_populates="movements")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_movement_quantity_positive"),
        Index("ix_movement_item_created", "inventory_item_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<StockMovement(id={self.id}, item={self.inventory_item_id}, type='{self.type}', qty={self.quantity})>"


class PurchaseOrder(TimestampMixin, Base):
    __tablename__ = "purchase_order"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    po_number: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    supplier_name: Mapped[str] = mapped_column(Text, nullable=False)
    supplier_contact: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(Text, default=PurchaseOrderStatus.DRAFT, nullable=False)
    subtotal_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    expected_delivery_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime())
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_by_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("app_user.id"))

    lines: Mapped[list["PurchaseOrderLine"]] = relationship(
        back_populates="purchase_order", cascade="all, delete-orphan", lazy="selectin"
    )


class PurchaseOrderLine(Base):
    __tablename__ = "purchase_order_line"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    purchase_order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("purchase_order.id", ondelete="CASCADE"), nullable=False, index=True
    )
    inventory_item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("inventory_item.id"), nullable=False
    )
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit_cost_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    total_cost_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    purchase_order: Mapped["PurchaseOrder"] = relationship(back_populates="lines")
    inventory_item: Mapped["InventoryItem"] = relationship()
