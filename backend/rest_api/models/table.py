"""
Table Model.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import TableStatus

from .base import AuditMixin, Base, BigIntId, UtcDateTime

if TYPE_CHECKING:
    from .user import User


class Table(AuditMixin, Base):
    """
    Physical seating unit.

    Invariant: current_order_id is set only while status == "occupied".
    current_order_id carries no FK because order.table_id already points
    back here and the pair would form a cycle.
    """

    __tablename__ = "restaurant_table"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    table_number: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    table_name: Mapped[Optional[str]] = mapped_column(Text)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    location: Mapped[str] = mapped_column(Text, default="indoor", nullable=False)
    section: Mapped[Optional[str]] = mapped_column(Text)
    shape: Mapped[str] = mapped_column(Text, default="square", nullable=False)

    status: Mapped[str] = mapped_column(Text, default=TableStatus.AVAILABLE, nullable=False, index=True)
    current_order_id: Mapped[Optional[int]] = mapped_column(BigInteger, index=True)
    assigned_waiter_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("app_user.id"), index=True
    )
    occupied_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime())
    last_cleaned_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime())

    min_order_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    service_charge_rate: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), default=0, nullable=False)
    total_orders: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_revenue_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    assigned_waiter: Mapped[Optional["User"]] = relationship(foreign_keys=[assigned_waiter_id])

    __table_args__ = (
        CheckConstraint("capacity BETWEEN 1 AND 20", name="chk_table_capacity"),
        CheckConstraint(
            "status IN ('available', 'occupied', 'reserved', 'cleaning', 'out_of_order')",
            name="chk_table_status",
        ),
        Index("ix_table_location_section", "location", "section"),
    )

    def release(self, status: str, now: datetime) -> None:
        """Detach the open order and move to `status` (cleaning or available)."""
        self.status = status
        self.current_order_id = None
        self.occupied_at = None
        if status in (TableStatus.AVAILABLE, TableStatus.CLEANING):
            self.last_cleaned_at = now

    def __repr__(self) -> str:
        return f"<Table(id={self.id}, number='{self.table_number}', status='{self.status}')>"
