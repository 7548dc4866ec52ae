"""
Menu Models: Category, MenuItem, MenuItemVariant, MenuItemAddOn, RecipeIngredient.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Float, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, BigIntId

if TYPE_CHECKING:
    from .inventory import InventoryItem


class Category(AuditMixin, Base):
    __tablename__ = "category"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    color: Mapped[str] = mapped_column(Text, default="#1976d2", nullable=False)

    items: Mapped[list["MenuItem"]] = relationship(back_populates="category")


class MenuItem(AuditMixin, Base):
    """
    A sellable dish or drink.

    `is_available` is the day-to-day toggle checked at order time;
    `is_active` is the soft delete flag.
    """

    __tablename__ = "menu_item"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    category_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("category.id"), nullable=False, index=True
    )
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    cost_price_cents: Mapped[Optional[int]] = mapped_column(Integer)
    preparation_minutes: Mapped[int] = mapped_column(Integer, default=15, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_vegetarian: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    category: Mapped["Category"] = relationship(back_populates="items")
    variants: Mapped[list["MenuItemVariant"]] = relationship(
        back_populates="menu_item", cascade="all, delete-orphan", lazy="selectin"
    )
    add_ons: Mapped[list["MenuItemAddOn"]] = relationship(
        back_populates="menu_item",
        cascade="all, delete-orphan",
        foreign_keys="MenuItemAddOn.menu_item_id",
        lazy="selectin",
    )
    ingredients: Mapped[list["RecipeIngredient"]] = relationship(
        back_populates="menu_item", cascade="all, delete-orphan", lazy="selectin"
    )

    __table_args__ = (
        CheckConstraint("price_cents >= 0", name="chk_menu_item_price_positive"),
    )

    def variant_price(self, variant_name: str | None) -> int | None:
        if not variant_name:
            return None
        for variant in self.variants:
            if variant.name == variant_name:
                return variant.price_cents
        return None

    def __repr__(self) -> str:
        return f"<MenuItem(id={self.id}, name='{self.name}', price_cents={self.price_cents})>"


class MenuItemVariant(Base):
    """Named size/portion with its own price (e.g. "Large")."""

    __tablename__ = "menu_item_variant"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    menu_item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("menu_item.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    menu_item: Mapped["MenuItem"] = relationship(back_populates="variants")

    __table_args__ = (
        UniqueConstraint("menu_item_id", "name", name="uq_menu_item_variant_name"),
    )


class MenuItemAddOn(Base):
    """Another menu item offered as an extra on this one."""

    __tablename__ = "menu_item_add_on"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    menu_item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("menu_item.id", ondelete="CASCADE"), nullable=False, index=True
    )
    add_on_item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("menu_item.id"), nullable=False
    )

    menu_item: Mapped["MenuItem"] = relationship(back_populates="add_ons", foreign_keys=[menu_item_id])
    add_on_item: Mapped["MenuItem"] = relationship(foreign_keys=[add_on_item_id])


class RecipeIngredient(Base):
    """Stock consumed per unit sold of a menu item."""

    __tablename__ = "recipe_ingredient"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    menu_item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("menu_item.id", ondelete="CASCADE"), nullable=False, index=True
    )
    inventory_item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("inventory_item.id"), nullable=False, index=True
    )
    quantity: Mapped[float] = mapped_column(Float, nullable=False)

    menu_item: Mapped["MenuItem"] = relationship(back_populates="ingredients")
    inventory_item: Mapped["InventoryItem"] = relationship()

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_recipe_quantity_positive"),
    )
