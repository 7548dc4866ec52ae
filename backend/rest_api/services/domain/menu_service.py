"""
Menu Service.

Categories and menu items with their variants, add-on links and recipe
ingredients. Order pricing reads the catalog through OrderService; this
service only maintains it.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shared.config.logging import get_logger
from shared.infrastructure.db import transaction
from shared.utils.admin_schemas import MenuCategoryCreate, MenuItemCreate
from shared.utils.exceptions import DuplicateEntityError, NotFoundError, ValidationError
from shared.utils.validators import contains_pattern
from rest_api.models import (
    Category,
    InventoryItem,
    MenuItem,
    MenuItemAddOn,
    MenuItemVariant,
    RecipeIngredient,
)

logger = get_logger(__name__)


class MenuService:
    """Service for catalog maintenance."""

    def __init__(self, db: Session):
        self._db = db

    # =========================================================================
    # Categories
    # =========================================================================

    def list_categories(self) -> list[Category]:
        return list(
            self._db.scalars(
                select(Category)
                .where(Category.is_active.is_(True))
                .order_by(Category.sort_order, Category.name)
            ).all()
        )

    def create_category(self, data: MenuCategoryCreate, user_id: int | None) -> Category:
        name = data.name.strip()
        if self._db.scalar(select(Category.id).where(func.lower(Category.name) == name.lower())):
            raise DuplicateEntityError("Category", name)

        with transaction(self._db):
            category = Category(
                name=name,
                description=data.description,
                sort_order=data.sort_order,
                color=data.color,
                created_by_id=user_id,
            )
            self._db.add(category)

        logger.info("Category created", category_id=category.id, name=name)
        return category

    # =========================================================================
    # Items
    # =========================================================================

    def get_item(self, item_id: int) -> MenuItem:
        item = self._db.scalar(select(MenuItem).where(MenuItem.id == item_id, MenuItem.is_active.is_(True)))
        if not item:
            raise NotFoundError("Menu item", item_id)
        return item

    def list_items(
        self,
        *,
        category_id: int | None = None,
        search: str | None = None,
        is_available: bool | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[MenuItem], int]:
        query = select(MenuItem).where(MenuItem.is_active.is_(True))
        if category_id is not None:
            query = query.where(MenuItem.category_id == category_id)
        if is_available is not None:
            query = query.where(MenuItem.is_available.is_(is_available))
        if search:
            pattern = contains_pattern(search)
            query = query.where(
                MenuItem.name.ilike(pattern, escape="\\") | MenuItem.description.ilike(pattern, escape="\\")
            )

        total = self._db.scalar(select(func.count()).select_from(query.subquery())) or 0
        items = self._db.scalars(query.order_by(MenuItem.name).offset(offset).limit(limit)).all()
        return list(items), total

    def _check_references(self, data: MenuItemCreate) -> None:
        category = self._db.get(Category, data.category_id)
        if category is None or not category.is_active:
            raise ValidationError("Category not found", category_id=data.category_id)

        if data.add_on_item_ids:
            found = set(
                self._db.scalars(select(MenuItem.id).where(MenuItem.id.in_(data.add_on_item_ids))).all()
            )
            missing = set(data.add_on_item_ids) - found
            if missing:
                raise ValidationError("Add-on menu item not found", menu_item_id=min(missing))

        ingredient_ids = {ingredient.inventory_item_id for ingredient in data.ingredients}
        if ingredient_ids:
            found = set(
                self._db.scalars(select(InventoryItem.id).where(InventoryItem.id.in_(ingredient_ids))).all()
            )
            missing = ingredient_ids - found
            if missing:
                raise ValidationError("Inventory item not found", inventory_item_id=min(missing))

        names = [variant.name for variant in data.variants]
        if len(names) != len(set(names)):
            raise ValidationError("Variant names must be unique")

    def create_item(self, data: MenuItemCreate, user_id: int | None) -> MenuItem:
        self._check_references(data)

        with transaction(self._db):
            item = MenuItem(
                name=data.name.strip(),
                description=data.description,
                category_id=data.category_id,
                price_cents=data.price_cents,
                cost_price_cents=data.cost_price_cents,
                preparation_minutes=data.preparation_minutes,
                is_available=data.is_available,
                is_vegetarian=data.is_vegetarian,
                created_by_id=user_id,
                variants=[MenuItemVariant(name=v.name, price_cents=v.price_cents) for v in data.variants],
                add_ons=[MenuItemAddOn(add_on_item_id=add_on_id) for add_on_id in data.add_on_item_ids],
                ingredients=[
                    RecipeIngredient(inventory_item_id=i.inventory_item_id, quantity=i.quantity)
                    for i in data.ingredients
                ],
            )
            self._db.add(item)

        logger.info("Menu item created", menu_item_id=item.id, name=item.name, price_cents=item.price_cents)
        return item

    def set_availability(self, item_id: int, is_available: bool, user_id: int | None) -> MenuItem:
        item = self.get_item(item_id)
        with transaction(self._db):
            item.is_available = is_available
        logger.info("Menu item availability changed", menu_item_id=item.id, is_available=is_available, user_id=user_id)
        return item
