"""
Inventory Domain Service.

Stock levels, the movement ledger, purchase orders and recipe consumption
for orders. Every stock change writes exactly one StockMovement and keeps
current_stock >= 0; a change that would go negative is rejected before
anything is written.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shared.config.constants import MovementType, NumberPrefix
from shared.config.logging import inventory_logger as logger
from shared.infrastructure.db import transaction
from shared.utils.admin_schemas import InventoryItemCreate, PurchaseOrderCreate, StockUpdateRequest
from shared.utils.exceptions import DuplicateEntityError, InsufficientStockError, NotFoundError, ValidationError
from shared.utils.validators import contains_pattern
from rest_api.models import InventoryItem, PurchaseOrder, PurchaseOrderLine, StockMovement
from rest_api.models.base import utc_now
from rest_api.services.domain.numbering import next_number

if TYPE_CHECKING:
    from rest_api.models import Order


class InventoryService:
    """Domain service for stock and purchasing."""

    def __init__(self, db: Session):
        self._db = db

    # =========================================================================
    # Items
    # =========================================================================

    def get_item(self, item_id: int) -> InventoryItem:
        item = self._db.scalar(
            select(InventoryItem).where(InventoryItem.id == item_id, InventoryItem.is_active.is_(True))
        )
        if not item:
            raise NotFoundError("Inventory item", item_id)
        return item

    def list_items(
        self,
        *,
        category: str | None = None,
        low_stock: bool = False,
        search: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[InventoryItem], int]:
        query = select(InventoryItem).where(InventoryItem.is_active.is_(True))
        if category:
            query = query.where(InventoryItem.category == category)
        if low_stock:
            query = query.where(InventoryItem.current_stock <= InventoryItem.reorder_level)
        if search:
            pattern = contains_pattern(search)
            query = query.where(
                InventoryItem.name.ilike(pattern, escape="\\") | InventoryItem.sku.ilike(pattern, escape="\\")
            )

        total = self._db.scalar(select(func.count()).select_from(query.subquery())) or 0
        items = self._db.scalars(query.order_by(InventoryItem.name).offset(offset).limit(limit)).all()
        return list(items), total

    def create_item(self, data: InventoryItemCreate, user_id: int | None) -> InventoryItem:
        sku = data.sku.strip()
        if self._db.scalar(select(InventoryItem.id).where(InventoryItem.sku == sku)):
            raise DuplicateEntityError("SKU", sku)

        now = utc_now()
        with transaction(self._db):
            item = InventoryItem(
                **data.model_dump(exclude={"sku", "name"}),
                name=data.name.strip(),
                sku=sku,
                created_by_id=user_id,
                last_restocked_at=now,
            )
            self._db.add(item)
            self._db.flush()

            if item.current_stock > 0:
                self._db.add(
                    StockMovement(
                        inventory_item_id=item.id,
                        type=MovementType.ADJUSTMENT,
                        quantity=item.current_stock,
                        unit_cost_cents=item.cost_price_cents,
                        total_cost_cents=round(item.current_stock * item.cost_price_cents),
                        stock_after=item.current_stock,
                        reason="Initial stock entry",
                        performed_by_id=user_id,
                        created_at=now,
                    )
                )

        logger.info("Inventory item created", item_id=item.id, sku=sku)
        return item

    def low_stock_items(self) -> list[InventoryItem]:
        return list(
            self._db.scalars(
                select(InventoryItem)
                .where(
                    InventoryItem.is_active.is_(True),
                    InventoryItem.current_stock <= InventoryItem.reorder_level,
                )
                .order_by(InventoryItem.current_stock)
            ).all()
        )

    # =========================================================================
    # Movements
    # =========================================================================

    def apply_movement(
        self,
        item: InventoryItem,
        movement_type: str,
        quantity: float,
        *,
        unit_cost_cents: int | None = None,
        reason: str | None = None,
        reference: str | None = None,
        user_id: int | None = None,
        now: datetime | None = None,
    ) -> StockMovement:
        """
        Change stock by `quantity` and record the movement. Purchases and
        returns add; every other type subtracts.

        Raises:
            InsufficientStockError: The result would be negative.
        """
        if quantity <= 0:
            raise ValidationError("Quantity must be positive", item_id=item.id)
        now = now or utc_now()

        if movement_type in MovementType.INBOUND:
            new_stock = item.current_stock + quantity
        else:
            new_stock = item.current_stock - quantity
            if new_stock < 0:
                raise InsufficientStockError(item.name, item.current_stock, quantity, item_id=item.id)

        if movement_type == MovementType.PURCHASE:
            item.total_purchased += quantity
            item.last_restocked_at = now
        elif movement_type == MovementType.RETURN:
            item.total_purchased += quantity
        else:
            item.total_used += quantity
        item.current_stock = new_stock

        cost = unit_cost_cents if unit_cost_cents is not None else item.cost_price_cents
        movement = StockMovement(
            inventory_item_id=item.id,
            type=movement_type,
            quantity=quantity,
            unit_cost_cents=cost,
            total_cost_cents=round(quantity * cost),
            stock_after=new_stock,
            reference=reference,
            reason=reason or f"Stock {movement_type}",
            performed_by_id=user_id,
            created_at=now,
        )
        self._db.add(movement)
        return movement

    def update_stock(
        self, item_id: int, data: StockUpdateRequest, user_id: int | None
    ) -> tuple[InventoryItem, StockMovement]:
        """Manual movement from the back office, committed on its own."""
        item = self.get_item(item_id)
        with transaction(self._db):
            movement = self.apply_movement(
                item,
                data.type,
                data.quantity,
                unit_cost_cents=data.unit_cost_cents,
                reason=data.reason,
                user_id=user_id,
            )
        logger.info(
            "Stock updated",
            item_id=item.id,
            type=data.type,
            quantity=data.quantity,
            stock_after=item.current_stock,
        )
        return item, movement

    def list_movements(
        self,
        *,
        item_id: int | None = None,
        movement_type: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[tuple[StockMovement, str]], int]:
        query = select(StockMovement, InventoryItem.name).join(
            InventoryItem, StockMovement.inventory_item_id == InventoryItem.id
        )
        if item_id is not None:
            query = query.where(StockMovement.inventory_item_id == item_id)
        if movement_type:
            query = query.where(StockMovement.type == movement_type)
        if start_date:
            query = query.where(StockMovement.created_at >= start_date)
        if end_date:
            query = query.where(StockMovement.created_at <= end_date)

        total = self._db.scalar(select(func.count()).select_from(query.subquery())) or 0
        rows = self._db.execute(
            query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc()).offset(offset).limit(limit)
        ).all()
        return [(movement, name) for movement, name in rows], total

    # =========================================================================
    # Recipe consumption
    # =========================================================================

    def consume_for_order(self, order: "Order", user_id: int | None, now: datetime) -> list[InventoryItem]:
        """
        Take the recipe ingredients of every order line out of stock as
        `usage` movements referencing the order number. Runs inside the
        order's transaction.

        Returns the items now at or below their reorder level.

        Raises:
            InsufficientStockError: Any ingredient would go negative. Checked
                for all ingredients before any movement is written.
        """
        required: dict[int, float] = defaultdict(float)
        for line in order.items:
            for ingredient in line.menu_item.ingredients:
                required[ingredient.inventory_item_id] += ingredient.quantity * line.quantity
        if not required:
            return []

        items = {
            item.id: item
            for item in self._db.scalars(
                select(InventoryItem).where(InventoryItem.id.in_(required.keys()))
            ).all()
        }
        for item_id, quantity in required.items():
            item = items.get(item_id)
            if item is not None and item.is_active and item.current_stock < quantity:
                raise InsufficientStockError(item.name, item.current_stock, quantity, item_id=item_id)

        low: list[InventoryItem] = []
        for item_id, quantity in required.items():
            item = items.get(item_id)
            if item is None or not item.is_active:
                continue
            self.apply_movement(
                item,
                MovementType.USAGE,
                quantity,
                reason=f"Used for order {order.order_number}",
                reference=order.order_number,
                user_id=user_id,
                now=now,
            )
            if item.is_low_stock:
                low.append(item)
        return low

    def return_for_order(self, order: "Order", user_id: int | None, now: datetime) -> int:
        """
        Put back what `consume_for_order` took for a cancelled order.
        Returns the number of return movements written.
        """
        net: dict[int, float] = defaultdict(float)
        for movement in self._db.scalars(
            select(StockMovement).where(StockMovement.reference == order.order_number)
        ).all():
            if movement.type == MovementType.USAGE:
                net[movement.inventory_item_id] += movement.quantity
            elif movement.type == MovementType.RETURN:
                net[movement.inventory_item_id] -= movement.quantity

        written = 0
        for item_id, quantity in net.items():
            if quantity <= 0:
                continue
            item = self._db.get(InventoryItem, item_id)
            if item is None:
                continue
            self.apply_movement(
                item,
                MovementType.RETURN,
                quantity,
                reason=f"Order {order.order_number} cancelled",
                reference=order.order_number,
                user_id=user_id,
                now=now,
            )
            written += 1
        return written

    # =========================================================================
    # Purchase orders
    # =========================================================================

    def list_purchase_orders(
        self, *, status: str | None = None, offset: int = 0, limit: int = 20
    ) -> tuple[list[PurchaseOrder], int]:
        query = select(PurchaseOrder)
        if status:
            query = query.where(PurchaseOrder.status == status)
        total = self._db.scalar(select(func.count()).select_from(query.subquery())) or 0
        rows = self._db.scalars(query.order_by(PurchaseOrder.created_at.desc()).offset(offset).limit(limit)).all()
        return list(rows), total

    def create_purchase_order(self, data: PurchaseOrderCreate, user_id: int | None) -> PurchaseOrder:
        """Draft purchase order numbered PO-YYYYMMDD-NNNN."""
        item_ids = {line.inventory_item_id for line in data.lines}
        known = set(self._db.scalars(select(InventoryItem.id).where(InventoryItem.id.in_(item_ids))).all())
        missing = item_ids - known
        if missing:
            raise ValidationError(f"Inventory item not found: {sorted(missing)[0]}")

        with transaction(self._db):
            lines = [
                PurchaseOrderLine(
                    inventory_item_id=line.inventory_item_id,
                    quantity=line.quantity,
                    unit_cost_cents=line.unit_cost_cents,
                    total_cost_cents=round(line.quantity * line.unit_cost_cents),
                )
                for line in data.lines
            ]
            subtotal = sum(line.total_cost_cents for line in lines)
            purchase_order = PurchaseOrder(
                po_number=next_number(self._db, NumberPrefix.PURCHASE_ORDER),
                supplier_name=data.supplier_name,
                supplier_contact=data.supplier_contact,
                expected_delivery_at=data.expected_delivery_at,
                notes=data.notes,
                subtotal_cents=subtotal,
                total_cents=subtotal,
                created_by_id=user_id,
                lines=lines,
            )
            self._db.add(purchase_order)

        logger.info("Purchase order created", po_number=purchase_order.po_number, total_cents=subtotal)
        return purchase_order

    # =========================================================================
    # Analytics
    # =========================================================================

    def stats(self) -> dict:
        items = self._db.scalars(select(InventoryItem).where(InventoryItem.is_active.is_(True))).all()

        by_category: dict[str, dict[str, int]] = defaultdict(lambda: {"item_count": 0, "value_cents": 0})
        for item in items:
            by_category[item.category]["item_count"] += 1
            by_category[item.category]["value_cents"] += item.stock_value_cents

        movements_by_type = dict(
            self._db.execute(
                select(StockMovement.type, func.count(StockMovement.id)).group_by(StockMovement.type)
            ).all()
        )

        return {
            "total_items": len(items),
            "low_stock_count": sum(1 for item in items if item.is_low_stock),
            "out_of_stock_count": sum(1 for item in items if item.current_stock <= 0),
            "total_value_cents": sum(item.stock_value_cents for item in items),
            "by_category": [
                {"category": category, **values} for category, values in sorted(by_category.items())
            ],
            "movements_by_type": movements_by_type,
        }
