"""
Response views built from ORM rows.

Orders carry nested money, KOT and timing blocks, so they are assembled
here instead of through `from_attributes`. The same goes for menu items,
users and stock movements, whose responses pull in related rows.
"""

from typing import Optional

from rest_api.models import AppSetting, MenuItem, Order, SettingsBackup, StockMovement, User
from rest_api.services.domain.requester import requester_of
from rest_api.services.permissions.context import PermissionContext
from shared.utils.admin_schemas import (
    AddOnLink,
    BackupOutput,
    IngredientOutput,
    MenuItemOutput,
    SettingsOutput,
    StockMovementOutput,
    UserOutput,
    VariantOutput,
)
from shared.utils.kitchen_schemas import KotQueueEntry, KotQueueItemOutput
from shared.utils.schemas import (
    AddOnOutput,
    AmountAtRate,
    DiscountOutput,
    KotOutput,
    KotReprintOutput,
    OrderItemOutput,
    OrderOutput,
    PaymentOutput,
    PermissionEntry,
    PreparationTimeOutput,
    RequesterOutput,
)


def build_requester_output(order: Order) -> Optional[RequesterOutput]:
    requester = requester_of(order)
    if requester is None:
        return None
    return RequesterOutput(kind=requester.kind, **vars(requester))


def build_order_output(order: Order) -> OrderOutput:
    """Full order view with items, money breakdown, KOT ledger and timing."""
    items = [
        OrderItemOutput(
            index=item.position,
            menu_item_id=item.menu_item_id,
            name=item.name,
            quantity=item.quantity,
            variant=item.variant,
            unit_price_cents=item.unit_price_cents,
            line_total_cents=item.line_total_cents,
            add_ons=[AddOnOutput.model_validate(add_on) for add_on in item.add_ons],
            special_instructions=item.special_instructions,
            status=item.status,
            prepared_at=item.prepared_at,
            served_at=item.served_at,
        )
        for item in sorted(order.items, key=lambda i: i.position)
    ]

    return OrderOutput(
        id=order.id,
        order_number=order.order_number,
        order_type=order.order_type,
        source=order.source,
        status=order.status,
        table_id=order.table_id,
        table_number=order.table.table_number if order.table else None,
        waiter_id=order.waiter_id,
        requester=build_requester_output(order),
        items=items,
        subtotal_cents=order.subtotal_cents,
        tax=AmountAtRate(rate=float(order.tax_rate or 0), amount_cents=order.tax_cents),
        discount=DiscountOutput(
            type=order.discount_type,
            value=order.discount_value,
            amount_cents=order.discount_cents,
            reason=order.discount_reason,
        ),
        service_charge=AmountAtRate(
            rate=float(order.service_charge_rate or 0), amount_cents=order.service_charge_cents
        ),
        delivery_charge_cents=order.delivery_charge_cents,
        total_cents=order.total_cents,
        payment_status=order.payment_status,
        payments=[PaymentOutput.model_validate(p) for p in order.payments],
        paid_cents=order.paid_cents,
        kot=KotOutput(
            number=order.kot_number,
            printed_at=order.kot_printed_at,
            reprints=[KotReprintOutput.model_validate(r) for r in order.kot_reprints],
        ),
        preparation_time=PreparationTimeOutput(
            estimated=order.estimated_minutes,
            actual=order.actual_minutes,
            started_at=order.prep_started_at,
            completed_at=order.prep_completed_at,
        ),
        special_instructions=order.special_instructions,
        notes=order.notes,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def build_kot_queue_entry(order: Order, elapsed_minutes: int) -> KotQueueEntry:
    """Compact ticket view for the kitchen board."""
    return KotQueueEntry(
        order_id=order.id,
        order_number=order.order_number,
        kot_number=order.kot_number,
        order_type=order.order_type,
        status=order.status,
        table_number=order.table.table_number if order.table else None,
        items=[
            KotQueueItemOutput(
                index=item.position,
                name=item.name,
                quantity=item.quantity,
                variant=item.variant,
                add_ons=[add_on.name for add_on in item.add_ons],
                special_instructions=item.special_instructions,
                status=item.status,
            )
            for item in sorted(order.items, key=lambda i: i.position)
        ],
        special_instructions=order.special_instructions,
        estimated_minutes=order.estimated_minutes,
        elapsed_minutes=elapsed_minutes,
        created_at=order.created_at,
        kot_printed_at=order.kot_printed_at,
    )


def build_menu_item_output(item: MenuItem) -> MenuItemOutput:
    return MenuItemOutput(
        id=item.id,
        name=item.name,
        description=item.description,
        category_id=item.category_id,
        category_name=item.category.name if item.category else None,
        price_cents=item.price_cents,
        cost_price_cents=item.cost_price_cents,
        preparation_minutes=item.preparation_minutes,
        is_available=item.is_available,
        is_vegetarian=item.is_vegetarian,
        is_active=item.is_active,
        variants=[VariantOutput.model_validate(v) for v in item.variants],
        add_ons=[
            AddOnLink(
                menu_item_id=link.add_on_item_id,
                name=link.add_on_item.name,
                price_cents=link.add_on_item.price_cents,
            )
            for link in item.add_ons
        ],
        ingredients=[IngredientOutput.model_validate(i) for i in item.ingredients],
    )


def build_user_output(user: User) -> UserOutput:
    """User view with the effective permission table, never the hash."""
    return UserOutput(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone,
        role=user.role,
        is_active=user.is_active,
        last_login_at=user.last_login_at,
        permissions=[PermissionEntry(**entry) for entry in PermissionContext(user).as_list()],
        created_at=user.created_at,
    )


def build_movement_output(movement: StockMovement, item_name: Optional[str] = None) -> StockMovementOutput:
    return StockMovementOutput(
        id=movement.id,
        inventory_item_id=movement.inventory_item_id,
        item_name=item_name,
        type=movement.type,
        quantity=movement.quantity,
        unit_cost_cents=movement.unit_cost_cents,
        total_cost_cents=movement.total_cost_cents,
        stock_after=movement.stock_after,
        reference=movement.reference,
        reason=movement.reason,
        performed_by_id=movement.performed_by_id,
        created_at=movement.created_at,
    )


def build_settings_output(setting: AppSetting) -> SettingsOutput:
    return SettingsOutput(
        category=setting.category,
        settings=setting.settings or {},
        updated_by_id=setting.updated_by_id,
        updated_at=setting.updated_at,
    )


def build_backup_output(backup: SettingsBackup) -> BackupOutput:
    return BackupOutput(
        id=backup.id,
        name=backup.name,
        size_bytes=backup.size_bytes,
        created_at=backup.created_at,
        entity_counts=backup.payload.get("entity_counts", {}),
    )
