"""
Pydantic schemas for back-office endpoints: inventory, menu, users, settings.
"""

from datetime import datetime
from typing import Any, Literal, Optional
from pydantic import BaseModel, EmailStr, Field

from shared.utils.schemas import PaginationInfo, PermissionEntry, Role


InventoryCategoryValue = Literal["ingredients", "beverages", "supplies", "raw_materials", "packaging"]
InventoryUnitValue = Literal["kg", "g", "l", "ml", "pieces", "packets", "boxes", "bottles"]
ManualMovementType = Literal["purchase", "usage", "wastage", "adjustment", "return"]
SettingsCategoryValue = Literal["restaurant", "system", "notification", "payment", "ui"]


# =============================================================================
# Inventory Schemas
# =============================================================================


class InventoryItemOutput(BaseModel):
    id: int
    name: str
    sku: str
    description: str | None = None
    category: str
    unit: str
    current_stock: float
    minimum_stock: float
    maximum_stock: float
    reorder_level: float
    cost_price_cents: int
    selling_price_cents: int | None = None
    supplier_name: str | None = None
    supplier_contact: str | None = None
    last_restocked_at: datetime | None = None
    total_purchased: float
    total_used: float
    is_low_stock: bool
    stock_value_cents: int
    is_active: bool

    class Config:
        from_attributes = True


class InventoryItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    sku: str = Field(min_length=1, max_length=50)
    description: str | None = None
    category: InventoryCategoryValue
    unit: InventoryUnitValue
    current_stock: float = Field(default=0, ge=0)
    minimum_stock: float = Field(default=0, ge=0)
    maximum_stock: float = Field(default=100, ge=0)
    reorder_level: float = Field(default=10, ge=0)
    cost_price_cents: int = Field(ge=0)
    selling_price_cents: int | None = Field(default=None, ge=0)
    supplier_name: str | None = None
    supplier_contact: str | None = None


class InventoryListResponse(BaseModel):
    items: list[InventoryItemOutput]
    pagination: PaginationInfo


class StockUpdateRequest(BaseModel):
    """Manual stock movement. Purchases and returns add, the rest subtract."""
    quantity: float = Field(gt=0)
    type: ManualMovementType
    reason: str | None = Field(default=None, max_length=500)
    unit_cost_cents: int | None = Field(default=None, ge=0)


class StockMovementOutput(BaseModel):
    id: int
    inventory_item_id: int
    item_name: str | None = None
    type: str
    quantity: float
    unit_cost_cents: int
    total_cost_cents: int
    stock_after: float
    reference: str | None = None
    reason: str | None = None
    performed_by_id: int | None = None
    created_at: datetime


class StockUpdateResponse(BaseModel):
    message: str
    item: InventoryItemOutput
    movement: StockMovementOutput


class MovementListResponse(BaseModel):
    movements: list[StockMovementOutput]
    pagination: PaginationInfo


class PurchaseOrderLineInput(BaseModel):
    inventory_item_id: int
    quantity: float = Field(gt=0)
    unit_cost_cents: int = Field(ge=0)


class PurchaseOrderCreate(BaseModel):
    supplier_name: str = Field(min_length=1, max_length=200)
    supplier_contact: str | None = None
    lines: list[PurchaseOrderLineInput] = Field(min_length=1)
    expected_delivery_at: datetime | None = None
    notes: str | None = Field(default=None, max_length=1000)


class PurchaseOrderLineOutput(BaseModel):
    inventory_item_id: int
    quantity: float
    unit_cost_cents: int
    total_cost_cents: int

    class Config:
        from_attributes = True


class PurchaseOrderOutput(BaseModel):
    id: int
    po_number: str
    supplier_name: str
    supplier_contact: str | None = None
    status: str
    lines: list[PurchaseOrderLineOutput]
    subtotal_cents: int
    total_cents: int
    expected_delivery_at: datetime | None = None
    notes: str | None = None
    created_by_id: int | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class PurchaseOrderListResponse(BaseModel):
    purchase_orders: list[PurchaseOrderOutput]
    pagination: PaginationInfo


class CategoryValue(BaseModel):
    category: str
    item_count: int
    value_cents: int


class InventoryStatsOutput(BaseModel):
    total_items: int
    low_stock_count: int
    out_of_stock_count: int
    total_value_cents: int
    by_category: list[CategoryValue]
    movements_by_type: dict[str, int]


# =============================================================================
# Menu Schemas
# =============================================================================


class MenuCategoryOutput(BaseModel):
    id: int
    name: str
    description: str | None = None
    sort_order: int
    color: str
    is_active: bool

    class Config:
        from_attributes = True


class MenuCategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    sort_order: int = 0
    color: str = Field(default="#1976d2", pattern=r"^#[0-9a-fA-F]{6}$")


class VariantInput(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    price_cents: int = Field(ge=0)


class IngredientInput(BaseModel):
    inventory_item_id: int
    quantity: float = Field(gt=0)


class MenuItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    category_id: int
    price_cents: int = Field(ge=0)
    cost_price_cents: int | None = Field(default=None, ge=0)
    preparation_minutes: int = Field(default=15, ge=1, le=240)
    is_available: bool = True
    is_vegetarian: bool = False
    variants: list[VariantInput] = Field(default_factory=list)
    add_on_item_ids: list[int] = Field(default_factory=list)
    ingredients: list[IngredientInput] = Field(default_factory=list)


class VariantOutput(BaseModel):
    name: str
    price_cents: int

    class Config:
        from_attributes = True


class AddOnLink(BaseModel):
    menu_item_id: int
    name: str
    price_cents: int


class IngredientOutput(BaseModel):
    inventory_item_id: int
    quantity: float

    class Config:
        from_attributes = True


class MenuItemOutput(BaseModel):
    id: int
    name: str
    description: str | None = None
    category_id: int
    category_name: str | None = None
    price_cents: int
    cost_price_cents: int | None = None
    preparation_minutes: int
    is_available: bool
    is_vegetarian: bool
    is_active: bool
    variants: list[VariantOutput]
    add_ons: list[AddOnLink]
    ingredients: list[IngredientOutput]


class MenuItemListResponse(BaseModel):
    items: list[MenuItemOutput]
    pagination: PaginationInfo


class AvailabilityRequest(BaseModel):
    is_available: bool


# =============================================================================
# User Schemas
# =============================================================================


class UserOutput(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    phone: str | None = None
    role: Role
    is_active: bool
    last_login_at: datetime | None = None
    permissions: list[PermissionEntry]
    created_at: datetime


class UserCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    phone: str | None = None
    role: Role = "waiter"
    permissions: Optional[list[PermissionEntry]] = None


class UserListResponse(BaseModel):
    users: list[UserOutput]
    pagination: PaginationInfo


class UpdatePermissionsRequest(BaseModel):
    """Replaces the user's explicit permission rows. An empty list falls back to role defaults."""
    permissions: list[PermissionEntry]


# =============================================================================
# Settings Schemas
# =============================================================================


class SettingsOutput(BaseModel):
    category: SettingsCategoryValue
    settings: dict[str, Any]
    updated_by_id: int | None = None
    updated_at: datetime | None = None


class SettingsUpdate(BaseModel):
    settings: dict[str, Any]


class BackupOutput(BaseModel):
    id: int
    name: str
    size_bytes: int
    created_at: datetime
    entity_counts: dict[str, int]
