"""
Shared Pydantic schemas used across the application.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# =============================================================================
# Common Types
# =============================================================================

Role = Literal["admin", "manager", "cashier", "waiter", "kitchen_staff", "customer"]
OrderTypeValue = Literal["dine_in", "takeaway", "delivery", "online"]
OrderSourceValue = Literal["pos", "website", "mobile_app", "phone", "walk_in"]
OrderStatusValue = Literal["pending", "confirmed", "preparing", "ready", "served", "completed", "cancelled"]
OrderItemStatusValue = Literal["pending", "preparing", "ready", "served"]
PaymentStatusValue = Literal["pending", "partial", "paid", "refunded"]
PaymentMethodValue = Literal["cash", "card", "upi", "wallet", "online"]
PaymentEntryStatusValue = Literal["success", "failed", "pending"]
DiscountTypeValue = Literal["percentage", "fixed", "coupon"]
TableStatusValue = Literal["available", "occupied", "reserved", "cleaning", "out_of_order"]
TableLocationValue = Literal["indoor", "outdoor", "private_room", "bar", "patio"]


class ErrorResponse(BaseModel):
    """Body of every failed request."""

    message: str
    detail: Any = None
    error: str | None = None
    validation: list[dict[str, Any]] | None = None


class PaginationInfo(BaseModel):
    current: int
    pages: int
    total: int
    has_next: bool
    has_prev: bool


class MessageResponse(BaseModel):
    message: str


# =============================================================================
# Authentication Schemas
# =============================================================================


class LoginRequest(BaseModel):
    """Login request body."""

    email: EmailStr
    password: str = Field(min_length=1)


class PermissionEntry(BaseModel):
    module: str
    actions: list[str]


class UserInfo(BaseModel):
    """User information included in auth responses."""

    id: int
    email: str
    first_name: str
    last_name: str
    role: Role
    permissions: list[PermissionEntry]


class LoginResponse(BaseModel):
    """Login response with JWT token."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int  # seconds
    user: UserInfo


# =============================================================================
# Order Input Schemas
# =============================================================================


class AddOnInput(BaseModel):
    menu_item_id: int
    # Override of the catalog price, in cents
    price_cents: int | None = Field(default=None, ge=0)
    quantity: int = Field(default=1, ge=1, le=99)


class OrderItemInput(BaseModel):
    """One cart line."""

    menu_item_id: int
    quantity: int = Field(ge=1, le=99)
    variant: str | None = Field(default=None, max_length=100)
    price_cents: int | None = Field(default=None, ge=0)
    add_ons: list[AddOnInput] = Field(default_factory=list)
    special_instructions: str | None = Field(default=None, max_length=500)


class DiscountInput(BaseModel):
    """Percentage discounts take a percent; fixed and coupon take cents."""

    type: DiscountTypeValue
    value: float = Field(ge=0)
    reason: str | None = Field(default=None, max_length=200)


class RateInput(BaseModel):
    rate: float = Field(default=0, ge=0, le=100)


class GuestCustomerInput(BaseModel):
    name: str | None = Field(default=None, max_length=200)
    phone: str | None = Field(default=None, max_length=50)
    email: EmailStr | None = None
    address: str | None = Field(default=None, max_length=500)


class CreateOrderRequest(BaseModel):
    """
    Order creation body.

    order_type and items are optional here so their absence is reported
    with the domain message instead of a schema error.
    """

    order_type: OrderTypeValue | None = None
    items: list[OrderItemInput] = Field(default_factory=list)
    table_id: int | None = None
    waiter_id: int | None = None
    customer: GuestCustomerInput | None = None
    customer_user_id: int | None = None
    source: OrderSourceValue = "pos"
    discount: DiscountInput | None = None
    tax: RateInput | None = None
    service_charge: RateInput | None = None
    delivery_charge_cents: int = Field(default=0, ge=0)
    special_instructions: str | None = Field(default=None, max_length=1000)
    client_request_id: str | None = Field(default=None, max_length=128)


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatusValue
    notes: str | None = Field(default=None, max_length=1000)


class UpdateItemStatusRequest(BaseModel):
    status: OrderItemStatusValue


class AddPaymentRequest(BaseModel):
    amount_cents: int = Field(gt=0)
    method: PaymentMethodValue
    transaction_id: str | None = Field(default=None, max_length=200)


class CancelOrderRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


# =============================================================================
# Order Output Schemas
# =============================================================================


class RequesterOutput(BaseModel):
    """Tagged requester: kind is "guest" or "registered"."""

    kind: Literal["guest", "registered"]
    user_id: int | None = None
    name: str | None = None
    phone: str | None = None
    email: str | None = None


class AddOnOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    menu_item_id: int
    name: str
    price_cents: int
    quantity: int


class OrderItemOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    index: int
    menu_item_id: int
    name: str
    quantity: int
    variant: str | None = None
    unit_price_cents: int
    line_total_cents: int
    add_ons: list[AddOnOutput]
    special_instructions: str | None = None
    status: OrderItemStatusValue
    prepared_at: datetime | None = None
    served_at: datetime | None = None


class AmountAtRate(BaseModel):
    rate: float
    amount_cents: int


class DiscountOutput(BaseModel):
    type: DiscountTypeValue | None = None
    value: float | None = None
    amount_cents: int
    reason: str | None = None


class PaymentOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    amount_cents: int
    method: PaymentMethodValue
    transaction_id: str | None = None
    status: PaymentEntryStatusValue
    paid_at: datetime


class KotReprintOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    printed_at: datetime
    reason: str
    printed_by_id: int | None = None


class KotOutput(BaseModel):
    number: str | None = None
    printed_at: datetime | None = None
    reprints: list[KotReprintOutput]


class PreparationTimeOutput(BaseModel):
    estimated: int | None = None
    actual: int | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


class OrderOutput(BaseModel):
    """Full order representation returned by every order and KOT route."""

    id: int
    order_number: str
    order_type: OrderTypeValue
    source: OrderSourceValue
    status: OrderStatusValue
    table_id: int | None = None
    table_number: str | None = None
    waiter_id: int | None = None
    requester: RequesterOutput | None = None
    items: list[OrderItemOutput]
    subtotal_cents: int
    tax: AmountAtRate
    discount: DiscountOutput
    service_charge: AmountAtRate
    delivery_charge_cents: int
    total_cents: int
    payment_status: PaymentStatusValue
    payments: list[PaymentOutput]
    paid_cents: int
    kot: KotOutput
    preparation_time: PreparationTimeOutput
    special_instructions: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderOutput]
    pagination: PaginationInfo


class PaymentResponse(BaseModel):
    message: str
    order: OrderOutput


class OrderStatsOutput(BaseModel):
    total_orders: int
    total_revenue_cents: int
    average_order_value_cents: int
    orders_by_status: dict[str, int]
    orders_by_type: dict[str, int]


# =============================================================================
# Table Schemas
# =============================================================================


class CreateTableRequest(BaseModel):
    table_number: str = Field(min_length=1, max_length=20)
    table_name: str | None = Field(default=None, max_length=100)
    capacity: int = Field(ge=1, le=20)
    location: TableLocationValue = "indoor"
    section: str | None = Field(default=None, max_length=100)
    shape: Literal["round", "square", "rectangle", "oval"] = "square"
    min_order_cents: int = Field(default=0, ge=0)
    service_charge_rate: float = Field(default=0, ge=0, le=100)


class UpdateTableStatusRequest(BaseModel):
    status: TableStatusValue


class AssignWaiterRequest(BaseModel):
    # None unassigns
    waiter_id: int | None = None


class TableOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    table_number: str
    table_name: str | None = None
    capacity: int
    location: TableLocationValue
    section: str | None = None
    shape: str
    status: TableStatusValue
    current_order_id: int | None = None
    assigned_waiter_id: int | None = None
    occupied_at: datetime | None = None
    last_cleaned_at: datetime | None = None
    min_order_cents: int
    service_charge_rate: float
    total_orders: int
    total_revenue_cents: int
    is_active: bool


class TableStatsOutput(BaseModel):
    total_tables: int
    occupancy_rate: float
    tables_by_status: dict[str, int]
    tables_by_location: dict[str, int]
