from datetime import datetime
from typing import Literal, List, Optional
from pydantic import BaseModel, Field

from shared.utils.schemas import OrderItemStatusValue, OrderOutput, PaginationInfo

# Item statuses the kitchen may set on a KOT line
KotItemStatus = Literal["pending", "preparing", "ready"]

class PrintKotRequest(BaseModel):
    """Request to print (or reprint) the KOT of an order."""
    reason: Optional[str] = Field(default=None, max_length=200)

class UpdateKotItemStatusRequest(BaseModel):
    """Request to move one KOT line through the kitchen."""
    status: KotItemStatus

class KotQueueItemOutput(BaseModel):
    """One line of a ticket in the kitchen queue."""
    index: int
    name: str
    quantity: int
    variant: str | None = None
    add_ons: List[str]
    special_instructions: str | None = None
    status: OrderItemStatusValue

class KotQueueEntry(BaseModel):
    """One open ticket on the kitchen board."""
    order_id: int
    order_number: str
    kot_number: str | None = None
    order_type: str
    status: str
    table_number: str | None = None
    items: List[KotQueueItemOutput]
    special_instructions: str | None = None
    estimated_minutes: int | None = None
    elapsed_minutes: int
    created_at: datetime
    kot_printed_at: datetime | None = None

class KotQueueResponse(BaseModel):
    """Open tickets ordered oldest first."""
    orders: List[KotQueueEntry]
    total: int

class KotPrintResponse(BaseModel):
    message: str
    kot_number: str
    reprint: bool
    order: OrderOutput

class KotHistoryResponse(BaseModel):
    orders: List[OrderOutput]
    pagination: PaginationInfo

class PreparationStats(BaseModel):
    average_minutes: float
    min_minutes: int
    max_minutes: int
    total_orders: int

class PeakHour(BaseModel):
    hour: int
    order_count: int

class KotStatsOutput(BaseModel):
    """Kitchen timing and load figures over an optional date range."""
    preparation: PreparationStats
    orders_by_status: dict[str, int]
    peak_hours: List[PeakHour]
