"""Stock movement history entities."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from venue_inventory.core.validation import as_utc, utcnow


class MovementType(str, Enum):
    """Types of stock movements."""

    IN = "in"
    OUT = "out"
    RESERVE = "reserve"
    RELEASE = "release"
    ADJUST = "adjust"
    EXPIRE = "expire"


class ReferenceType(str, Enum):
    PURCHASE_ORDER = "purchase_order"
    SALES_ORDER = "sales_order"
    ADJUSTMENT = "adjustment"
    TRANSFER = "transfer"


class MovementReference(BaseModel):
    """Business document that caused a movement."""

    type: ReferenceType
    id: str = Field(..., min_length=1)


class StockMovement(BaseModel):
    """Records a single change to an inventory record. Append-only."""

    movement_id: str
    movement_type: MovementType
    product_id: str
    location_id: str
    quantity: float = Field(..., ge=0)  # always positive
    unit: str
    batch_id: str | None = None
    unit_cost: float = 0.0
    total_cost: float = 0.0
    reference: MovementReference | None = None
    performed_by: str
    notes: str | None = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at", mode="after")
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        return as_utc(v)
