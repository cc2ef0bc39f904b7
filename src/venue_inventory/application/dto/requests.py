"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from venue_inventory.core.entities.inventory import BatchStatus, ConsumptionMethod
from venue_inventory.core.entities.movement import MovementReference
from venue_inventory.core.entities.purchase_order import PaymentMethod


# --- Batch Ledger ---


class ReceiveStockRequest(BaseModel):
    """Request to receive a new batch (IN movement).

    The inventory record for the product/location is created on first receipt.
    """

    product_id: str = Field(..., min_length=1, description="Product catalog ID")
    location_id: str = Field(..., min_length=1, description="Storage location ID")
    quantity: float = Field(..., gt=0, description="Quantity received")
    unit: str = Field(..., min_length=1, description="Unit of measure", examples=["pcs", "kg"])
    cost_per_unit: float = Field(default=0.0, ge=0, description="Cost per unit")
    batch_id: str | None = Field(
        default=None, description="Explicit batch ID (generated when omitted)"
    )
    received_date: datetime | None = Field(
        default=None, description="Receipt timestamp (defaults to now)"
    )
    expiry_date: datetime | None = Field(default=None, description="Expiry timestamp")
    supplier_batch_code: str | None = Field(default=None, description="Supplier lot code")
    status: BatchStatus = Field(
        default=BatchStatus.AVAILABLE,
        description="Initial batch status (available or quarantine)",
    )
    location_name: str | None = Field(
        default=None, description="Location display name for a new record"
    )
    product_name: str | None = Field(
        default=None, description="Product display name for a new record"
    )
    reference: MovementReference | None = Field(
        default=None, description="Business document behind the receipt"
    )
    notes: str | None = Field(default=None, description="Additional notes")
    performed_by: str = Field(..., min_length=1, description="Actor performing the change")


class ReserveStockRequest(BaseModel):
    """Request to reserve available stock for an event or order."""

    quantity: float = Field(..., gt=0, description="Quantity to reserve")
    batch_id: str | None = Field(
        default=None, description="Reserve from this batch only (oldest first when omitted)"
    )
    reference: MovementReference | None = Field(default=None, description="Reservation reference")
    notes: str | None = Field(default=None, description="Additional notes")
    performed_by: str = Field(..., min_length=1, description="Actor performing the change")


class ReleaseReservationRequest(BaseModel):
    """Request to return reserved stock to available."""

    quantity: float = Field(..., gt=0, description="Quantity to release")
    batch_id: str | None = Field(
        default=None,
        description="Reserved fragment to release (newest first when omitted)",
    )
    reference: MovementReference | None = Field(default=None, description="Release reference")
    notes: str | None = Field(default=None, description="Additional notes")
    performed_by: str = Field(..., min_length=1, description="Actor performing the change")


class ConsumeStockRequest(BaseModel):
    """Request to consume available stock (OUT movement)."""

    quantity: float = Field(..., gt=0, description="Quantity to consume")
    method: ConsumptionMethod | None = Field(
        default=None, description="FIFO or LIFO (configured default when omitted)"
    )
    reference: MovementReference | None = Field(default=None, description="Consumption reference")
    notes: str | None = Field(default=None, description="Additional notes")
    performed_by: str = Field(..., min_length=1, description="Actor performing the change")


class UpdateBatchRequest(BaseModel):
    """Partial update of a batch. Only the fields sent are changed."""

    quantity: float | None = Field(default=None, ge=0, description="New quantity (0 removes)")
    cost_per_unit: float | None = Field(default=None, ge=0, description="New cost per unit")
    received_date: datetime | None = None
    expiry_date: datetime | None = None
    supplier_batch_code: str | None = None
    status: BatchStatus | None = Field(default=None, description="New batch status")
    notes: str | None = Field(default=None, description="Adjustment notes")
    performed_by: str = Field(..., min_length=1, description="Actor performing the change")

    def batch_updates(self) -> dict:
        """Fields to apply to the batch, excluding request metadata."""
        return self.model_dump(exclude_unset=True, exclude={"notes", "performed_by"})


class RemoveBatchRequest(BaseModel):
    """Request to remove a batch outright."""

    notes: str | None = Field(default=None, description="Reason for removal")
    performed_by: str = Field(..., min_length=1, description="Actor performing the change")


class ExpireBatchesRequest(BaseModel):
    """Request to run the expiry sweep."""

    as_of: datetime | None = Field(default=None, description="Sweep time (defaults to now)")
    product_id: str | None = Field(default=None, description="Limit to one product")
    location_id: str | None = Field(default=None, description="Limit to one location")
    performed_by: str = Field(default="system", min_length=1)


# --- Purchase Orders ---


class PurchaseOrderItemRequest(BaseModel):
    """Line item on a purchase order. Totals are derived."""

    product_id: str = Field(..., min_length=1)
    product_name: str = Field(..., min_length=1, max_length=200)
    quantity: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1, max_length=20)
    unit_price: float = Field(..., ge=0)
    notes: str | None = Field(default=None, max_length=500)


class UpdatePurchaseOrderItemRequest(BaseModel):
    """Partial update of a line item."""

    product_name: str | None = Field(default=None, min_length=1, max_length=200)
    quantity: float | None = Field(default=None, gt=0)
    unit: str | None = Field(default=None, min_length=1, max_length=20)
    unit_price: float | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None, max_length=500)
    performed_by: str = Field(..., min_length=1)

    def item_updates(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude={"performed_by"})


class PaymentTermsRequest(BaseModel):
    method: PaymentMethod = PaymentMethod.CASH
    credit_days: int = Field(default=0, ge=0, le=365)


class CreatePurchaseOrderRequest(BaseModel):
    """Request to create a draft purchase order."""

    supplier_id: str = Field(..., min_length=1)
    supplier_name: str = Field(..., min_length=1, max_length=200)
    items: list[PurchaseOrderItemRequest] = Field(..., min_length=1)
    delivery_location: str = Field(..., min_length=1, description="Location receiving the goods")
    tax_rate: float | None = Field(
        default=None, ge=0, le=1, description="Tax rate (configured default when omitted)"
    )
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    payment_terms: PaymentTermsRequest = Field(default_factory=PaymentTermsRequest)
    expected_delivery_date: datetime | None = None
    notes: str | None = Field(default=None, max_length=1000)
    internal_notes: str | None = Field(default=None, max_length=1000)
    submit: bool = Field(default=False, description="Submit for approval right away")
    created_by: str = Field(..., min_length=1)


class PurchaseOrderActionRequest(BaseModel):
    """Request to move a purchase order through its lifecycle."""

    performed_by: str = Field(..., min_length=1, description="Actor performing the transition")
    reason: str | None = Field(default=None, max_length=500, description="Required when cancelling")
    actual_delivery_date: datetime | None = Field(
        default=None, description="Delivery timestamp when receiving (defaults to now)"
    )
    receive_into_inventory: bool = Field(
        default=True,
        description="When receiving, add one batch per item to the delivery location",
    )
    expiry_dates: dict[str, datetime] = Field(
        default_factory=dict,
        description="Expiry per product_id for the batches created on receipt",
    )


class PerformedByRequest(BaseModel):
    performed_by: str = Field(..., min_length=1)
