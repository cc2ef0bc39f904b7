"""Purchase order entities and lifecycle state machine."""

import math
from collections.abc import Callable
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from venue_inventory.core.exceptions import (
    InvalidStateError,
    InvalidTransitionError,
    PurchaseOrderItemNotFoundError,
    ValidationFailedError,
)
from venue_inventory.core.validation import (
    as_utc,
    check_consistency,
    coerce_updates,
    require_text,
    round_money,
    staged,
    utcnow,
    validation_failure,
)


class PurchaseOrderStatus(str, Enum):
    """Purchase order lifecycle states."""

    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    ORDERED = "ordered"
    RECEIVED = "received"
    CANCELLED = "cancelled"


MODIFIABLE_STATUSES = frozenset({PurchaseOrderStatus.DRAFT, PurchaseOrderStatus.PENDING})
TERMINAL_STATUSES = frozenset({PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CANCELLED})

# Field that must name an actor once the order reaches the status
ACTOR_FIELDS = {
    PurchaseOrderStatus.APPROVED: "approved_by",
    PurchaseOrderStatus.ORDERED: "ordered_by",
    PurchaseOrderStatus.RECEIVED: "received_by",
    PurchaseOrderStatus.CANCELLED: "cancelled_by",
}

# Orders due within this many days report as "soon"
SOON_THRESHOLD_DAYS = 3

MAX_REASON_LENGTH = 500


class PaymentMethod(str, Enum):
    CASH = "cash"
    CREDIT = "credit"
    TRANSFER = "transfer"
    CHECK = "check"


class DeliveryStatus(str, Enum):
    DELIVERED = "delivered"
    OVERDUE = "overdue"
    DUE = "due"
    SOON = "soon"
    SCHEDULED = "scheduled"
    UNKNOWN = "unknown"


class PaymentTerms(BaseModel):
    method: PaymentMethod = PaymentMethod.CASH
    credit_days: int = Field(default=0, ge=0, le=365)
    due_date: datetime | None = None

    @field_validator("due_date", mode="after")
    @classmethod
    def normalize_timezone(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class PurchaseOrderItem(BaseModel):
    """A product line on a purchase order."""

    product_id: str = Field(..., min_length=1)
    product_name: str = Field(..., min_length=1, max_length=200)
    quantity: float = Field(..., gt=0, allow_inf_nan=False)
    unit: str = Field(..., min_length=1, max_length=20)
    unit_price: float = Field(..., ge=0, allow_inf_nan=False)
    total_price: float = 0.0
    notes: str | None = Field(default=None, max_length=500)

    def recalculate(self) -> float:
        self.total_price = round_money(self.quantity * self.unit_price)
        return self.total_price


class PurchaseOrder(BaseModel):
    """
    An order to a supplier with derived money totals.

    Status moves draft -> pending -> approved -> ordered -> received, or to
    cancelled from any non-terminal status. Items can only change while the
    order is draft or pending. Every transition and item change is staged and
    validated before it is committed.
    """

    purchase_order_id: str = Field(..., min_length=1)
    supplier_id: str = Field(..., min_length=1)
    supplier_name: str = Field(..., min_length=1, max_length=200)
    status: PurchaseOrderStatus = PurchaseOrderStatus.DRAFT
    items: list[PurchaseOrderItem] = Field(default_factory=list)

    # Money
    subtotal: float = 0.0
    tax_rate: float = Field(default=0.16, ge=0, le=1)
    tax: float = 0.0
    total: float = 0.0
    currency: str = Field(default="MXN", min_length=3, max_length=3)
    payment_terms: PaymentTerms = Field(default_factory=PaymentTerms)

    # Delivery
    expected_delivery_date: datetime | None = None
    actual_delivery_date: datetime | None = None
    delivery_location: str = Field(..., min_length=1)

    notes: str | None = Field(default=None, max_length=1000)
    internal_notes: str | None = Field(default=None, max_length=1000)

    # Transition audit
    approved_by: str | None = None
    approved_at: datetime | None = None
    ordered_by: str | None = None
    ordered_at: datetime | None = None
    received_by: str | None = None
    received_at: datetime | None = None
    cancelled_by: str | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = Field(default=None, max_length=MAX_REASON_LENGTH)

    created_by: str = Field(..., min_length=1)
    updated_by: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    version: int = 0

    @field_validator(
        "expected_delivery_date",
        "actual_delivery_date",
        "approved_at",
        "ordered_at",
        "received_at",
        "cancelled_at",
        "created_at",
        "updated_at",
        mode="after",
    )
    @classmethod
    def normalize_timezone(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @classmethod
    def create(cls, **fields: Any) -> "PurchaseOrder":
        """Build a new order, derive its totals and validate it."""
        try:
            order = cls(**fields)
        except ValidationError as exc:
            raise validation_failure(exc) from exc
        order.recalculate_totals()
        order.validate()
        return order

    # Predicates

    def can_be_modified(self) -> bool:
        return self.status in MODIFIABLE_STATUSES

    def can_be_submitted(self) -> bool:
        return self.status is PurchaseOrderStatus.DRAFT and bool(self.items)

    def can_be_approved(self) -> bool:
        return self.status is PurchaseOrderStatus.PENDING and bool(self.items)

    def can_be_ordered(self) -> bool:
        return self.status is PurchaseOrderStatus.APPROVED

    def can_be_received(self) -> bool:
        return self.status is PurchaseOrderStatus.ORDERED

    def can_be_cancelled(self) -> bool:
        return self.status not in TERMINAL_STATUSES

    def can_be_deleted(self) -> bool:
        return self.status is PurchaseOrderStatus.DRAFT

    def find_item(self, product_id: str) -> PurchaseOrderItem | None:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    # Delivery

    def days_until_delivery(self, now: datetime | None = None) -> int | None:
        if self.expected_delivery_date is None:
            return None
        now = as_utc(now) or utcnow()
        remaining = self.expected_delivery_date - now
        return math.ceil(remaining.total_seconds() / 86400)

    def is_overdue(self, now: datetime | None = None) -> bool:
        if self.expected_delivery_date is None or self.status is PurchaseOrderStatus.RECEIVED:
            return False
        now = as_utc(now) or utcnow()
        return self.expected_delivery_date < now

    def delivery_status(self, now: datetime | None = None) -> DeliveryStatus:
        if self.status is PurchaseOrderStatus.RECEIVED:
            return DeliveryStatus.DELIVERED
        if self.is_overdue(now):
            return DeliveryStatus.OVERDUE
        days = self.days_until_delivery(now)
        if days is None:
            return DeliveryStatus.UNKNOWN
        if days <= 0:
            return DeliveryStatus.DUE
        if days <= SOON_THRESHOLD_DAYS:
            return DeliveryStatus.SOON
        return DeliveryStatus.SCHEDULED

    # Totals and validation

    def recalculate_totals(self) -> "PurchaseOrder":
        """Derive item totals, order totals and the credit due date."""
        for item in self.items:
            item.recalculate()
        self.subtotal = round_money(sum(item.total_price for item in self.items))
        self.tax = round_money(self.subtotal * self.tax_rate)
        self.total = round_money(self.subtotal + self.tax)

        terms = self.payment_terms
        if terms.method is PaymentMethod.CREDIT and terms.credit_days > 0:
            start = self.ordered_at or self.created_at
            terms.due_date = start + timedelta(days=terms.credit_days)
        return self

    def validate(self) -> None:
        """Check items, arithmetic and the actor field for the current status."""
        if not self.items:
            raise ValidationFailedError("items", "a purchase order needs at least one item")

        seen: set[str] = set()
        for index, item in enumerate(self.items):
            if item.product_id in seen:
                raise ValidationFailedError(
                    f"items[{index}].product_id", "duplicate product on order", item.product_id
                )
            seen.add(item.product_id)
            check_consistency(
                f"items[{index}].total_price", item.total_price, item.quantity * item.unit_price
            )

        check_consistency("subtotal", self.subtotal, sum(i.total_price for i in self.items))
        check_consistency("tax", self.tax, self.subtotal * self.tax_rate)
        check_consistency("total", self.total, self.subtotal + self.tax)

        actor_field = ACTOR_FIELDS.get(self.status)
        if actor_field and not getattr(self, actor_field):
            raise ValidationFailedError(actor_field, f"required when status is {self.status.value}")
        if self.status is PurchaseOrderStatus.CANCELLED and not self.cancellation_reason:
            raise ValidationFailedError("cancellation_reason", "required when status is cancelled")

    # Items

    def add_item(self, item: PurchaseOrderItem | dict[str, Any], actor: str | None = None) -> PurchaseOrderItem:
        self._ensure_modifiable("add items to")
        try:
            new_item = PurchaseOrderItem.model_validate(item)
        except ValidationError as exc:
            raise validation_failure(exc) from exc
        if self.find_item(new_item.product_id) is not None:
            raise ValidationFailedError(
                "product_id", "product is already on this order", new_item.product_id
            )

        with staged(self) as draft:
            draft.items.append(new_item)
            draft._finish_edit(actor)
        return new_item

    def update_item(
        self,
        product_id: str,
        updates: dict[str, Any] | BaseModel,
        actor: str | None = None,
    ) -> PurchaseOrderItem:
        self._ensure_modifiable("update items on")
        changes = coerce_updates(updates)
        changes.pop("total_price", None)
        if "product_id" in changes and changes["product_id"] != product_id:
            raise ValidationFailedError("product_id", "cannot be changed", changes["product_id"])

        with staged(self) as draft:
            index = draft._item_index(product_id)
            try:
                updated = PurchaseOrderItem.model_validate(
                    {**draft.items[index].model_dump(), **changes}
                )
            except ValidationError as exc:
                raise validation_failure(exc) from exc
            draft.items[index] = updated
            draft._finish_edit(actor)
        return updated

    def remove_item(self, product_id: str, actor: str | None = None) -> PurchaseOrderItem:
        self._ensure_modifiable("remove items from")
        with staged(self) as draft:
            removed = draft.items.pop(draft._item_index(product_id))
            draft._finish_edit(actor)
        return removed

    # Transitions

    def submit(self, actor: str, at: datetime | None = None) -> "PurchaseOrder":
        def apply(order: "PurchaseOrder", who: str, when: datetime) -> None:
            if not order.items:
                raise InvalidTransitionError(
                    order.purchase_order_id, order.status.value, "submit", "order has no items"
                )

        return self._transition(
            "submit", PurchaseOrderStatus.PENDING, {PurchaseOrderStatus.DRAFT}, actor, at, apply
        )

    def approve(self, actor: str, at: datetime | None = None) -> "PurchaseOrder":
        def apply(order: "PurchaseOrder", who: str, when: datetime) -> None:
            if not order.items:
                raise InvalidTransitionError(
                    order.purchase_order_id, order.status.value, "approve", "order has no items"
                )
            order.approved_by = who
            order.approved_at = when

        return self._transition(
            "approve", PurchaseOrderStatus.APPROVED, {PurchaseOrderStatus.PENDING}, actor, at, apply
        )

    def order(self, actor: str, at: datetime | None = None) -> "PurchaseOrder":
        def apply(order: "PurchaseOrder", who: str, when: datetime) -> None:
            order.ordered_by = who
            order.ordered_at = when

        return self._transition(
            "order", PurchaseOrderStatus.ORDERED, {PurchaseOrderStatus.APPROVED}, actor, at, apply
        )

    def receive(
        self,
        actor: str,
        actual_delivery_date: datetime | None = None,
        at: datetime | None = None,
    ) -> "PurchaseOrder":
        def apply(order: "PurchaseOrder", who: str, when: datetime) -> None:
            order.received_by = who
            order.received_at = when
            order.actual_delivery_date = as_utc(actual_delivery_date) or when

        return self._transition(
            "receive", PurchaseOrderStatus.RECEIVED, {PurchaseOrderStatus.ORDERED}, actor, at, apply
        )

    def cancel(self, actor: str, reason: str, at: datetime | None = None) -> "PurchaseOrder":
        if not reason or not reason.strip():
            raise InvalidTransitionError(
                self.purchase_order_id, self.status.value, "cancel", "a cancellation reason is required"
            )
        reason = reason.strip()
        if len(reason) > MAX_REASON_LENGTH:
            raise ValidationFailedError(
                "cancellation_reason", f"must be at most {MAX_REASON_LENGTH} characters", reason
            )

        def apply(order: "PurchaseOrder", who: str, when: datetime) -> None:
            order.cancelled_by = who
            order.cancelled_at = when
            order.cancellation_reason = reason

        allowed = set(PurchaseOrderStatus) - TERMINAL_STATUSES
        return self._transition("cancel", PurchaseOrderStatus.CANCELLED, allowed, actor, at, apply)

    # Internals

    def _ensure_modifiable(self, operation: str) -> None:
        if not self.can_be_modified():
            raise InvalidStateError(
                "purchase order", self.purchase_order_id, self.status.value, operation
            )

    def _item_index(self, product_id: str) -> int:
        for index, item in enumerate(self.items):
            if item.product_id == product_id:
                return index
        raise PurchaseOrderItemNotFoundError(self.purchase_order_id, product_id)

    def _finish_edit(self, actor: str | None) -> None:
        self.recalculate_totals()
        self.validate()
        self.updated_at = utcnow()
        if actor:
            self.updated_by = actor

    def _transition(
        self,
        action: str,
        target: PurchaseOrderStatus,
        allowed_from: set[PurchaseOrderStatus],
        actor: str,
        at: datetime | None,
        apply: Callable[["PurchaseOrder", str, datetime], None],
    ) -> "PurchaseOrder":
        if self.status not in allowed_from:
            expected = ", ".join(sorted(s.value for s in allowed_from))
            raise InvalidTransitionError(
                self.purchase_order_id, self.status.value, action, f"requires status {expected}"
            )
        try:
            who = require_text("actor", actor)
        except ValidationFailedError:
            raise InvalidTransitionError(
                self.purchase_order_id, self.status.value, action, "an actor is required"
            ) from None
        when = as_utc(at) or utcnow()

        with staged(self) as draft:
            apply(draft, who, when)
            draft.status = target
            draft.updated_by = who
            draft.updated_at = when
            draft.recalculate_totals()
            draft.validate()
        return self
