"""Batch ledger entities: cost-layered stock per product and location."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from venue_inventory.core.exceptions import (
    BatchNotFoundError,
    InsufficientStockError,
    InvalidStateError,
    ValidationFailedError,
)
from venue_inventory.core.ids import IIdGenerator, get_id_generator
from venue_inventory.core.validation import (
    QUANTITY_EPSILON,
    as_utc,
    coerce_updates,
    covers,
    is_zero,
    require_positive,
    staged,
    utcnow,
    validation_failure,
)

# Separator between an origin batch id and its reservation token
RESERVATION_MARKER = "-R"

_ID_ATTEMPTS = 5


class BatchStatus(str, Enum):
    """Lifecycle status of a batch."""

    AVAILABLE = "available"
    RESERVED = "reserved"
    QUARANTINE = "quarantine"
    EXPIRED = "expired"


class ConsumptionMethod(str, Enum):
    FIFO = "FIFO"
    LIFO = "LIFO"


class Batch(BaseModel):
    """A quantity of stock received together at one cost and expiry."""

    batch_id: str = Field(..., min_length=1)
    quantity: float = Field(..., ge=0, allow_inf_nan=False)
    unit: str = Field(..., min_length=1)
    cost_per_unit: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    received_date: datetime = Field(default_factory=utcnow)
    expiry_date: datetime | None = None
    supplier_batch_code: str | None = None
    status: BatchStatus = BatchStatus.AVAILABLE

    # Set on reserved fragments only
    origin_batch_id: str | None = None
    reserved_at: datetime | None = None

    @field_validator("received_date", "expiry_date", "reserved_at", mode="after")
    @classmethod
    def normalize_timezone(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @property
    def origin_id(self) -> str:
        """Id of the batch a reserved fragment was split from."""
        if self.origin_batch_id:
            return self.origin_batch_id
        return self.batch_id.rpartition(RESERVATION_MARKER)[0] or self.batch_id

    @property
    def total_value(self) -> float:
        return self.quantity * self.cost_per_unit

    def is_expired_at(self, now: datetime) -> bool:
        return self.expiry_date is not None and self.expiry_date <= now


class InventoryTotals(BaseModel):
    """Cached per-status quantity sums. Expired stock is not counted."""

    available: float = 0.0
    reserved: float = 0.0
    quarantine: float = 0.0
    unit: str = Field(..., min_length=1)


class ConsumedBatch(BaseModel):
    """One line of a consumption breakdown."""

    batch_id: str
    quantity: float
    cost_per_unit: float

    @property
    def total_cost(self) -> float:
        return self.quantity * self.cost_per_unit


def compute_totals(batches: list[Batch], unit: str) -> InventoryTotals:
    """Sum batch quantities by status from scratch."""
    totals = InventoryTotals(unit=unit)
    for batch in batches:
        if batch.status is BatchStatus.AVAILABLE:
            totals.available += batch.quantity
        elif batch.status is BatchStatus.RESERVED:
            totals.reserved += batch.quantity
        elif batch.status is BatchStatus.QUARANTINE:
            totals.quarantine += batch.quantity
    return totals


class Inventory(BaseModel):
    """
    Stock of one product at one location, held as a list of batches.

    Every mutator validates first, applies its change to a staged copy and
    commits only on success, so a raised error leaves the record untouched.
    Totals are recomputed from the batches after every mutation.
    """

    product_id: str = Field(..., min_length=1)
    location_id: str = Field(..., min_length=1)
    location_name: str
    product_name: str | None = None
    batches: list[Batch] = Field(default_factory=list)
    totals: InventoryTotals
    last_movement_id: str | None = None
    last_updated: datetime = Field(default_factory=utcnow)
    last_updated_by: str = "system"
    version: int = 0
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("last_updated", "created_at", mode="after")
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        return as_utc(v)

    @classmethod
    def open(
        cls,
        product_id: str,
        location_id: str,
        unit: str,
        location_name: str | None = None,
        product_name: str | None = None,
        opened_by: str = "system",
    ) -> "Inventory":
        """Start an empty inventory record for a product/location pair."""
        try:
            return cls(
                product_id=product_id,
                location_id=location_id,
                location_name=location_name or location_id,
                product_name=product_name,
                totals=InventoryTotals(unit=unit),
                last_updated_by=opened_by,
            )
        except ValidationError as exc:
            raise validation_failure(exc) from exc

    # Views

    @property
    def unit(self) -> str:
        return self.totals.unit

    @property
    def key(self) -> str:
        return f"{self.product_id}:{self.location_id}"

    @property
    def total_stock(self) -> float:
        return self.totals.available + self.totals.reserved + self.totals.quarantine

    @property
    def available_batches(self) -> list[Batch]:
        return [b for b in self.batches if b.status is BatchStatus.AVAILABLE]

    @property
    def reserved_batches(self) -> list[Batch]:
        return [b for b in self.batches if b.status is BatchStatus.RESERVED]

    @property
    def expired_batches(self) -> list[Batch]:
        return [b for b in self.batches if b.status is BatchStatus.EXPIRED]

    @property
    def average_cost(self) -> float:
        """Quantity-weighted cost of available stock."""
        available = self.available_batches
        quantity = sum(b.quantity for b in available)
        if is_zero(quantity):
            return 0.0
        return sum(b.total_value for b in available) / quantity

    @property
    def next_expiry_date(self) -> datetime | None:
        """Earliest expiry among batches not yet marked expired."""
        dates = [
            b.expiry_date
            for b in self.batches
            if b.expiry_date is not None and b.status is not BatchStatus.EXPIRED
        ]
        return min(dates) if dates else None

    def expiring_batches(self, within_days: int = 7, now: datetime | None = None) -> list[Batch]:
        """Available batches whose expiry falls within the next `within_days`."""
        now = as_utc(now) or utcnow()
        horizon = now + timedelta(days=within_days)
        return [
            b
            for b in self.available_batches
            if b.expiry_date is not None and b.expiry_date <= horizon
        ]

    def batches_due_to_expire(self, now: datetime | None = None) -> list[Batch]:
        """Batches a sweep at `now` would mark expired."""
        now = as_utc(now) or utcnow()
        return [
            b for b in self.batches if b.status is not BatchStatus.EXPIRED and b.is_expired_at(now)
        ]

    def find_batch(self, batch_id: str) -> Batch | None:
        for batch in self.batches:
            if batch.batch_id == batch_id:
                return batch
        return None

    def get_batch(self, batch_id: str) -> Batch:
        batch = self.find_batch(batch_id)
        if batch is None:
            raise BatchNotFoundError(batch_id)
        return batch

    def is_empty(self) -> bool:
        return not self.batches

    # Totals

    def recalculate_totals(self) -> InventoryTotals:
        self.totals = compute_totals(self.batches, self.unit)
        return self.totals

    def totals_are_consistent(self) -> bool:
        expected = compute_totals(self.batches, self.unit)
        return (
            abs(expected.available - self.totals.available) < QUANTITY_EPSILON
            and abs(expected.reserved - self.totals.reserved) < QUANTITY_EPSILON
            and abs(expected.quarantine - self.totals.quarantine) < QUANTITY_EPSILON
        )

    def touch(self, actor: str, movement_id: str | None = None, at: datetime | None = None) -> None:
        """Stamp the record with the actor and movement of the latest change."""
        self.last_updated = as_utc(at) or utcnow()
        self.last_updated_by = actor
        if movement_id is not None:
            self.last_movement_id = movement_id

    # Batch maintenance

    def add_batch(
        self,
        quantity: float,
        cost_per_unit: float = 0.0,
        *,
        batch_id: str | None = None,
        unit: str | None = None,
        received_date: datetime | None = None,
        expiry_date: datetime | None = None,
        supplier_batch_code: str | None = None,
        status: BatchStatus = BatchStatus.AVAILABLE,
        ids: IIdGenerator | None = None,
    ) -> Batch:
        """Append a new batch and return it."""
        require_positive("quantity", quantity)
        unit = unit or self.unit
        if unit != self.unit:
            raise ValidationFailedError("unit", f"must match inventory unit '{self.unit}'", unit)
        if status not in (BatchStatus.AVAILABLE, BatchStatus.QUARANTINE):
            raise ValidationFailedError(
                "status", "new batches must be available or quarantine", status
            )
        if batch_id is not None and self.find_batch(batch_id) is not None:
            raise ValidationFailedError("batch_id", "already exists in this inventory", batch_id)

        with staged(self) as draft:
            try:
                batch = Batch(
                    batch_id=batch_id or draft._new_batch_id(ids),
                    quantity=quantity,
                    unit=unit,
                    cost_per_unit=cost_per_unit,
                    received_date=received_date or utcnow(),
                    expiry_date=expiry_date,
                    supplier_batch_code=supplier_batch_code,
                    status=status,
                )
            except ValidationError as exc:
                raise validation_failure(exc) from exc
            draft.batches.append(batch)
            draft.recalculate_totals()
        return batch

    def update_batch(self, batch_id: str, updates: dict[str, Any] | BaseModel) -> Batch | None:
        """
        Apply field updates to a batch.

        Returns the updated batch, or None when the update drove its quantity
        to zero and the batch was dropped.
        """
        changes = coerce_updates(updates)
        unknown = set(changes) - set(Batch.model_fields)
        if unknown:
            field = sorted(unknown)[0]
            raise ValidationFailedError(field, "is not a batch field")
        if "batch_id" in changes and changes["batch_id"] != batch_id:
            raise ValidationFailedError("batch_id", "cannot be changed", changes["batch_id"])
        if "unit" in changes and changes["unit"] != self.unit:
            raise ValidationFailedError(
                "unit", f"must match inventory unit '{self.unit}'", changes["unit"]
            )

        with staged(self) as draft:
            index = draft._index_of(batch_id)
            try:
                updated = Batch.model_validate({**draft.batches[index].model_dump(), **changes})
            except ValidationError as exc:
                raise validation_failure(exc) from exc
            if is_zero(updated.quantity):
                del draft.batches[index]
                updated = None
            else:
                draft.batches[index] = updated
            draft.recalculate_totals()
        return updated

    def remove_batch(self, batch_id: str) -> Batch:
        """Remove a batch outright and return it."""
        with staged(self) as draft:
            removed = draft.batches.pop(draft._index_of(batch_id))
            draft.recalculate_totals()
        return removed

    # Reservations

    def reserve_quantity(
        self,
        quantity: float,
        batch_id: str | None = None,
        *,
        ids: IIdGenerator | None = None,
        at: datetime | None = None,
    ) -> list[Batch]:
        """
        Move available stock into reserved fragments.

        With a batch id, only that batch is drawn from; otherwise available
        batches are drawn oldest first. Returns the new reserved fragments.
        """
        require_positive("quantity", quantity)
        at = as_utc(at) or utcnow()

        with staged(self) as draft:
            token = (ids or get_id_generator()).reservation_token()
            fragments: list[Batch] = []
            if batch_id is not None:
                source = draft.get_batch(batch_id)
                held = source.quantity if source.status is BatchStatus.AVAILABLE else 0.0
                if not covers(held, quantity):
                    raise InsufficientStockError(
                        quantity, held, batch_id, self.product_id, self.location_id
                    )
                fragments.append(draft._split_reservation(source, quantity, token, at))
            else:
                held = draft._sum(BatchStatus.AVAILABLE)
                if not covers(held, quantity):
                    raise InsufficientStockError(
                        quantity, held, None, self.product_id, self.location_id
                    )
                remaining = quantity
                for source in draft._ordered(BatchStatus.AVAILABLE):
                    if remaining <= QUANTITY_EPSILON:
                        break
                    take = min(source.quantity, remaining)
                    fragments.append(draft._split_reservation(source, take, token, at))
                    remaining -= take
            draft._drop_empty()
            draft.recalculate_totals()
        return fragments

    def release_reservation(
        self,
        quantity: float,
        batch_id: str | None = None,
        *,
        ids: IIdGenerator | None = None,
    ) -> list[str]:
        """
        Return reserved stock to available, merging into the origin batch.

        With a batch id, only that reserved fragment is released; otherwise
        fragments are released newest first. Returns the ids of the batches
        that received the stock.
        """
        require_positive("quantity", quantity)

        with staged(self) as draft:
            targets: list[str] = []
            if batch_id is not None:
                fragment = draft.get_batch(batch_id)
                if fragment.status is not BatchStatus.RESERVED:
                    raise InvalidStateError(
                        "batch", batch_id, fragment.status.value, "release a reservation from"
                    )
                if not covers(fragment.quantity, quantity):
                    raise InsufficientStockError(
                        quantity, fragment.quantity, batch_id, self.product_id, self.location_id
                    )
                targets.append(draft._return_to_origin(fragment, quantity, ids))
            else:
                held = draft._sum(BatchStatus.RESERVED)
                if not covers(held, quantity):
                    raise InsufficientStockError(
                        quantity, held, None, self.product_id, self.location_id
                    )
                remaining = quantity
                for fragment in draft._ordered(BatchStatus.RESERVED, newest_first=True):
                    if remaining <= QUANTITY_EPSILON:
                        break
                    give = min(fragment.quantity, remaining)
                    targets.append(draft._return_to_origin(fragment, give, ids))
                    remaining -= give
            draft._drop_empty()
            draft.recalculate_totals()
        return targets

    # Consumption

    def consume_quantity(
        self,
        quantity: float,
        method: ConsumptionMethod = ConsumptionMethod.FIFO,
    ) -> list[ConsumedBatch]:
        """Draw down available batches and return the per-batch breakdown."""
        require_positive("quantity", quantity)
        method = ConsumptionMethod(method)

        with staged(self) as draft:
            held = draft._sum(BatchStatus.AVAILABLE)
            if not covers(held, quantity):
                raise InsufficientStockError(
                    quantity, held, None, self.product_id, self.location_id
                )
            consumed: list[ConsumedBatch] = []
            remaining = quantity
            newest_first = method is ConsumptionMethod.LIFO
            for batch in draft._ordered(BatchStatus.AVAILABLE, newest_first=newest_first):
                if remaining <= QUANTITY_EPSILON:
                    break
                take = min(batch.quantity, remaining)
                batch.quantity -= take
                remaining -= take
                consumed.append(
                    ConsumedBatch(
                        batch_id=batch.batch_id,
                        quantity=take,
                        cost_per_unit=batch.cost_per_unit,
                    )
                )
            draft._drop_empty()
            draft.recalculate_totals()
        return consumed

    # Expiry

    def mark_expired_batches(self, now: datetime | None = None) -> list[Batch]:
        """Mark every batch past its expiry as expired. Safe to repeat."""
        now = as_utc(now) or utcnow()
        if not self.batches_due_to_expire(now):
            return []
        with staged(self) as draft:
            expired = draft.batches_due_to_expire(now)
            for batch in expired:
                batch.status = BatchStatus.EXPIRED
            draft.recalculate_totals()
        return expired

    # Internals, only called on a staged draft

    def _index_of(self, batch_id: str) -> int:
        for index, batch in enumerate(self.batches):
            if batch.batch_id == batch_id:
                return index
        raise BatchNotFoundError(batch_id)

    def _sum(self, status: BatchStatus) -> float:
        return sum(b.quantity for b in self.batches if b.status is status)

    def _ordered(self, status: BatchStatus, newest_first: bool = False) -> list[Batch]:
        """Batches with `status` by received date; insertion order breaks ties."""
        indexed = [(i, b) for i, b in enumerate(self.batches) if b.status is status]
        indexed.sort(
            key=lambda pair: (
                pair[1].received_date,
                pair[1].reserved_at or pair[1].received_date,
                pair[0],
            ),
            reverse=newest_first,
        )
        return [b for _, b in indexed]

    def _drop_empty(self) -> None:
        self.batches = [b for b in self.batches if not is_zero(b.quantity)]

    def _new_batch_id(self, ids: IIdGenerator | None) -> str:
        generator = ids or get_id_generator()
        for _ in range(_ID_ATTEMPTS):
            candidate = generator.batch_id()
            if self.find_batch(candidate) is None:
                return candidate
        raise ValidationFailedError("batch_id", "could not generate a unique batch id")

    def _fragment_id(self, origin_id: str, token: str) -> str:
        candidate = f"{origin_id}{RESERVATION_MARKER}{token}"
        suffix = 1
        while self.find_batch(candidate) is not None:
            candidate = f"{origin_id}{RESERVATION_MARKER}{token}.{suffix}"
            suffix += 1
        return candidate

    def _split_reservation(self, source: Batch, quantity: float, token: str, at: datetime) -> Batch:
        fragment = source.model_copy(
            update={
                "batch_id": self._fragment_id(source.batch_id, token),
                "quantity": quantity,
                "status": BatchStatus.RESERVED,
                "origin_batch_id": source.batch_id,
                "reserved_at": at,
            }
        )
        source.quantity -= quantity
        self.batches.append(fragment)
        return fragment

    def _return_to_origin(self, fragment: Batch, quantity: float, ids: IIdGenerator | None) -> str:
        origin_id = fragment.origin_id
        origin = self.find_batch(origin_id)
        if origin is not None and origin.status is BatchStatus.AVAILABLE:
            origin.quantity += quantity
            target_id = origin_id
        else:
            # Origin was consumed away (recreate it) or is no longer available
            target_id = origin_id if origin is None else self._new_batch_id(ids)
            self.batches.append(
                fragment.model_copy(
                    update={
                        "batch_id": target_id,
                        "quantity": quantity,
                        "status": BatchStatus.AVAILABLE,
                        "origin_batch_id": None,
                        "reserved_at": None,
                    }
                )
            )
        fragment.quantity -= quantity
        return target_id
