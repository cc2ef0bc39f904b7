"""
Shared invariant and input checks for ledger and purchase-order entities.

All entity mutators run against a staged copy of the record (see `staged`)
and only write back once every check has passed.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from venue_inventory.core.exceptions import ValidationFailedError

# Arithmetic tolerance for derived money fields
TOTALS_TOLERANCE = 0.01

# Quantities smaller than this are treated as zero
QUANTITY_EPSILON = 1e-9

M = TypeVar("M", bound=BaseModel)


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize a datetime to aware UTC; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def is_zero(quantity: float) -> bool:
    return abs(quantity) < QUANTITY_EPSILON


def covers(supply: float, demand: float) -> bool:
    """True when `supply` is enough for `demand`, within quantity epsilon."""
    return supply + QUANTITY_EPSILON >= demand


def within_tolerance(actual: float, expected: float, tolerance: float = TOTALS_TOLERANCE) -> bool:
    return abs(actual - expected) < tolerance


def round_money(value: float) -> float:
    return round(value, 2)


def require_positive(field: str, value: float) -> float:
    """Reject zero, negative, NaN and infinite quantities."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ValidationFailedError(field, "must be a number", value)
    if value != value or value in (float("inf"), float("-inf")):
        raise ValidationFailedError(field, "must be a finite number", value)
    if value <= 0:
        raise ValidationFailedError(field, "must be greater than zero", value)
    return float(value)


def require_text(field: str, value: str | None) -> str:
    """Reject missing or blank strings, returning the stripped value."""
    if value is None or not str(value).strip():
        raise ValidationFailedError(field, "is required", value)
    return str(value).strip()


def check_consistency(field: str, actual: float, expected: float) -> None:
    """Raise if a derived field drifted from its recomputed value."""
    if not within_tolerance(actual, expected):
        raise ValidationFailedError(
            field,
            f"expected {expected:.2f} but found {actual:.2f}",
            actual,
        )


def validation_failure(exc: ValidationError) -> ValidationFailedError:
    """Convert the first pydantic error into a field-specific failure."""
    errors = exc.errors()
    if not errors:
        return ValidationFailedError("record", str(exc))
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "record"
    return ValidationFailedError(field, first.get("msg", "invalid value"), first.get("input"))


def commit_fields(target: M, source: M) -> None:
    """Copy every model field of `source` onto `target` in place."""
    for name in type(target).model_fields:
        setattr(target, name, getattr(source, name))


@contextmanager
def staged(record: M) -> Iterator[M]:
    """
    Yield a deep copy of `record` to mutate.

    The copy is written back only when the block exits normally, so any
    exception raised inside leaves `record` exactly as it was.
    """
    draft = record.model_copy(deep=True)
    yield draft
    commit_fields(record, draft)


def coerce_updates(updates: dict[str, Any] | BaseModel) -> dict[str, Any]:
    """Accept either a plain dict or a partial model of updates."""
    if isinstance(updates, BaseModel):
        return updates.model_dump(exclude_unset=True)
    return dict(updates)
