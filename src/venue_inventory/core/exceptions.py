"""
Domain exceptions for the venue inventory engine.

Every ledger and purchase-order operation either fully applies or raises one
of these, leaving the in-memory record untouched.
"""

from typing import Any


class VenueInventoryError(Exception):
    """Base exception for all venue inventory errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Lookup Exceptions
class NotFoundError(VenueInventoryError):
    """An id or key does not resolve."""

    pass


class InventoryNotFoundError(NotFoundError):
    """No inventory record exists for the product/location pair."""

    def __init__(self, product_id: str, location_id: str):
        super().__init__(
            f"Inventory not found for product {product_id} at {location_id}",
            code="INVENTORY_NOT_FOUND",
            details={"product_id": product_id, "location_id": location_id},
        )


class BatchNotFoundError(NotFoundError):
    """Batch id not present in the inventory record."""

    def __init__(self, batch_id: str):
        super().__init__(
            f"Batch not found: {batch_id}",
            code="BATCH_NOT_FOUND",
            details={"batch_id": batch_id},
        )


class PurchaseOrderNotFoundError(NotFoundError):
    """Purchase order not found."""

    def __init__(self, purchase_order_id: str):
        super().__init__(
            f"Purchase order not found: {purchase_order_id}",
            code="PURCHASE_ORDER_NOT_FOUND",
            details={"purchase_order_id": purchase_order_id},
        )


class PurchaseOrderItemNotFoundError(NotFoundError):
    """Line item for a product not present on the order."""

    def __init__(self, purchase_order_id: str, product_id: str):
        super().__init__(
            f"Product {product_id} is not on purchase order {purchase_order_id}",
            code="PURCHASE_ORDER_ITEM_NOT_FOUND",
            details={"purchase_order_id": purchase_order_id, "product_id": product_id},
        )


# Ledger Exceptions
class InsufficientStockError(VenueInventoryError):
    """Requested quantity exceeds what the ledger can supply."""

    def __init__(
        self,
        requested: float,
        available: float,
        batch_id: str | None = None,
        product_id: str | None = None,
        location_id: str | None = None,
    ):
        shortfall = max(requested - available, 0.0)
        where = f" in batch {batch_id}" if batch_id else ""
        super().__init__(
            f"Insufficient stock{where}: requested {requested}, "
            f"available {available} (short {shortfall})",
            code="INSUFFICIENT_STOCK",
            details={
                "requested": requested,
                "available": available,
                "shortfall": shortfall,
                "batch_id": batch_id,
                "product_id": product_id,
                "location_id": location_id,
            },
        )


# Lifecycle Exceptions
class InvalidTransitionError(VenueInventoryError):
    """A state-machine guard was not satisfied."""

    def __init__(self, purchase_order_id: str, status: str, action: str, reason: str):
        super().__init__(
            f"Cannot {action} purchase order {purchase_order_id} "
            f"in status '{status}': {reason}",
            code="INVALID_TRANSITION",
            details={
                "purchase_order_id": purchase_order_id,
                "status": status,
                "action": action,
                "reason": reason,
            },
        )


class InvalidStateError(VenueInventoryError):
    """Operation not permitted in the record's current state."""

    def __init__(self, entity: str, entity_id: str, state: str, operation: str):
        super().__init__(
            f"Cannot {operation} {entity} {entity_id} while it is '{state}'",
            code="INVALID_STATE",
            details={
                "entity": entity,
                "entity_id": entity_id,
                "state": state,
                "operation": operation,
            },
        )


# Validation Exceptions
class ValidationFailedError(VenueInventoryError):
    """An invariant or input check failed on a specific field."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation failed for '{field}': {message}",
            code="VALIDATION_FAILED",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )
        self.field = field


# Storage Exceptions
class StorageError(VenueInventoryError):
    """Base exception for storage operations."""

    pass


class VersionConflictError(StorageError):
    """Record changed (or was created) by another writer since it was loaded."""

    def __init__(self, entity: str, key: str, expected_version: int):
        super().__init__(
            f"{entity} {key} was modified concurrently (expected version {expected_version})",
            code="VERSION_CONFLICT",
            details={"entity": entity, "key": key, "expected_version": expected_version},
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


class ConfigurationError(VenueInventoryError):
    """Settings cannot support the requested operation."""

    def __init__(self, setting: str, message: str):
        super().__init__(
            message,
            code="CONFIGURATION_ERROR",
            details={"setting": setting},
        )
