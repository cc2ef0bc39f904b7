"""
Error handling middleware.

Standardizes all API error responses to include:
- error_code: machine-readable identifier
- message: human-readable description
- hint: suggested recovery action
"""

import json
import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from venue_inventory.application.dto.responses import ErrorResponse
from venue_inventory.config import get_logger
from venue_inventory.core.exceptions import (
    ConfigurationError,
    InsufficientStockError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    StorageError,
    ValidationFailedError,
    VenueInventoryError,
    VersionConflictError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes (first match wins, subclasses first)
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InsufficientStockError: status.HTTP_409_CONFLICT,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    InvalidStateError: status.HTTP_409_CONFLICT,
    VersionConflictError: status.HTTP_409_CONFLICT,
    ValidationFailedError: status.HTTP_400_BAD_REQUEST,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ValueError: status.HTTP_400_BAD_REQUEST,
}

# Hint messages per error code
HINT_MAP: dict[str, str] = {
    "INVENTORY_NOT_FOUND": "Receive stock for the product/location first, or list GET /api/inventory.",
    "BATCH_NOT_FOUND": "Check the batch ID against GET /api/inventory/{product_id}/{location_id}.",
    "PURCHASE_ORDER_NOT_FOUND": "Check the order ID and try GET /api/purchase-orders.",
    "PURCHASE_ORDER_ITEM_NOT_FOUND": "The product is not on this order. Add it as a new item instead.",
    "INSUFFICIENT_STOCK": "Reduce the quantity or receive more stock. See details.shortfall.",
    "INVALID_TRANSITION": "Check the order status. Orders move draft, pending, approved, ordered, received.",
    "INVALID_STATE": "The record's current state does not allow this operation.",
    "VALIDATION_FAILED": "Fix the field named in details.field and retry.",
    "VERSION_CONFLICT": "The record was changed concurrently. Reload it and retry.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
    "CONFIGURATION_ERROR": "A server setting needs changing. See details.setting.",
    "ValueError": "A parameter value is invalid. Check the request.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The request conflicts with the current state of the record.",
    422: "The request could not be processed. Check the input format.",
    500: "An internal error occurred. Check server logs.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response_for(request: Request, exc: Exception) -> JSONResponse:
    """Convert an exception to a standardized JSON response, logging it."""
    status_code = status_for(exc)
    if isinstance(exc, VenueInventoryError):
        error_code = exc.code
        message = exc.message
        detail = json.dumps(exc.details, default=str) if exc.details else None
    else:
        error_code = exc.__class__.__name__
        message = str(exc)
        detail = None

    request_id = getattr(request.state, "request_id", None)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_error",
        request_id=request_id,
        path=request.url.path,
        error_type=error_code,
        error=message,
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )

    error_response = ErrorResponse(
        error_code=error_code,
        message=message,
        hint=_get_hint(error_code, status_code),
        detail=detail,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Catches anything the registered exception handlers did not.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return error_response_for(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(VenueInventoryError)
    async def domain_exception_handler(
        request: Request,
        exc: VenueInventoryError,
    ) -> JSONResponse:
        """Map domain errors to their HTTP status."""
        return error_response_for(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                hint=HINT_MAP["VALIDATION_ERROR"],
                detail="; ".join(errors),
                path=request.url.path,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        """Handle HTTP exceptions with standardized format."""
        error_code = {404: "NOT_FOUND", 400: "BAD_REQUEST", 405: "METHOD_NOT_ALLOWED"}.get(
            exc.status_code, "HTTP_ERROR"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=error_code,
                message=exc.detail or "An error occurred",
                hint=_get_hint(error_code, exc.status_code),
                path=request.url.path,
            ).model_dump(mode="json"),
        )
