"""API middleware."""

from venue_inventory.api.middleware.error_handler import ErrorHandlerMiddleware
from venue_inventory.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware", "ErrorHandlerMiddleware"]
