"""Per-request id, timing headers and access events."""

import time
import uuid
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from venue_inventory.config import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with an id and log one event when it finishes.

    A caller-supplied `X-Request-ID` is reused so ledger events can be
    correlated with the client that sent the command. The id stays bound in
    structlog context vars for the whole request.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        request.state.request_id = request_id
        started = time.perf_counter()

        with structlog.contextvars.bound_contextvars(
            request_id=request_id, method=request.method, path=request.url.path
        ):
            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    "request_failed",
                    error_type=type(e).__name__,
                    duration_ms=_elapsed_ms(started),
                )
                raise

            duration_ms = _elapsed_ms(started)
            log = logger.warning if response.status_code >= 500 else logger.info
            log("request_completed", status=response.status_code, duration_ms=duration_ms)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
