"""
Request logging.

Binds the request id, acting user, method and path to the structlog
context, so every ledger event logged while serving the request carries
them without each service passing them along.
"""

import time
import uuid
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.config import bind_request_context, get_logger

logger = get_logger(__name__)

# Probe traffic is logged at debug so it does not drown order activity
_QUIET_PATHS = frozenset({"/health", "/api/health"})


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        request.state.request_id = request_id
        bind_request_context(request_id, request.headers.get("X-User-Id"))
        structlog.contextvars.bind_contextvars(method=request.method, path=request.url.path)

        log = logger.debug if request.url.path in _QUIET_PATHS else logger.info
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request_crashed",
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        log("request_handled", status=response.status_code, duration_ms=round(duration_ms, 2))

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response
