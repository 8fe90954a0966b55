"""
Maps ledger exceptions to HTTP error responses.

Every error body is an ``ErrorResponse``: a machine-readable error_code,
the message, a recovery hint and, for domain errors, the structured
detail the exception carries (required vs. available quantities, current
vs. accepted order states).
"""

import traceback
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.application.dto.responses import ErrorResponse
from src.config import get_logger
from src.core.exceptions import (
    AlreadyPaidError,
    ConfigurationError,
    DuplicateIdentifierError,
    ERPError,
    InvalidStateError,
    NotFoundError,
    ResourceInUseError,
    SchedulerError,
    ShortfallError,
    StorageError,
    ValidationError,
)

logger = get_logger(__name__)

# First match wins; subclasses must precede their bases
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidStateError: status.HTTP_409_CONFLICT,
    AlreadyPaidError: status.HTTP_409_CONFLICT,
    DuplicateIdentifierError: status.HTTP_409_CONFLICT,
    ResourceInUseError: status.HTTP_409_CONFLICT,
    ShortfallError: status.HTTP_400_BAD_REQUEST,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    SchedulerError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

HINT_MAP: dict[str, str] = {
    "INSUFFICIENT_STOCK": "Receive a purchase order or adjust stock before retrying.",
    "INSUFFICIENT_MATERIAL": "Replenish the material listed in detail, then start production again.",
    "INSUFFICIENT_BALANCE": "Choose another bank account or record incoming payments first.",
    "INVALID_STATE": "Check the order's current status; detail lists the states this action accepts.",
    "ALREADY_PAID": "The invoice is settled. See its transaction_id for the payment.",
    "PRODUCT_NOT_FOUND": "Check the product ID and try GET /api/inventory/products to list products.",
    "ORDER_NOT_FOUND": "Check the order ID and list orders under /api/sales, /api/purchasing or /api/manufacturing.",
    "INVOICE_NOT_FOUND": "Check the invoice ID and invoice_model (Invoice or PurchaseInvoice).",
    "BANK_ACCOUNT_NOT_FOUND": "Check the account ID and try GET /api/finance/accounts to list accounts.",
    "DUPLICATE_IDENTIFIER": "Use a different value or omit it to have one generated.",
    "RESOURCE_IN_USE": "The record is referenced by other records and cannot be removed.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
    "SCHEDULER_TIMEOUT": "The replenishment run exceeded its timeout. Orders created before the timeout are kept.",
}

STATUS_CODES: dict[int, tuple[str, str]] = {
    400: ("BAD_REQUEST", "Check the request parameters and body."),
    404: ("NOT_FOUND", "The requested resource was not found. Verify the ID."),
    405: ("METHOD_NOT_ALLOWED", "Check the HTTP method for this path."),
    409: ("CONFLICT", "The request conflicts with the current state of the resource."),
    422: ("UNPROCESSABLE_ENTITY", "Check the request body fields and types."),
    500: ("INTERNAL_ERROR", "An internal error occurred. Check server logs."),
    503: ("SERVICE_UNAVAILABLE", "The service is temporarily unavailable. Retry later."),
}


def _hint(error_code: str, status_code: int) -> str:
    return HINT_MAP.get(error_code) or STATUS_CODES.get(status_code, ("", ""))[1]


def _status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_json(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    detail: Any = None,
    hint: str | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error_code=error_code,
        message=message,
        hint=hint or _hint(error_code, status_code),
        detail=detail,
        path=request.url.path,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def error_response(request: Request, exc: Exception) -> JSONResponse:
    """Log an exception and turn it into the standard error body."""
    status_code = _status_for(exc)
    if isinstance(exc, ERPError):
        error_code, message, detail = exc.code, exc.message, exc.details or None
    else:
        error_code, message, detail = STATUS_CODES[500][0], "Internal server error", None

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_error",
        request_id=getattr(request.state, "request_id", None),
        path=request.url.path,
        status=status_code,
        error_code=error_code,
        error=str(exc),
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )
    return _error_json(request, status_code, error_code, message, detail)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Last-resort handler for exceptions no exception handler claimed."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain, request validation and HTTP errors."""

    @app.exception_handler(ERPError)
    async def erp_exception_handler(request: Request, exc: ERPError) -> JSONResponse:
        return error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        fields = {
            ".".join(str(part) for part in error["loc"]): error["msg"] for error in exc.errors()
        }
        return _error_json(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "VALIDATION_ERROR",
            "Request validation failed",
            detail={"fields": fields},
            hint=STATUS_CODES[422][1],
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        error_code = STATUS_CODES.get(exc.status_code, ("HTTP_ERROR", ""))[0]
        return _error_json(
            request,
            exc.status_code,
            error_code,
            str(exc.detail or "An error occurred"),
        )
