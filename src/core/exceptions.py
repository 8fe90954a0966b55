"""
Domain exceptions for the ERP ledger.

Every error carries a machine-readable code and structured details so
callers can render an actionable message without knowing ledger internals.
"""

from typing import Any


class ERPError(Exception):
    """Base exception for all ledger and order errors."""

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


# Shortfall Exceptions
class ShortfallError(ERPError):
    """Base exception for a quantity or amount that cannot be covered."""

    pass


class InsufficientStockError(ShortfallError):
    """An outgoing movement would drive stock below zero."""

    def __init__(
        self,
        product_id: int | None,
        required: float,
        available: float,
        sku: str | None = None,
    ):
        label = sku or product_id
        super().__init__(
            f"Insufficient stock for {label}. "
            f"Required: {required:g}, Available: {available:g}",
            code="INSUFFICIENT_STOCK",
            details={
                "product_id": product_id,
                "sku": sku,
                "required": required,
                "available": available,
            },
        )


class InsufficientMaterialError(ShortfallError):
    """A production order cannot start because a material is short."""

    def __init__(
        self,
        product_id: int | None,
        required: float,
        available: float,
        sku: str | None = None,
        order_id: int | None = None,
    ):
        label = sku or product_id
        super().__init__(
            f"Insufficient material {label}. "
            f"Required: {required:g}, Available: {available:g}",
            code="INSUFFICIENT_MATERIAL",
            details={
                "product_id": product_id,
                "sku": sku,
                "required": required,
                "available": available,
                "order_id": order_id,
            },
        )


class InsufficientBalanceError(ShortfallError):
    """An outgoing payment exceeds the bank account balance."""

    def __init__(self, bank_account_id: int | None, required: float, available: float):
        super().__init__(
            f"Insufficient balance in bank account {bank_account_id}. "
            f"Required: {required:.2f}, Available: {available:.2f}",
            code="INSUFFICIENT_BALANCE",
            details={
                "bank_account_id": bank_account_id,
                "required": required,
                "available": available,
            },
        )


# State Exceptions
class InvalidStateError(ERPError):
    """A transition was attempted from the wrong state."""

    def __init__(
        self,
        entity: str,
        entity_id: int | None,
        current: str,
        required: list[str],
        target: str | None = None,
    ):
        expected = " or ".join(required) if required else "none"
        super().__init__(
            f"{entity} {entity_id} is '{current}', must be '{expected}'"
            + (f" to become '{target}'" if target else ""),
            code="INVALID_STATE",
            details={
                "entity": entity,
                "entity_id": entity_id,
                "current": current,
                "required": required,
                "target": target,
            },
        )


class AlreadyPaidError(ERPError):
    """Invoice has already been paid."""

    def __init__(self, invoice_id: int | None, invoice_number: str | None = None):
        super().__init__(
            f"Invoice {invoice_number or invoice_id} is already paid",
            code="ALREADY_PAID",
            details={"invoice_id": invoice_id, "invoice_number": invoice_number},
        )


# Lookup Exceptions
class NotFoundError(ERPError):
    """A referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: Any, code: str = "NOT_FOUND"):
        super().__init__(
            f"{entity} not found: {entity_id}",
            code=code,
            details={"entity": entity, "entity_id": entity_id},
        )


class ProductNotFoundError(NotFoundError):
    """Product not found."""

    def __init__(self, product_id: Any):
        super().__init__("Product", product_id, code="PRODUCT_NOT_FOUND")


class OrderNotFoundError(NotFoundError):
    """Sales, purchase or production order not found."""

    def __init__(self, order_type: str, order_id: Any):
        super().__init__(order_type, order_id, code="ORDER_NOT_FOUND")


class BankAccountNotFoundError(NotFoundError):
    """Bank account not found."""

    def __init__(self, bank_account_id: Any):
        super().__init__("Bank account", bank_account_id, code="BANK_ACCOUNT_NOT_FOUND")


class InvoiceNotFoundError(NotFoundError):
    """Sales or purchase invoice not found."""

    def __init__(self, invoice_id: Any, invoice_model: str = "Invoice"):
        super().__init__(invoice_model, invoice_id, code="INVOICE_NOT_FOUND")


# Identity Exceptions
class DuplicateIdentifierError(ERPError):
    """An order number, SKU or account name is already taken."""

    def __init__(self, entity: str, field: str, value: str):
        super().__init__(
            f"{entity} with {field} '{value}' already exists",
            code="DUPLICATE_IDENTIFIER",
            details={"entity": entity, "field": field, "value": value},
        )


class ResourceInUseError(ERPError):
    """Entity cannot be removed while other records reference it."""

    def __init__(self, entity: str, entity_id: Any, reason: str):
        super().__init__(
            f"Cannot remove {entity} {entity_id}: {reason}",
            code="RESOURCE_IN_USE",
            details={"entity": entity, "entity_id": entity_id, "reason": reason},
        )


# Validation Exceptions
class ValidationError(ERPError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


# Storage Exceptions
class StorageError(ERPError):
    """Base exception for storage operations."""

    pass


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


# Scheduler Exceptions
class SchedulerError(ERPError):
    """Base exception for replenishment scheduler runs."""

    pass


class SchedulerTimeoutError(SchedulerError):
    """A replenishment run exceeded its time budget."""

    def __init__(self, timeout: float):
        super().__init__(
            f"Replenishment run timed out after {timeout:g} seconds",
            code="SCHEDULER_TIMEOUT",
            details={"timeout": timeout},
        )


class ConfigurationError(ERPError):
    """Configuration error."""

    pass
