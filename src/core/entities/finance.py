"""Financial ledger domain entities."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from src.core.entities.common import utc_now


class TransactionDirection(str, Enum):
    IN = "in"
    OUT = "out"


class TransactionSourceType(str, Enum):
    INVOICE = "invoice"
    EXPENSE = "expense"


class InvoiceKind(str, Enum):
    """Sales invoices bring money in, purchase invoices send it out."""

    SALES = "sales"
    PURCHASE = "purchase"

    @property
    def source_model(self) -> str:
        return "Invoice" if self is InvoiceKind.SALES else "PurchaseInvoice"

    @property
    def payment_direction(self) -> TransactionDirection:
        if self is InvoiceKind.SALES:
            return TransactionDirection.IN
        return TransactionDirection.OUT

    @classmethod
    def from_source_model(cls, name: str) -> "InvoiceKind":
        """Map a source model name (Invoice / PurchaseInvoice) to a kind."""
        for kind in cls:
            if kind.source_model == name:
                return kind
        raise ValueError(f"Unknown invoice model: {name}")


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class BankAccount(BaseModel):
    """A bank account. The balance changes only through transactions."""

    id: int | None = None
    name: str = Field(min_length=1)
    balance: float = Field(default=0.0, ge=0)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Transaction(BaseModel):
    """One immutable money movement against a bank account."""

    id: int | None = None
    direction: TransactionDirection
    amount: float = Field(gt=0)
    bank_account_id: int
    source_type: TransactionSourceType
    source_model: str  # Invoice, PurchaseInvoice or Expense
    source_id: int | None = None
    notes: str | None = None
    created_by: str | None = None
    date: datetime = Field(default_factory=utc_now)


class Invoice(BaseModel):
    """Sales or purchase invoice issued for an order."""

    id: int | None = None
    invoice_number: str | None = None
    kind: InvoiceKind
    order_id: int
    party_id: str  # customer for sales, supplier for purchases
    subtotal: float = 0.0
    tax: float = 0.0
    total: float = 0.0
    status: InvoiceStatus = InvoiceStatus.SENT
    issue_date: datetime = Field(default_factory=utc_now)
    due_date: datetime | None = None
    payment_terms: str = "Net 30"
    transaction_id: int | None = None
    paid_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def source_model(self) -> str:
        return self.kind.source_model

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID


class Expense(BaseModel):
    """A business expense paid out of a bank account."""

    id: int | None = None
    title: str = Field(min_length=1)
    amount: float = Field(gt=0)
    category: str = Field(min_length=1)
    bank_account_id: int
    transaction_id: int | None = None
    date: datetime = Field(default_factory=utc_now)
    notes: str | None = None
    created_by: str | None = None
    created_at: datetime = Field(default_factory=utc_now)


class CashSummary(BaseModel):
    """Balances and flows across all bank accounts."""

    total_balance: float = 0.0
    account_count: int = 0
    total_in: float = 0.0
    total_out: float = 0.0
    unpaid_sales_invoices: int = 0
    unpaid_purchase_invoices: int = 0
    receivable: float = 0.0
    payable: float = 0.0
