"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between services and the API layer.
Entity-backed responses read attributes (including computed properties)
straight from the domain objects.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from src.core.entities import (
    InvoiceKind,
    InvoiceStatus,
    MovementDirection,
    MovementReference,
    ProductCategory,
    ProductionOrderStatus,
    PurchaseOrderSource,
    PurchaseOrderStatus,
    ReplenishmentPriority,
    SalesOrderStatus,
    TransactionDirection,
    TransactionSourceType,
)


class EntityResponse(BaseModel):
    """Base for responses built from domain entities."""

    model_config = ConfigDict(from_attributes=True)


# --- Inventory ---


class ProductResponse(EntityResponse):
    """Product with computed stock indicators."""

    id: int
    sku: str
    name: str
    description: str | None = None
    category: ProductCategory
    unit: str
    current_stock: float
    min_stock_level: float
    max_stock_level: float
    unit_cost: float
    selling_price: float | None = None
    supplier_id: str | None = None
    is_active: bool
    current_value: float = Field(..., description="current_stock * unit_cost")
    is_low_stock: bool
    needs_replenishment: bool
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    items: list[ProductResponse]
    total: int


class StockMovementResponse(EntityResponse):
    """One ledger entry."""

    id: int
    product_id: int
    direction: MovementDirection
    quantity: float
    delta: float = Field(..., description="Signed change applied to current_stock")
    unit_cost: float
    total_cost: float
    reference: MovementReference
    reference_id: int | None = None
    notes: str | None = None
    actor_id: str | None = None
    created_at: datetime


class MovementResultResponse(BaseModel):
    """Product after a movement, with the entry written (None for no-op counts)."""

    product: ProductResponse
    movement: StockMovementResponse | None = None


class StockValuationResponse(EntityResponse):
    total_value: float
    product_count: int
    total_items: float
    average_value: float


class ProductValueResponse(BaseModel):
    product_id: int
    current_value: float


class LedgerStockResponse(BaseModel):
    """Stored stock next to the stock implied by the movement log."""

    product_id: int
    current_stock: float
    ledger_stock: float


class LedgerDiscrepancyResponse(EntityResponse):
    product_id: int
    sku: str
    current_stock: float
    ledger_stock: float
    difference: float


class LedgerVerificationResponse(BaseModel):
    """Result of comparing stored stock with the movement ledger."""

    ok: bool
    discrepancies: list[LedgerDiscrepancyResponse] = Field(default_factory=list)


# --- Orders ---


class OrderLineResponse(EntityResponse):
    id: int | None = None
    product_id: int
    quantity: float
    unit_price: float
    line_total: float


class InvoiceResponse(EntityResponse):
    """Sales or purchase invoice."""

    id: int
    invoice_number: str
    kind: InvoiceKind
    source_model: str = Field(..., description="Invoice or PurchaseInvoice")
    order_id: int
    party_id: str
    subtotal: float
    tax: float
    total: float
    status: InvoiceStatus
    issue_date: datetime
    due_date: datetime | None = None
    payment_terms: str
    transaction_id: int | None = None
    paid_at: datetime | None = None


class SalesOrderResponse(EntityResponse):
    id: int
    order_number: str
    customer_id: str
    status: SalesOrderStatus
    items: list[OrderLineResponse]
    subtotal: float
    tax: float
    total: float
    production_order_id: int | None = None
    delivery_date: datetime | None = None
    sales_rep_id: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class PurchaseOrderResponse(EntityResponse):
    id: int
    order_number: str
    supplier_id: str
    status: PurchaseOrderStatus
    items: list[OrderLineResponse]
    subtotal: float
    tax: float
    total: float
    auto_generated: bool
    source: PurchaseOrderSource
    expected_delivery: date | None = None
    received_date: datetime | None = None
    created_by: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class ProductionMaterialResponse(EntityResponse):
    id: int | None = None
    product_id: int
    quantity: float
    unit_cost: float | None = None
    total_cost: float


class ProductionOrderResponse(EntityResponse):
    id: int
    order_number: str
    product_id: int
    quantity: float
    status: ProductionOrderStatus
    materials: list[ProductionMaterialResponse]
    material_cost: float
    sales_order_id: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class SalesOrderResultResponse(EntityResponse):
    """Sales order with the invoice or production orders created alongside it."""

    order: SalesOrderResponse
    invoice: InvoiceResponse | None = None
    production_orders: list[ProductionOrderResponse] | None = None


class PurchaseOrderResultResponse(EntityResponse):
    order: PurchaseOrderResponse
    invoice: InvoiceResponse | None = None


# --- Finance ---


class BankAccountResponse(EntityResponse):
    id: int
    name: str
    balance: float
    created_at: datetime
    updated_at: datetime


class TransactionResponse(EntityResponse):
    id: int
    direction: TransactionDirection
    amount: float
    bank_account_id: int
    source_type: TransactionSourceType
    source_model: str
    source_id: int | None = None
    notes: str | None = None
    created_by: str | None = None
    date: datetime


class PaymentResponse(EntityResponse):
    """Paid invoice with the transaction and the account it moved."""

    invoice: InvoiceResponse
    transaction: TransactionResponse
    bank_account: BankAccountResponse


class ExpenseResponse(EntityResponse):
    id: int
    title: str
    amount: float
    category: str
    bank_account_id: int
    transaction_id: int | None = None
    date: datetime
    notes: str | None = None
    created_by: str | None = None


class ExpenseResultResponse(EntityResponse):
    expense: ExpenseResponse
    transaction: TransactionResponse
    bank_account: BankAccountResponse


class CashSummaryResponse(EntityResponse):
    total_balance: float
    account_count: int
    total_in: float
    total_out: float
    unpaid_sales_invoices: int
    unpaid_purchase_invoices: int
    receivable: float
    payable: float


# --- Scheduler ---


class ReplenishmentRequestResponse(EntityResponse):
    """Purchase the scheduler would raise for one product."""

    product_id: int
    sku: str
    name: str
    supplier_id: str | None = None
    current_stock: float
    min_stock_level: float
    max_stock_level: float
    suggested_quantity: float
    unit_cost: float
    priority: ReplenishmentPriority


class ReplenishmentFailureResponse(EntityResponse):
    product_id: int
    sku: str | None = None
    error: str
    error_code: str | None = None


class ReplenishmentReportResponse(EntityResponse):
    reason: str
    started_at: datetime
    finished_at: datetime | None = None
    created: list[str] = Field(default_factory=list, description="Order numbers created")
    skipped: list[int] = Field(default_factory=list, description="Product IDs skipped")
    failures: list[ReplenishmentFailureResponse] = Field(default_factory=list)
    created_count: int
    ok: bool


class SchedulerRunResponse(BaseModel):
    """Outcome of an on-demand run request."""

    started: bool = Field(..., description="False if a run was already in progress")
    report: ReplenishmentReportResponse | None = None


class SchedulerStatusResponse(BaseModel):
    enabled: bool
    started: bool
    running: bool
    interval_seconds: float
    dedupe_open_orders: bool
    last_report: ReplenishmentReportResponse | None = None


# --- Health / errors ---


class ProviderHealthResponse(BaseModel):
    """Provider health status."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ProviderHealthResponse | None = None
    scheduler: ProviderHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. INSUFFICIENT_STOCK)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | dict | None = Field(default=None, description="Structured error details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
