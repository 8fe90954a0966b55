"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and services.
"""

from src.application.dto.requests import (
    AdjustStockRequest,
    CountStockRequest,
    CreateBankAccountRequest,
    CreateExpenseRequest,
    CreateProductionOrderRequest,
    CreateProductRequest,
    CreatePurchaseOrderRequest,
    CreateSalesOrderRequest,
    OrderLineRequest,
    PayInvoiceRequest,
    ProductionMaterialRequest,
    RenameBankAccountRequest,
    UpdateProductRequest,
)
from src.application.dto.responses import (
    BankAccountResponse,
    CashSummaryResponse,
    ErrorResponse,
    ExpenseResponse,
    ExpenseResultResponse,
    HealthResponse,
    InvoiceResponse,
    LedgerDiscrepancyResponse,
    LedgerStockResponse,
    LedgerVerificationResponse,
    MovementResultResponse,
    OrderLineResponse,
    PaymentResponse,
    ProductionMaterialResponse,
    ProductionOrderResponse,
    ProductListResponse,
    ProductResponse,
    ProductValueResponse,
    ProviderHealthResponse,
    PurchaseOrderResponse,
    PurchaseOrderResultResponse,
    ReplenishmentReportResponse,
    ReplenishmentRequestResponse,
    SalesOrderResponse,
    SalesOrderResultResponse,
    SchedulerRunResponse,
    SchedulerStatusResponse,
    StockMovementResponse,
    StockValuationResponse,
    TransactionResponse,
)

__all__ = [
    # Requests
    "CreateProductRequest",
    "UpdateProductRequest",
    "AdjustStockRequest",
    "CountStockRequest",
    "OrderLineRequest",
    "CreateSalesOrderRequest",
    "CreatePurchaseOrderRequest",
    "ProductionMaterialRequest",
    "CreateProductionOrderRequest",
    "PayInvoiceRequest",
    "CreateExpenseRequest",
    "CreateBankAccountRequest",
    "RenameBankAccountRequest",
    # Responses
    "ProductResponse",
    "ProductListResponse",
    "ProductValueResponse",
    "StockMovementResponse",
    "MovementResultResponse",
    "StockValuationResponse",
    "LedgerDiscrepancyResponse",
    "LedgerStockResponse",
    "LedgerVerificationResponse",
    "OrderLineResponse",
    "InvoiceResponse",
    "SalesOrderResponse",
    "SalesOrderResultResponse",
    "PurchaseOrderResponse",
    "PurchaseOrderResultResponse",
    "ProductionMaterialResponse",
    "ProductionOrderResponse",
    "BankAccountResponse",
    "TransactionResponse",
    "PaymentResponse",
    "ExpenseResponse",
    "ExpenseResultResponse",
    "CashSummaryResponse",
    "ReplenishmentRequestResponse",
    "ReplenishmentReportResponse",
    "SchedulerRunResponse",
    "SchedulerStatusResponse",
    "HealthResponse",
    "ProviderHealthResponse",
    "ErrorResponse",
]
