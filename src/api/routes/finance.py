"""Invoices, payments, expenses and bank account endpoints."""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import get_actor, get_financial_ledger
from src.application.dto.requests import (
    CreateBankAccountRequest,
    CreateExpenseRequest,
    PayInvoiceRequest,
    RenameBankAccountRequest,
)
from src.application.dto.responses import (
    BankAccountResponse,
    CashSummaryResponse,
    ErrorResponse,
    ExpenseResponse,
    ExpenseResultResponse,
    InvoiceResponse,
    PaymentResponse,
    TransactionResponse,
)
from src.core.entities import Actor, InvoiceKind, InvoiceStatus, TransactionDirection
from src.core.services import FinancialLedger

router = APIRouter(prefix="/api/finance", tags=["finance"])


# --- Invoices ---


@router.get("/invoices", response_model=list[InvoiceResponse])
async def list_invoices(
    kind: InvoiceKind | None = None,
    status: InvoiceStatus | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    finance: FinancialLedger = Depends(get_financial_ledger),
) -> list[InvoiceResponse]:
    invoices = await finance.list_invoices(kind=kind, status=status, limit=limit, offset=offset)
    return [InvoiceResponse.model_validate(i) for i in invoices]


@router.get(
    "/invoices/{invoice_id}",
    response_model=InvoiceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_invoice(
    invoice_id: int,
    finance: FinancialLedger = Depends(get_financial_ledger),
) -> InvoiceResponse:
    return InvoiceResponse.model_validate(await finance.get_invoice(invoice_id))


@router.post(
    "/invoices/{invoice_id}/pay",
    response_model=PaymentResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def pay_invoice(
    invoice_id: int,
    request: PayInvoiceRequest,
    finance: FinancialLedger = Depends(get_financial_ledger),
    actor: Actor | None = Depends(get_actor),
) -> PaymentResponse:
    """Settle an invoice: money in for sales, out for purchases."""
    result = await finance.pay_invoice(
        invoice_id,
        request.invoice_model,
        request.bank_account_id,
        notes=request.notes,
        actor=actor,
    )
    return PaymentResponse.model_validate(result)


# --- Expenses ---


@router.post(
    "/expenses",
    response_model=ExpenseResultResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_expense(
    request: CreateExpenseRequest,
    finance: FinancialLedger = Depends(get_financial_ledger),
    actor: Actor | None = Depends(get_actor),
) -> ExpenseResultResponse:
    result = await finance.create_expense(
        title=request.title,
        amount=request.amount,
        category=request.category,
        bank_account_id=request.bank_account_id,
        date=request.date,
        notes=request.notes,
        actor=actor,
    )
    return ExpenseResultResponse.model_validate(result)


@router.get("/expenses", response_model=list[ExpenseResponse])
async def list_expenses(
    bank_account_id: int | None = None,
    category: str | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    finance: FinancialLedger = Depends(get_financial_ledger),
) -> list[ExpenseResponse]:
    expenses = await finance.list_expenses(
        bank_account_id=bank_account_id, category=category, limit=limit, offset=offset
    )
    return [ExpenseResponse.model_validate(e) for e in expenses]


# --- Bank accounts ---


@router.post(
    "/accounts",
    response_model=BankAccountResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_bank_account(
    request: CreateBankAccountRequest,
    finance: FinancialLedger = Depends(get_financial_ledger),
) -> BankAccountResponse:
    account = await finance.create_bank_account(request.name, request.balance)
    return BankAccountResponse.model_validate(account)


@router.get("/accounts", response_model=list[BankAccountResponse])
async def list_bank_accounts(
    finance: FinancialLedger = Depends(get_financial_ledger),
) -> list[BankAccountResponse]:
    return [BankAccountResponse.model_validate(a) for a in await finance.list_bank_accounts()]


@router.get(
    "/accounts/{account_id}",
    response_model=BankAccountResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_bank_account(
    account_id: int,
    finance: FinancialLedger = Depends(get_financial_ledger),
) -> BankAccountResponse:
    return BankAccountResponse.model_validate(await finance.get_bank_account(account_id))


@router.patch(
    "/accounts/{account_id}",
    response_model=BankAccountResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def rename_bank_account(
    account_id: int,
    request: RenameBankAccountRequest,
    finance: FinancialLedger = Depends(get_financial_ledger),
) -> BankAccountResponse:
    account = await finance.rename_bank_account(account_id, request.name)
    return BankAccountResponse.model_validate(account)


@router.delete(
    "/accounts/{account_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_bank_account(
    account_id: int,
    finance: FinancialLedger = Depends(get_financial_ledger),
) -> None:
    """Delete an account that has no transactions."""
    await finance.delete_bank_account(account_id)


# --- Transactions ---


@router.get("/transactions", response_model=list[TransactionResponse])
async def list_transactions(
    bank_account_id: int | None = None,
    direction: TransactionDirection | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    finance: FinancialLedger = Depends(get_financial_ledger),
) -> list[TransactionResponse]:
    transactions = await finance.list_transactions(
        bank_account_id=bank_account_id, direction=direction, limit=limit, offset=offset
    )
    return [TransactionResponse.model_validate(t) for t in transactions]


@router.get("/summary", response_model=CashSummaryResponse)
async def cash_summary(
    finance: FinancialLedger = Depends(get_financial_ledger),
) -> CashSummaryResponse:
    """Balances, flows and open receivables/payables."""
    return CashSummaryResponse.model_validate(await finance.cash_summary())
