"""API tests for finance endpoints."""

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.dependencies import get_financial_ledger
from src.api.main import app
from src.core.entities import (
    BankAccount,
    CashSummary,
    Expense,
    Invoice,
    InvoiceKind,
    InvoiceStatus,
    Transaction,
    TransactionDirection,
    TransactionSourceType,
)
from src.core.exceptions import (
    AlreadyPaidError,
    BankAccountNotFoundError,
    InsufficientBalanceError,
    ResourceInUseError,
)
from src.core.services import ExpenseResult, FinancialLedger, PaymentResult


@pytest.fixture
def mock_finance():
    return AsyncMock(spec=FinancialLedger)


@pytest.fixture
async def client(mock_finance):
    app.dependency_overrides[get_financial_ledger] = lambda: mock_finance
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_financial_ledger, None)


class TestPaymentsAPI:
    async def test_pay_sales_invoice(self, client: AsyncClient, mock_finance):
        transaction = Transaction(
            id=7,
            direction=TransactionDirection.IN,
            amount=500,
            bank_account_id=1,
            source_type=TransactionSourceType.INVOICE,
            source_model="Invoice",
            source_id=3,
        )
        mock_finance.pay_invoice.return_value = PaymentResult(
            invoice=Invoice(
                id=3,
                invoice_number="INV0003",
                kind=InvoiceKind.SALES,
                order_id=3,
                party_id="CUST-1",
                total=500,
                status=InvoiceStatus.PAID,
                transaction_id=7,
            ),
            transaction=transaction,
            bank_account=BankAccount(id=1, name="Main", balance=500),
        )

        response = await client.post(
            "/api/finance/invoices/3/pay",
            json={"invoice_model": "Invoice", "bank_account_id": 1},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["invoice"]["status"] == "paid"
        assert data["transaction"]["direction"] == "in"
        assert data["bank_account"]["balance"] == 500.0
        args = mock_finance.pay_invoice.await_args.args
        assert args == (3, "Invoice", 1)

    async def test_unknown_invoice_model_is_422(self, client: AsyncClient, mock_finance):
        response = await client.post(
            "/api/finance/invoices/3/pay",
            json={"invoice_model": "Receipt", "bank_account_id": 1},
        )

        assert response.status_code == 422
        mock_finance.pay_invoice.assert_not_awaited()

    async def test_insufficient_balance_is_400(self, client: AsyncClient, mock_finance):
        mock_finance.pay_invoice.side_effect = InsufficientBalanceError(1, 500, 300)

        response = await client.post(
            "/api/finance/invoices/3/pay",
            json={"invoice_model": "PurchaseInvoice", "bank_account_id": 1},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "INSUFFICIENT_BALANCE"
        assert data["detail"]["required"] == 500
        assert data["detail"]["available"] == 300

    async def test_already_paid_is_409(self, client: AsyncClient, mock_finance):
        mock_finance.pay_invoice.side_effect = AlreadyPaidError(3, "INV0003")

        response = await client.post(
            "/api/finance/invoices/3/pay",
            json={"invoice_model": "Invoice", "bank_account_id": 1},
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "ALREADY_PAID"


class TestExpensesAPI:
    async def test_create_expense(self, client: AsyncClient, mock_finance):
        mock_finance.create_expense.return_value = ExpenseResult(
            expense=Expense(
                id=1, title="Rent", amount=150, category="rent", bank_account_id=1, transaction_id=2
            ),
            transaction=Transaction(
                id=2,
                direction=TransactionDirection.OUT,
                amount=150,
                bank_account_id=1,
                source_type=TransactionSourceType.EXPENSE,
                source_model="Expense",
                source_id=1,
            ),
            bank_account=BankAccount(id=1, name="Ops", balance=50),
        )

        response = await client.post(
            "/api/finance/expenses",
            json={"title": "Rent", "amount": 150, "category": "rent", "bank_account_id": 1},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["expense"]["transaction_id"] == 2
        assert data["bank_account"]["balance"] == 50.0

    async def test_expense_amount_must_be_positive(self, client: AsyncClient):
        response = await client.post(
            "/api/finance/expenses",
            json={"title": "Rent", "amount": 0, "bank_account_id": 1},
        )
        assert response.status_code == 422


class TestBankAccountsAPI:
    async def test_create(self, client: AsyncClient, mock_finance):
        mock_finance.create_bank_account.return_value = BankAccount(
            id=1, name="Main", balance=100
        )

        response = await client.post(
            "/api/finance/accounts", json={"name": "Main", "balance": 100}
        )

        assert response.status_code == 201
        mock_finance.create_bank_account.assert_awaited_once_with("Main", 100)

    async def test_missing_account_is_404(self, client: AsyncClient, mock_finance):
        mock_finance.get_bank_account.side_effect = BankAccountNotFoundError(5)

        response = await client.get("/api/finance/accounts/5")

        assert response.status_code == 404
        assert response.json()["error_code"] == "BANK_ACCOUNT_NOT_FOUND"

    async def test_delete_with_transactions_is_409(self, client: AsyncClient, mock_finance):
        mock_finance.delete_bank_account.side_effect = ResourceInUseError(
            "bank account", 1, "has transactions"
        )

        response = await client.delete("/api/finance/accounts/1")

        assert response.status_code == 409

    async def test_delete_returns_204(self, client: AsyncClient, mock_finance):
        response = await client.delete("/api/finance/accounts/1")

        assert response.status_code == 204
        mock_finance.delete_bank_account.assert_awaited_once_with(1)

    async def test_summary(self, client: AsyncClient, mock_finance):
        mock_finance.cash_summary.return_value = CashSummary(
            total_balance=105, account_count=1, total_in=10, total_out=5, receivable=20
        )

        response = await client.get("/api/finance/summary")

        assert response.status_code == 200
        assert response.json()["receivable"] == 20.0
