"""Abstract interfaces for financial ledger storage."""

from abc import ABC, abstractmethod
from datetime import datetime

from src.core.entities.finance import (
    BankAccount,
    Expense,
    Invoice,
    InvoiceKind,
    InvoiceStatus,
    Transaction,
    TransactionDirection,
)


class IBankAccountStore(ABC):
    """Interface for bank account persistence."""

    @abstractmethod
    async def create(self, account: BankAccount) -> BankAccount:
        """Create account. Raises DuplicateIdentifierError on a taken name."""
        pass

    @abstractmethod
    async def get(self, account_id: int) -> BankAccount | None:
        pass

    @abstractmethod
    async def list_accounts(self) -> list[BankAccount]:
        pass

    @abstractmethod
    async def rename(self, account_id: int, name: str) -> BankAccount | None:
        """Rename account. Raises DuplicateIdentifierError on a taken name."""
        pass

    @abstractmethod
    async def delete(self, account_id: int) -> bool:
        pass

    @abstractmethod
    async def apply_balance_delta(
        self, account_id: int, delta: float
    ) -> BankAccount | None:
        """
        Add ``delta`` to the balance. Decreases are conditional on funds.

        Returns:
            The updated account, or None if the guard rejected the change
        """
        pass


class ITransactionStore(ABC):
    """Interface for the append-only money transaction log."""

    @abstractmethod
    async def add(self, transaction: Transaction) -> Transaction:
        pass

    @abstractmethod
    async def get(self, transaction_id: int) -> Transaction | None:
        pass

    @abstractmethod
    async def list_transactions(
        self,
        bank_account_id: int | None = None,
        direction: TransactionDirection | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Transaction]:
        """List transactions, newest first."""
        pass

    @abstractmethod
    async def exists_for_account(self, bank_account_id: int) -> bool:
        pass

    @abstractmethod
    async def totals(self) -> dict[str, float]:
        """Sum of amounts per direction."""
        pass


class IInvoiceStore(ABC):
    """Interface for sales and purchase invoice persistence."""

    @abstractmethod
    async def next_number(self, prefix: str) -> str:
        pass

    @abstractmethod
    async def create(self, invoice: Invoice) -> Invoice:
        pass

    @abstractmethod
    async def get(self, invoice_id: int, kind: InvoiceKind | None = None) -> Invoice | None:
        """Get invoice by ID, optionally requiring a kind."""
        pass

    @abstractmethod
    async def get_by_order(self, kind: InvoiceKind, order_id: int) -> Invoice | None:
        pass

    @abstractmethod
    async def list_invoices(
        self,
        kind: InvoiceKind | None = None,
        status: InvoiceStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Invoice]:
        pass

    @abstractmethod
    async def mark_paid(
        self, invoice_id: int, transaction_id: int, paid_at: datetime
    ) -> bool:
        """Mark invoice paid unless it already is. Returns False if it was."""
        pass

    @abstractmethod
    async def set_status(
        self, invoice_id: int, status: InvoiceStatus, expected: list[InvoiceStatus]
    ) -> bool:
        """Change status if the stored status is one of ``expected``."""
        pass

    @abstractmethod
    async def unpaid_summary(self) -> dict[str, dict[str, float]]:
        """Count and total of open invoices per kind."""
        pass


class IExpenseStore(ABC):
    """Interface for expense persistence."""

    @abstractmethod
    async def create(self, expense: Expense) -> Expense:
        pass

    @abstractmethod
    async def attach_transaction(self, expense_id: int, transaction_id: int) -> None:
        pass

    @abstractmethod
    async def get(self, expense_id: int) -> Expense | None:
        pass

    @abstractmethod
    async def list_expenses(
        self,
        bank_account_id: int | None = None,
        category: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Expense]:
        pass
