"""
Financial ledger service.

Bank balances change only together with an appended Transaction:
invoice payments and expenses each write the transaction, the balance
change and the source document's back-reference in one unit of work.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from src.config import get_logger
from src.config.settings import LedgerSettings
from src.core.entities.common import SYSTEM_ACTOR, Actor, round_money, utc_now
from src.core.entities.finance import (
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
    InvalidStateError,
    InvoiceNotFoundError,
    ResourceInUseError,
    ValidationError,
)
from src.core.interfaces.notifier import INotifier
from src.core.interfaces.unit_of_work import IUnitOfWork, IUnitOfWorkFactory
from src.core.services.alerts import send_alert

logger = get_logger(__name__)

OPEN_INVOICE_STATUSES = [InvoiceStatus.DRAFT, InvoiceStatus.SENT, InvoiceStatus.OVERDUE]


@dataclass
class PaymentResult:
    """Invoice after payment with the transaction and account it touched."""

    invoice: Invoice
    transaction: Transaction
    bank_account: BankAccount


@dataclass
class ExpenseResult:
    expense: Expense
    transaction: Transaction
    bank_account: BankAccount


class FinancialLedger:
    """Invoices, payments, expenses and bank accounts."""

    def __init__(
        self,
        uow_factory: IUnitOfWorkFactory,
        settings: LedgerSettings | None = None,
        notifier: INotifier | None = None,
    ):
        self._uow = uow_factory
        self._settings = settings or LedgerSettings()
        self._notifier = notifier

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------

    async def issue_invoice(
        self,
        uow: IUnitOfWork,
        kind: InvoiceKind,
        order_id: int,
        party_id: str,
        subtotal: float,
        tax: float,
        total: float,
    ) -> Invoice:
        """Issue a sent invoice for an order inside the caller's unit of work."""
        prefix = (
            self._settings.sales_invoice_prefix
            if kind is InvoiceKind.SALES
            else self._settings.purchase_invoice_prefix
        )
        issued_at = utc_now()
        invoice = Invoice(
            invoice_number=await uow.invoices.next_number(prefix),
            kind=kind,
            order_id=order_id,
            party_id=party_id,
            subtotal=subtotal,
            tax=tax,
            total=total,
            status=InvoiceStatus.SENT,
            issue_date=issued_at,
            due_date=issued_at + timedelta(days=self._settings.invoice_due_days),
            payment_terms=self._settings.payment_terms,
        )
        invoice = await uow.invoices.create(invoice)
        logger.info(
            "invoice_issued",
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            kind=kind.value,
            order_id=order_id,
            total=total,
        )
        return invoice

    async def cancel_order_invoice(
        self, uow: IUnitOfWork, kind: InvoiceKind, order_id: int
    ) -> bool:
        """Cancel the unpaid invoice of a cancelled order."""
        invoice = await uow.invoices.get_by_order(kind, order_id)
        if invoice is None:
            return False
        cancelled = await uow.invoices.set_status(
            invoice.id, InvoiceStatus.CANCELLED, OPEN_INVOICE_STATUSES
        )
        if cancelled:
            logger.info(
                "invoice_cancelled",
                invoice_id=invoice.id,
                invoice_number=invoice.invoice_number,
            )
        return cancelled

    async def pay_invoice(
        self,
        invoice_id: int,
        invoice_model: str,
        bank_account_id: int,
        notes: str | None = None,
        actor: Actor | None = None,
    ) -> PaymentResult:
        """
        Pay a sales or purchase invoice through a bank account.

        Sales invoices credit the account, purchase invoices debit it.

        Raises:
            InvoiceNotFoundError / BankAccountNotFoundError: unknown id
            AlreadyPaidError: invoice is already paid
            InvalidStateError: invoice was cancelled
            InsufficientBalanceError: debit exceeds the balance
        """
        try:
            kind = InvoiceKind.from_source_model(invoice_model)
        except ValueError as e:
            raise ValidationError(
                "invoice_model", "must be 'Invoice' or 'PurchaseInvoice'", invoice_model
            ) from e

        try:
            async with self._uow() as uow:
                invoice = await uow.invoices.get(invoice_id, kind)
                if invoice is None:
                    raise InvoiceNotFoundError(invoice_id, invoice_model)
                account = await uow.bank_accounts.get(bank_account_id)
                if account is None:
                    raise BankAccountNotFoundError(bank_account_id)

                if invoice.is_paid:
                    raise AlreadyPaidError(invoice.id, invoice.invoice_number)
                if invoice.status == InvoiceStatus.CANCELLED:
                    raise InvalidStateError(
                        entity="Invoice",
                        entity_id=invoice.id,
                        current=invoice.status.value,
                        required=[s.value for s in OPEN_INVOICE_STATUSES],
                        target=InvoiceStatus.PAID.value,
                    )
                if invoice.total <= 0:
                    raise ValidationError("total", "invoice total must be greater than 0")

                direction = kind.payment_direction
                account = await self._move_money(uow, account, direction, invoice.total)

                transaction = await uow.transactions.add(
                    Transaction(
                        direction=direction,
                        amount=invoice.total,
                        bank_account_id=account.id,
                        source_type=TransactionSourceType.INVOICE,
                        source_model=invoice.source_model,
                        source_id=invoice.id,
                        notes=notes or f"Payment for {invoice.invoice_number}",
                        created_by=(actor or SYSTEM_ACTOR).user_id,
                    )
                )

                paid_at = utc_now()
                if not await uow.invoices.mark_paid(invoice.id, transaction.id, paid_at):
                    raise AlreadyPaidError(invoice.id, invoice.invoice_number)
                invoice.status = InvoiceStatus.PAID
                invoice.transaction_id = transaction.id
                invoice.paid_at = paid_at
                invoice.updated_at = paid_at
        except InsufficientBalanceError as e:
            await send_alert(
                self._notifier, e, operation="pay_invoice", invoice_id=invoice_id
            )
            raise

        logger.info(
            "invoice_paid",
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            direction=direction.value,
            amount=invoice.total,
            bank_account_id=account.id,
            balance=account.balance,
        )
        return PaymentResult(invoice=invoice, transaction=transaction, bank_account=account)

    async def get_invoice(self, invoice_id: int, kind: InvoiceKind | None = None) -> Invoice:
        async with self._uow(read_only=True) as uow:
            invoice = await uow.invoices.get(invoice_id, kind)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id, kind.source_model if kind else "Invoice")
        return invoice

    async def get_order_invoice(self, kind: InvoiceKind, order_id: int) -> Invoice:
        async with self._uow(read_only=True) as uow:
            invoice = await uow.invoices.get_by_order(kind, order_id)
        if invoice is None:
            raise InvoiceNotFoundError(f"order {order_id}", kind.source_model)
        return invoice

    async def list_invoices(
        self,
        kind: InvoiceKind | None = None,
        status: InvoiceStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Invoice]:
        async with self._uow(read_only=True) as uow:
            return await uow.invoices.list_invoices(
                kind=kind, status=status, limit=limit, offset=offset
            )

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    async def create_expense(
        self,
        title: str,
        amount: float,
        category: str,
        bank_account_id: int,
        date: datetime | None = None,
        notes: str | None = None,
        actor: Actor | None = None,
    ) -> ExpenseResult:
        """Record an expense and debit its bank account."""
        if amount is None or amount <= 0:
            raise ValidationError("amount", "must be greater than 0", amount)
        if not title or not title.strip():
            raise ValidationError("title", "is required")
        if not category or not category.strip():
            raise ValidationError("category", "is required")

        amount = round_money(amount)
        created_by = (actor or SYSTEM_ACTOR).user_id
        try:
            async with self._uow() as uow:
                account = await uow.bank_accounts.get(bank_account_id)
                if account is None:
                    raise BankAccountNotFoundError(bank_account_id)

                account = await self._move_money(
                    uow, account, TransactionDirection.OUT, amount
                )

                expense = await uow.expenses.create(
                    Expense(
                        title=title.strip(),
                        amount=amount,
                        category=category.strip(),
                        bank_account_id=account.id,
                        date=date or utc_now(),
                        notes=notes,
                        created_by=created_by,
                    )
                )
                transaction = await uow.transactions.add(
                    Transaction(
                        direction=TransactionDirection.OUT,
                        amount=amount,
                        bank_account_id=account.id,
                        source_type=TransactionSourceType.EXPENSE,
                        source_model="Expense",
                        source_id=expense.id,
                        notes=f"Expense: {expense.title}",
                        created_by=created_by,
                        date=expense.date,
                    )
                )
                await uow.expenses.attach_transaction(expense.id, transaction.id)
                expense.transaction_id = transaction.id
        except InsufficientBalanceError as e:
            await send_alert(
                self._notifier, e, operation="create_expense", bank_account_id=bank_account_id
            )
            raise

        logger.info(
            "expense_recorded",
            expense_id=expense.id,
            category=expense.category,
            amount=amount,
            bank_account_id=account.id,
            balance=account.balance,
        )
        return ExpenseResult(expense=expense, transaction=transaction, bank_account=account)

    async def list_expenses(
        self,
        bank_account_id: int | None = None,
        category: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Expense]:
        async with self._uow(read_only=True) as uow:
            return await uow.expenses.list_expenses(
                bank_account_id=bank_account_id,
                category=category,
                limit=limit,
                offset=offset,
            )

    # ------------------------------------------------------------------
    # Bank accounts
    # ------------------------------------------------------------------

    async def create_bank_account(self, name: str, balance: float = 0.0) -> BankAccount:
        if not name or not name.strip():
            raise ValidationError("name", "is required")
        if balance is None or balance < 0:
            raise ValidationError("balance", "must be 0 or more", balance)
        async with self._uow() as uow:
            return await uow.bank_accounts.create(
                BankAccount(name=name.strip(), balance=round_money(balance))
            )

    async def rename_bank_account(self, bank_account_id: int, name: str) -> BankAccount:
        if not name or not name.strip():
            raise ValidationError("name", "is required")
        async with self._uow() as uow:
            account = await uow.bank_accounts.rename(bank_account_id, name.strip())
        if account is None:
            raise BankAccountNotFoundError(bank_account_id)
        logger.info("bank_account_renamed", bank_account_id=bank_account_id, name=account.name)
        return account

    async def delete_bank_account(self, bank_account_id: int) -> None:
        """Delete an account that has never moved money."""
        async with self._uow() as uow:
            if await uow.bank_accounts.get(bank_account_id) is None:
                raise BankAccountNotFoundError(bank_account_id)
            if await uow.transactions.exists_for_account(bank_account_id):
                raise ResourceInUseError(
                    "bank account", bank_account_id, "it has existing transactions"
                )
            await uow.bank_accounts.delete(bank_account_id)
        logger.info("bank_account_deleted", bank_account_id=bank_account_id)

    async def get_bank_account(self, bank_account_id: int) -> BankAccount:
        async with self._uow(read_only=True) as uow:
            account = await uow.bank_accounts.get(bank_account_id)
        if account is None:
            raise BankAccountNotFoundError(bank_account_id)
        return account

    async def list_bank_accounts(self) -> list[BankAccount]:
        async with self._uow(read_only=True) as uow:
            return await uow.bank_accounts.list_accounts()

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def list_transactions(
        self,
        bank_account_id: int | None = None,
        direction: TransactionDirection | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Transaction]:
        async with self._uow(read_only=True) as uow:
            return await uow.transactions.list_transactions(
                bank_account_id=bank_account_id,
                direction=direction,
                limit=limit,
                offset=offset,
            )

    async def cash_summary(self) -> CashSummary:
        async with self._uow(read_only=True) as uow:
            accounts = await uow.bank_accounts.list_accounts()
            totals = await uow.transactions.totals()
            unpaid = await uow.invoices.unpaid_summary()

        sales = unpaid[InvoiceKind.SALES.value]
        purchases = unpaid[InvoiceKind.PURCHASE.value]
        return CashSummary(
            total_balance=round_money(sum(a.balance for a in accounts)),
            account_count=len(accounts),
            total_in=totals[TransactionDirection.IN.value],
            total_out=totals[TransactionDirection.OUT.value],
            unpaid_sales_invoices=int(sales["count"]),
            unpaid_purchase_invoices=int(purchases["count"]),
            receivable=sales["total"],
            payable=purchases["total"],
        )

    # ------------------------------------------------------------------

    async def _move_money(
        self,
        uow: IUnitOfWork,
        account: BankAccount,
        direction: TransactionDirection,
        amount: float,
    ) -> BankAccount:
        """Apply a guarded balance change; debits never overdraw."""
        if direction == TransactionDirection.OUT and account.balance < amount:
            raise InsufficientBalanceError(account.id, amount, account.balance)

        delta = amount if direction == TransactionDirection.IN else -amount
        updated = await uow.bank_accounts.apply_balance_delta(account.id, delta)
        if updated is None:
            current = await uow.bank_accounts.get(account.id)
            raise InsufficientBalanceError(
                account.id, amount, current.balance if current else 0.0
            )
        return updated
