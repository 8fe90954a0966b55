"""SQLite implementation of bank account, transaction, invoice and expense storage."""

from datetime import datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.common import round_money, utc_now
from src.core.entities.finance import (
    BankAccount,
    Expense,
    Invoice,
    InvoiceKind,
    InvoiceStatus,
    Transaction,
    TransactionDirection,
    TransactionSourceType,
)
from src.core.exceptions import DatabaseError, DuplicateIdentifierError
from src.core.interfaces.finance_store import (
    IBankAccountStore,
    IExpenseStore,
    IInvoiceStore,
    ITransactionStore,
)
from src.infrastructure.storage.sqlite.base import SQLiteStore, parse_datetime, to_iso

logger = get_logger(__name__)


class SQLiteBankAccountStore(SQLiteStore, IBankAccountStore):
    """SQLite implementation of bank account storage."""

    async def create(self, account: BankAccount) -> BankAccount:
        now = utc_now()
        account.created_at = now
        account.updated_at = now
        account.id = await self._insert(
            """
            INSERT INTO bank_accounts (name, balance, created_at, updated_at)
            VALUES (?, ?, ?, ?)
            """,
            (account.name, account.balance, to_iso(now), to_iso(now)),
            entity="Bank account",
            field="name",
            value=account.name,
        )
        logger.info("bank_account_created", account_id=account.id, name=account.name)
        return account

    async def get(self, account_id: int) -> BankAccount | None:
        cursor = await self._conn.execute(
            "SELECT * FROM bank_accounts WHERE id = ?", (account_id,)
        )
        row = await cursor.fetchone()
        return self._row_to_account(row) if row else None

    async def list_accounts(self) -> list[BankAccount]:
        cursor = await self._conn.execute("SELECT * FROM bank_accounts ORDER BY name")
        rows = await cursor.fetchall()
        return [self._row_to_account(row) for row in rows]

    async def rename(self, account_id: int, name: str) -> BankAccount | None:
        try:
            cursor = await self._conn.execute(
                "UPDATE bank_accounts SET name = ?, updated_at = ? WHERE id = ?",
                (name, to_iso(utc_now()), account_id),
            )
        except aiosqlite.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise DuplicateIdentifierError("Bank account", "name", name) from e
            raise DatabaseError("rename bank account", str(e)) from e
        if cursor.rowcount == 0:
            return None
        return await self.get(account_id)

    async def delete(self, account_id: int) -> bool:
        cursor = await self._conn.execute(
            "DELETE FROM bank_accounts WHERE id = ?", (account_id,)
        )
        return cursor.rowcount > 0

    async def apply_balance_delta(
        self, account_id: int, delta: float
    ) -> BankAccount | None:
        """Conditionally add ``delta`` to the balance."""
        now = to_iso(utc_now())
        if delta < 0:
            cursor = await self._conn.execute(
                """
                UPDATE bank_accounts SET balance = ROUND(balance + ?, 2), updated_at = ?
                WHERE id = ? AND balance >= ?
                """,
                (delta, now, account_id, round_money(-delta)),
            )
        else:
            cursor = await self._conn.execute(
                """
                UPDATE bank_accounts SET balance = ROUND(balance + ?, 2), updated_at = ?
                WHERE id = ?
                """,
                (delta, now, account_id),
            )
        if cursor.rowcount == 0:
            return None
        return await self.get(account_id)

    @staticmethod
    def _row_to_account(row: aiosqlite.Row) -> BankAccount:
        return BankAccount(
            id=row["id"],
            name=row["name"],
            balance=float(row["balance"]),
            created_at=parse_datetime(row["created_at"]) or utc_now(),
            updated_at=parse_datetime(row["updated_at"]) or utc_now(),
        )


class SQLiteTransactionStore(SQLiteStore, ITransactionStore):
    """SQLite implementation of the append-only transaction log."""

    async def add(self, transaction: Transaction) -> Transaction:
        cursor = await self._conn.execute(
            """
            INSERT INTO transactions (
                direction, amount, bank_account_id, source_type, source_model,
                source_id, notes, created_by, date
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                transaction.direction.value,
                transaction.amount,
                transaction.bank_account_id,
                transaction.source_type.value,
                transaction.source_model,
                transaction.source_id,
                transaction.notes,
                transaction.created_by,
                to_iso(transaction.date),
            ),
        )
        transaction.id = cursor.lastrowid
        logger.debug(
            "transaction_recorded",
            transaction_id=transaction.id,
            direction=transaction.direction.value,
            amount=transaction.amount,
        )
        return transaction

    async def get(self, transaction_id: int) -> Transaction | None:
        cursor = await self._conn.execute(
            "SELECT * FROM transactions WHERE id = ?", (transaction_id,)
        )
        row = await cursor.fetchone()
        return self._row_to_transaction(row) if row else None

    async def list_transactions(
        self,
        bank_account_id: int | None = None,
        direction: TransactionDirection | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Transaction]:
        conditions = []
        params: list = []
        if bank_account_id is not None:
            conditions.append("bank_account_id = ?")
            params.append(bank_account_id)
        if direction:
            conditions.append("direction = ?")
            params.append(direction.value)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        cursor = await self._conn.execute(
            f"SELECT * FROM transactions {where} ORDER BY id DESC LIMIT ? OFFSET ?",
            (*params, limit, offset),
        )
        rows = await cursor.fetchall()
        return [self._row_to_transaction(row) for row in rows]

    async def exists_for_account(self, bank_account_id: int) -> bool:
        cursor = await self._conn.execute(
            "SELECT EXISTS(SELECT 1 FROM transactions WHERE bank_account_id = ?)",
            (bank_account_id,),
        )
        row = await cursor.fetchone()
        return bool(row[0])

    async def totals(self) -> dict[str, float]:
        cursor = await self._conn.execute(
            "SELECT direction, COALESCE(SUM(amount), 0) FROM transactions GROUP BY direction"
        )
        rows = await cursor.fetchall()
        totals = {d.value: 0.0 for d in TransactionDirection}
        for row in rows:
            totals[row[0]] = round_money(row[1])
        return totals

    @staticmethod
    def _row_to_transaction(row: aiosqlite.Row) -> Transaction:
        return Transaction(
            id=row["id"],
            direction=TransactionDirection(row["direction"]),
            amount=float(row["amount"]),
            bank_account_id=row["bank_account_id"],
            source_type=TransactionSourceType(row["source_type"]),
            source_model=row["source_model"],
            source_id=row["source_id"],
            notes=row["notes"],
            created_by=row["created_by"],
            date=parse_datetime(row["date"]) or utc_now(),
        )


class SQLiteInvoiceStore(SQLiteStore, IInvoiceStore):
    """SQLite implementation of sales and purchase invoice storage."""

    async def next_number(self, prefix: str) -> str:
        return await self._next_number("invoices", prefix)

    async def create(self, invoice: Invoice) -> Invoice:
        now = utc_now()
        invoice.created_at = now
        invoice.updated_at = now
        invoice.id = await self._insert(
            """
            INSERT INTO invoices (
                invoice_number, kind, order_id, party_id, subtotal, tax, total,
                status, issue_date, due_date, payment_terms, transaction_id,
                paid_at, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                invoice.invoice_number,
                invoice.kind.value,
                invoice.order_id,
                invoice.party_id,
                invoice.subtotal,
                invoice.tax,
                invoice.total,
                invoice.status.value,
                to_iso(invoice.issue_date),
                to_iso(invoice.due_date),
                invoice.payment_terms,
                invoice.transaction_id,
                to_iso(invoice.paid_at),
                to_iso(invoice.created_at),
                to_iso(invoice.updated_at),
            ),
            entity="Invoice",
            field="invoice_number",
            value=invoice.invoice_number,
        )
        logger.info(
            "invoice_stored",
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            kind=invoice.kind.value,
        )
        return invoice

    async def get(self, invoice_id: int, kind: InvoiceKind | None = None) -> Invoice | None:
        if kind:
            cursor = await self._conn.execute(
                "SELECT * FROM invoices WHERE id = ? AND kind = ?",
                (invoice_id, kind.value),
            )
        else:
            cursor = await self._conn.execute(
                "SELECT * FROM invoices WHERE id = ?", (invoice_id,)
            )
        row = await cursor.fetchone()
        return self._row_to_invoice(row) if row else None

    async def get_by_order(self, kind: InvoiceKind, order_id: int) -> Invoice | None:
        cursor = await self._conn.execute(
            "SELECT * FROM invoices WHERE kind = ? AND order_id = ?",
            (kind.value, order_id),
        )
        row = await cursor.fetchone()
        return self._row_to_invoice(row) if row else None

    async def list_invoices(
        self,
        kind: InvoiceKind | None = None,
        status: InvoiceStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Invoice]:
        conditions = []
        params: list = []
        if kind:
            conditions.append("kind = ?")
            params.append(kind.value)
        if status:
            conditions.append("status = ?")
            params.append(status.value)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        cursor = await self._conn.execute(
            f"SELECT * FROM invoices {where} ORDER BY id DESC LIMIT ? OFFSET ?",
            (*params, limit, offset),
        )
        rows = await cursor.fetchall()
        return [self._row_to_invoice(row) for row in rows]

    async def mark_paid(
        self, invoice_id: int, transaction_id: int, paid_at: datetime
    ) -> bool:
        cursor = await self._conn.execute(
            """
            UPDATE invoices SET
                status = ?, transaction_id = ?, paid_at = ?, updated_at = ?
            WHERE id = ? AND status != ?
            """,
            (
                InvoiceStatus.PAID.value,
                transaction_id,
                to_iso(paid_at),
                to_iso(utc_now()),
                invoice_id,
                InvoiceStatus.PAID.value,
            ),
        )
        return cursor.rowcount > 0

    async def set_status(
        self, invoice_id: int, status: InvoiceStatus, expected: list[InvoiceStatus]
    ) -> bool:
        placeholders = ", ".join("?" for _ in expected)
        cursor = await self._conn.execute(
            f"""
            UPDATE invoices SET status = ?, updated_at = ?
            WHERE id = ? AND status IN ({placeholders})
            """,
            (status.value, to_iso(utc_now()), invoice_id, *(s.value for s in expected)),
        )
        return cursor.rowcount > 0

    async def unpaid_summary(self) -> dict[str, dict[str, float]]:
        cursor = await self._conn.execute(
            """
            SELECT kind, COUNT(*) AS open_count, COALESCE(SUM(total), 0) AS open_total
            FROM invoices
            WHERE status IN (?, ?, ?)
            GROUP BY kind
            """,
            (
                InvoiceStatus.DRAFT.value,
                InvoiceStatus.SENT.value,
                InvoiceStatus.OVERDUE.value,
            ),
        )
        rows = await cursor.fetchall()
        summary = {k.value: {"count": 0, "total": 0.0} for k in InvoiceKind}
        for row in rows:
            summary[row["kind"]] = {
                "count": row["open_count"],
                "total": round_money(row["open_total"]),
            }
        return summary

    @staticmethod
    def _row_to_invoice(row: aiosqlite.Row) -> Invoice:
        return Invoice(
            id=row["id"],
            invoice_number=row["invoice_number"],
            kind=InvoiceKind(row["kind"]),
            order_id=row["order_id"],
            party_id=row["party_id"],
            subtotal=float(row["subtotal"]),
            tax=float(row["tax"]),
            total=float(row["total"]),
            status=InvoiceStatus(row["status"]),
            issue_date=parse_datetime(row["issue_date"]) or utc_now(),
            due_date=parse_datetime(row["due_date"]),
            payment_terms=row["payment_terms"],
            transaction_id=row["transaction_id"],
            paid_at=parse_datetime(row["paid_at"]),
            created_at=parse_datetime(row["created_at"]) or utc_now(),
            updated_at=parse_datetime(row["updated_at"]) or utc_now(),
        )


class SQLiteExpenseStore(SQLiteStore, IExpenseStore):
    """SQLite implementation of expense storage."""

    async def create(self, expense: Expense) -> Expense:
        expense.created_at = utc_now()
        cursor = await self._conn.execute(
            """
            INSERT INTO expenses (
                title, amount, category, bank_account_id, transaction_id,
                date, notes, created_by, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                expense.title,
                expense.amount,
                expense.category,
                expense.bank_account_id,
                expense.transaction_id,
                to_iso(expense.date),
                expense.notes,
                expense.created_by,
                to_iso(expense.created_at),
            ),
        )
        expense.id = cursor.lastrowid
        return expense

    async def attach_transaction(self, expense_id: int, transaction_id: int) -> None:
        await self._conn.execute(
            "UPDATE expenses SET transaction_id = ? WHERE id = ?",
            (transaction_id, expense_id),
        )

    async def get(self, expense_id: int) -> Expense | None:
        cursor = await self._conn.execute(
            "SELECT * FROM expenses WHERE id = ?", (expense_id,)
        )
        row = await cursor.fetchone()
        return self._row_to_expense(row) if row else None

    async def list_expenses(
        self,
        bank_account_id: int | None = None,
        category: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Expense]:
        conditions = []
        params: list = []
        if bank_account_id is not None:
            conditions.append("bank_account_id = ?")
            params.append(bank_account_id)
        if category:
            conditions.append("category = ?")
            params.append(category)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        cursor = await self._conn.execute(
            f"SELECT * FROM expenses {where} ORDER BY date DESC, id DESC LIMIT ? OFFSET ?",
            (*params, limit, offset),
        )
        rows = await cursor.fetchall()
        return [self._row_to_expense(row) for row in rows]

    @staticmethod
    def _row_to_expense(row: aiosqlite.Row) -> Expense:
        return Expense(
            id=row["id"],
            title=row["title"],
            amount=float(row["amount"]),
            category=row["category"],
            bank_account_id=row["bank_account_id"],
            transaction_id=row["transaction_id"],
            date=parse_datetime(row["date"]) or utc_now(),
            notes=row["notes"],
            created_by=row["created_by"],
            created_at=parse_datetime(row["created_at"]) or utc_now(),
        )
