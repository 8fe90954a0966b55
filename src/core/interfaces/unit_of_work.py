"""Abstract unit of work binding every store to one transaction."""

from abc import ABC, abstractmethod
from types import TracebackType

from pydantic import BaseModel

from src.core.interfaces.finance_store import (
    IBankAccountStore,
    IExpenseStore,
    IInvoiceStore,
    ITransactionStore,
)
from src.core.interfaces.order_store import (
    IProductionOrderStore,
    IPurchaseOrderStore,
    ISalesOrderStore,
)
from src.core.interfaces.product_store import IMovementStore, IProductStore


class IUnitOfWork(ABC):
    """
    One atomic unit of ledger work.

    Used as an async context manager: the transaction commits when the
    block exits normally and rolls back when it raises. Events recorded
    during the block are published only after a successful commit.
    """

    products: IProductStore
    movements: IMovementStore
    sales_orders: ISalesOrderStore
    purchase_orders: IPurchaseOrderStore
    production_orders: IProductionOrderStore
    bank_accounts: IBankAccountStore
    transactions: ITransactionStore
    invoices: IInvoiceStore
    expenses: IExpenseStore

    def __init__(self) -> None:
        self.events: list[BaseModel] = []

    def record_event(self, event: BaseModel) -> None:
        """Queue an event for publication after commit."""
        self.events.append(event)

    @abstractmethod
    async def __aenter__(self) -> "IUnitOfWork":
        pass

    @abstractmethod
    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        pass


class IUnitOfWorkFactory(ABC):
    """Creates units of work."""

    @abstractmethod
    def __call__(self, read_only: bool = False) -> IUnitOfWork:
        pass


class IEventPublisher(ABC):
    """Receives events after the unit of work that raised them commits."""

    @abstractmethod
    async def publish(self, events: list[BaseModel]) -> None:
        """Publish events. Must not raise into the committing caller."""
        pass
