"""Core interfaces (ports) for dependency injection."""

from src.core.interfaces.finance_store import (
    IBankAccountStore,
    IExpenseStore,
    IInvoiceStore,
    ITransactionStore,
)
from src.core.interfaces.notifier import INotifier
from src.core.interfaces.order_store import (
    IProductionOrderStore,
    IPurchaseOrderStore,
    ISalesOrderStore,
)
from src.core.interfaces.product_store import IMovementStore, IProductStore
from src.core.interfaces.unit_of_work import (
    IEventPublisher,
    IUnitOfWork,
    IUnitOfWorkFactory,
)

__all__ = [
    # Stock ledger
    "IProductStore",
    "IMovementStore",
    # Orders
    "ISalesOrderStore",
    "IPurchaseOrderStore",
    "IProductionOrderStore",
    # Finance
    "IBankAccountStore",
    "ITransactionStore",
    "IInvoiceStore",
    "IExpenseStore",
    # Unit of work
    "IUnitOfWork",
    "IUnitOfWorkFactory",
    "IEventPublisher",
    # Alerts
    "INotifier",
]
