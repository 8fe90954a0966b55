"""Abstract interface for outbound alerts."""

from abc import ABC, abstractmethod
from typing import Any

from src.core.exceptions import ERPError


class INotifier(ABC):
    """Interface for alerting operators about shortfalls."""

    @abstractmethod
    async def notify(self, error: ERPError, context: dict[str, Any] | None = None) -> None:
        """
        Send an alert for a stock, material or balance shortfall.

        Args:
            error: The shortfall that stopped an operation
            context: Operation name, order id and similar
        """
        pass
