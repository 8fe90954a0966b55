"""Notifier that writes shortfall alerts to the structured log."""

from typing import Any

from src.config import get_logger
from src.core.exceptions import ERPError
from src.core.interfaces.notifier import INotifier

logger = get_logger(__name__)


class LoggingNotifier(INotifier):
    """Default notifier: one warning per alert."""

    async def notify(self, error: ERPError, context: dict[str, Any] | None = None) -> None:
        logger.warning(
            "shortfall_alert",
            error_code=error.code,
            message=error.message,
            details=error.details,
            context=context or {},
        )
