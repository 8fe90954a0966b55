"""Shortfall alerting shared by the ledger services."""

from src.config import get_logger
from src.core.exceptions import ShortfallError
from src.core.interfaces.notifier import INotifier

logger = get_logger(__name__)


async def send_alert(notifier: INotifier | None, error: ShortfallError, **context) -> None:
    """
    Forward a shortfall to the notifier.

    Called after the failed unit of work has rolled back. A failing
    notifier is logged and never replaces the original error.
    """
    if notifier is None:
        return
    try:
        await notifier.notify(error, context)
    except Exception as e:
        logger.error(
            "notifier_failed",
            error_code=error.code,
            notifier_error=str(e),
            **context,
        )
