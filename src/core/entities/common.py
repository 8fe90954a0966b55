"""Shared value objects for ledger entities."""

from datetime import UTC, datetime

from pydantic import BaseModel


def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(UTC)


def round_money(value: float) -> float:
    """Round a monetary amount to cents."""
    return round(value + 0.0, 2)


def round_quantity(value: float) -> float:
    """Round a stock quantity to the precision stored in the ledger."""
    return round(value + 0.0, 6)


class Actor(BaseModel):
    """Identity of whoever requested a mutation."""

    user_id: str | None = None
    role: str | None = None


SYSTEM_ACTOR = Actor(user_id="system", role="scheduler")
