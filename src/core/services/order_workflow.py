"""Helpers shared by the sales, purchase and production order services."""

from enum import Enum

from src.core.entities.order import StatefulOrder
from src.core.exceptions import InvalidStateError, ValidationError


async def assign_order_number(store, requested: str | None, prefix: str) -> str:
    """Use the caller's order number or take the next one in sequence."""
    if requested is not None:
        requested = requested.strip()
        if not requested:
            raise ValidationError("order_number", "must not be blank")
        return requested
    return await store.next_number(prefix)


async def persist_transition(store, order: StatefulOrder, previous: Enum) -> None:
    """
    Write a transition that was validated in memory.

    The store only updates a row still in ``previous``; if another writer
    moved the order first, the stored state is reported instead.
    """
    if await store.save_transition(order, previous):
        return
    stored = await store.get(order.id)
    raise InvalidStateError(
        entity=order.ENTITY,
        entity_id=order.id,
        current=stored.status.value if stored else "missing",
        required=order.required_states(order.status),
        target=order.status.value,
    )
