"""Building blocks shared by the sales, purchase and production orders."""

from datetime import datetime
from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, Field, model_validator

from src.core.entities.common import round_money, utc_now
from src.core.exceptions import InvalidStateError


class StatefulOrder(BaseModel):
    """
    Order whose status moves through a declared transition table.

    Subclasses declare a ``status`` enum field and map every target state
    to the states it may be entered from. Terminal states never appear
    as a prior state.
    """

    ENTITY: ClassVar[str] = "Order"
    TRANSITIONS: ClassVar[dict[Enum, tuple[Enum, ...]]] = {}

    id: int | None = None
    order_number: str | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def required_states(cls, target: Enum) -> list[str]:
        """States from which ``target`` may be entered."""
        return [s.value for s in cls.TRANSITIONS.get(target, ())]

    def can_transition(self, target: Enum) -> bool:
        return self.status in self.TRANSITIONS.get(target, ())

    def transition_to(self, target: Enum) -> Enum:
        """
        Move to ``target`` or raise InvalidStateError.

        Returns:
            The status the order was in before the transition
        """
        if not self.can_transition(target):
            raise InvalidStateError(
                entity=self.ENTITY,
                entity_id=self.id,
                current=self.status.value,
                required=self.required_states(target),
                target=target.value,
            )
        previous = self.status
        self.status = target
        self.updated_at = utc_now()
        return previous


class OrderLine(BaseModel):
    """A priced line on a sales or purchase order."""

    id: int | None = None
    order_id: int | None = None
    product_id: int
    quantity: float = Field(gt=0)
    unit_price: float = Field(ge=0)
    line_total: float = 0.0

    @model_validator(mode="after")
    def compute_line(self) -> "OrderLine":
        """Compute line_total from quantity and unit_price."""
        self.line_total = round_money(self.quantity * self.unit_price)
        return self


class PricedOrder(StatefulOrder):
    """Order carrying line items with subtotal, tax and total."""

    items: list[OrderLine] = Field(default_factory=list)
    subtotal: float = 0.0
    tax: float = 0.0
    total: float = 0.0

    @model_validator(mode="after")
    def compute_totals(self) -> "PricedOrder":
        """Compute subtotal and total from items and tax."""
        if self.items:
            self.subtotal = round_money(sum(i.line_total for i in self.items))
        self.total = round_money(self.subtotal + self.tax)
        return self

    def apply_tax(self, rate: float) -> None:
        """Set tax as ``rate`` of the subtotal and refresh the total."""
        self.tax = round_money(self.subtotal * rate)
        self.total = round_money(self.subtotal + self.tax)

    def quantities_by_product(self) -> dict[int, float]:
        """Aggregate line quantities per product, keeping first-seen order."""
        totals: dict[int, float] = {}
        for item in self.items:
            totals[item.product_id] = totals.get(item.product_id, 0.0) + item.quantity
        return totals
