"""Read-only snapshots consumed by the coherence evaluator."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from procuretrack.orders.pricing import PriceInputs


@dataclass(frozen=True)
class ItemSnapshot:
    """A list item as seen by the evaluator.

    ``planned_quantity`` and ``planned_unit_price`` come from the planned
    requirement anchoring the item, when there is one.
    """

    list_item_id: UUID
    code: str
    description: str
    status: str
    requested_quantity: Decimal
    ordered_quantity: Decimal
    delivered_quantity: Decimal
    quote_count: int
    price: PriceInputs
    planned_quantity: Decimal | None = None
    planned_unit_price: Decimal | None = None
    ordered_cost: Decimal = Decimal("0")

    @property
    def verified(self) -> bool:
        return self.quote_count > 0

    @property
    def remaining_quantity(self) -> Decimal:
        return self.requested_quantity - self.ordered_quantity


@dataclass(frozen=True)
class OrderLineSnapshot:
    order_item_id: UUID
    code: str
    description: str
    ordered_quantity: Decimal
    unit_price: Decimal
    delivered_quantity: Decimal
    item: ItemSnapshot | None = None


@dataclass(frozen=True)
class OrderSnapshot:
    order_id: UUID
    list_id: UUID | None
    lines: tuple[OrderLineSnapshot, ...] = ()
    # Items of the linked list, used to detect items left out of the order
    list_items: tuple[ItemSnapshot, ...] = field(default=())
