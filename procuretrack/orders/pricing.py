"""Unit-price resolution for list items.

Precedence is an ordered tuple of named, pure strategies; the first one
that yields a positive price wins. Budget and chosen cost are stored as
line totals and are normalized by the requested quantity.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

ZERO = Decimal("0")
CENT = Decimal("0.01")

PRICE_MISSING = "missing"


def money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceInputs:
    """The price-bearing fields of a list item."""

    quantity: Decimal
    chosen_unit_price: Decimal | None = None
    chosen_cost: Decimal | None = None
    selected_quote_price: Decimal | None = None
    budget_estimate: Decimal | None = None
    lowest_quote_price: Decimal | None = None

    @classmethod
    def from_item(
        cls,
        item: Any,
        selected_quote_price: Decimal | None = None,
        lowest_quote_price: Decimal | None = None,
    ) -> PriceInputs:
        return cls(
            quantity=Decimal(item.quantity),
            chosen_unit_price=item.chosen_unit_price,
            chosen_cost=item.chosen_cost,
            selected_quote_price=selected_quote_price,
            budget_estimate=item.budget_estimate,
            lowest_quote_price=lowest_quote_price,
        )


@dataclass(frozen=True)
class ResolvedPrice:
    unit_price: Decimal
    source: str

    @property
    def missing(self) -> bool:
        return self.source == PRICE_MISSING


PriceStrategy = Callable[[PriceInputs], Decimal | None]


def _positive(value: Decimal | None) -> bool:
    return value is not None and value > 0


def _per_unit(line_total: Decimal | None, quantity: Decimal) -> Decimal | None:
    if not _positive(line_total) or quantity <= 0:
        return None
    return money(line_total / quantity)


def manual_override(inputs: PriceInputs) -> Decimal | None:
    if _positive(inputs.chosen_unit_price):
        return money(inputs.chosen_unit_price)
    return _per_unit(inputs.chosen_cost, inputs.quantity)


def selected_quote(inputs: PriceInputs) -> Decimal | None:
    if _positive(inputs.selected_quote_price):
        return money(inputs.selected_quote_price)
    return None


def budget_estimate(inputs: PriceInputs) -> Decimal | None:
    return _per_unit(inputs.budget_estimate, inputs.quantity)


PRICE_STRATEGIES: tuple[tuple[str, PriceStrategy], ...] = (
    ("manual_override", manual_override),
    ("selected_quote", selected_quote),
    ("budget_estimate", budget_estimate),
)


def resolve_unit_price(
    inputs: PriceInputs,
    strategies: tuple[tuple[str, PriceStrategy], ...] = PRICE_STRATEGIES,
) -> ResolvedPrice:
    """Resolve the unit price used when committing an order line.

    Falls back to zero with source ``missing`` so the order can proceed and
    be corrected later.
    """
    for name, strategy in strategies:
        price = strategy(inputs)
        if price is not None:
            return ResolvedPrice(unit_price=price, source=name)
    return ResolvedPrice(unit_price=ZERO, source=PRICE_MISSING)


def best_unit_price(inputs: PriceInputs) -> Decimal:
    """Lowest quoted price when quotes exist, otherwise the commit-time chain."""
    if inputs.lowest_quote_price is not None:
        return money(inputs.lowest_quote_price)
    return resolve_unit_price(inputs).unit_price
