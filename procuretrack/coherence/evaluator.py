"""Coherence scoring: planned vs listed vs ordered vs delivered.

Pure functions over snapshots. Scores are percentages in [0, 100]; the
result is advisory and never mutates anything.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from procuretrack.coherence.models import ItemSnapshot, OrderLineSnapshot, OrderSnapshot
from procuretrack.config import CoherenceConfig
from procuretrack.models import (
    CoherenceAlerts,
    CoherenceLevel,
    CoherenceReport,
    ItemCoherence,
    ListItemStatus,
)
from procuretrack.orders.pricing import best_unit_price, money

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _score(part: int, whole: int, empty: Decimal) -> Decimal:
    if whole == 0:
        return empty
    return (HUNDRED * part / whole).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def level_for(score: Decimal, config: CoherenceConfig) -> CoherenceLevel:
    if score < config.attention_threshold:
        return CoherenceLevel.ATTENTION
    if score < config.warning_threshold:
        return CoherenceLevel.WARNING
    return CoherenceLevel.OK


def quantity_exceeds(actual: Decimal, planned: Decimal, tolerance: Decimal) -> bool:
    return actual > planned * (1 + tolerance)


def price_deviates(actual: Decimal, planned: Decimal, tolerance: Decimal) -> bool:
    if planned == 0:
        return actual != 0
    return abs(actual - planned) / planned > tolerance


def planned_unit_price(item: ItemSnapshot) -> Decimal:
    if item.planned_unit_price is not None:
        return item.planned_unit_price
    return best_unit_price(item.price)


def evaluate_item(item: ItemSnapshot, config: CoherenceConfig) -> ItemCoherence:
    """Per-item contribution inside a list."""
    best = best_unit_price(item.price)
    planned_quantity = item.planned_quantity if item.planned_quantity is not None else item.requested_quantity
    exceeded = quantity_exceeds(item.requested_quantity, planned_quantity, config.quantity_tolerance)
    deviated = item.planned_unit_price is not None and price_deviates(
        best, item.planned_unit_price, config.price_tolerance
    )
    return ItemCoherence(
        list_item_id=item.list_item_id,
        code=item.code,
        description=item.description,
        planned_quantity=planned_quantity,
        requested_quantity=item.requested_quantity,
        ordered_quantity=item.ordered_quantity,
        delivered_quantity=item.delivered_quantity,
        best_unit_price=best,
        planned_cost=money(item.requested_quantity * best),
        verified=item.verified,
        quantity_exceeded=exceeded,
        price_deviated=deviated,
        coherent=item.verified and not exceeded and not deviated,
    )


def evaluate_list(list_id: UUID, items: Sequence[ItemSnapshot], config: CoherenceConfig) -> CoherenceReport:
    """Score a list as the share of items backed by at least one supplier quote."""
    results = [evaluate_item(item, config) for item in items]
    verified = sum(1 for result in results if result.verified)
    score = _score(verified, len(results), empty=HUNDRED)

    alerts = CoherenceAlerts(
        quantities_exceeded=any(result.quantity_exceeded for result in results),
        prices_deviated=any(result.price_deviated for result in results),
        missing_items=not results,
    )
    return CoherenceReport(
        scope="list",
        scope_id=list_id,
        score=score,
        level=level_for(score, config),
        total_items=len(results),
        verified_items=verified,
        coherent_items=sum(1 for result in results if result.coherent),
        planned_cost=sum((result.planned_cost for result in results), ZERO),
        ordered_cost=sum((item.ordered_cost for item in items), ZERO),
        alerts=alerts,
        items=results,
    )


def evaluate_order_line(line: OrderLineSnapshot, config: CoherenceConfig) -> ItemCoherence:
    """An order line is coherent when it is linked and tracks the plan."""
    item = line.item
    if item is None:
        return ItemCoherence(
            list_item_id=None,
            code=line.code,
            description=line.description,
            planned_quantity=ZERO,
            requested_quantity=ZERO,
            ordered_quantity=line.ordered_quantity,
            delivered_quantity=line.delivered_quantity,
            best_unit_price=line.unit_price,
            planned_cost=ZERO,
            ordered_unit_price=line.unit_price,
            verified=False,
            coherent=False,
        )

    planned_quantity = item.planned_quantity if item.planned_quantity is not None else item.requested_quantity
    planned_price = planned_unit_price(item)
    # Cumulative ordered on the item, so split orders are judged together
    exceeded = quantity_exceeds(item.ordered_quantity, planned_quantity, config.quantity_tolerance)
    deviated = price_deviates(line.unit_price, planned_price, config.price_tolerance)
    return ItemCoherence(
        list_item_id=item.list_item_id,
        code=line.code,
        description=line.description,
        planned_quantity=planned_quantity,
        requested_quantity=item.requested_quantity,
        ordered_quantity=line.ordered_quantity,
        delivered_quantity=line.delivered_quantity,
        best_unit_price=planned_price,
        planned_cost=money(line.ordered_quantity * planned_price),
        ordered_unit_price=line.unit_price,
        verified=item.verified,
        quantity_exceeded=exceeded,
        price_deviated=deviated,
        coherent=not exceeded and not deviated,
    )


def evaluate_order(order: OrderSnapshot, config: CoherenceConfig) -> CoherenceReport:
    results = [evaluate_order_line(line, config) for line in order.lines]
    coherent = sum(1 for result in results if result.coherent)
    score = _score(coherent, len(results), empty=ZERO)

    ordered_ids = {line.item.list_item_id for line in order.lines if line.item is not None}
    missing = [
        item
        for item in order.list_items
        if item.list_item_id not in ordered_ids
        and item.status != ListItemStatus.REJECTED.value
        and item.remaining_quantity > 0
    ]
    alerts = CoherenceAlerts(
        quantities_exceeded=any(result.quantity_exceeded for result in results),
        prices_deviated=any(result.price_deviated for result in results),
        missing_items=bool(missing) or not results,
        without_list=order.list_id is None,
    )
    return CoherenceReport(
        scope="order",
        scope_id=order.order_id,
        score=score,
        level=level_for(score, config),
        total_items=len(results),
        verified_items=sum(1 for result in results if result.verified),
        coherent_items=coherent,
        planned_cost=sum((result.planned_cost for result in results), ZERO),
        ordered_cost=sum((money(line.ordered_quantity * line.unit_price) for line in order.lines), ZERO),
        alerts=alerts,
        items=results,
    )


def evaluate_project(
    project_id: UUID,
    order_reports: Iterable[CoherenceReport],
    config: CoherenceConfig,
) -> CoherenceReport:
    """Mean of the order scores with alerts OR-ed; 100 for a project without orders."""
    reports = list(order_reports)
    if reports:
        score = (sum((report.score for report in reports), ZERO) / len(reports)).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
    else:
        score = HUNDRED

    alerts = CoherenceAlerts()
    for report in reports:
        alerts = alerts.merge(report.alerts)

    return CoherenceReport(
        scope="project",
        scope_id=project_id,
        score=score,
        level=level_for(score, config),
        total_items=sum(report.total_items for report in reports),
        verified_items=sum(report.verified_items for report in reports),
        coherent_items=sum(report.coherent_items for report in reports),
        planned_cost=sum((report.planned_cost for report in reports), ZERO),
        ordered_cost=sum((report.ordered_cost for report in reports), ZERO),
        alerts=alerts,
        children=reports,
    )
