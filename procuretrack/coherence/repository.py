"""Loaders that build coherence snapshots and produce reports.

Reads run outside any write transaction; a report may observe state that
changes between its separate reads.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from procuretrack.coherence.evaluator import evaluate_list, evaluate_order, evaluate_project
from procuretrack.coherence.models import ItemSnapshot, OrderLineSnapshot, OrderSnapshot
from procuretrack.config import CoherenceConfig, get_config
from procuretrack.db.models import (
    ListItemModel,
    OrderItemModel,
    OrderModel,
    PlannedItemModel,
    ProjectModel,
)
from procuretrack.errors import NotFoundError
from procuretrack.lists.quotes import load_quote_stats
from procuretrack.lists.service import get_list
from procuretrack.models import CoherenceReport
from procuretrack.orders.pricing import PriceInputs


class CoherenceRepository:
    """Builds list, order and project coherence reports."""

    def __init__(self, session: AsyncSession, config: CoherenceConfig | None = None):
        self.session = session
        self.config = config or get_config().coherence

    async def snapshot_items(self, items: Sequence[ListItemModel]) -> list[ItemSnapshot]:
        stats = await load_quote_stats(self.session, [item.id for item in items])

        anchor_ids = {item.anchor_id for item in items if item.anchor_id is not None}
        planned: dict[UUID, PlannedItemModel] = {}
        if anchor_ids:
            result = await self.session.execute(select(PlannedItemModel).where(PlannedItemModel.id.in_(anchor_ids)))
            planned = {row.id: row for row in result.scalars().all()}

        snapshots = []
        for item in items:
            quotes = stats.get(item.id)
            anchor = planned.get(item.anchor_id) if item.anchor_id is not None else None
            snapshots.append(
                ItemSnapshot(
                    list_item_id=item.id,
                    code=item.code,
                    description=item.description,
                    status=item.status.value,
                    requested_quantity=Decimal(item.quantity),
                    ordered_quantity=Decimal(item.ordered_quantity),
                    delivered_quantity=Decimal(item.delivered_quantity),
                    quote_count=quotes.line_count if quotes else 0,
                    price=PriceInputs.from_item(
                        item,
                        selected_quote_price=quotes.selected_price if quotes else None,
                        lowest_quote_price=quotes.lowest_price if quotes else None,
                    ),
                    planned_quantity=anchor.quantity if anchor is not None else None,
                    planned_unit_price=anchor.internal_unit_price if anchor is not None else None,
                    ordered_cost=Decimal(item.ordered_cost),
                )
            )
        return snapshots

    async def _list_items(self, list_id: UUID) -> list[ListItemModel]:
        result = await self.session.execute(select(ListItemModel).where(ListItemModel.list_id == list_id))
        return list(result.scalars().all())

    async def list_report(self, list_id: UUID) -> CoherenceReport:
        await get_list(self.session, list_id)
        items = await self.snapshot_items(await self._list_items(list_id))
        return evaluate_list(list_id, items, self.config)

    async def load_order(self, order_id: UUID) -> OrderSnapshot:
        order = await self.session.get(OrderModel, order_id)
        if order is None:
            raise NotFoundError("Order", order_id)

        result = await self.session.execute(select(OrderItemModel).where(OrderItemModel.order_id == order_id))
        order_items = list(result.scalars().all())

        list_items = await self._list_items(order.list_id) if order.list_id is not None else []
        known = {item.id for item in list_items}
        extra_ids = [oi.list_item_id for oi in order_items if oi.list_item_id is not None and oi.list_item_id not in known]
        if extra_ids:
            extra = await self.session.execute(select(ListItemModel).where(ListItemModel.id.in_(extra_ids)))
            list_items.extend(extra.scalars().all())

        snapshots = {snapshot.list_item_id: snapshot for snapshot in await self.snapshot_items(list_items)}
        lines = tuple(
            OrderLineSnapshot(
                order_item_id=oi.id,
                code=oi.code,
                description=oi.description,
                ordered_quantity=Decimal(oi.ordered_quantity),
                unit_price=Decimal(oi.unit_price),
                delivered_quantity=Decimal(oi.delivered_quantity),
                item=snapshots.get(oi.list_item_id) if oi.list_item_id is not None else None,
            )
            for oi in order_items
        )
        return OrderSnapshot(
            order_id=order.id,
            list_id=order.list_id,
            lines=lines,
            list_items=tuple(snapshots[item.id] for item in list_items if item.list_id == order.list_id),
        )

    async def order_report(self, order_id: UUID) -> CoherenceReport:
        return evaluate_order(await self.load_order(order_id), self.config)

    async def project_report(self, project_id: UUID) -> CoherenceReport:
        if await self.session.get(ProjectModel, project_id) is None:
            raise NotFoundError("Project", project_id)
        result = await self.session.execute(
            select(OrderModel.id).where(OrderModel.project_id == project_id).order_by(OrderModel.sequence)
        )
        reports = [await self.order_report(order_id) for order_id in result.scalars().all()]
        return evaluate_project(project_id, reports, self.config)
