"""Supplier quotations, quote lines and single-selection per list item."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from procuretrack.db.models import (
    ListItemModel,
    ProjectModel,
    SupplierQuotationModel,
    SupplierQuoteLineModel,
)
from procuretrack.db.transaction import atomic
from procuretrack.errors import NotFoundError, ValidationError

logger = structlog.get_logger()


@dataclass(frozen=True)
class QuoteStats:
    """Quote information for one list item."""

    line_count: int = 0
    lowest_price: Decimal | None = None
    selected_price: Decimal | None = None


async def create_quotation(
    session: AsyncSession,
    project_id: UUID,
    supplier_name: str,
    code: str | None = None,
) -> SupplierQuotationModel:
    if not supplier_name or not supplier_name.strip():
        raise ValidationError("Supplier name is required", field="supplier_name")

    async with atomic(session, "create_quotation"):
        if await session.get(ProjectModel, project_id) is None:
            raise NotFoundError("Project", project_id)
        quotation = SupplierQuotationModel(project_id=project_id, supplier_name=supplier_name.strip(), code=code)
        session.add(quotation)
        await session.flush()
    return quotation


async def add_quote_line(
    session: AsyncSession,
    quotation_id: UUID,
    list_item_id: UUID,
    unit_price: Decimal,
    lead_time: str | None = None,
    lead_time_days: int | None = None,
) -> SupplierQuoteLineModel:
    if unit_price is None or unit_price < 0:
        raise ValidationError("Unit price must be non-negative", field="unit_price")
    if lead_time_days is not None and lead_time_days < 0:
        raise ValidationError("Lead time must be non-negative", field="lead_time_days")

    async with atomic(session, "add_quote_line"):
        if await session.get(SupplierQuotationModel, quotation_id) is None:
            raise NotFoundError("SupplierQuotation", quotation_id)
        if await session.get(ListItemModel, list_item_id) is None:
            raise NotFoundError("ListItem", list_item_id)

        line = SupplierQuoteLineModel(
            quotation_id=quotation_id,
            list_item_id=list_item_id,
            unit_price=unit_price,
            lead_time=lead_time,
            lead_time_days=lead_time_days,
            is_selected=False,
        )
        session.add(line)
        await session.flush()
    return line


async def _clear_selection(session: AsyncSession, item: ListItemModel) -> None:
    await session.execute(
        update(SupplierQuoteLineModel)
        .where(SupplierQuoteLineModel.list_item_id == item.id)
        .values(is_selected=False)
    )
    item.selected_quote_id = None
    await session.flush()


async def select_quote_line(session: AsyncSession, line_id: UUID) -> ListItemModel:
    """Select one quote line for its list item, clearing any previous selection.

    The line's lead time, when quoted, is copied onto the list item.
    """
    async with atomic(session, "select_quote_line"):
        line = await session.get(SupplierQuoteLineModel, line_id, with_for_update=True)
        if line is None:
            raise NotFoundError("SupplierQuoteLine", line_id)
        if line.list_item_id is None:
            raise ValidationError("Quote line is not attached to a list item", field="list_item_id")

        item = await session.get(ListItemModel, line.list_item_id, with_for_update=True)
        if item is None:
            raise NotFoundError("ListItem", line.list_item_id)

        await _clear_selection(session, item)

        line.is_selected = True
        item.selected_quote_id = line.id
        if line.lead_time is not None:
            item.lead_time = line.lead_time
        if line.lead_time_days is not None:
            item.lead_time_days = line.lead_time_days

    logger.info("quote_selected", list_item_id=str(item.id), quote_line_id=str(line_id))
    return item


async def clear_quote_selection(session: AsyncSession, list_item_id: UUID) -> ListItemModel:
    async with atomic(session, "clear_quote_selection"):
        item = await session.get(ListItemModel, list_item_id, with_for_update=True)
        if item is None:
            raise NotFoundError("ListItem", list_item_id)
        await _clear_selection(session, item)
    return item


async def list_quote_lines(session: AsyncSession, list_item_id: UUID) -> list[SupplierQuoteLineModel]:
    result = await session.execute(
        select(SupplierQuoteLineModel)
        .where(SupplierQuoteLineModel.list_item_id == list_item_id)
        .order_by(SupplierQuoteLineModel.unit_price)
    )
    return list(result.scalars().all())


async def load_quote_stats(session: AsyncSession, list_item_ids: Iterable[UUID]) -> dict[UUID, QuoteStats]:
    """Line count, lowest price and selected price per list item."""
    ids = list(list_item_ids)
    if not ids:
        return {}

    aggregates = await session.execute(
        select(
            SupplierQuoteLineModel.list_item_id,
            func.count(SupplierQuoteLineModel.id),
            func.min(SupplierQuoteLineModel.unit_price),
        )
        .where(SupplierQuoteLineModel.list_item_id.in_(ids))
        .group_by(SupplierQuoteLineModel.list_item_id)
    )
    selected = await session.execute(
        select(SupplierQuoteLineModel.list_item_id, SupplierQuoteLineModel.unit_price).where(
            SupplierQuoteLineModel.list_item_id.in_(ids),
            SupplierQuoteLineModel.is_selected.is_(True),
        )
    )
    selected_prices = {item_id: Decimal(price) for item_id, price in selected.all()}

    stats: dict[UUID, QuoteStats] = {}
    for item_id, count, lowest in aggregates.all():
        stats[item_id] = QuoteStats(
            line_count=count,
            lowest_price=Decimal(lowest) if lowest is not None else None,
            selected_price=selected_prices.get(item_id),
        )
    return stats


async def get_selected_quote_price(session: AsyncSession, item: ListItemModel) -> Decimal | None:
    if item.selected_quote_id is None:
        return None
    result = await session.execute(
        select(SupplierQuoteLineModel.unit_price).where(SupplierQuoteLineModel.id == item.selected_quote_id)
    )
    price = result.scalar_one_or_none()
    return Decimal(price) if price is not None else None
