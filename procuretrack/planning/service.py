"""Planned item store: quotation conversion and explicit discard."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from procuretrack.db.models import PlannedGroupModel, PlannedItemModel, ProjectModel
from procuretrack.db.transaction import atomic
from procuretrack.errors import InvalidTransitionError, NotFoundError, ValidationError
from procuretrack.models import PlannedItemInput, PlannedItemStatus

logger = structlog.get_logger()


async def import_quotation(
    session: AsyncSession,
    project_id: UUID,
    group_name: str,
    items: Sequence[PlannedItemInput],
    description: str | None = None,
) -> tuple[PlannedGroupModel, list[PlannedItemModel]]:
    """Convert approved quotation lines into a planned group for the project.

    Costs are derived as quantity x unit price and rolled up into the
    group subtotals. Every item starts as ``planned``.
    """
    if not items:
        raise ValidationError("At least one quotation line is required", field="items")
    if not group_name or not group_name.strip():
        raise ValidationError("Group name is required", field="group_name")

    async with atomic(session, "import_quotation"):
        if await session.get(ProjectModel, project_id) is None:
            raise NotFoundError("Project", project_id)

        group = PlannedGroupModel(project_id=project_id, name=group_name.strip(), description=description)
        session.add(group)
        await session.flush()

        planned: list[PlannedItemModel] = []
        internal_subtotal = Decimal("0")
        client_subtotal = Decimal("0")
        for line in items:
            internal_cost = line.quantity * line.internal_unit_price
            client_cost = line.quantity * line.client_unit_price
            internal_subtotal += internal_cost
            client_subtotal += client_cost
            planned.append(
                PlannedItemModel(
                    group_id=group.id,
                    catalog_id=line.catalog_id,
                    code=line.code,
                    description=line.description,
                    category=line.category,
                    unit=line.unit,
                    brand=line.brand,
                    quantity=line.quantity,
                    internal_unit_price=line.internal_unit_price,
                    client_unit_price=line.client_unit_price,
                    internal_cost=internal_cost,
                    client_cost=client_cost,
                    lead_time_days=line.lead_time_days,
                    status=PlannedItemStatus.PLANNED,
                )
            )

        group.internal_subtotal = internal_subtotal
        group.client_subtotal = client_subtotal
        session.add_all(planned)
        await session.flush()

    logger.info(
        "quotation_imported",
        project_id=str(project_id),
        group_id=str(group.id),
        items=len(planned),
        client_subtotal=str(client_subtotal),
    )
    return group, planned


async def discard_planned_item(
    session: AsyncSession,
    planned_item_id: UUID,
    reason: str | None = None,
) -> PlannedItemModel:
    """Drop a requirement from the plan. Only allowed while it is not on a list."""
    async with atomic(session, "discard_planned_item"):
        item = await session.get(PlannedItemModel, planned_item_id, with_for_update=True)
        if item is None:
            raise NotFoundError("PlannedItem", planned_item_id)
        if item.status != PlannedItemStatus.PLANNED:
            raise InvalidTransitionError("PlannedItem", item.status.value, PlannedItemStatus.DISCARDED.value)

        item.status = PlannedItemStatus.DISCARDED
        item.change_reason = reason

    logger.info("planned_item_discarded", planned_item_id=str(planned_item_id))
    return item


async def get_planned_item(session: AsyncSession, planned_item_id: UUID) -> PlannedItemModel:
    item = await session.get(PlannedItemModel, planned_item_id)
    if item is None:
        raise NotFoundError("PlannedItem", planned_item_id)
    return item


async def list_planned_items(
    session: AsyncSession,
    project_id: UUID,
    status: PlannedItemStatus | None = None,
) -> list[PlannedItemModel]:
    query = (
        select(PlannedItemModel)
        .join(PlannedGroupModel, PlannedGroupModel.id == PlannedItemModel.group_id)
        .where(PlannedGroupModel.project_id == project_id)
        .order_by(PlannedItemModel.code)
    )
    if status is not None:
        query = query.where(PlannedItemModel.status == status)
    result = await session.execute(query)
    return list(result.scalars().all())
