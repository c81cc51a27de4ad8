"""Equipment lists and list items: origination, review workflow and deletion.

Generic updates only touch descriptive fields. Status, origin and links
change exclusively through the named operations in this module and the
replacement/order engines.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from procuretrack.config import get_config
from procuretrack.db.lookups import get_catalog_equipment, get_project_code
from procuretrack.db.models import (
    EquipmentListModel,
    ListItemModel,
    PlannedItemModel,
    SupplierQuoteLineModel,
)
from procuretrack.db.sequences import LIST_SEQUENCE, format_code, next_sequence
from procuretrack.db.transaction import atomic
from procuretrack.errors import InvalidTransitionError, NotFoundError, ValidationError
from procuretrack.lists.quotes import load_quote_stats
from procuretrack.lists.workflow import check_item_transition, check_list_open, check_list_transition
from procuretrack.models import (
    ItemOrigin,
    ListItemStatus,
    ListStatus,
    ListSummary,
    PlannedItemStatus,
)
from procuretrack.orders.pricing import PriceInputs, best_unit_price

logger = structlog.get_logger()

ZERO = Decimal("0")

# Fields a generic PATCH may change
EDITABLE_FIELDS = frozenset(
    {
        "code",
        "description",
        "unit",
        "quantity",
        "verified",
        "review_comment",
        "budget_estimate",
        "chosen_unit_price",
        "chosen_cost",
        "lead_time",
        "lead_time_days",
    }
)


async def get_list(session: AsyncSession, list_id: UUID) -> EquipmentListModel:
    equipment_list = await session.get(EquipmentListModel, list_id)
    if equipment_list is None:
        raise NotFoundError("EquipmentList", list_id)
    return equipment_list


async def get_list_item(session: AsyncSession, list_item_id: UUID) -> ListItemModel:
    item = await session.get(ListItemModel, list_item_id)
    if item is None:
        raise NotFoundError("ListItem", list_item_id)
    return item


async def lock_open_list(session: AsyncSession, list_id: UUID) -> EquipmentListModel:
    """Lock a list for an item change, refusing approved lists."""
    equipment_list = await session.get(EquipmentListModel, list_id, with_for_update=True)
    if equipment_list is None:
        raise NotFoundError("EquipmentList", list_id)
    check_list_open(list_id, equipment_list.status)
    return equipment_list


async def get_list_items(session: AsyncSession, list_id: UUID) -> list[ListItemModel]:
    result = await session.execute(
        select(ListItemModel).where(ListItemModel.list_id == list_id).order_by(ListItemModel.created_at, ListItemModel.code)
    )
    return list(result.scalars().all())


async def create_list(
    session: AsyncSession,
    project_id: UUID,
    name: str,
    needed_date: date | None = None,
) -> EquipmentListModel:
    """Create a draft list with the next ``<project>-LST-<seq>`` code."""
    if not name or not name.strip():
        raise ValidationError("List name is required", field="name")

    padding = get_config().orders.code_padding
    async with atomic(session, "create_list"):
        project_code = await get_project_code(session, project_id)
        sequence = await next_sequence(session, project_id, LIST_SEQUENCE)
        equipment_list = EquipmentListModel(
            project_id=project_id,
            code=format_code(project_code, LIST_SEQUENCE, sequence, padding),
            name=name.strip(),
            sequence=sequence,
            status=ListStatus.DRAFT,
            needed_date=needed_date,
        )
        session.add(equipment_list)
        await session.flush()

    logger.info("list_created", list_id=str(equipment_list.id), code=equipment_list.code)
    return equipment_list


async def add_item_from_planned(session: AsyncSession, list_id: UUID, planned_item_id: UUID) -> ListItemModel:
    """Pull a planned requirement into a list (origin ``from_quotation``)."""
    async with atomic(session, "add_item_from_planned"):
        await lock_open_list(session, list_id)
        planned = await session.get(PlannedItemModel, planned_item_id, with_for_update=True)
        if planned is None:
            raise NotFoundError("PlannedItem", planned_item_id)
        if planned.status != PlannedItemStatus.PLANNED:
            raise InvalidTransitionError("PlannedItem", planned.status.value, PlannedItemStatus.LISTED.value)

        item = ListItemModel(
            list_id=list_id,
            planned_item_id=planned.id,
            catalog_id=planned.catalog_id,
            code=planned.code,
            description=planned.description,
            unit=planned.unit,
            quantity=planned.quantity,
            budget_estimate=planned.internal_cost,
            lead_time_days=planned.lead_time_days,
            status=ListItemStatus.DRAFT,
            origin=ItemOrigin.from_links(planned.id, None),
        )
        session.add(item)
        await session.flush()

        planned.status = PlannedItemStatus.LISTED
        planned.list_id = list_id
        planned.list_item_id = item.id

    logger.info("list_item_added", list_item_id=str(item.id), origin=item.origin.value)
    return item


async def add_item_from_catalog(
    session: AsyncSession,
    list_id: UUID,
    catalog_id: UUID,
    quantity: Decimal,
) -> ListItemModel:
    """Add an unplanned catalog entry to a list (origin ``new``)."""
    if quantity is None or quantity <= 0:
        raise ValidationError("Quantity must be positive", field="quantity")

    async with atomic(session, "add_item_from_catalog"):
        await lock_open_list(session, list_id)
        catalog = await get_catalog_equipment(session, catalog_id)
        item = ListItemModel(
            list_id=list_id,
            catalog_id=catalog.id,
            code=catalog.code,
            description=catalog.description,
            unit=catalog.unit,
            quantity=quantity,
            budget_estimate=catalog.internal_price * quantity,
            lead_time_days=catalog.lead_time_days,
            status=ListItemStatus.DRAFT,
            origin=ItemOrigin.from_links(None, None),
        )
        session.add(item)
        await session.flush()

    logger.info("list_item_added", list_item_id=str(item.id), origin=item.origin.value)
    return item


async def update_list_item(session: AsyncSession, list_item_id: UUID, changes: dict[str, Any]) -> ListItemModel:
    """Apply descriptive field changes. Status, origin and links are rejected."""
    unknown = sorted(set(changes) - EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields cannot be updated directly: {', '.join(unknown)}", field=unknown[0])

    async with atomic(session, "update_list_item"):
        item = await session.get(ListItemModel, list_item_id, with_for_update=True)
        if item is None:
            raise NotFoundError("ListItem", list_item_id)

        if "quantity" in changes:
            quantity = changes["quantity"]
            if quantity is None or quantity <= 0:
                raise ValidationError("Quantity must be positive", field="quantity")
            if quantity < item.ordered_quantity:
                raise ValidationError(
                    f"Quantity {quantity} is below the {item.ordered_quantity} already ordered",
                    field="quantity",
                    ordered_quantity=item.ordered_quantity,
                )
        for name in ("budget_estimate", "chosen_unit_price", "chosen_cost"):
            value = changes.get(name)
            if value is not None and value < 0:
                raise ValidationError(f"{name} must be non-negative", field=name)

        for name, value in changes.items():
            setattr(item, name, value)

    return item


async def transition_list_item(
    session: AsyncSession,
    list_item_id: UUID,
    target: ListItemStatus,
    comment: str | None = None,
) -> ListItemModel:
    async with atomic(session, "transition_list_item"):
        item = await session.get(ListItemModel, list_item_id, with_for_update=True)
        if item is None:
            raise NotFoundError("ListItem", list_item_id)
        await lock_open_list(session, item.list_id)
        check_item_transition(item.status, target)
        item.status = target
        if comment is not None:
            item.review_comment = comment

    logger.info("list_item_status_changed", list_item_id=str(list_item_id), status=target.value)
    return item


async def transition_list(session: AsyncSession, list_id: UUID, target: ListStatus) -> EquipmentListModel:
    async with atomic(session, "transition_list"):
        equipment_list = await session.get(EquipmentListModel, list_id, with_for_update=True)
        if equipment_list is None:
            raise NotFoundError("EquipmentList", list_id)
        result = await session.execute(select(ListItemModel.status).where(ListItemModel.list_id == list_id))
        check_list_transition(equipment_list.status, target, result.scalars().all())
        equipment_list.status = target

    logger.info("list_status_changed", list_id=str(list_id), status=target.value)
    return equipment_list


def _reset_planned_item(planned: PlannedItemModel) -> None:
    planned.list_id = None
    planned.list_item_id = None
    planned.change_reason = None
    planned.status = PlannedItemStatus.PLANNED
    planned.actual_quantity = ZERO
    planned.actual_price = ZERO
    planned.actual_cost = ZERO


async def remove_list_item(session: AsyncSession, item: ListItemModel) -> None:
    """Delete a list item inside the caller's transaction, rolling back its links.

    Quote selections are cleared, a linked planned item returns to
    ``planned`` and any planned item still pointing at this item as its
    current or successor list item loses that pointer.
    """
    if item.ordered_quantity > 0:
        raise ValidationError(
            f"List item {item.id} has {item.ordered_quantity} already ordered and cannot be deleted",
            field="ordered_quantity",
            list_item_id=item.id,
        )

    await session.execute(
        update(SupplierQuoteLineModel)
        .where(SupplierQuoteLineModel.list_item_id == item.id)
        .values(is_selected=False)
    )

    if item.planned_item_id is not None:
        planned = await session.get(PlannedItemModel, item.planned_item_id, with_for_update=True)
        if planned is not None:
            _reset_planned_item(planned)

    result = await session.execute(
        select(PlannedItemModel).where(
            or_(PlannedItemModel.list_item_id == item.id, PlannedItemModel.replaced_by_id == item.id)
        )
    )
    for planned in result.scalars().all():
        if planned.list_item_id == item.id:
            _reset_planned_item(planned)
        if planned.replaced_by_id == item.id:
            planned.replaced_by_id = None

    await session.flush()
    await session.delete(item)
    await session.flush()


async def delete_list_item(session: AsyncSession, list_item_id: UUID) -> None:
    """Delete a list item and fully roll back its planned item in one transaction."""
    async with atomic(session, "delete_list_item"):
        item = await session.get(ListItemModel, list_item_id, with_for_update=True)
        if item is None:
            raise NotFoundError("ListItem", list_item_id)
        await lock_open_list(session, item.list_id)
        planned_item_id = item.planned_item_id
        await remove_list_item(session, item)

    logger.info(
        "list_item_deleted",
        list_item_id=str(list_item_id),
        planned_item_id=str(planned_item_id) if planned_item_id else None,
    )


async def list_summary(session: AsyncSession, list_id: UUID) -> ListSummary:
    """Item counts and costs for the list overview.

    An item counts as verified once it has at least one supplier quote;
    its cost uses the best available unit price.
    """
    equipment_list = await get_list(session, list_id)
    items = await get_list_items(session, list_id)
    stats = await load_quote_stats(session, [item.id for item in items])

    total_cost = ZERO
    verified_cost = ZERO
    verified = approved = rejected = 0
    for item in items:
        quotes = stats.get(item.id)
        price = best_unit_price(
            PriceInputs.from_item(
                item,
                selected_quote_price=quotes.selected_price if quotes else None,
                lowest_quote_price=quotes.lowest_price if quotes else None,
            )
        )
        cost = price * item.quantity
        total_cost += cost
        if quotes and quotes.line_count > 0:
            verified += 1
            verified_cost += cost
        if item.status == ListItemStatus.APPROVED:
            approved += 1
        elif item.status == ListItemStatus.REJECTED:
            rejected += 1

    return ListSummary(
        list_id=equipment_list.id,
        code=equipment_list.code,
        name=equipment_list.name,
        status=equipment_list.status,
        total_items=len(items),
        verified_items=verified,
        approved_items=approved,
        rejected_items=rejected,
        total_cost=total_cost,
        verified_cost=verified_cost,
        needed_date=equipment_list.needed_date,
    )
