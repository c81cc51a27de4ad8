"""Replacement of a list item by a new catalog choice.

The replacement chain is kept as an anchor pointer: every replacement item
stores the original planned requirement in ``replaces_planned_item_id``,
copied forward from its predecessor, so the ultimate requirement is always
one lookup away.
"""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from procuretrack.db.lookups import get_catalog_equipment
from procuretrack.db.models import ListItemModel, PlannedItemModel
from procuretrack.db.transaction import atomic
from procuretrack.errors import ConflictError, InvalidOriginError, NotFoundError, ValidationError
from procuretrack.lists.service import lock_open_list, remove_list_item
from procuretrack.models import ItemOrigin, ListItemStatus, PlannedItemStatus

logger = structlog.get_logger()


def resolve_anchor(item: ListItemModel) -> UUID:
    """Planned requirement a replacement of ``item`` must point at."""
    if item.origin == ItemOrigin.FROM_QUOTATION and item.planned_item_id is not None:
        return item.planned_item_id
    if item.origin == ItemOrigin.REPLACEMENT and item.replaces_planned_item_id is not None:
        return item.replaces_planned_item_id
    raise InvalidOriginError(item.id, item.origin.value)


class ReplacementEngine:
    """Substitutes list items while keeping planned items and quotes consistent."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def replace(
        self,
        old_list_item_id: UUID,
        catalog_id: UUID,
        expected_version: int | None = None,
    ) -> ListItemModel:
        """Replace ``old_list_item_id`` with a new draft item built from ``catalog_id``.

        The new item takes over the quantity not yet ordered. The old item
        is kept as ``rejected`` when a supplier quote is selected on it or
        part of it is already ordered, otherwise it is deleted with a full
        rollback.

        Raises:
            NotFoundError: The old item or the catalog entry does not exist
            ValidationError: The old item is fully ordered or its list is approved
            InvalidOriginError: The old item has no planned anchor
            ConflictError: The old item was already superseded, or no longer
                matches ``expected_version``
        """
        session = self.session
        async with atomic(session, "replace_list_item"):
            old = await session.get(ListItemModel, old_list_item_id, with_for_update=True, populate_existing=True)
            if old is None:
                if expected_version is not None:
                    raise ConflictError(
                        f"List item {old_list_item_id} no longer exists",
                        list_item_id=old_list_item_id,
                        expected_version=expected_version,
                    )
                raise NotFoundError("ListItem", old_list_item_id)
            if expected_version is not None and old.version != expected_version:
                raise ConflictError(
                    f"List item {old_list_item_id} changed concurrently",
                    list_item_id=old_list_item_id,
                    expected_version=expected_version,
                    current_version=old.version,
                )
            if old.status == ListItemStatus.REJECTED:
                raise ConflictError(
                    f"List item {old_list_item_id} has already been superseded",
                    list_item_id=old_list_item_id,
                )

            await lock_open_list(session, old.list_id)

            anchor_id = resolve_anchor(old)
            quantity = old.quantity - old.ordered_quantity
            if quantity <= 0:
                raise ValidationError(
                    f"List item {old_list_item_id} is fully ordered and cannot be replaced",
                    field="ordered_quantity",
                )

            catalog = await get_catalog_equipment(session, catalog_id)

            new = ListItemModel(
                list_id=old.list_id,
                replaces_planned_item_id=anchor_id,
                catalog_id=catalog.id,
                code=catalog.code,
                description=catalog.description,
                unit=catalog.unit,
                quantity=quantity,
                budget_estimate=catalog.internal_price * quantity,
                lead_time_days=catalog.lead_time_days,
                status=ListItemStatus.DRAFT,
                origin=ItemOrigin.from_links(None, anchor_id),
            )
            session.add(new)
            await session.flush()

            anchor = await session.get(PlannedItemModel, anchor_id, with_for_update=True)
            if anchor is not None:
                anchor.status = PlannedItemStatus.REPLACED
                anchor.replaced_by_id = new.id
                anchor.list_item_id = new.id
                anchor.list_id = new.list_id
                await session.flush()

            if old.selected_quote_id is not None or old.ordered_quantity > 0:
                old.planned_item_id = None
                old.origin = ItemOrigin.from_links(None, old.replaces_planned_item_id)
                old.status = ListItemStatus.REJECTED
                await session.flush()
                outcome = "rejected"
            else:
                await remove_list_item(session, old)
                outcome = "deleted"

        logger.info(
            "list_item_replaced",
            old_list_item_id=str(old_list_item_id),
            new_list_item_id=str(new.id),
            anchor_id=str(anchor_id),
            catalog_id=str(catalog_id),
            old_outcome=outcome,
        )
        return new
