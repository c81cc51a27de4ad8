"""Integration tests for list creation, item origination, review workflow and summaries."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from procuretrack.db.models import ListItemModel
from procuretrack.errors import InvalidTransitionError, NotFoundError, ValidationError
from procuretrack.lists.service import (
    add_item_from_catalog,
    add_item_from_planned,
    create_list,
    delete_list_item,
    list_summary,
    transition_list,
    transition_list_item,
    update_list_item,
)
from procuretrack.models import ItemOrigin, ListItemStatus, ListStatus, PlannedItemInput, PlannedItemStatus
from procuretrack.planning.service import import_quotation
from procuretrack.replacement.engine import ReplacementEngine


@pytest.mark.asyncio
async def test_list_codes_are_sequential_per_project(db_session: AsyncSession, project, equipment_list):
    second = await create_list(db_session, project.id, "Spares")

    assert equipment_list.code == "PRJ1-LST-001"
    assert second.code == "PRJ1-LST-002"
    assert second.status == ListStatus.DRAFT


@pytest.mark.asyncio
async def test_create_list_requires_name(db_session: AsyncSession, project):
    with pytest.raises(ValidationError):
        await create_list(db_session, project.id, "  ")


@pytest.mark.asyncio
async def test_add_from_planned_links_both_sides(db_session: AsyncSession, equipment_list, planned_items):
    """The list item points at its planned item and the planned item becomes listed."""
    planned = planned_items[0]
    item = await add_item_from_planned(db_session, equipment_list.id, planned.id)

    assert item.origin == ItemOrigin.FROM_QUOTATION
    assert item.planned_item_id == planned.id
    assert item.status == ListItemStatus.DRAFT
    assert item.quantity == planned.quantity
    assert item.budget_estimate == planned.internal_cost

    await db_session.refresh(planned)
    assert planned.status == PlannedItemStatus.LISTED
    assert planned.list_item_id == item.id
    assert planned.list_id == equipment_list.id


@pytest.mark.asyncio
async def test_planned_item_can_only_be_listed_once(db_session: AsyncSession, equipment_list, planned_items, listed_items):
    with pytest.raises(InvalidTransitionError):
        await add_item_from_planned(db_session, equipment_list.id, planned_items[0].id)


@pytest.mark.asyncio
async def test_add_from_catalog_is_new_origin(db_session: AsyncSession, equipment_list, catalog_entry):
    item = await add_item_from_catalog(db_session, equipment_list.id, catalog_entry.id, Decimal("2"))

    assert item.origin == ItemOrigin.NEW
    assert item.planned_item_id is None
    assert item.replaces_planned_item_id is None
    assert item.budget_estimate == Decimal("1700.00")
    assert item.lead_time_days == 21


@pytest.mark.asyncio
async def test_add_from_catalog_unknown_entry(db_session: AsyncSession, equipment_list):
    with pytest.raises(NotFoundError):
        await add_item_from_catalog(db_session, equipment_list.id, uuid4(), Decimal("1"))


@pytest.mark.asyncio
async def test_update_rejects_status_and_links(db_session: AsyncSession, listed_items):
    """Status, origin and links only change through named operations."""
    item = listed_items[0]
    for field in ("status", "origin", "planned_item_id", "ordered_quantity"):
        with pytest.raises(ValidationError):
            await update_list_item(db_session, item.id, {field: None})

    await db_session.refresh(item)
    assert item.status == ListItemStatus.DRAFT
    assert item.origin == ItemOrigin.FROM_QUOTATION


@pytest.mark.asyncio
async def test_update_descriptive_fields_bumps_version(db_session: AsyncSession, listed_items):
    item = listed_items[0]
    version = item.version

    updated = await update_list_item(
        db_session, item.id, {"description": "Gate valve DN50 PN16", "chosen_unit_price": Decimal("38.50")}
    )

    assert updated.description == "Gate valve DN50 PN16"
    assert updated.chosen_unit_price == Decimal("38.50")
    assert updated.version == version + 1


@pytest.mark.asyncio
async def test_item_review_workflow(db_session: AsyncSession, listed_items):
    item = listed_items[0]
    for target in (
        ListItemStatus.UNDER_REVIEW,
        ListItemStatus.TO_QUOTE,
        ListItemStatus.TO_VALIDATE,
        ListItemStatus.TO_APPROVE,
        ListItemStatus.APPROVED,
    ):
        item = await transition_list_item(db_session, item.id, target)
    assert item.status == ListItemStatus.APPROVED

    with pytest.raises(InvalidTransitionError):
        await transition_list_item(db_session, listed_items[1].id, ListItemStatus.APPROVED)


@pytest.mark.asyncio
async def test_list_approval_requires_closed_items(db_session: AsyncSession, equipment_list, listed_items):
    list_id = equipment_list.id
    item_ids = [item.id for item in listed_items]
    for target in (ListStatus.UNDER_REVIEW, ListStatus.TO_QUOTE, ListStatus.TO_VALIDATE, ListStatus.TO_APPROVE):
        await transition_list(db_session, list_id, target)

    with pytest.raises(ValidationError):
        await transition_list(db_session, list_id, ListStatus.APPROVED)

    for item_id in item_ids:
        await transition_list_item(db_session, item_id, ListItemStatus.REJECTED, comment="Out of budget")
    approved = await transition_list(db_session, list_id, ListStatus.APPROVED)
    assert approved.status == ListStatus.APPROVED


@pytest.mark.asyncio
async def test_list_summary_counts_quoted_items_as_verified(db_session: AsyncSession, equipment_list, listed_items, quote):
    valve = next(item for item in listed_items if item.code == "VLV-50")
    await quote(valve.id, "42.00")
    await quote(valve.id, "39.00", supplier="Supplier B")

    summary = await list_summary(db_session, equipment_list.id)

    assert summary.code == "PRJ1-LST-001"
    assert summary.total_items == 3
    assert summary.verified_items == 1
    # Lowest quote 39.00 x 10
    assert summary.verified_cost == Decimal("390.00")
    # 390 + 4 x 600 + 250 x 3.20 from budgets
    assert summary.total_cost == Decimal("3590.00")


@pytest.mark.asyncio
async def test_origin_check_constraint(db_session: AsyncSession, equipment_list):
    """A from_quotation item without a planned item is rejected by the database."""
    db_session.add(
        ListItemModel(
            list_id=equipment_list.id,
            code="BAD",
            description="Inconsistent origin",
            unit="ea",
            quantity=Decimal("1"),
            status=ListItemStatus.DRAFT,
            origin=ItemOrigin.FROM_QUOTATION,
        )
    )
    with pytest.raises(IntegrityError):
        await db_session.commit()
    await db_session.rollback()


@pytest.mark.asyncio
async def test_ordered_quantity_check_constraint(db_session: AsyncSession, equipment_list):
    db_session.add(
        ListItemModel(
            list_id=equipment_list.id,
            code="BAD",
            description="Over-ordered",
            unit="ea",
            quantity=Decimal("1"),
            ordered_quantity=Decimal("2"),
            status=ListItemStatus.DRAFT,
            origin=ItemOrigin.NEW,
        )
    )
    with pytest.raises(IntegrityError):
        await db_session.commit()
    await db_session.rollback()


@pytest_asyncio.fixture()
async def approved_list_id(db_session: AsyncSession, equipment_list, listed_items):
    """Approve the list with its first item approved and the others rejected."""
    list_id = equipment_list.id
    first, *others = listed_items
    for target in (
        ListItemStatus.UNDER_REVIEW,
        ListItemStatus.TO_QUOTE,
        ListItemStatus.TO_VALIDATE,
        ListItemStatus.TO_APPROVE,
        ListItemStatus.APPROVED,
    ):
        await transition_list_item(db_session, first.id, target)
    for item in others:
        await transition_list_item(db_session, item.id, ListItemStatus.REJECTED)
    for target in (
        ListStatus.UNDER_REVIEW,
        ListStatus.TO_QUOTE,
        ListStatus.TO_VALIDATE,
        ListStatus.TO_APPROVE,
        ListStatus.APPROVED,
    ):
        await transition_list(db_session, list_id, target)
    return list_id


async def item_statuses(session: AsyncSession, list_id) -> list[ListItemStatus]:
    result = await session.execute(select(ListItemModel.status).where(ListItemModel.list_id == list_id))
    return sorted(result.scalars().all(), key=lambda status: status.value)


class TestApprovedListIsFrozen:
    """A failed change rolls the session back, so ids are read up front."""

    @pytest.mark.asyncio
    async def test_catalog_item_cannot_be_added(self, db_session: AsyncSession, approved_list_id, catalog_entry):
        with pytest.raises(ValidationError) as exc_info:
            await add_item_from_catalog(db_session, approved_list_id, catalog_entry.id, Decimal("1"))

        assert exc_info.value.details["list_status"] == "approved"
        assert len(await item_statuses(db_session, approved_list_id)) == 3

    @pytest.mark.asyncio
    async def test_planned_item_cannot_be_added(self, db_session: AsyncSession, project, approved_list_id):
        _, (planned,) = await import_quotation(
            db_session,
            project.id,
            "Spares",
            [
                PlannedItemInput(
                    code="FLT-10",
                    description="Strainer DN50",
                    unit="ea",
                    quantity=Decimal("2"),
                    internal_unit_price=Decimal("25.00"),
                    client_unit_price=Decimal("32.00"),
                )
            ],
        )

        with pytest.raises(ValidationError):
            await add_item_from_planned(db_session, approved_list_id, planned.id)

        await db_session.refresh(planned)
        assert planned.status == PlannedItemStatus.PLANNED
        assert planned.list_item_id is None

    @pytest.mark.asyncio
    async def test_items_cannot_be_reopened(self, db_session: AsyncSession, approved_list_id, listed_items):
        approved_id, rejected_id = listed_items[0].id, listed_items[1].id

        with pytest.raises(ValidationError):
            await transition_list_item(db_session, approved_id, ListItemStatus.TO_APPROVE)
        with pytest.raises(ValidationError):
            await transition_list_item(db_session, rejected_id, ListItemStatus.DRAFT)

        assert await item_statuses(db_session, approved_list_id) == [
            ListItemStatus.APPROVED,
            ListItemStatus.REJECTED,
            ListItemStatus.REJECTED,
        ]

    @pytest.mark.asyncio
    async def test_item_cannot_be_replaced(
        self, db_session: AsyncSession, approved_list_id, listed_items, catalog_entry
    ):
        with pytest.raises(ValidationError):
            await ReplacementEngine(db_session).replace(listed_items[0].id, catalog_entry.id)

        assert len(await item_statuses(db_session, approved_list_id)) == 3

    @pytest.mark.asyncio
    async def test_item_cannot_be_deleted(self, db_session: AsyncSession, approved_list_id, listed_items):
        with pytest.raises(ValidationError):
            await delete_list_item(db_session, listed_items[1].id)

        assert len(await item_statuses(db_session, approved_list_id)) == 3

    @pytest.mark.asyncio
    async def test_reopened_list_accepts_changes(
        self, db_session: AsyncSession, approved_list_id, listed_items, catalog_entry
    ):
        await transition_list(db_session, approved_list_id, ListStatus.TO_APPROVE)

        item = await add_item_from_catalog(db_session, approved_list_id, catalog_entry.id, Decimal("1"))
        reopened = await transition_list_item(db_session, listed_items[0].id, ListItemStatus.TO_APPROVE)

        assert item.status == ListItemStatus.DRAFT
        assert reopened.status == ListItemStatus.TO_APPROVE
        with pytest.raises(ValidationError):
            await transition_list(db_session, approved_list_id, ListStatus.APPROVED)
