"""Pytest configuration and fixtures for procuretrack tests.

Database fixtures use a temporary SQLite file so that several sessions
(and therefore concurrent transactions) can share one database.
"""

from __future__ import annotations

import os
from decimal import Decimal
from uuid import UUID

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from procuretrack.db.connection import create_engine_for_url  # noqa: E402
from procuretrack.db.models import (  # noqa: E402
    Base,
    CatalogEquipmentModel,
    EquipmentListModel,
    ListItemModel,
    PlannedItemModel,
    ProjectModel,
    SupplierQuoteLineModel,
)
from procuretrack.lists.quotes import add_quote_line, create_quotation, select_quote_line  # noqa: E402
from procuretrack.lists.service import add_item_from_planned, create_list  # noqa: E402
from procuretrack.models import PlannedItemInput  # noqa: E402
from procuretrack.planning.service import import_quotation  # noqa: E402


@pytest_asyncio.fixture()
async def engine(tmp_path):
    """Create a file-backed SQLite database with the full schema."""
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'procuretrack.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory) -> AsyncSession:
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


@pytest_asyncio.fixture()
async def project(db_session: AsyncSession) -> ProjectModel:
    project = ProjectModel(code="PRJ1", name="Plant expansion")
    db_session.add(project)
    await db_session.commit()
    return project


@pytest_asyncio.fixture()
async def catalog_entry(db_session: AsyncSession) -> CatalogEquipmentModel:
    entry = CatalogEquipmentModel(
        code="PMP-200",
        description="Centrifugal pump 200 l/min",
        category="Pumps",
        unit="ea",
        brand="Acme",
        internal_price=Decimal("850.00"),
        client_price=Decimal("1100.00"),
        lead_time_days=21,
    )
    db_session.add(entry)
    await db_session.commit()
    return entry


@pytest_asyncio.fixture()
async def planned_items(db_session: AsyncSession, project: ProjectModel) -> list[PlannedItemModel]:
    """Three planned requirements imported from an approved quotation."""
    _, items = await import_quotation(
        db_session,
        project.id,
        "Pumping station",
        [
            PlannedItemInput(
                code="VLV-50",
                description="Gate valve DN50",
                unit="ea",
                quantity=Decimal("10"),
                internal_unit_price=Decimal("40.00"),
                client_unit_price=Decimal("55.00"),
            ),
            PlannedItemInput(
                code="MTR-15",
                description="Electric motor 15 kW",
                unit="ea",
                quantity=Decimal("4"),
                internal_unit_price=Decimal("600.00"),
                client_unit_price=Decimal("780.00"),
                lead_time_days=45,
            ),
            PlannedItemInput(
                code="CBL-3X",
                description="Power cable 3x10mm2",
                unit="m",
                quantity=Decimal("250"),
                internal_unit_price=Decimal("3.20"),
                client_unit_price=Decimal("4.10"),
            ),
        ],
    )
    return items


@pytest_asyncio.fixture()
async def equipment_list(db_session: AsyncSession, project: ProjectModel) -> EquipmentListModel:
    return await create_list(db_session, project.id, "Main equipment")


@pytest_asyncio.fixture()
async def listed_items(
    db_session: AsyncSession,
    equipment_list: EquipmentListModel,
    planned_items: list[PlannedItemModel],
) -> list[ListItemModel]:
    """Every planned item pulled into the list (origin from_quotation)."""
    return [await add_item_from_planned(db_session, equipment_list.id, planned.id) for planned in planned_items]


@pytest.fixture
def quote(db_session: AsyncSession, project: ProjectModel):
    """Factory adding a supplier quote line, optionally selecting it."""

    async def _quote(
        list_item_id: UUID,
        unit_price: str,
        select: bool = False,
        lead_time_days: int | None = None,
        supplier: str = "Supplier A",
    ) -> SupplierQuoteLineModel:
        quotation = await create_quotation(db_session, project.id, supplier)
        line = await add_quote_line(
            db_session,
            quotation.id,
            list_item_id,
            Decimal(unit_price),
            lead_time=f"{lead_time_days} days" if lead_time_days is not None else None,
            lead_time_days=lead_time_days,
        )
        if select:
            await select_quote_line(db_session, line.id)
        return line

    return _quote
