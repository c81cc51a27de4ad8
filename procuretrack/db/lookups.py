"""Lookups against the catalog and project collaborators."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from procuretrack.db.models import CatalogEquipmentModel, ProjectModel
from procuretrack.errors import NotFoundError
from procuretrack.models import CatalogEquipment


async def get_catalog_equipment(session: AsyncSession, catalog_id: UUID) -> CatalogEquipment:
    row = await session.get(CatalogEquipmentModel, catalog_id)
    if row is None:
        raise NotFoundError("CatalogEquipment", catalog_id)
    return CatalogEquipment(
        id=row.id,
        code=row.code,
        description=row.description,
        category=row.category,
        unit=row.unit,
        brand=row.brand,
        internal_price=row.internal_price,
        client_price=row.client_price,
        lead_time_days=row.lead_time_days,
    )


async def get_project_code(session: AsyncSession, project_id: UUID) -> str:
    result = await session.execute(select(ProjectModel.code).where(ProjectModel.id == project_id))
    code = result.scalar_one_or_none()
    if code is None:
        raise NotFoundError("Project", project_id)
    return code
