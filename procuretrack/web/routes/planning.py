"""Planned item routes: quotation conversion and discard."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from procuretrack.planning.service import discard_planned_item, import_quotation, list_planned_items
from procuretrack.web.dependencies import get_db
from procuretrack.web.models import (
    DiscardPlannedItemRequest,
    ImportQuotationRequest,
    PlannedGroupResponse,
    PlannedItemResponse,
)

router = APIRouter(tags=["planning"])


@router.post(
    "/api/projects/{project_id}/planned-items",
    response_model=PlannedGroupResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_planned_items(
    project_id: UUID,
    request: ImportQuotationRequest,
    session: AsyncSession = Depends(get_db),
):
    """Convert approved quotation lines into the project's planned items."""
    group, items = await import_quotation(
        session, project_id, request.group_name, request.items, description=request.description
    )
    response = PlannedGroupResponse.model_validate(group)
    response.items = [PlannedItemResponse.model_validate(item) for item in items]
    return response


@router.get("/api/projects/{project_id}/planned-items", response_model=list[PlannedItemResponse])
async def get_planned_items(project_id: UUID, session: AsyncSession = Depends(get_db)):
    return await list_planned_items(session, project_id)


@router.post("/api/planned-items/{planned_item_id}/discard", response_model=PlannedItemResponse)
async def discard(
    planned_item_id: UUID,
    request: DiscardPlannedItemRequest | None = None,
    session: AsyncSession = Depends(get_db),
):
    return await discard_planned_item(session, planned_item_id, reason=request.reason if request else None)
