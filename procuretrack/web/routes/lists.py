"""Equipment list routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from procuretrack.lists.service import (
    add_item_from_catalog,
    add_item_from_planned,
    create_list,
    get_list,
    get_list_items,
    list_summary,
    transition_list,
)
from procuretrack.web.dependencies import get_db
from procuretrack.web.models import (
    AddFromCatalogRequest,
    AddFromPlannedRequest,
    CreateListRequest,
    EquipmentListResponse,
    ListDetailResponse,
    ListItemResponse,
    ListStatusRequest,
)

router = APIRouter(prefix="/api/lists", tags=["lists"])


@router.post("", response_model=EquipmentListResponse, status_code=status.HTTP_201_CREATED)
async def create(request: CreateListRequest, session: AsyncSession = Depends(get_db)):
    return await create_list(session, request.project_id, request.name, needed_date=request.needed_date)


@router.get("/{list_id}", response_model=ListDetailResponse)
async def detail(list_id: UUID, session: AsyncSession = Depends(get_db)):
    """List header, its items and summary statistics."""
    equipment_list = await get_list(session, list_id)
    items = await get_list_items(session, list_id)
    summary = await list_summary(session, list_id)
    return ListDetailResponse(
        equipment_list=EquipmentListResponse.model_validate(equipment_list),
        items=[ListItemResponse.model_validate(item) for item in items],
        summary=summary,
    )


@router.post("/{list_id}/status", response_model=EquipmentListResponse)
async def change_status(list_id: UUID, request: ListStatusRequest, session: AsyncSession = Depends(get_db)):
    return await transition_list(session, list_id, request.status)


@router.post(
    "/{list_id}/items/from-planned",
    response_model=ListItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_from_planned(list_id: UUID, request: AddFromPlannedRequest, session: AsyncSession = Depends(get_db)):
    return await add_item_from_planned(session, list_id, request.planned_item_id)


@router.post(
    "/{list_id}/items/from-catalog",
    response_model=ListItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_from_catalog(list_id: UUID, request: AddFromCatalogRequest, session: AsyncSession = Depends(get_db)):
    return await add_item_from_catalog(session, list_id, request.catalog_id, request.quantity)
