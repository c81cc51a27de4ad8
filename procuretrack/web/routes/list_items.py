"""List item routes: read, descriptive update, review status, replacement, deletion."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from procuretrack.lists.quotes import list_quote_lines
from procuretrack.lists.service import delete_list_item, get_list_item, transition_list_item, update_list_item
from procuretrack.replacement.engine import ReplacementEngine
from procuretrack.web.dependencies import get_db
from procuretrack.web.models import (
    ListItemResponse,
    ListItemStatusRequest,
    QuoteLineResponse,
    ReplaceListItemRequest,
    UpdateListItemRequest,
)

router = APIRouter(prefix="/api/list-items", tags=["list-items"])


@router.post("/replace", response_model=ListItemResponse, status_code=status.HTTP_201_CREATED)
async def replace(request: ReplaceListItemRequest, session: AsyncSession = Depends(get_db)):
    """Replace a list item with a new catalog choice."""
    engine = ReplacementEngine(session)
    return await engine.replace(
        request.old_list_item_id,
        request.catalog_choice_id,
        expected_version=request.version,
    )


@router.get("/{list_item_id}", response_model=ListItemResponse)
async def read(list_item_id: UUID, session: AsyncSession = Depends(get_db)):
    return await get_list_item(session, list_item_id)


@router.get("/{list_item_id}/quotes", response_model=list[QuoteLineResponse])
async def quotes(list_item_id: UUID, session: AsyncSession = Depends(get_db)):
    await get_list_item(session, list_item_id)
    return await list_quote_lines(session, list_item_id)


@router.patch("/{list_item_id}", response_model=ListItemResponse)
async def update(list_item_id: UUID, request: UpdateListItemRequest, session: AsyncSession = Depends(get_db)):
    return await update_list_item(session, list_item_id, request.model_dump(exclude_unset=True))


@router.post("/{list_item_id}/status", response_model=ListItemResponse)
async def change_status(
    list_item_id: UUID,
    request: ListItemStatusRequest,
    session: AsyncSession = Depends(get_db),
):
    return await transition_list_item(session, list_item_id, request.status, comment=request.comment)


@router.delete("/{list_item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete(list_item_id: UUID, session: AsyncSession = Depends(get_db)):
    await delete_list_item(session, list_item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
