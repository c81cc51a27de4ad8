"""Supplier quote routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from procuretrack.errors import ValidationError
from procuretrack.lists.quotes import add_quote_line, create_quotation, select_quote_line
from procuretrack.web.dependencies import get_db
from procuretrack.web.models import CreateQuoteLineRequest, ListItemResponse, QuoteLineResponse

router = APIRouter(prefix="/api/quotes", tags=["quotes"])


@router.post("/lines", response_model=QuoteLineResponse, status_code=status.HTTP_201_CREATED)
async def create_line(request: CreateQuoteLineRequest, session: AsyncSession = Depends(get_db)):
    """Add a supplier quote line for a list item."""
    quotation_id = request.quotation_id
    if quotation_id is None:
        if request.project_id is None or not request.supplier_name:
            raise ValidationError(
                "Either quotationId or projectId and supplierName are required",
                field="quotationId",
            )
        quotation = await create_quotation(session, request.project_id, request.supplier_name)
        quotation_id = quotation.id

    return await add_quote_line(
        session,
        quotation_id,
        request.list_item_id,
        request.unit_price,
        lead_time=request.lead_time,
        lead_time_days=request.lead_time_days,
    )


@router.post("/{line_id}/select", response_model=ListItemResponse)
async def select(line_id: UUID, session: AsyncSession = Depends(get_db)):
    """Select a quote line; any other selection for the same item is cleared."""
    return await select_quote_line(session, line_id)
