"""Order routes: commit from a list, read, record deliveries."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from procuretrack.orders.engine import OrderReconciliationEngine, get_order, get_order_items
from procuretrack.web.dependencies import get_db
from procuretrack.web.models import (
    CommitOrderRequest,
    DeliveryRequest,
    OrderItemResponse,
    OrderResponse,
)

router = APIRouter(tags=["orders"])


async def _order_response(session: AsyncSession, order_id: UUID) -> OrderResponse:
    order = await get_order(session, order_id)
    response = OrderResponse.model_validate(order)
    response.items = [OrderItemResponse.model_validate(item) for item in await get_order_items(session, order_id)]
    return response


@router.post("/api/orders/from-list", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def commit_from_list(request: CommitOrderRequest, session: AsyncSession = Depends(get_db)):
    """Commit selected list quantities into a new purchase order."""
    engine = OrderReconciliationEngine(session)
    order = await engine.commit_order(
        project_id=request.project_id,
        list_id=request.list_id,
        responsible_id=request.responsible_id,
        selections=request.selections,
        notes=request.notes,
        needed_date=request.needed_date,
        priority=request.priority,
        is_urgent=request.is_urgent,
    )
    return await _order_response(session, order.id)


@router.get("/api/orders/{order_id}", response_model=OrderResponse)
async def read(order_id: UUID, session: AsyncSession = Depends(get_db)):
    return await _order_response(session, order_id)


@router.post("/api/order-items/{order_item_id}/deliveries", response_model=OrderItemResponse)
async def record_delivery(order_item_id: UUID, request: DeliveryRequest, session: AsyncSession = Depends(get_db)):
    engine = OrderReconciliationEngine(session)
    return await engine.record_delivery(order_item_id, request.delivered_qty)
