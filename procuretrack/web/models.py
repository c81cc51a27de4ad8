"""Shared Pydantic models for the procuretrack web API.

Request and response bodies use camelCase on the wire. Order selections
keep the field names the purchasing screens already send
(``listEquipoItemId``, ``cantidadPedida``).

Usage:
    from procuretrack.web.models import CommitOrderRequest

    @router.post("/api/orders/from-list")
    async def commit_order(request: CommitOrderRequest):
        ...
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from procuretrack.models import (
    ItemOrigin,
    ListItemStatus,
    ListStatus,
    ListSummary,
    OrderSelection,
    PlannedItemInput,
    PlannedItemStatus,
)


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ============================================================================
# Planning Models
# ============================================================================


class ImportQuotationRequest(ApiModel):
    """Used by: POST /api/projects/{project_id}/planned-items"""

    group_name: str
    description: Optional[str] = None
    items: list[PlannedItemInput]


class DiscardPlannedItemRequest(ApiModel):
    reason: Optional[str] = None


class PlannedItemResponse(ApiModel):
    id: UUID
    group_id: UUID
    catalog_id: Optional[UUID] = None
    list_id: Optional[UUID] = None
    list_item_id: Optional[UUID] = None
    replaced_by_id: Optional[UUID] = None
    code: str
    description: str
    category: str
    unit: str
    brand: str
    quantity: Decimal
    internal_unit_price: Decimal
    client_unit_price: Decimal
    internal_cost: Decimal
    client_cost: Decimal
    actual_quantity: Decimal
    actual_price: Decimal
    actual_cost: Decimal
    status: PlannedItemStatus
    change_reason: Optional[str] = None


class PlannedGroupResponse(ApiModel):
    id: UUID
    project_id: UUID
    name: str
    description: Optional[str] = None
    internal_subtotal: Decimal
    client_subtotal: Decimal
    items: list[PlannedItemResponse] = Field(default_factory=list)


# ============================================================================
# List Models
# ============================================================================


class CreateListRequest(ApiModel):
    """Used by: POST /api/lists"""

    project_id: UUID
    name: str
    needed_date: Optional[date] = None


class ListStatusRequest(ApiModel):
    status: ListStatus


class EquipmentListResponse(ApiModel):
    id: UUID
    project_id: UUID
    code: str
    name: str
    sequence: int
    status: ListStatus
    needed_date: Optional[date] = None


class AddFromPlannedRequest(ApiModel):
    planned_item_id: UUID


class AddFromCatalogRequest(ApiModel):
    catalog_id: UUID
    quantity: Decimal = Field(gt=0)


class ListItemResponse(ApiModel):
    id: UUID
    list_id: UUID
    planned_item_id: Optional[UUID] = None
    replaces_planned_item_id: Optional[UUID] = None
    selected_quote_id: Optional[UUID] = None
    catalog_id: Optional[UUID] = None
    code: str
    description: str
    unit: str
    quantity: Decimal
    verified: bool
    review_comment: Optional[str] = None
    budget_estimate: Optional[Decimal] = None
    chosen_unit_price: Optional[Decimal] = None
    chosen_cost: Optional[Decimal] = None
    ordered_quantity: Decimal
    ordered_cost: Decimal
    delivered_quantity: Decimal
    actual_cost: Decimal
    lead_time: Optional[str] = None
    lead_time_days: Optional[int] = None
    status: ListItemStatus
    origin: ItemOrigin
    version: int


class ListDetailResponse(ApiModel):
    equipment_list: EquipmentListResponse
    items: list[ListItemResponse]
    summary: ListSummary


class UpdateListItemRequest(ApiModel):
    """Descriptive fields only. Status, origin and links are not accepted here.

    Used by: PATCH /api/list-items/{list_item_id}
    """

    model_config = ConfigDict(extra="forbid")

    code: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[str] = None
    quantity: Optional[Decimal] = None
    verified: Optional[bool] = None
    review_comment: Optional[str] = None
    budget_estimate: Optional[Decimal] = None
    chosen_unit_price: Optional[Decimal] = None
    chosen_cost: Optional[Decimal] = None
    lead_time: Optional[str] = None
    lead_time_days: Optional[int] = None


class ListItemStatusRequest(ApiModel):
    status: ListItemStatus
    comment: Optional[str] = None


class ReplaceListItemRequest(ApiModel):
    """Used by: POST /api/list-items/replace"""

    old_list_item_id: UUID
    catalog_choice_id: UUID
    version: Optional[int] = None


# ============================================================================
# Quote Models
# ============================================================================


class CreateQuoteLineRequest(ApiModel):
    """Creates the supplier quotation on the fly when no quotation id is given.

    Used by: POST /api/quotes/lines
    """

    list_item_id: UUID
    unit_price: Decimal = Field(ge=0)
    quotation_id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    supplier_name: Optional[str] = None
    lead_time: Optional[str] = None
    lead_time_days: Optional[int] = Field(default=None, ge=0)


class QuoteLineResponse(ApiModel):
    id: UUID
    quotation_id: UUID
    list_item_id: Optional[UUID] = None
    unit_price: Decimal
    lead_time: Optional[str] = None
    lead_time_days: Optional[int] = None
    is_selected: bool


# ============================================================================
# Order Models
# ============================================================================


class CommitOrderRequest(ApiModel):
    """Used by: POST /api/orders/from-list"""

    project_id: UUID
    list_id: UUID
    responsible_id: str
    selections: list[OrderSelection]
    notes: Optional[str] = None
    needed_date: Optional[date] = None
    priority: Optional[str] = None
    is_urgent: bool = False


class DeliveryRequest(ApiModel):
    """Used by: POST /api/order-items/{order_item_id}/deliveries"""

    delivered_qty: Decimal


class OrderItemResponse(ApiModel):
    id: UUID
    order_id: UUID
    list_item_id: Optional[UUID] = None
    planned_item_id: Optional[UUID] = None
    code: str
    description: str
    unit: str
    ordered_quantity: Decimal
    unit_price: Decimal
    total_cost: Decimal
    lead_time: Optional[str] = None
    lead_time_days: Optional[int] = None
    expected_delivery_date: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    delivered_quantity: Decimal


class OrderResponse(ApiModel):
    id: UUID
    project_id: UUID
    list_id: Optional[UUID] = None
    responsible_id: str
    code: str
    sequence: int
    notes: str
    needed_date: Optional[date] = None
    priority: str
    is_urgent: bool
    budget_total: Decimal
    actual_total: Decimal
    items: list[OrderItemResponse] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: dict = Field(default_factory=dict)
