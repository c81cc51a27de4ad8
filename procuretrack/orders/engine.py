"""Order reconciliation: committing list quantities into purchase orders.

Remaining quantities are checked up front for fast feedback and then
re-validated inside each increment with a conditional UPDATE, so two
concurrent commits can never jointly exceed a list item's requested
quantity.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from procuretrack.config import OrderConfig, get_config
from procuretrack.db.lookups import get_project_code
from procuretrack.db.models import (
    EquipmentListModel,
    ListItemModel,
    OrderItemModel,
    OrderModel,
    PlannedItemModel,
)
from procuretrack.db.sequences import ORDER_SEQUENCE, format_code, next_sequence
from procuretrack.db.transaction import atomic
from procuretrack.errors import (
    NotFoundError,
    QuantityExceededError,
    UnknownItemError,
    ValidationError,
)
from procuretrack.lists.quotes import load_quote_stats
from procuretrack.models import OrderSelection
from procuretrack.orders.pricing import PriceInputs, ResolvedPrice, money, resolve_unit_price

logger = structlog.get_logger()

PRIORITIES = ("low", "medium", "high", "critical")


class OrderReconciliationEngine:
    """Commits orders from lists and records deliveries against them."""

    def __init__(self, session: AsyncSession, config: OrderConfig | None = None):
        self.session = session
        self.config = config or get_config().orders

    async def commit_order(
        self,
        project_id: UUID,
        list_id: UUID,
        responsible_id: str,
        selections: Sequence[OrderSelection],
        notes: str | None = None,
        needed_date: date | None = None,
        priority: str | None = None,
        is_urgent: bool = False,
    ) -> OrderModel:
        """Create an order with one line per selection, all or nothing.

        Raises:
            ValidationError: Empty, duplicate or non-positive selections
            NotFoundError: Project or list does not exist
            UnknownItemError: A selection is not an item of the list
            QuantityExceededError: A selection exceeds the item's remaining quantity
        """
        selections = list(selections)
        priority = priority or self.config.default_priority
        self._validate_request(responsible_id, selections, priority)

        session = self.session
        async with atomic(session, "commit_order"):
            project_code = await get_project_code(session, project_id)
            equipment_list = await session.get(EquipmentListModel, list_id)
            if equipment_list is None:
                raise NotFoundError("EquipmentList", list_id)
            if equipment_list.project_id != project_id:
                raise ValidationError(
                    f"List {list_id} does not belong to project {project_id}",
                    field="list_id",
                )

            items = await self._load_items(list_id, selections)
            stats = await load_quote_stats(session, items.keys())

            lines: list[tuple[ListItemModel, Decimal, ResolvedPrice]] = []
            for selection in selections:
                item = items[selection.list_item_id]
                quotes = stats.get(item.id)
                resolved = resolve_unit_price(
                    PriceInputs.from_item(item, selected_quote_price=quotes.selected_price if quotes else None)
                )
                if resolved.missing:
                    logger.warning("price_missing", list_item_id=str(item.id), code=item.code)
                lines.append((item, selection.quantity, resolved))

            sequence = await next_sequence(session, project_id, ORDER_SEQUENCE)
            now = datetime.now(timezone.utc)
            order = OrderModel(
                project_id=project_id,
                list_id=list_id,
                responsible_id=responsible_id,
                code=format_code(project_code, ORDER_SEQUENCE, sequence, self.config.code_padding),
                sequence=sequence,
                notes=notes or "",
                needed_date=needed_date or equipment_list.needed_date,
                priority=priority,
                is_urgent=is_urgent,
                budget_total=sum((money(qty * price.unit_price) for _, qty, price in lines), Decimal("0")),
            )
            session.add(order)
            await session.flush()

            for item, quantity, price in lines:
                await self._create_order_item(order, item, quantity, price.unit_price, now)

        logger.info(
            "order_committed",
            order_id=str(order.id),
            code=order.code,
            list_id=str(list_id),
            lines=len(lines),
            budget_total=str(order.budget_total),
        )
        return order

    def _validate_request(self, responsible_id: str, selections: list[OrderSelection], priority: str) -> None:
        if not selections:
            raise ValidationError("At least one selection is required", field="selections")
        if not responsible_id:
            raise ValidationError("Responsible is required", field="responsible_id")
        if priority not in PRIORITIES:
            raise ValidationError(f"Unknown priority '{priority}'", field="priority")

        seen: set[UUID] = set()
        for selection in selections:
            if selection.quantity is None or selection.quantity <= 0:
                raise ValidationError(
                    f"Quantity for item {selection.list_item_id} must be positive",
                    field="quantity",
                    list_item_id=selection.list_item_id,
                )
            if selection.list_item_id in seen:
                raise ValidationError(
                    f"Item {selection.list_item_id} is selected more than once",
                    field="selections",
                    list_item_id=selection.list_item_id,
                )
            seen.add(selection.list_item_id)

    async def _load_items(self, list_id: UUID, selections: list[OrderSelection]) -> dict[UUID, ListItemModel]:
        ids = [selection.list_item_id for selection in selections]
        result = await self.session.execute(
            select(ListItemModel)
            .where(ListItemModel.id.in_(ids))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        items = {item.id: item for item in result.scalars().all()}

        for selection in selections:
            item = items.get(selection.list_item_id)
            if item is None or item.list_id != list_id:
                raise UnknownItemError(selection.list_item_id, list_id)
            remaining = item.quantity - item.ordered_quantity
            if selection.quantity > remaining:
                raise QuantityExceededError(item.id, selection.quantity, remaining, item.description)
        return items

    async def _create_order_item(
        self,
        order: OrderModel,
        item: ListItemModel,
        quantity: Decimal,
        unit_price: Decimal,
        now: datetime,
    ) -> OrderItemModel:
        session = self.session
        total_cost = money(quantity * unit_price)
        lead_days = item.lead_time_days if item.lead_time_days is not None else self.config.default_lead_time_days

        order_item = OrderItemModel(
            order_id=order.id,
            list_item_id=item.id,
            planned_item_id=item.anchor_id,
            code=item.code,
            description=item.description,
            unit=item.unit,
            ordered_quantity=quantity,
            unit_price=unit_price,
            total_cost=total_cost,
            lead_time=item.lead_time,
            lead_time_days=lead_days,
            expected_delivery_date=now + timedelta(days=lead_days),
        )
        session.add(order_item)
        await session.flush()

        # Re-validate against the committed row, not the snapshot read above
        result = await session.execute(
            update(ListItemModel)
            .where(
                ListItemModel.id == item.id,
                ListItemModel.ordered_quantity + quantity <= ListItemModel.quantity,
            )
            .values(
                ordered_quantity=ListItemModel.ordered_quantity + quantity,
                ordered_cost=ListItemModel.ordered_cost + total_cost,
                version=ListItemModel.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        await session.refresh(item)
        if result.rowcount != 1:
            raise QuantityExceededError(item.id, quantity, item.quantity - item.ordered_quantity, item.description)
        return order_item

    async def record_delivery(self, order_item_id: UUID, delivered_qty: Decimal) -> OrderItemModel:
        """Record a delivery and roll realized cost up to list, order and plan.

        Raises:
            ValidationError: Non-positive quantity
            NotFoundError: Order item does not exist
            QuantityExceededError: Delivered would exceed ordered
        """
        if delivered_qty is None or delivered_qty <= 0:
            raise ValidationError("Delivered quantity must be positive", field="delivered_qty")

        session = self.session
        async with atomic(session, "record_delivery"):
            order_item = await session.get(
                OrderItemModel, order_item_id, with_for_update=True, populate_existing=True
            )
            if order_item is None:
                raise NotFoundError("OrderItem", order_item_id)

            pending = order_item.ordered_quantity - order_item.delivered_quantity
            if delivered_qty > pending:
                raise QuantityExceededError(order_item.id, delivered_qty, pending, order_item.description)

            cost = money(delivered_qty * order_item.unit_price)
            result = await session.execute(
                update(OrderItemModel)
                .where(
                    OrderItemModel.id == order_item.id,
                    OrderItemModel.delivered_quantity + delivered_qty <= OrderItemModel.ordered_quantity,
                )
                .values(delivered_quantity=OrderItemModel.delivered_quantity + delivered_qty)
                .execution_options(synchronize_session=False)
            )
            await session.refresh(order_item)
            if result.rowcount != 1:
                raise QuantityExceededError(
                    order_item.id,
                    delivered_qty,
                    order_item.ordered_quantity - order_item.delivered_quantity,
                    order_item.description,
                )
            if order_item.delivered_quantity == order_item.ordered_quantity:
                order_item.delivered_at = datetime.now(timezone.utc)

            await session.execute(
                update(OrderModel)
                .where(OrderModel.id == order_item.order_id)
                .values(actual_total=OrderModel.actual_total + cost)
                .execution_options(synchronize_session=False)
            )

            if order_item.list_item_id is not None:
                await self._roll_up_list_item(order_item, delivered_qty, cost)

        logger.info(
            "delivery_recorded",
            order_item_id=str(order_item_id),
            delivered_qty=str(delivered_qty),
            delivered_total=str(order_item.delivered_quantity),
            cost=str(cost),
        )
        return order_item

    async def _roll_up_list_item(self, order_item: OrderItemModel, delivered_qty: Decimal, cost: Decimal) -> None:
        session = self.session
        result = await session.execute(
            update(ListItemModel)
            .where(
                ListItemModel.id == order_item.list_item_id,
                ListItemModel.delivered_quantity + delivered_qty <= ListItemModel.ordered_quantity,
            )
            .values(
                delivered_quantity=ListItemModel.delivered_quantity + delivered_qty,
                actual_cost=ListItemModel.actual_cost + cost,
                version=ListItemModel.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        item = await session.get(ListItemModel, order_item.list_item_id, populate_existing=True)
        if result.rowcount != 1 or item is None:
            limit = (item.ordered_quantity - item.delivered_quantity) if item is not None else Decimal("0")
            raise QuantityExceededError(order_item.list_item_id, delivered_qty, limit, order_item.description)

        # Anchor as of commit time
        if order_item.planned_item_id is None:
            return
        planned = await session.get(PlannedItemModel, order_item.planned_item_id, with_for_update=True)
        if planned is None:
            return
        planned.actual_quantity = (planned.actual_quantity or Decimal("0")) + delivered_qty
        planned.actual_cost = (planned.actual_cost or Decimal("0")) + cost
        planned.actual_price = money(planned.actual_cost / planned.actual_quantity)


async def get_order(session: AsyncSession, order_id: UUID) -> OrderModel:
    order = await session.get(OrderModel, order_id)
    if order is None:
        raise NotFoundError("Order", order_id)
    return order


async def get_order_items(session: AsyncSession, order_id: UUID) -> list[OrderItemModel]:
    result = await session.execute(
        select(OrderItemModel).where(OrderItemModel.order_id == order_id).order_by(OrderItemModel.code)
    )
    return list(result.scalars().all())


async def get_order_item(session: AsyncSession, order_item_id: UUID) -> OrderItemModel:
    order_item = await session.get(OrderItemModel, order_item_id)
    if order_item is None:
        raise NotFoundError("OrderItem", order_item_id)
    return order_item
