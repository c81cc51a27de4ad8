"""SQLAlchemy async database models for procuretrack.

PlannedItem and ListItem reference each other through independent foreign
keys; the services re-form the pair atomically. ListItem carries an
optimistic version counter and CHECK constraints for the quantity and
origin invariants.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum as PyEnum
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func

from procuretrack.models import ItemOrigin, ListItemStatus, ListStatus, PlannedItemStatus

ZERO = Decimal("0")


def _status_type(enum_cls: type[PyEnum]) -> Enum:
    return Enum(
        enum_cls,
        native_enum=False,
        length=20,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class ProjectModel(Base):
    """Project reference used to mint list and order codes."""

    __tablename__ = "projects"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class CatalogEquipmentModel(Base):
    """Equipment catalog entry (read-only for the procurement core)."""

    __tablename__ = "catalog_equipment"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    code: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False, default="UNCATEGORIZED")
    unit: Mapped[str] = mapped_column(Text, nullable=False)
    brand: Mapped[str] = mapped_column(Text, nullable=False, default="UNBRANDED")
    internal_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=ZERO)
    client_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=ZERO)
    lead_time_days: Mapped[int | None] = mapped_column(Integer)

    __table_args__ = (
        CheckConstraint("internal_price >= 0", name="check_catalog_internal_price"),
        CheckConstraint("client_price >= 0", name="check_catalog_client_price"),
    )


class PlannedGroupModel(Base):
    """Project equipment group created when a quotation becomes a project."""

    __tablename__ = "planned_groups"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    internal_subtotal: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=ZERO)
    client_subtotal: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=ZERO)
    actual_subtotal: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=ZERO)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class PlannedItemModel(Base):
    """Canonical "what the project needs" record."""

    __tablename__ = "planned_items"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    group_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("planned_groups.id", ondelete="CASCADE"), nullable=False, index=True
    )
    catalog_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("catalog_equipment.id", ondelete="SET NULL")
    )

    # Linkage to the current list representation
    list_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), index=True)
    list_item_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), index=True)

    # Forward link to the list item lineage that superseded this requirement
    replaced_by_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), index=True)

    code: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False, default="UNCATEGORIZED")
    unit: Mapped[str] = mapped_column(Text, nullable=False)
    brand: Mapped[str] = mapped_column(Text, nullable=False, default="UNBRANDED")

    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    internal_unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=ZERO)
    client_unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=ZERO)
    internal_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=ZERO)
    client_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=ZERO)

    # Realized through deliveries
    actual_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=ZERO)
    actual_quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=ZERO)
    actual_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=ZERO)

    lead_time_days: Mapped[int | None] = mapped_column(Integer)
    status: Mapped[PlannedItemStatus] = mapped_column(
        _status_type(PlannedItemStatus), nullable=False, default=PlannedItemStatus.PLANNED
    )
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    change_reason: Mapped[str | None] = mapped_column(Text)
    is_new: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_planned_quantity_positive"),
        CheckConstraint("actual_quantity >= 0", name="check_planned_actual_quantity"),
        Index("idx_planned_group_status", "group_id", "status"),
    )


class EquipmentListModel(Base):
    """Named working list of equipment for a project."""

    __tablename__ = "equipment_lists"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    code: Mapped[str] = mapped_column(String(40), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[ListStatus] = mapped_column(
        _status_type(ListStatus), nullable=False, default=ListStatus.DRAFT
    )
    needed_date: Mapped[date | None] = mapped_column(Date)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (UniqueConstraint("project_id", "sequence", name="uq_list_project_sequence"),)


class ListItemModel(Base):
    """Reviewable, cost-tracked representation of an item inside a list."""

    __tablename__ = "list_items"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    list_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("equipment_lists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    planned_item_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("planned_items.id"), index=True
    )
    # Replacement anchor: always the original planned requirement
    replaces_planned_item_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("planned_items.id"), index=True
    )
    selected_quote_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), unique=True)
    catalog_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True))

    code: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    unit: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    review_comment: Mapped[str | None] = mapped_column(Text)

    # Pricing (budget and chosen cost are line totals)
    budget_estimate: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    chosen_unit_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    chosen_cost: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))

    # Commitment counters
    ordered_quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=ZERO)
    ordered_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=ZERO)
    delivered_quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=ZERO)
    actual_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=ZERO)

    lead_time: Mapped[str | None] = mapped_column(Text)
    lead_time_days: Mapped[int | None] = mapped_column(Integer)

    status: Mapped[ListItemStatus] = mapped_column(
        _status_type(ListItemStatus), nullable=False, default=ListItemStatus.DRAFT
    )
    origin: Mapped[ItemOrigin] = mapped_column(_status_type(ItemOrigin), nullable=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_list_item_quantity_positive"),
        CheckConstraint(
            "ordered_quantity >= 0 AND ordered_quantity <= quantity",
            name="check_list_item_ordered_within_requested",
        ),
        CheckConstraint(
            "delivered_quantity >= 0 AND delivered_quantity <= ordered_quantity",
            name="check_list_item_delivered_within_ordered",
        ),
        CheckConstraint(
            "(origin = 'replacement' AND replaces_planned_item_id IS NOT NULL)"
            " OR (origin = 'from_quotation' AND planned_item_id IS NOT NULL"
            " AND replaces_planned_item_id IS NULL)"
            " OR (origin = 'new' AND planned_item_id IS NULL AND replaces_planned_item_id IS NULL)",
            name="check_list_item_origin_links",
        ),
        Index("idx_list_items_list_status", "list_id", "status"),
    )

    @property
    def remaining_quantity(self) -> Decimal:
        return self.quantity - (self.ordered_quantity or ZERO)

    @property
    def anchor_id(self) -> UUID | None:
        """Planned requirement this item ultimately satisfies."""
        return self.replaces_planned_item_id or self.planned_item_id


class SupplierQuotationModel(Base):
    """A supplier's quotation document covering one or more list items."""

    __tablename__ = "supplier_quotations"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    supplier_name: Mapped[str] = mapped_column(Text, nullable=False)
    code: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class SupplierQuoteLineModel(Base):
    """One supplier's price/lead-time offer for a list item."""

    __tablename__ = "supplier_quote_lines"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    quotation_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("supplier_quotations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    list_item_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("list_items.id", ondelete="SET NULL"), index=True
    )
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    lead_time: Mapped[str | None] = mapped_column(Text)
    lead_time_days: Mapped[int | None] = mapped_column(Integer)
    is_selected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("unit_price >= 0", name="check_quote_unit_price_non_negative"),
        # At most one selected quote per list item
        Index(
            "idx_quote_single_selection",
            "list_item_id",
            unique=True,
            postgresql_where=text("is_selected = true"),
            sqlite_where=text("is_selected = 1"),
        ),
    )


class OrderModel(Base):
    """Purchase order header."""

    __tablename__ = "orders"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    list_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("equipment_lists.id", ondelete="SET NULL"), index=True
    )
    responsible_id: Mapped[str] = mapped_column(Text, nullable=False)
    code: Mapped[str] = mapped_column(String(40), nullable=False, unique=True)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    needed_date: Mapped[date | None] = mapped_column(Date)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    is_urgent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    budget_total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=ZERO)
    actual_total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=ZERO)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (UniqueConstraint("project_id", "sequence", name="uq_order_project_sequence"),)


class OrderItemModel(Base):
    """Quantity committed from a list item into a purchase order."""

    __tablename__ = "order_items"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    order_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    list_item_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("list_items.id"), index=True
    )

    # Snapshot taken at commit time
    planned_item_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), ForeignKey("planned_items.id"))
    code: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    unit: Mapped[str] = mapped_column(Text, nullable=False)

    ordered_quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=ZERO)
    total_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=ZERO)
    lead_time: Mapped[str | None] = mapped_column(Text)
    lead_time_days: Mapped[int | None] = mapped_column(Integer)
    expected_delivery_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    delivered_quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=ZERO)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("ordered_quantity > 0", name="check_order_item_quantity_positive"),
        CheckConstraint(
            "delivered_quantity >= 0 AND delivered_quantity <= ordered_quantity",
            name="check_order_item_delivered_within_ordered",
        ),
    )


class SequenceCounterModel(Base):
    """Per-project counter used to mint sequential list and order codes."""

    __tablename__ = "sequence_counters"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    entity: Mapped[str] = mapped_column(String(20), nullable=False)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (UniqueConstraint("project_id", "entity", name="uq_sequence_project_entity"),)
