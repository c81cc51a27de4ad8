"""procuretrack Pydantic models and closed status types.

Each entity has exactly one status enum. Status values change only
through the named operations of the planning, list, replacement and order
services; generic update endpoints never write them.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PlannedItemStatus(str, Enum):
    """Lifecycle of a planned equipment requirement."""

    PLANNED = "planned"  # Not yet selected into any list
    LISTED = "listed"  # Selected into a list
    REPLACED = "replaced"  # Superseded by a replacement list item
    DISCARDED = "discarded"  # Explicitly dropped from the plan


class ListItemStatus(str, Enum):
    """Review/approval workflow of a list item."""

    DRAFT = "draft"
    UNDER_REVIEW = "under_review"
    TO_QUOTE = "to_quote"
    TO_VALIDATE = "to_validate"
    TO_APPROVE = "to_approve"
    APPROVED = "approved"
    REJECTED = "rejected"


class ListStatus(str, Enum):
    """Coarse workflow status of an equipment list."""

    DRAFT = "draft"
    UNDER_REVIEW = "under_review"
    TO_QUOTE = "to_quote"
    TO_VALIDATE = "to_validate"
    TO_APPROVE = "to_approve"
    APPROVED = "approved"
    REJECTED = "rejected"


class ItemOrigin(str, Enum):
    """Where a list item came from."""

    FROM_QUOTATION = "from_quotation"  # Pulled from a planned item
    NEW = "new"  # Added fresh from the catalog
    REPLACEMENT = "replacement"  # Replaces a planned requirement

    @classmethod
    def from_links(cls, planned_item_id: UUID | None, replaces_planned_item_id: UUID | None) -> ItemOrigin:
        """Derive the origin implied by a list item's upstream links."""
        if replaces_planned_item_id is not None:
            return cls.REPLACEMENT
        if planned_item_id is not None:
            return cls.FROM_QUOTATION
        return cls.NEW


class CoherenceLevel(str, Enum):
    """Display level derived from a coherence score."""

    OK = "ok"
    WARNING = "warning"
    ATTENTION = "attention"


class CatalogEquipment(BaseModel):
    """Catalog entry returned by the catalog lookup."""

    id: UUID
    code: str
    description: str
    category: str = "UNCATEGORIZED"
    unit: str
    brand: str = "UNBRANDED"
    internal_price: Decimal = Decimal("0")
    client_price: Decimal = Decimal("0")
    lead_time_days: int | None = None


class PlannedItemInput(BaseModel):
    """One approved quotation line converted into a planned item."""

    code: str
    description: str
    unit: str
    quantity: Decimal
    internal_unit_price: Decimal = Decimal("0")
    client_unit_price: Decimal = Decimal("0")
    category: str = "UNCATEGORIZED"
    brand: str = "UNBRANDED"
    catalog_id: UUID | None = None
    lead_time_days: int | None = None

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("quantity must be positive")
        return v

    @field_validator("internal_unit_price", "client_unit_price")
    @classmethod
    def validate_price(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("unit prices must be non-negative")
        return v


class OrderSelection(BaseModel):
    """A (list item, quantity) pair selected for a purchase order."""

    model_config = ConfigDict(populate_by_name=True)

    list_item_id: UUID = Field(alias="listEquipoItemId")
    quantity: Decimal = Field(alias="cantidadPedida")


class CoherenceAlerts(BaseModel):
    """Boolean alerts raised by the coherence evaluator."""

    model_config = ConfigDict(populate_by_name=True)

    quantities_exceeded: bool = Field(default=False, serialization_alias="cantidadesExcedidas")
    prices_deviated: bool = Field(default=False, serialization_alias="preciosDesviados")
    missing_items: bool = Field(default=False, serialization_alias="itemsFaltantes")
    without_list: bool = Field(default=False, serialization_alias="sinLista")

    @property
    def has_alerts(self) -> bool:
        return self.quantities_exceeded or self.prices_deviated or self.missing_items or self.without_list

    def merge(self, other: CoherenceAlerts) -> CoherenceAlerts:
        return CoherenceAlerts(
            quantities_exceeded=self.quantities_exceeded or other.quantities_exceeded,
            prices_deviated=self.prices_deviated or other.prices_deviated,
            missing_items=self.missing_items or other.missing_items,
            without_list=self.without_list or other.without_list,
        )


class ItemCoherence(BaseModel):
    """Per-line contribution to a coherence report."""

    list_item_id: UUID | None
    code: str
    description: str
    planned_quantity: Decimal
    requested_quantity: Decimal
    ordered_quantity: Decimal
    delivered_quantity: Decimal
    best_unit_price: Decimal
    planned_cost: Decimal
    ordered_unit_price: Decimal | None = None
    verified: bool
    quantity_exceeded: bool = False
    price_deviated: bool = False
    coherent: bool = True


class CoherenceReport(BaseModel):
    """Advisory consistency report for a list, an order or a project."""

    scope: str  # "list", "order" or "project"
    scope_id: UUID
    score: Decimal
    level: CoherenceLevel
    total_items: int
    verified_items: int
    coherent_items: int
    planned_cost: Decimal
    ordered_cost: Decimal
    alerts: CoherenceAlerts = Field(default_factory=CoherenceAlerts)
    items: list[ItemCoherence] = Field(default_factory=list)
    children: list[CoherenceReport] = Field(default_factory=list)

    @property
    def is_coherent(self) -> bool:
        return self.level == CoherenceLevel.OK


class ListSummary(BaseModel):
    """Summary statistics for the list overview."""

    list_id: UUID
    code: str
    name: str
    status: ListStatus
    total_items: int
    verified_items: int
    approved_items: int
    rejected_items: int
    total_cost: Decimal
    verified_cost: Decimal
    needed_date: date | None = None
