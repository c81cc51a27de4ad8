"""Database layer for procuretrack with async SQLAlchemy."""

from procuretrack.db.connection import get_db, get_session, init_db
from procuretrack.db.models import (
    Base,
    CatalogEquipmentModel,
    EquipmentListModel,
    ListItemModel,
    OrderItemModel,
    OrderModel,
    PlannedGroupModel,
    PlannedItemModel,
    ProjectModel,
    SequenceCounterModel,
    SupplierQuotationModel,
    SupplierQuoteLineModel,
)
from procuretrack.db.transaction import atomic

__all__ = [
    "Base",
    "ProjectModel",
    "CatalogEquipmentModel",
    "PlannedGroupModel",
    "PlannedItemModel",
    "EquipmentListModel",
    "ListItemModel",
    "SupplierQuotationModel",
    "SupplierQuoteLineModel",
    "OrderModel",
    "OrderItemModel",
    "SequenceCounterModel",
    "atomic",
    "get_db",
    "get_session",
    "init_db",
]
