"""Unit tests for procuretrack Pydantic models."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from procuretrack.models import (
    CoherenceAlerts,
    ItemOrigin,
    OrderSelection,
    PlannedItemInput,
)


class TestItemOrigin:
    def test_from_links(self):
        assert ItemOrigin.from_links(None, None) == ItemOrigin.NEW
        assert ItemOrigin.from_links(uuid4(), None) == ItemOrigin.FROM_QUOTATION
        assert ItemOrigin.from_links(None, uuid4()) == ItemOrigin.REPLACEMENT


class TestPlannedItemInput:
    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            PlannedItemInput(code="X", description="x", unit="ea", quantity=Decimal("0"))

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            PlannedItemInput(
                code="X", description="x", unit="ea", quantity=Decimal("1"), internal_unit_price=Decimal("-1")
            )


class TestOrderSelection:
    def test_accepts_wire_aliases(self):
        item_id = uuid4()
        selection = OrderSelection.model_validate({"listEquipoItemId": str(item_id), "cantidadPedida": "2.5"})

        assert selection.list_item_id == item_id
        assert selection.quantity == Decimal("2.5")

    def test_accepts_field_names(self):
        selection = OrderSelection(list_item_id=uuid4(), quantity=Decimal("1"))
        assert selection.quantity == Decimal("1")


class TestCoherenceAlerts:
    def test_serializes_with_report_keys(self):
        payload = CoherenceAlerts(missing_items=True).model_dump(by_alias=True)
        assert payload == {
            "cantidadesExcedidas": False,
            "preciosDesviados": False,
            "itemsFaltantes": True,
            "sinLista": False,
        }

    def test_merge_ors_flags(self):
        merged = CoherenceAlerts(without_list=True).merge(CoherenceAlerts(prices_deviated=True))
        assert merged.without_list
        assert merged.prices_deviated
        assert merged.has_alerts
        assert not CoherenceAlerts().has_alerts
