"""Shared fixtures for route tests."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from procuretrack.models import ItemOrigin, ListItemStatus, ListStatus, PlannedItemStatus
from procuretrack.web.app import app
from procuretrack.web.dependencies import get_db


@pytest.fixture
def mock_session():
    return AsyncMock()


@pytest.fixture
def client(mock_session):
    """Test client for the full app with the database session mocked."""

    async def override_get_db():
        yield mock_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_list_item():
    def _make(**overrides):
        values = dict(
            id=uuid4(),
            list_id=uuid4(),
            planned_item_id=uuid4(),
            replaces_planned_item_id=None,
            selected_quote_id=None,
            catalog_id=None,
            code="VLV-50",
            description="Gate valve DN50",
            unit="ea",
            quantity=Decimal("10"),
            verified=False,
            review_comment=None,
            budget_estimate=Decimal("400.00"),
            chosen_unit_price=None,
            chosen_cost=None,
            ordered_quantity=Decimal("0"),
            ordered_cost=Decimal("0"),
            delivered_quantity=Decimal("0"),
            actual_cost=Decimal("0"),
            lead_time=None,
            lead_time_days=None,
            status=ListItemStatus.DRAFT,
            origin=ItemOrigin.FROM_QUOTATION,
            version=1,
        )
        values.update(overrides)
        return SimpleNamespace(**values)

    return _make


@pytest.fixture
def make_list():
    def _make(**overrides):
        values = dict(
            id=uuid4(),
            project_id=uuid4(),
            code="PRJ1-LST-001",
            name="Main equipment",
            sequence=1,
            status=ListStatus.DRAFT,
            needed_date=None,
        )
        values.update(overrides)
        return SimpleNamespace(**values)

    return _make


@pytest.fixture
def make_planned_item():
    def _make(**overrides):
        values = dict(
            id=uuid4(),
            group_id=uuid4(),
            catalog_id=None,
            list_id=None,
            list_item_id=None,
            replaced_by_id=None,
            code="VLV-50",
            description="Gate valve DN50",
            category="Valves",
            unit="ea",
            brand="UNBRANDED",
            quantity=Decimal("10"),
            internal_unit_price=Decimal("40.00"),
            client_unit_price=Decimal("55.00"),
            internal_cost=Decimal("400.00"),
            client_cost=Decimal("550.00"),
            actual_quantity=Decimal("0"),
            actual_price=Decimal("0"),
            actual_cost=Decimal("0"),
            status=PlannedItemStatus.PLANNED,
            change_reason=None,
        )
        values.update(overrides)
        return SimpleNamespace(**values)

    return _make


@pytest.fixture
def make_order():
    def _make(**overrides):
        values = dict(
            id=uuid4(),
            project_id=uuid4(),
            list_id=uuid4(),
            responsible_id="buyer-1",
            code="PRJ1-PED-001",
            sequence=1,
            notes="",
            needed_date=None,
            priority="medium",
            is_urgent=False,
            budget_total=Decimal("380.00"),
            actual_total=Decimal("0"),
        )
        values.update(overrides)
        return SimpleNamespace(**values)

    return _make


@pytest.fixture
def make_order_item():
    def _make(**overrides):
        values = dict(
            id=uuid4(),
            order_id=uuid4(),
            list_item_id=uuid4(),
            planned_item_id=uuid4(),
            code="VLV-50",
            description="Gate valve DN50",
            unit="ea",
            ordered_quantity=Decimal("10"),
            unit_price=Decimal("38.00"),
            total_cost=Decimal("380.00"),
            lead_time=None,
            lead_time_days=30,
            expected_delivery_date=datetime(2026, 11, 18, tzinfo=timezone.utc),
            delivered_at=None,
            delivered_quantity=Decimal("0"),
        )
        values.update(overrides)
        return SimpleNamespace(**values)

    return _make
