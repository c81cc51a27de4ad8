"""Tests for procuretrack.web.routes.lists - Equipment list routes."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock, patch
from uuid import uuid4

from procuretrack.errors import InvalidTransitionError, NotFoundError, ValidationError
from procuretrack.models import ListStatus, ListSummary


class TestCreateList:
    """Tests for POST /api/lists route."""

    @patch("procuretrack.web.routes.lists.create_list", new_callable=AsyncMock)
    def test_create(self, mock_create, client, mock_session, make_list):
        equipment_list = make_list()
        mock_create.return_value = equipment_list

        response = client.post(
            "/api/lists",
            json={"projectId": str(equipment_list.project_id), "name": "Main equipment", "neededDate": "2026-12-01"},
        )

        assert response.status_code == 201
        assert response.json()["code"] == "PRJ1-LST-001"
        args = mock_create.call_args
        assert args.args[1] == equipment_list.project_id
        assert str(args.kwargs["needed_date"]) == "2026-12-01"

    @patch("procuretrack.web.routes.lists.create_list", new_callable=AsyncMock)
    def test_unknown_project(self, mock_create, client):
        project_id = uuid4()
        mock_create.side_effect = NotFoundError("Project", project_id)

        response = client.post("/api/lists", json={"projectId": str(project_id), "name": "Main"})

        assert response.status_code == 404
        assert response.json()["details"]["entity_id"] == str(project_id)


class TestListDetail:
    """Tests for GET /api/lists/{list_id} route."""

    @patch("procuretrack.web.routes.lists.list_summary", new_callable=AsyncMock)
    @patch("procuretrack.web.routes.lists.get_list_items", new_callable=AsyncMock)
    @patch("procuretrack.web.routes.lists.get_list", new_callable=AsyncMock)
    def test_detail(self, mock_get_list, mock_get_items, mock_summary, client, make_list, make_list_item):
        equipment_list = make_list()
        mock_get_list.return_value = equipment_list
        mock_get_items.return_value = [make_list_item(list_id=equipment_list.id)]
        mock_summary.return_value = ListSummary(
            list_id=equipment_list.id,
            code=equipment_list.code,
            name=equipment_list.name,
            status=ListStatus.DRAFT,
            total_items=1,
            verified_items=0,
            approved_items=0,
            rejected_items=0,
            total_cost=Decimal("400.00"),
            verified_cost=Decimal("0"),
        )

        response = client.get(f"/api/lists/{equipment_list.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["equipmentList"]["id"] == str(equipment_list.id)
        assert data["items"][0]["origin"] == "from_quotation"
        assert data["summary"]["total_items"] == 1


class TestListStatus:
    """Tests for POST /api/lists/{list_id}/status route."""

    @patch("procuretrack.web.routes.lists.transition_list", new_callable=AsyncMock)
    def test_transition(self, mock_transition, client, make_list):
        equipment_list = make_list(status=ListStatus.UNDER_REVIEW)
        mock_transition.return_value = equipment_list

        response = client.post(f"/api/lists/{equipment_list.id}/status", json={"status": "under_review"})

        assert response.status_code == 200
        assert mock_transition.call_args.args[2] == ListStatus.UNDER_REVIEW

    @patch("procuretrack.web.routes.lists.transition_list", new_callable=AsyncMock)
    def test_invalid_transition_is_409(self, mock_transition, client):
        mock_transition.side_effect = InvalidTransitionError("EquipmentList", "draft", "approved")

        response = client.post(f"/api/lists/{uuid4()}/status", json={"status": "approved"})

        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"

    @patch("procuretrack.web.routes.lists.transition_list", new_callable=AsyncMock)
    def test_open_items_block_approval(self, mock_transition, client):
        mock_transition.side_effect = ValidationError("2 items are still open", field="status", open_items=2)

        response = client.post(f"/api/lists/{uuid4()}/status", json={"status": "approved"})

        assert response.status_code == 400

    def test_unknown_status(self, client):
        response = client.post(f"/api/lists/{uuid4()}/status", json={"status": "shipped"})
        assert response.status_code == 422


class TestAddItems:
    """Tests for POST /api/lists/{list_id}/items/* routes."""

    @patch("procuretrack.web.routes.lists.add_item_from_planned", new_callable=AsyncMock)
    def test_from_planned(self, mock_add, client, make_list_item):
        item = make_list_item()
        mock_add.return_value = item

        response = client.post(
            f"/api/lists/{item.list_id}/items/from-planned",
            json={"plannedItemId": str(item.planned_item_id)},
        )

        assert response.status_code == 201
        assert response.json()["plannedItemId"] == str(item.planned_item_id)

    @patch("procuretrack.web.routes.lists.add_item_from_catalog", new_callable=AsyncMock)
    def test_from_catalog(self, mock_add, client, make_list_item):
        item = make_list_item(planned_item_id=None, origin="new", catalog_id=uuid4(), quantity=Decimal("2"))
        mock_add.return_value = item

        response = client.post(
            f"/api/lists/{item.list_id}/items/from-catalog",
            json={"catalogId": str(item.catalog_id), "quantity": 2},
        )

        assert response.status_code == 201
        assert response.json()["origin"] == "new"
        assert mock_add.call_args.args[3] == Decimal("2")

    def test_from_catalog_requires_positive_quantity(self, client):
        response = client.post(
            f"/api/lists/{uuid4()}/items/from-catalog",
            json={"catalogId": str(uuid4()), "quantity": 0},
        )
        assert response.status_code == 422
