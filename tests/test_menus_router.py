"""
Tests for the menu endpoints.
"""
from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from recipe_catalog.core.business_day import get_metrics_date
from recipe_catalog.models.menu import MenuItemMetric
from recipe_catalog.models.recipe import Recipe
from recipe_catalog.models.restaurant import Restaurant


@pytest.fixture
def created_menu(client: TestClient, auth_headers: dict, restaurant: Restaurant, recipe: Recipe) -> dict:
    response = client.post(
        "/api/v1/menus",
        json={
            "restaurant_id": restaurant.id,
            "name": "Lunch",
            "items": [{"recipe_id": recipe.id, "price": "12.50", "display_order": 1}],
        },
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.json()


class TestCreateMenuEndpoint:
    """Tests for POST /api/v1/menus."""

    def test_create_menu(self, created_menu: dict, restaurant: Restaurant, recipe: Recipe):
        assert created_menu["name"] == "Lunch"
        assert created_menu["restaurant_slug"] == "test-bistro"
        assert len(created_menu["items"]) == 1
        assert created_menu["items"][0]["recipe_id"] == recipe.id
        assert Decimal(created_menu["items"][0]["price"]) == Decimal("12.50")

    def test_duplicate_recipes(self, client: TestClient, auth_headers: dict, restaurant: Restaurant, recipe: Recipe):
        response = client.post(
            "/api/v1/menus",
            json={
                "restaurant_id": restaurant.id,
                "name": "Dinner",
                "items": [{"recipe_id": recipe.id}, {"recipe_id": recipe.id}],
            },
            headers=auth_headers,
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"] == {"recipe_ids": [recipe.id]}

    def test_create_requires_token(self, client: TestClient, restaurant: Restaurant):
        response = client.post("/api/v1/menus", json={"restaurant_id": restaurant.id, "name": "Dinner"})

        assert response.status_code == 401

    def test_unknown_restaurant(self, client: TestClient, auth_headers: dict):
        response = client.post("/api/v1/menus", json={"restaurant_id": 999, "name": "Dinner"}, headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"


class TestMenuReadEndpoints:
    """Tests for the public menu reads."""

    def test_restaurant_menus(self, client: TestClient, created_menu: dict, restaurant: Restaurant):
        response = client.get(f"/api/v1/menus/restaurants/{restaurant.id}")

        assert response.status_code == 200
        assert [m["id"] for m in response.json()] == [created_menu["id"]]
        assert response.headers["Cache-Control"] == "public, max-age=3600"

    def test_menu_items(self, client: TestClient, created_menu: dict, recipe: Recipe):
        response = client.get(f"/api/v1/menus/{created_menu['id']}/items")

        assert response.status_code == 200
        items = response.json()
        assert len(items) == 1
        assert items[0]["recipe_name"] == "Apple Pie"
        assert items[0]["recipe_slug"] == "apple-pie"

    def test_items_of_missing_menu(self, client: TestClient):
        response = client.get("/api/v1/menus/999/items")

        assert response.status_code == 404

    def test_restaurant_item_records_view(
        self, client: TestClient, db: Session, created_menu: dict, restaurant: Restaurant, recipe: Recipe
    ):
        item_id = created_menu["items"][0]["id"]

        first = client.get(f"/api/v1/menus/restaurants/{restaurant.id}/items/{item_id}")
        second = client.get(f"/api/v1/menus/restaurants/{restaurant.id}/items/{item_id}")

        assert first.status_code == 200
        assert first.headers["Cache-Control"] == "public, max-age=1800"
        assert first.json()["view_count"] == 1
        assert second.json()["view_count"] == 2

        rows = db.execute(select(MenuItemMetric)).scalars().all()
        assert len(rows) == 1
        assert rows[0].view_count == 2
        assert rows[0].access_date == get_metrics_date()

        db.expire_all()
        assert db.get(Recipe, recipe.id).view_count == 2

    def test_restaurant_item_ignores_bad_token(self, client: TestClient, created_menu: dict, restaurant: Restaurant):
        item_id = created_menu["items"][0]["id"]

        response = client.get(
            f"/api/v1/menus/restaurants/{restaurant.id}/items/{item_id}",
            headers={"Authorization": "Bearer garbage"},
        )

        assert response.status_code == 200

    def test_restaurant_item_not_found(self, client: TestClient, restaurant: Restaurant):
        response = client.get(f"/api/v1/menus/restaurants/{restaurant.id}/items/999")

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Menu item not found: 999"


class TestUpdateMenuEndpoint:
    """Tests for PUT /api/v1/menus/{id}."""

    def test_upsert_existing_item(self, client: TestClient, auth_headers: dict, created_menu: dict, recipe: Recipe):
        response = client.put(
            f"/api/v1/menus/{created_menu['id']}",
            json={"items": [{"recipe_id": recipe.id, "is_available": False}]},
            headers=auth_headers,
        )

        assert response.status_code == 200
        items = response.json()["items"]
        assert len(items) == 1
        assert items[0]["id"] == created_menu["items"][0]["id"]
        assert items[0]["is_available"] is False
        assert Decimal(items[0]["price"]) == Decimal("12.50")

    def test_rename_only(self, client: TestClient, auth_headers: dict, created_menu: dict):
        response = client.put(
            f"/api/v1/menus/{created_menu['id']}", json={"name": "Late Lunch"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Late Lunch"
        assert len(response.json()["items"]) == 1

    def test_update_missing_menu(self, client: TestClient, auth_headers: dict):
        response = client.put("/api/v1/menus/999", json={"name": "x"}, headers=auth_headers)

        assert response.status_code == 404


class TestMetricsEndpoint:
    """Tests for GET /api/v1/menus/items/{id}/metrics."""

    def test_metrics_after_views(
        self, client: TestClient, auth_headers: dict, created_menu: dict, restaurant: Restaurant
    ):
        item_id = created_menu["items"][0]["id"]
        client.get(f"/api/v1/menus/restaurants/{restaurant.id}/items/{item_id}")

        response = client.get(f"/api/v1/menus/items/{item_id}/metrics", headers=auth_headers)

        assert response.status_code == 200
        rows = response.json()
        assert len(rows) == 1
        assert rows[0]["view_count"] == 1
        assert rows[0]["access_date"] == get_metrics_date().isoformat()

    def test_metrics_require_token(self, client: TestClient, created_menu: dict):
        item_id = created_menu["items"][0]["id"]

        response = client.get(f"/api/v1/menus/items/{item_id}/metrics")

        assert response.status_code == 401

    def test_inverted_range(self, client: TestClient, auth_headers: dict, created_menu: dict):
        item_id = created_menu["items"][0]["id"]

        response = client.get(
            f"/api/v1/menus/items/{item_id}/metrics",
            params={"startDate": date(2024, 3, 5).isoformat(), "endDate": date(2024, 3, 1).isoformat()},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_malformed_date(self, client: TestClient, auth_headers: dict, created_menu: dict):
        item_id = created_menu["items"][0]["id"]

        response = client.get(
            f"/api/v1/menus/items/{item_id}/metrics",
            params={"startDate": "yesterday"},
            headers=auth_headers,
        )

        assert response.status_code == 400

    def test_unknown_item(self, client: TestClient, auth_headers: dict):
        response = client.get("/api/v1/menus/items/999/metrics", headers=auth_headers)

        assert response.status_code == 404
