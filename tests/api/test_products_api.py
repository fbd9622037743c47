"""Tests for product endpoints."""

import pytest

from src.core.entities import MovementType
from src.core.exceptions import BackendUnavailableError


@pytest.fixture(autouse=True)
def _wired(wire_app):
    return wire_app


class TestList:
    async def test_default_view(self, async_client):
        response = await async_client.get("/api/products")

        assert response.status_code == 200
        body = response.json()
        assert [p["name"] for p in body["products"]] == ["Bread", "Milk"]
        assert body["total_products"] == 2
        assert body["categories"] == ["Bakery", "Dairy"]
        assert body["has_active_filters"] is False
        assert body["low_stock_count"] == 1

    async def test_search_by_barcode(self, async_client):
        response = await async_client.get("/api/products", params={"search": "59412"})

        body = response.json()
        assert [p["name"] for p in body["products"]] == ["Milk"]
        assert body["filters"]["search_query"] == "59412"
        assert body["has_active_filters"] is True

    async def test_low_stock_and_sort(self, async_client):
        response = await async_client.get(
            "/api/products",
            params={"sort_field": "stock", "sort_direction": "desc"},
        )
        assert [p["name"] for p in response.json()["products"]] == ["Bread", "Milk"]

        response = await async_client.get("/api/products", params={"low_stock_only": "true"})
        [milk] = response.json()["products"]
        assert milk["is_low_stock"] is True
        assert milk["display_price"] == 2.04

    async def test_bad_sort_field(self, async_client):
        response = await async_client.get("/api/products", params={"sort_field": "colour"})

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_backend_down(self, async_client, backend):
        backend.failures["get_all_products"] = BackendUnavailableError(
            "memory", "get_all_products", "down"
        )

        response = await async_client.get("/api/products")

        assert response.status_code == 503
        body = response.json()
        assert body["error_code"] == "BACKEND_UNAVAILABLE"
        assert body["path"] == "/api/products"
        assert body["hint"]


async def test_low_stock_alerts(async_client):
    response = await async_client.get("/api/products/low-stock")

    assert response.status_code == 200
    assert response.json() == [
        {
            "product_id": "p1",
            "name": "Milk",
            "current_stock": 2.0,
            "min_stock_level": 5.0,
            "deficit": 3.0,
        }
    ]


class TestBarcode:
    async def test_found(self, async_client):
        response = await async_client.get("/api/products/barcode/5940000000012")

        assert response.status_code == 200
        assert response.json()["name"] == "Bread"

    async def test_not_found(self, async_client):
        response = await async_client.get("/api/products/barcode/123")

        assert response.status_code == 404
        assert response.json()["error_code"] == "PRODUCT_NOT_FOUND"


class TestCrud:
    async def test_create(self, async_client, backend):
        response = await async_client.post(
            "/api/products",
            json={"name": "Tea", "barcode": "42", "price": 2.0, "markup": 100, "price_100": 4.0},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["current_stock"] == 0
        assert body["display_price"] == 4.0
        assert (body["price_50"], body["price_70"]) == (3.0, 3.4)
        assert body["id"] in backend.products

    async def test_create_requires_name(self, async_client):
        response = await async_client.post("/api/products", json={"price": 1})
        assert response.status_code == 422

    async def test_create_rejects_negative_min_stock(self, async_client):
        response = await async_client.post(
            "/api/products", json={"name": "Tea", "min_stock_level": -1}
        )
        assert response.status_code == 422

    async def test_update(self, async_client):
        response = await async_client.patch("/api/products/p2", json={"category": "Food"})

        assert response.status_code == 200
        assert response.json()["category"] == "Food"
        assert response.json()["price"] == 0.8

    async def test_update_unknown(self, async_client):
        response = await async_client.patch("/api/products/nope", json={"name": "X"})
        assert response.status_code == 404

    async def test_delete_needs_typed_name(self, async_client, backend):
        response = await async_client.delete("/api/products/p2", params={"confirm_name": "bread"})

        assert response.status_code == 400
        assert response.json()["error_code"] == "DELETE_CONFIRMATION_REQUIRED"
        assert "p2" in backend.products

    async def test_delete(self, async_client, backend):
        response = await async_client.delete("/api/products/p2", params={"confirm_name": "Bread"})

        assert response.status_code == 204
        assert "p2" not in backend.products

    async def test_delete_unknown(self, async_client):
        response = await async_client.delete("/api/products/nope", params={"confirm_name": "x"})
        assert response.status_code == 404


async def test_movements(async_client, backend):
    await backend.add_stock_movement("p2", 5, MovementType.IN)
    await backend.add_stock_movement("p2", 2, MovementType.OUT)

    response = await async_client.get("/api/products/p2/movements")

    assert response.status_code == 200
    assert [(m["quantity"], m["type"]) for m in response.json()] == [(-2, "OUT"), (5, "IN")]
