"""Integration tests for the cart API via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from marketplace.api import cart_router, install_error_handlers

HEADERS = {"X-User-Id": "buyer-001"}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(cart_router)
    install_error_handlers(app)
    return TestClient(app)


def _add(client, product_id="prod-a", unit_price=1000.0, quantity=1, seller_id="seller-a", **extra):
    response = client.post(
        "/cart/items",
        json={
            "product_id": product_id,
            "name": f"Item {product_id}",
            "unit_price": unit_price,
            "seller_id": seller_id,
            "quantity": quantity,
            **extra,
        },
        headers=HEADERS,
    )
    return response


class TestAuth:
    def test_missing_user_header_is_unauthorized(self, client):
        response = client.get("/cart")
        assert response.status_code == 401


class TestCartEndpoints:
    def test_get_creates_empty_cart(self, client):
        response = client.get("/cart", headers=HEADERS)
        assert response.status_code == 200
        body = response.json()
        assert body["user_id"] == "buyer-001"
        assert body["lines"] == []
        assert body["revision"] == 0

    def test_add_item(self, client):
        response = _add(client, quantity=2)
        assert response.status_code == 200
        body = response.json()
        assert body["lines"][0]["quantity"] == 2
        assert body["total"] == 2000.0

    def test_set_quantity_clamps(self, client):
        _add(client, quantity=3)
        response = client.put("/cart/items/prod-a", json={"quantity": 0}, headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["lines"][0]["quantity"] == 1

    def test_remove_item(self, client):
        _add(client)
        response = client.delete("/cart/items/prod-a", headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["lines"] == []

    def test_remove_absent_item_is_ok(self, client):
        response = client.delete("/cart/items/nope", headers=HEADERS)
        assert response.status_code == 200

    def test_toggle_and_selected_subtotal(self, client):
        _add(client, "prod-a", 1000.0, 2)
        _add(client, "prod-b", 500.0, 1, seller_id="seller-b")
        response = client.post("/cart/items/prod-b/toggle", headers=HEADERS)
        body = response.json()
        assert body["total"] == 2500.0
        assert body["selected_subtotal"] == 2000.0

    def test_set_all_selection(self, client):
        _add(client)
        response = client.put("/cart/selection", json={"selected": False}, headers=HEADERS)
        body = response.json()
        assert body["selected_subtotal"] == 0.0
        assert body["total"] == 1000.0

    def test_clear(self, client):
        _add(client, "prod-a")
        _add(client, "prod-b")
        response = client.delete("/cart", headers=HEADERS)
        assert response.json()["lines"] == []

    def test_invalid_payload_is_rejected(self, client):
        response = _add(client, quantity=0)
        assert response.status_code == 422


class TestRevisionConflict:
    def test_stale_revision_returns_409(self, client):
        _add(client, "prod-a")
        _add(client, "prod-b")
        response = _add(client, "prod-c", expected_revision=1)
        assert response.status_code == 409
        assert "revision" in response.json()["errors"]

        lines = client.get("/cart", headers=HEADERS).json()["lines"]
        assert [line["product_id"] for line in lines] == ["prod-a", "prod-b"]

    def test_current_revision_is_accepted(self, client):
        _add(client, "prod-a")
        response = _add(client, "prod-b", expected_revision=1)
        assert response.status_code == 200
        assert response.json()["revision"] == 2
