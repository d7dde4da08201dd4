"""
Component tests for the cart HTTP API

These tests run the Flask app with the JSON file backend and drive it through
the test client, so routing, the registry, the aggregate and storage are all
exercised together.
"""
import json

from storecart.app import create_app


def _add(client, variant_id, price, quantity=1, **extra):
    body = {"variant_id": variant_id, "unit_price": price, "quantity": quantity}
    body.update(extra)
    return client.post("/api/cart/items", json=body)


class TestCartEndpoints:
    def test_new_session_has_empty_cart(self, client):
        response = client.get("/api/cart")

        assert response.status_code == 200
        data = response.get_json()
        assert data["items"] == []
        assert data["item_count"] == 0
        assert data["subtotal"] == 0
        assert data["currency"] == "VND"
        assert "warning" not in data

    def test_add_and_merge(self, client):
        _add(client, "A", 10, 2, product_name="Tea")
        response = _add(client, "A", 10, 3)

        assert response.status_code == 200
        data = response.get_json()
        assert len(data["items"]) == 1
        assert data["items"][0]["quantity"] == 5
        assert data["items"][0]["product_name"] == "Tea"
        assert data["subtotal"] == 50

    def test_add_rejects_malformed_item(self, client):
        response = client.post("/api/cart/items", json={"unit_price": 10})

        assert response.status_code == 400
        assert "variant_id" in response.get_json()["error"]
        assert client.get("/api/cart").get_json()["items"] == []

    def test_update_and_remove(self, client):
        _add(client, "B", 15.5)
        _add(client, "C", 4.25, 4)
        assert client.get("/api/cart").get_json()["subtotal"] == 32.5

        response = client.patch("/api/cart/items/C", json={"quantity": 2})
        assert response.get_json()["subtotal"] == 24.0

        response = client.patch("/api/cart/items/C", json={"quantity": 0})
        assert [i["variant_id"] for i in response.get_json()["items"]] == ["B"]

        response = client.delete("/api/cart/items/B")
        assert response.get_json()["item_count"] == 0

    def test_update_requires_quantity(self, client):
        _add(client, "A", 1)

        response = client.patch("/api/cart/items/A", json={})

        assert response.status_code == 400

    def test_clear(self, client):
        _add(client, "A", 1, 3)

        response = client.delete("/api/cart")

        assert response.get_json()["items"] == []

    def test_cart_is_written_to_json_file(self, client, config):
        _add(client, "A", "2.50", 2)

        stored = json.loads(config.cart_data_file.read_text(encoding="utf-8"))
        (key, items), = stored.items()
        assert key.startswith("cart-storage:")
        assert items[0]["unit_price"] == "2.50"
        assert items[0]["quantity"] == 2

    def test_sessions_do_not_share_carts(self, app):
        first = app.test_client()
        second = app.test_client()

        _add(first, "A", 1)

        assert second.get("/api/cart").get_json()["items"] == []


class TestCheckoutEndpoints:
    def test_summary_includes_vat_and_loyalty(self, client):
        _add(client, "A", 200, 1, discount_percent=10)
        _add(client, "B", 100, 3)

        response = client.post("/api/cart/summary", json={"loyalty_discount": 30})

        totals = response.get_json()["totals"]
        assert totals["subtotal"] == 500.0
        assert totals["discount"] == 50.0
        assert totals["tax"] == 45.0
        assert totals["total"] == 495.0

    def test_cash_payment_returns_change(self, client):
        _add(client, "A", 100, 2)

        response = client.post("/api/cart/payment", json={"amount_received": 300})

        assert response.status_code == 200
        data = response.get_json()
        assert data["payment"]["change"] == 80.0
        assert data["quick_amounts"] == [220.0, 250.0, 300.0, 400.0]

    def test_insufficient_cash_is_rejected(self, client):
        _add(client, "A", 100, 2)

        response = client.post("/api/cart/payment", json={"amount_received": 100})

        assert response.status_code == 400
        assert response.get_json()["payment"]["is_sufficient"] is False

    def test_card_payment_needs_no_amount(self, client):
        _add(client, "A", 10)

        response = client.post("/api/cart/payment", json={"payment_method": "card"})

        assert response.status_code == 200
        assert response.get_json()["payment"]["change"] == 0.0

    def test_payment_on_empty_cart(self, client):
        response = client.post("/api/cart/payment", json={"amount_received": 10})

        assert response.status_code == 400

    def test_checkout_complete_clears_cart(self, client):
        _add(client, "A", 10, 2)

        response = client.post("/api/cart/checkout-complete")

        assert response.get_json()["items"] == []
        assert client.get("/api/cart").get_json()["item_count"] == 0


class TestPersistenceWarning:
    def test_failed_save_is_reported_but_cart_updates(self, config, failing_storage):
        app = create_app(config, storage=failing_storage)
        client = app.test_client()

        response = _add(client, "A", 5, 2)

        assert response.status_code == 200
        data = response.get_json()
        assert data["subtotal"] == 10
        assert "warning" in data


class TestSessionLifecycle:
    def test_checkout_complete_ends_the_session(self, app, client, config):
        _add(client, "A", 10, 2)
        registry = app.extensions["storecart_components"]["cart_registry"]
        with client.session_transaction() as sess:
            old_session = sess["cart_session_id"]

        client.post("/api/cart/checkout-complete")

        assert len(registry) == 0
        stored = json.loads(config.cart_data_file.read_text(encoding="utf-8"))
        assert registry.key_for(old_session) not in stored
        with client.session_transaction() as sess:
            assert "cart_session_id" not in sess

    def test_anonymous_visitors_do_not_grow_registry_unbounded(self, config):
        config.max_carts = 10
        app = create_app(config)

        for _ in range(50):
            app.test_client().get("/api/cart")

        assert len(app.extensions["storecart_components"]["cart_registry"]) == 10
