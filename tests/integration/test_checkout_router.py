import json

import httpx
import pytest

from storefront import config

PRODUCTS = {
    "p1": {"id": "p1", "name": "Salmon Kibble", "price": 120000, "discount_percent": 25, "stock_quantity": 8},
    "p2": {"id": "p2", "name": "Chew Toy", "price": 30000, "discount_percent": 0, "stock_quantity": 0},
}

@pytest.fixture(autouse=True)
def _catalog(monkeypatch):
    monkeypatch.setattr(
        "storefront.cart.service.repository.get_products_map",
        lambda ids: {i: PRODUCTS[i] for i in ids if i in PRODUCTS},
    )

def _checkout_body(**overrides):
    body = {
        "order_id": "ord-77",
        "items": [{"id": "p1", "quantity": 2}, {"id": "p2", "quantity": 1}],
        "customer": {"name": "Rina", "email": "rina@example.com", "phone": "0815"},
        "payment_method": "EWALLET",
        "ewallet": "GOPAY",
        "return_url": "https://shop.example/thanks",
    }
    body.update(overrides)
    return body

def test_price_cart(client):
    r = client.post("/api/v1/cart/price", json={"items": [{"id": "p1", "quantity": 1}, {"id": "zz", "quantity": 2}]})
    assert r.status_code == 200
    data = r.json()
    assert data["subtotal"] == 90000
    assert data["subtotal_display"] == "Rp 90.000"
    assert data["line_items"][0]["unit_price"] == 90000
    assert data["line_items"][1]["name"] == "Produit introuvable"
    assert data["line_items"][1]["price"] == 0

def test_price_cart_under_maintenance(client, monkeypatch):
    monkeypatch.setattr(config, "MAINTENANCE_PRODUCT", True)
    r = client.post("/api/v1/cart/price", json={"items": []})
    assert r.status_code == 503

def test_checkout_session_forwards_subtotal_and_channel(client, upstream):
    def handler(request: httpx.Request):
        assert str(request.url) == "https://pay.example.test/api/payments/create-session"
        assert request.headers["x-api-key"] == "test-service-key"
        return httpx.Response(201, json={"provider": "xendit", "session_id": "inv_1", "checkout_url": "https://pay/1", "url": "https://pay/1"})

    calls = upstream(handler)
    r = client.post("/api/v1/checkout/session", json=_checkout_body())

    assert r.status_code == 200
    assert r.json() == {"provider": "xendit", "session_id": "inv_1", "checkout_url": "https://pay/1", "url": "https://pay/1"}
    sent = json.loads(calls[0].content)
    assert sent["order_id"] == "ord-77"
    assert sent["amount"] == 210000
    assert sent["payment_method"] == "EWALLET"
    assert sent["payment_channel"] == "GOPAY"
    assert sent["items"] == [
        {"name": "Salmon Kibble", "quantity": 2, "price": 90000},
        {"name": "Chew Toy", "quantity": 1, "price": 30000},
    ]

def test_checkout_session_returns_invoiced_amount(client, upstream, caplog):
    upstream(lambda r: httpx.Response(
        201,
        json={"provider": "xendit", "session_id": "inv_2", "checkout_url": "https://pay/2", "url": "https://pay/2", "amount": 200000},
    ))
    with caplog.at_level("WARNING"):
        r = client.post("/api/v1/checkout/session", json=_checkout_body())
    assert r.status_code == 200
    # montant de la commande serveur, pas le sous-total du panier (210000)
    assert r.json()["amount"] == 200000
    assert any("amount differs" in rec.message for rec in caplog.records)

def test_checkout_session_invalid_gateway_body(client, upstream):
    upstream(lambda r: httpx.Response(201, json=["unexpected"]))
    r = client.post("/api/v1/checkout/session", json=_checkout_body())
    assert r.status_code == 502

def test_checkout_session_gateway_message_is_surfaced(client, upstream):
    upstream(lambda r: httpx.Response(402, json={"message": "Insufficient funds"}))
    r = client.post("/api/v1/checkout/session", json=_checkout_body())
    assert r.status_code == 502
    assert r.json()["message"] == "Insufficient funds"

def test_checkout_session_empty_cart(client, upstream):
    calls = upstream(lambda r: httpx.Response(201, json={}))
    r = client.post("/api/v1/checkout/session", json=_checkout_body(items=[]))
    assert r.status_code == 400
    assert r.json()["message"] == "Panier invalide"
    assert calls == []

def test_checkout_session_unknown_bank(client, upstream):
    calls = upstream(lambda r: httpx.Response(201, json={}))
    r = client.post("/api/v1/checkout/session", json=_checkout_body(payment_method="VIRTUAL_ACCOUNT", bank="HSBC"))
    assert r.status_code == 400
    assert calls == []

def test_checkout_session_requires_order_id(client, upstream):
    upstream(lambda r: httpx.Response(201, json={}))
    r = client.post("/api/v1/checkout/session", json=_checkout_body(order_id=""))
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid request body"
