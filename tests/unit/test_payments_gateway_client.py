import json

import httpx
import pytest

from storefront.payments.gateway_client import (
    PaymentSessionError,
    build_session_payload,
    create_payment_session,
)

ORDER = {
    "order_id": "ord-1",
    "amount": 90000,
    "customer": {"name": "Budi", "email": "budi@example.com", "phone": "0812"},
    "items": [{"name": "Dry Food", "quantity": 1, "price": 90000}],
    "return_url": "https://shop.example/return",
    "payment_method": "EWALLET",
    "payment_channel": "OVO",
}

def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))

def test_build_session_payload_shape():
    payload = build_session_payload(ORDER)
    assert payload["customer"] == {"name": "Budi", "email": "budi@example.com", "phone": "0812"}
    assert payload["items"] == [{"name": "Dry Food", "quantity": 1, "price": 90000}]
    assert payload["payment_channel"] == "OVO"

def test_build_session_payload_omits_empty_method():
    payload = build_session_payload({"order_id": "x", "amount": 1})
    assert "payment_method" not in payload
    assert payload["items"] == []
    assert payload["return_url"] is None

@pytest.mark.asyncio
async def test_success_returns_body_unmodified():
    seen = {}

    def handler(request: httpx.Request):
        seen["url"] = str(request.url)
        seen["key"] = request.headers.get("x-api-key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"provider": "xendit", "session_id": "inv_1", "checkout_url": "https://c", "url": "https://c", "extra": 1})

    async with _client(handler) as client:
        result = await create_payment_session(ORDER, client=client)

    assert result == {"provider": "xendit", "session_id": "inv_1", "checkout_url": "https://c", "url": "https://c", "extra": 1}
    assert seen["url"] == "https://pay.example.test/api/payments/create-session"
    assert seen["key"] == "test-service-key"
    assert seen["body"]["amount"] == 90000

@pytest.mark.asyncio
async def test_error_message_comes_from_gateway():
    async with _client(lambda r: httpx.Response(402, json={"message": "Insufficient funds"})) as client:
        with pytest.raises(PaymentSessionError) as exc:
            await create_payment_session(ORDER, client=client)
    assert exc.value.message == "Insufficient funds"
    assert exc.value.status_code == 402

@pytest.mark.asyncio
async def test_error_field_is_used_when_no_message():
    async with _client(lambda r: httpx.Response(400, json={"error": "Bad order"})) as client:
        with pytest.raises(PaymentSessionError, match="Bad order"):
            await create_payment_session(ORDER, client=client)

@pytest.mark.asyncio
async def test_unparsable_error_body_gets_generic_message():
    async with _client(lambda r: httpx.Response(500, text="<html>oops</html>")) as client:
        with pytest.raises(PaymentSessionError) as exc:
            await create_payment_session(ORDER, client=client)
    assert exc.value.message == "Payment session failed (HTTP 500)"

@pytest.mark.asyncio
async def test_network_error_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(PaymentSessionError):
            await create_payment_session(ORDER, client=client)
    assert len(calls) == 1
