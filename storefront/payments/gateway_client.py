"""
Client du service de paiement: crée une session de paiement pour une commande.
Une seule requête POST, sans retry: l'appelant décide de proposer une nouvelle tentative.
"""
from typing import Any, Dict, List, Mapping, Optional
import logging

import httpx

from storefront import config

logger = logging.getLogger(__name__)

CREATE_SESSION_PATH = "/api/payments/create-session"

class PaymentSessionError(Exception):
    """Échec de création de session (statut HTTP du service si disponible)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

# module storefront.payments.gateway_client
def build_session_payload(order: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Construit le corps attendu par /api/payments/create-session:
    {order_id, amount, customer:{name,email,phone}, items:[{name,quantity,price}], return_url}
    + payment_method / payment_channel s'ils sont présents.
    """
    customer = order.get("customer") or {}
    items: List[Dict[str, Any]] = [
        {
            "name": it.get("name"),
            "quantity": int(it.get("quantity") or 0),
            "price": it.get("price"),
        }
        for it in order.get("items") or []
    ]
    payload: Dict[str, Any] = {
        "order_id": order.get("order_id"),
        "amount": order.get("amount"),
        "customer": {
            "name": customer.get("name"),
            "email": customer.get("email"),
            "phone": customer.get("phone"),
        },
        "items": items,
        "return_url": order.get("return_url") or config.PAYMENT_RETURN_URL or None,
    }
    for key in ("payment_method", "payment_channel"):
        if order.get(key):
            payload[key] = order[key]
    return payload

def _error_message(response: httpx.Response) -> str:
    fallback = f"Payment session failed (HTTP {response.status_code})"
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return fallback

async def create_payment_session(
    order: Mapping[str, Any],
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """
    POST {PAYMENT_API_URL}/api/payments/create-session avec l'en-tête x-api-key.
    - Succès (2xx): retourne le JSON du service tel quel ({provider, session_id, checkout_url, url, amount}).
    - Statut non-2xx: PaymentSessionError(message du service).
    - Erreur réseau / timeout: PaymentSessionError, sans retry.
    """
    url = f"{config.PAYMENT_API_URL}{CREATE_SESSION_PATH}"
    headers = {"content-type": "application/json", "x-api-key": config.SERVICE_API_KEY}
    payload = build_session_payload(order)

    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS)
    try:
        response = await http.post(url, json=payload, headers=headers)
    except httpx.HTTPError as e:
        logger.exception("payments.create_payment_session request failed order_id=%s", payload.get("order_id"))
        raise PaymentSessionError(f"Payment session request failed: {e}") from e
    finally:
        if owns_client:
            await http.aclose()

    if not response.is_success:
        message = _error_message(response)
        logger.error(
            "payments.create_payment_session rejected order_id=%s status=%s message=%s",
            payload.get("order_id"), response.status_code, message,
        )
        raise PaymentSessionError(message, status_code=response.status_code)

    try:
        return response.json()
    except ValueError as e:
        raise PaymentSessionError(
            f"Payment session failed (HTTP {response.status_code})", status_code=response.status_code
        ) from e
