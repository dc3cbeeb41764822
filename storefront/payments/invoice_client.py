"""
Adaptateur Xendit: création de facture (invoice) hébergée, utilisée comme session de paiement.
"""
from typing import Any, Dict, List, Optional
import logging

import httpx

from storefront import config

logger = logging.getLogger(__name__)

class InvoiceError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

# module storefront.payments.invoice_client
def build_invoice_payload(
    *,
    external_id: str,
    amount: int,
    description: Optional[str] = None,
    payer_email: Optional[str] = None,
    success_redirect_url: Optional[str] = None,
    payment_methods: Optional[List[str]] = None,
    metadata: Optional[Dict[str, Any]] = None,
    items: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "external_id": external_id,
        "amount": max(0, int(amount)),
        "currency": "IDR",
    }
    optional = {
        "description": description,
        "payer_email": payer_email,
        "success_redirect_url": success_redirect_url,
        "payment_methods": payment_methods,
        "metadata": metadata,
        "items": items,
    }
    payload.update({k: v for k, v in optional.items() if v})
    return payload

async def create_invoice(payload: Dict[str, Any], *, client: httpx.AsyncClient) -> Dict[str, Any]:
    """
    POST {XENDIT_BASE_URL}/v2/invoices (auth basique: clé secrète, mot de passe vide).
    Retour: dict facture (id, invoice_url, status, ...). InvoiceError sinon.
    """
    if not config.XENDIT_SECRET_KEY:
        raise InvoiceError("XENDIT_SECRET_KEY manquant")
    try:
        response = await client.post(
            f"{config.XENDIT_BASE_URL}/v2/invoices",
            json=payload,
            auth=(config.XENDIT_SECRET_KEY, ""),
            headers={"content-type": "application/json"},
        )
    except httpx.HTTPError as e:
        raise InvoiceError(f"Xendit request failed: {e}") from e

    try:
        body = response.json()
    except ValueError:
        body = response.text
    if not response.is_success:
        logger.error("xendit.create_invoice failed status=%s body=%s", response.status_code, body)
        raise InvoiceError("Xendit invoice rejected", status_code=response.status_code, body=body)
    if not isinstance(body, dict):
        raise InvoiceError("Xendit invoice response invalide", status_code=response.status_code, body=body)
    return body

async def get_invoice(invoice_id: str, *, client: httpx.AsyncClient) -> Dict[str, Any]:
    """GET {XENDIT_BASE_URL}/v2/invoices/{id}. InvoiceError (avec le statut Xendit) sinon."""
    if not config.XENDIT_SECRET_KEY:
        raise InvoiceError("XENDIT_SECRET_KEY manquant")
    try:
        response = await client.get(
            f"{config.XENDIT_BASE_URL}/v2/invoices/{invoice_id}",
            auth=(config.XENDIT_SECRET_KEY, ""),
        )
    except httpx.HTTPError as e:
        raise InvoiceError(f"Xendit request failed: {e}") from e

    try:
        body = response.json()
    except ValueError:
        body = response.text
    if not response.is_success or not isinstance(body, dict):
        logger.error("xendit.get_invoice failed id=%s status=%s body=%s", invoice_id, response.status_code, body)
        raise InvoiceError("Xendit invoice lookup failed", status_code=response.status_code, body=body)
    return body
