"""
Cas d'usage 'payments' (côté service de paiement):
- commande -> facture Xendit -> session;
- callback Xendit -> paiement, journal d'événements, statut de commande.
"""
from typing import Any, Dict, Optional
import logging
import time

import httpx
from fastapi import HTTPException

from . import repository
from . import invoice_client
from .methods import resolve_gateway_methods
from storefront.pricing import round_half_up
from .models import CreateSessionRequest

logger = logging.getLogger(__name__)

PROVIDER = "xendit"

def _to_amount(value: Any) -> int:
    try:
        return max(0, round_half_up(float(value or 0)))
    except (TypeError, ValueError, OverflowError):
        return 0

def resolve_order_amount(req: CreateSessionRequest) -> Dict[str, Any]:
    """
    Détermine external_id, montant et description.
    - Mode test: order.total_amount (ou order.total), aucune commande lue.
    - Sinon: la commande en base fait foi (404 si introuvable).
    """
    if req.test and not req.order_id:
        order = req.order or {}
        raw_total = order.get("total_amount", order.get("total"))
        return {
            "external_id": f"test-{int(time.time() * 1000)}",
            "amount": _to_amount(raw_total),
            "description": "Test payment",
        }

    row = repository.fetch_order(req.order_id)
    if not row:
        raise HTTPException(status_code=404, detail="Order not found")
    amount = _to_amount(row.get("total_amount"))
    if req.amount is not None and _to_amount(req.amount) != amount:
        logger.warning(
            "payments.create_session amount mismatch order_id=%s client=%s server=%s",
            req.order_id, req.amount, amount,
        )
    return {
        "external_id": f"order-{row.get('id')}",
        "amount": amount,
        "description": f"Payment for Order {row.get('id')}",
    }

def build_invoice_request(req: CreateSessionRequest, order_info: Dict[str, Any]) -> Dict[str, Any]:
    metadata: Dict[str, Any] = {}
    if req.payment_channel:
        metadata["channel"] = str(req.payment_channel).upper()
    items = [
        {"name": it.name or "Item", "quantity": it.quantity, "price": _to_amount(it.price)}
        for it in req.items
        if it.quantity > 0
    ]
    return invoice_client.build_invoice_payload(
        external_id=order_info["external_id"],
        amount=order_info["amount"],
        description=order_info.get("description"),
        payer_email=(req.customer.email if req.customer else None),
        success_redirect_url=req.return_url,
        payment_methods=resolve_gateway_methods(req.payment_method),
        metadata=metadata or None,
        items=items or None,
    )

async def open_payment_session(req: CreateSessionRequest, *, client: httpx.AsyncClient) -> Dict[str, Optional[str]]:
    """
    Crée la facture et la présente comme session: {provider, session_id, checkout_url, url, amount}.
    - amount: montant réellement facturé (commande en base), pas celui envoyé par le client.
    - HTTPException(404) si la commande n'existe pas.
    - HTTPException(502) si Xendit refuse ou est injoignable (pas de retry).
    """
    order_info = resolve_order_amount(req)
    payload = build_invoice_request(req, order_info)
    try:
        invoice = await invoice_client.create_invoice(payload, client=client)
    except invoice_client.InvoiceError as e:
        logger.error("payments.open_payment_session failed external_id=%s: %s", payload["external_id"], e)
        raise HTTPException(status_code=502, detail="Failed to create payment session")
    logger.info("payments.open_payment_session ok external_id=%s invoice=%s", payload["external_id"], invoice.get("id"))
    return {
        "provider": PROVIDER,
        "session_id": invoice.get("id"),
        "checkout_url": invoice.get("invoice_url"),
        "url": invoice.get("invoice_url"),
        "amount": _to_amount(invoice.get("amount", payload["amount"])),
    }

PAID_STATUSES = {"PAID", "SETTLED"}
CANCELLED_STATUSES = {"EXPIRED", "FAILED"}
ORDER_EXTERNAL_PREFIX = "order-"

def order_id_from_external(external_id: Optional[str]) -> Optional[str]:
    """'order-42' -> '42'. Les factures de test ('test-...') ne désignent aucune commande."""
    external_id = str(external_id or "")
    if external_id.startswith(ORDER_EXTERNAL_PREFIX):
        return external_id[len(ORDER_EXTERNAL_PREFIX):] or None
    return None

def apply_invoice_callback(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Applique un callback de facture Xendit.
    1) upsert du paiement (clé: id de facture -> payments.session_id)
    2) journal payment_events (doublons ignorés)
    3) PAID/SETTLED -> commande 'paid', EXPIRED/FAILED -> commande 'cancelled'
    Rejouer le même callback donne le même état final.
    """
    invoice_id = str(payload.get("id") or payload.get("external_id") or "")
    status = str(payload.get("status") or "").upper()
    order_id = order_id_from_external(payload.get("external_id"))
    fields = {
        "status": status or None,
        "amount": _to_amount(payload.get("amount")) if payload.get("amount") is not None else None,
        "invoice_url": payload.get("invoice_url") or None,
    }

    existing = repository.find_payment_by_session(invoice_id) if invoice_id else None
    if existing:
        payment_id = existing.get("id")
        repository.update_payment(payment_id, fields)
    else:
        row = repository.insert_payment({
            "order_id": order_id,
            "provider": PROVIDER,
            "session_id": invoice_id or None,
            "currency": "IDR",
            **fields,
        })
        payment_id = (row or {}).get("id")

    order_status = None
    if payment_id:
        repository.insert_payment_event(
            payment_id=str(payment_id),
            event_type=status,
            external_id=invoice_id or None,
            payload=payload,
        )
        if order_id and status in PAID_STATUSES:
            order_status = "paid"
        elif order_id and status in CANCELLED_STATUSES:
            order_status = "cancelled"
        if order_status:
            repository.update_order_status(order_id, order_status)

    logger.info(
        "payments.invoice_callback invoice=%s status=%s order_id=%s order_status=%s",
        invoice_id, status, order_id, order_status,
    )
    return {"payment_id": payment_id, "status": status, "order_id": order_id, "order_status": order_status}

async def fetch_invoice(invoice_id: str, *, client: httpx.AsyncClient) -> Dict[str, Any]:
    """Détail d'une facture Xendit. 404 si inconnue, 502 pour les autres échecs."""
    try:
        return await invoice_client.get_invoice(invoice_id, client=client)
    except invoice_client.InvoiceError as e:
        if e.status_code == 404:
            raise HTTPException(status_code=404, detail="Invoice not found")
        raise HTTPException(status_code=502, detail="Failed to fetch invoice")
