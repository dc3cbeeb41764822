"""
Cas d'usage 'checkout' (côté storefront): panier -> lignes tarifées -> session de paiement.
"""
from typing import Any, Dict
import logging

import httpx
from fastapi import HTTPException

from storefront.cart import service as cart_service
from storefront.payments.gateway_client import PaymentSessionError, create_payment_session
from storefront.payments.methods import PaymentSelection
from storefront.checkout.models import CheckoutRequest

logger = logging.getLogger(__name__)

def resolve_selection(req: CheckoutRequest) -> PaymentSelection:
    try:
        return PaymentSelection(method=req.payment_method, ewallet=req.ewallet, bank=req.bank)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

async def start_checkout(req: CheckoutRequest, *, client: httpx.AsyncClient) -> Dict[str, Any]:
    """
    1) Tarifer le panier (lignes + sous-total)
    2) Résoudre méthode/canal de paiement
    3) Créer la session de paiement pour le sous-total
    Les erreurs passerelle (PaymentSessionError) remontent à la vue.
    """
    line_items, subtotal = cart_service.price_cart(it.model_dump() for it in req.items)
    if not line_items:
        raise HTTPException(status_code=400, detail="Panier invalide")
    selection = resolve_selection(req)

    order = {
        "order_id": req.order_id,
        "amount": subtotal,
        "customer": req.customer.model_dump(),
        "items": [{"name": li.name, "quantity": li.quantity, "price": li.unit_price} for li in line_items],
        "return_url": req.return_url,
        **selection.to_dict(),
    }
    session = await create_payment_session(order, client=client)
    logger.info("checkout.start order_id=%s amount=%s method=%s", req.order_id, subtotal, selection.method)
    if not isinstance(session, dict):
        raise PaymentSessionError("Payment session failed (invalid response)")
    if session.get("amount") is not None and session["amount"] != subtotal:
        logger.warning(
            "checkout.start amount differs order_id=%s cart=%s invoiced=%s", req.order_id, subtotal, session["amount"]
        )
    # amount: montant facturé par le service de paiement, pas le sous-total du panier
    return session
