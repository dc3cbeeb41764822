import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException

from storefront.cart import service as cart_service
from storefront.checkout import service as checkout_service
from storefront.checkout.models import CartPriceRequest, CheckoutRequest
from storefront.infra.http_client import get_http_client
from storefront.payments.gateway_client import PaymentSessionError
from storefront.pricing import format_price
from storefront.site.views import require_products_available
from storefront.utils.rate_limit import optional_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["Checkout API"])

# module storefront.checkout.views
@router.post("/cart/price", dependencies=[Depends(require_products_available)])
def price_cart(body: CartPriceRequest):
    """
    Hydrate le panier: {items:[{id, quantity}]} -> {line_items, subtotal, subtotal_display}.
    Un produit inconnu donne une ligne "Produit introuvable" à prix 0.
    """
    line_items, subtotal = cart_service.price_cart(it.model_dump() for it in body.items)
    return {
        "line_items": [li.to_dict() for li in line_items],
        "subtotal": subtotal,
        "subtotal_display": format_price(subtotal),
    }

@router.post(
    "/checkout/session",
    dependencies=[Depends(require_products_available), Depends(optional_rate_limit("checkout", times=10, seconds=60))],
)
async def create_checkout_session(body: CheckoutRequest, client: httpx.AsyncClient = Depends(get_http_client)):
    """
    Démarre le paiement d'une commande existante.
    - Tarifie le panier, résout le canal (e-wallet / banque VA) et appelle le service de paiement
    - Réponse: {provider, session_id, checkout_url, url, amount} (amount = montant facturé par le service de paiement)
    - Erreurs: 400 panier/moyen de paiement invalide, 502 refus ou panne du service de paiement
    """
    try:
        return await checkout_service.start_checkout(body, client=client)
    except HTTPException:
        raise
    except PaymentSessionError as e:
        raise HTTPException(status_code=502, detail=e.message)
