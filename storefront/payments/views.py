import logging
import secrets

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from storefront import config
from storefront.infra import supabase_client
from storefront.infra.http_client import get_http_client
from storefront.utils.rate_limit import optional_rate_limit
from storefront.utils.security import require_service_key
from storefront.payments import methods
from storefront.payments.models import CreateSessionRequest, CreateSessionResult
from storefront.payments import service as payments_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/payments", tags=["Payments API"])

# module storefront.payments.views
@router.post(
    "/create-session",
    status_code=201,
    dependencies=[Depends(require_service_key), Depends(optional_rate_limit("payments", times=60, seconds=60))],
)
async def create_session(body: CreateSessionRequest, client: httpx.AsyncClient = Depends(get_http_client)):
    """
    Crée une session de paiement (facture Xendit) pour une commande.
    - Sécurité: x-api-key (SERVICE_API_KEY) + rate limit (60 req / 60s par IP)
    - Réponse 201: {provider, session_id, checkout_url, url, amount}
    - Erreurs: 401 clé invalide, 404 commande introuvable, 502 passerelle
    """
    try:
        session = await payments_service.open_payment_session(body, client=client)
        return JSONResponse(CreateSessionResult(**session).model_dump(), status_code=201)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Erreur create_session order_id=%s", body.order_id)
        raise HTTPException(status_code=500, detail="Failed to create payment session")

@router.get("/methods")
def list_payment_methods():
    """Catalogue des moyens de paiement (méthodes, e-wallets, banques VA, valeurs par défaut)."""
    return {
        "methods": methods.PAYMENT_METHODS,
        "ewallets": list(methods.EWALLET_OPTIONS),
        "banks": list(methods.BANK_OPTIONS),
        "defaults": {
            "method": methods.DEFAULT_PAYMENT_METHOD,
            "ewallet": methods.DEFAULT_EWALLET,
            "bank": methods.DEFAULT_BANK,
        },
    }

@router.post("/webhooks/xendit", include_in_schema=False)
async def webhook_xendit(request: Request):
    """
    Callback de facture Xendit.
    - Authentification: en-tête x-callback-token == XENDIT_WEBHOOK_TOKEN (401 sinon)
    - Effets: upsert payments + payment_events, orders.status -> paid / cancelled
    - Réponses: {"ok": true}; 501 si la base n'est pas configurée; 500 si l'écriture échoue (Xendit relance)
    """
    token = request.headers.get("x-callback-token") or ""
    expected = config.XENDIT_WEBHOOK_TOKEN
    if not expected or not secrets.compare_digest(token, expected):
        raise HTTPException(status_code=401, detail="Invalid webhook token")
    if not supabase_client.is_configured():
        raise HTTPException(status_code=501, detail="DB not configured")
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid webhook payload")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid webhook payload")
    try:
        payments_service.apply_invoice_callback(payload)
        return {"ok": True}
    except Exception:
        logger.exception("Erreur webhook_xendit invoice=%s", payload.get("id"))
        raise HTTPException(status_code=500, detail="Failed to process webhook")

@router.get("/invoices/{invoice_id}", dependencies=[Depends(require_service_key)])
async def get_invoice(invoice_id: str, client: httpx.AsyncClient = Depends(get_http_client)):
    """Détail brut d'une facture Xendit (x-api-key requis). 404 facture inconnue, 502 passerelle."""
    return await payments_service.fetch_invoice(invoice_id, client=client)
