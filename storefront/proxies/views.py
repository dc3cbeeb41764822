"""
Endpoints proxy sans état (POST uniquement; FastAPI répond 405 aux autres méthodes):
- /api/verify-turnstile: vérification CAPTCHA
- /api/refresh: rafraîchissement du token (rate limit 20/60s par IP)
- /api/login: Turnstile + connexion mot de passe (rate limit 5/60s par IP)
- /api/logout: révocation best-effort et suppression du cookie de refresh
Codes: 400 champ manquant, 429 rate limit, 500 configuration, 502 amont injoignable.
"""
import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from storefront import config
from storefront.infra.http_client import get_http_client
from storefront.utils.rate_limit import check_rate_limit, get_request_ip
from storefront.utils.security import clear_refresh_cookie, set_refresh_cookie
from storefront.proxies import service as upstream

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Proxies"])

REFRESH_LIMIT = (20, 60)
LOGIN_LIMIT = (5, 60)

async def _read_json(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}

def _misconfigured(payload: Optional[Dict[str, Any]] = None) -> JSONResponse:
    content = {"message": "Server misconfigured"}
    content.update(payload or {})
    return JSONResponse(content, status_code=500)

def _too_many() -> JSONResponse:
    return JSONResponse({"message": "Too many requests"}, status_code=429)

# module storefront.proxies.views
@router.post("/verify-turnstile")
async def verify_turnstile(request: Request, client: httpx.AsyncClient = Depends(get_http_client)):
    """
    Vérifie un token Turnstile: {token} -> siteverify, réponse relayée telle quelle ({success, ...}).
    """
    body = await _read_json(request)
    token = body.get("token")
    if not token:
        return JSONResponse({"success": False, "message": "Missing token"}, status_code=400)
    if not config.TURNSTILE_SECRET:
        logger.error("TURNSTILE_SECRET not set")
        return _misconfigured({"success": False})
    try:
        status, result = await upstream.verify_turnstile_token(client, token, remote_ip=get_request_ip(request))
    except (httpx.HTTPError, ValueError):
        logger.exception("Turnstile verify failed")
        return JSONResponse({"success": False, "message": "Verification request failed"}, status_code=502)
    return JSONResponse(result, status_code=status)

@router.post("/refresh")
async def refresh_token(request: Request, client: httpx.AsyncClient = Depends(get_http_client)):
    """
    Échange un refresh token contre une nouvelle session GoTrue.
    - Entrée: {refresh_token} (sinon cookie sb_refresh_token)
    - Réponse amont relayée (statut + JSON); le cookie est renouvelé si un nouveau refresh_token est émis.
    - Rate limit: 20 requêtes / 60s par IP, fail-open si le limiteur échoue.
    """
    body = await _read_json(request)
    token = body.get("refresh_token") or request.cookies.get(config.REFRESH_COOKIE_NAME)
    if not token:
        return JSONResponse({"message": "Missing refresh_token"}, status_code=400)
    if not upstream.supabase_configured():
        logger.error("Supabase config missing (SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY)")
        return _misconfigured()
    if await check_rate_limit(request, "refresh", *REFRESH_LIMIT):
        return _too_many()

    try:
        status, result = await upstream.exchange_refresh_token(client, token)
    except (httpx.HTTPError, ValueError):
        logger.exception("Supabase refresh proxy failed")
        return JSONResponse({"message": "Refresh proxy failed"}, status_code=502)

    response = JSONResponse(result, status_code=status)
    if 200 <= status < 300 and isinstance(result, dict) and result.get("refresh_token"):
        set_refresh_cookie(response, result["refresh_token"])
    return response

@router.post("/login")
async def login(request: Request, client: httpx.AsyncClient = Depends(get_http_client)):
    """
    Connexion email/mot de passe protégée par Turnstile.
    - 503 si la section auth est en maintenance
    - 400 identifiants ou token Turnstile manquants, 403 Turnstile refusé
    - Rate limit: 5 requêtes / 60s par IP
    """
    if config.MAINTENANCE_AUTH:
        return JSONResponse({"message": "Authentication is under maintenance"}, status_code=503)
    body = await _read_json(request)
    email, password, token = body.get("email"), body.get("password"), body.get("token")
    if not email or not password:
        return JSONResponse({"message": "Missing credentials"}, status_code=400)
    if await check_rate_limit(request, "login", *LOGIN_LIMIT):
        return _too_many()
    if not config.TURNSTILE_SECRET:
        logger.error("TURNSTILE_SECRET not set")
        return _misconfigured()
    if not token:
        logger.warning("Missing Turnstile token on login")
        return JSONResponse({"message": "Missing Turnstile token"}, status_code=400)

    try:
        _, verification = await upstream.verify_turnstile_token(client, token, remote_ip=get_request_ip(request))
    except (httpx.HTTPError, ValueError):
        logger.exception("Turnstile verify error")
        return JSONResponse({"message": "Turnstile verification error"}, status_code=502)
    if not (isinstance(verification, dict) and verification.get("success")):
        logger.info("Turnstile verification failed: %s", verification)
        return JSONResponse({"message": "Turnstile verification failed", "details": verification}, status_code=403)

    if not upstream.supabase_configured():
        logger.error("Supabase config missing (SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY)")
        return _misconfigured()
    try:
        status, result = await upstream.password_grant(client, email, password)
    except (httpx.HTTPError, ValueError):
        logger.exception("Supabase login proxy failed")
        return JSONResponse({"message": "Auth proxy failed"}, status_code=502)

    response = JSONResponse(result, status_code=status)
    if 200 <= status < 300 and isinstance(result, dict) and result.get("refresh_token"):
        set_refresh_cookie(response, result["refresh_token"])
    return response

@router.post("/logout")
async def logout(request: Request, client: httpx.AsyncClient = Depends(get_http_client)):
    """
    Révoque la session GoTrue associée au cookie de refresh (best-effort) puis efface le cookie.
    Répond toujours {ok: true}.
    """
    token = request.cookies.get(config.REFRESH_COOKIE_NAME)
    if token and upstream.supabase_configured():
        try:
            status, result = await upstream.exchange_refresh_token(client, token)
            access_token = result.get("access_token") if isinstance(result, dict) else None
            if 200 <= status < 300 and access_token:
                await upstream.revoke_session(client, access_token)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Session revoke on logout failed: %s", e)

    response = JSONResponse({"ok": True})
    clear_refresh_cookie(response)
    return response
