"""
Appels sortants des proxies: Cloudflare Turnstile et Supabase GoTrue (/auth/v1/*).
Chaque fonction fait une seule requête (pas de retry) et retourne (statut, JSON).
Les erreurs réseau (httpx.HTTPError) et de parsing (ValueError) remontent à la vue.
"""
from typing import Any, Dict, Optional, Tuple

import httpx

from storefront import config

Upstream = Tuple[int, Any]

# module storefront.proxies.service
def _service_headers() -> Dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {config.SUPABASE_SERVICE_ROLE_KEY}",
        "apikey": config.SUPABASE_SERVICE_ROLE_KEY,
    }

def supabase_configured() -> bool:
    return bool(config.SUPABASE_URL and config.SUPABASE_SERVICE_ROLE_KEY)

async def verify_turnstile_token(
    client: httpx.AsyncClient,
    token: str,
    remote_ip: Optional[str] = None,
) -> Upstream:
    """POST form-encoded {secret, response[, remoteip]} vers l'API siteverify."""
    form = {"secret": config.TURNSTILE_SECRET, "response": token}
    if remote_ip:
        form["remoteip"] = remote_ip
    resp = await client.post(config.TURNSTILE_VERIFY_URL, data=form)
    return resp.status_code, resp.json()

async def exchange_refresh_token(client: httpx.AsyncClient, refresh_token: str) -> Upstream:
    resp = await client.post(
        f"{config.SUPABASE_URL}/auth/v1/token",
        params={"grant_type": "refresh_token"},
        json={"refresh_token": refresh_token},
        headers=_service_headers(),
    )
    return resp.status_code, resp.json()

async def password_grant(client: httpx.AsyncClient, email: str, password: str) -> Upstream:
    resp = await client.post(
        f"{config.SUPABASE_URL}/auth/v1/token",
        params={"grant_type": "password"},
        json={"email": email, "password": password},
        headers=_service_headers(),
    )
    return resp.status_code, resp.json()

async def revoke_session(client: httpx.AsyncClient, access_token: str) -> int:
    resp = await client.post(
        f"{config.SUPABASE_URL}/auth/v1/logout",
        headers={"Authorization": f"Bearer {access_token}", "apikey": config.SUPABASE_SERVICE_ROLE_KEY},
    )
    return resp.status_code
