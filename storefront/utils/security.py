import secrets
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.responses import Response

from storefront import config

def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None

def require_service_key(request: Request) -> None:
    """Protège les routes service-à-service: l'en-tête x-api-key doit valoir SERVICE_API_KEY."""
    header = request.headers.get("x-api-key") or ""
    expected = config.SERVICE_API_KEY
    if not expected or not secrets.compare_digest(header, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")

def get_current_user(request: Request) -> Dict[str, Any]:
    token = _bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Missing access token")
    try:
        # Délégué au repository (supabase.auth.get_user)
        from storefront.cart.repository import get_user_from_access_token
        user = get_user_from_access_token(token)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid token")
    if not user.get("id"):
        raise HTTPException(status_code=401, detail="Invalid token")
    return user

def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key=config.REFRESH_COOKIE_NAME,
        value=refresh_token,
        httponly=True,
        secure=config.COOKIE_SECURE,
        samesite="lax",
        max_age=60 * 60 * 24 * 30,
        path="/",
    )

def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(config.REFRESH_COOKIE_NAME, path="/")
