"""
Accès aux données pour la feature 'cart' (catalogue produits, paniers serveur, profils).
Les lectures renvoient des valeurs neutres ([], None) en cas d'erreur; les écritures propagent.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
import logging

import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = "id, name, price, discount_percent, image_url, stock_quantity"

# module storefront.cart.repository
def fetch_products_by_ids(ids: List[str]) -> List[dict]:
    """
    Récupère les produits par leurs IDs (table 'products').
    - Retourne [] si ids vide ou en cas d'erreur.
    """
    if not ids:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("products")
            .select(PRODUCT_COLUMNS)
            .in_("id", [str(i) for i in ids])
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("cart.repository.fetch_products_by_ids failed ids=%s", ids)
        return []

def get_products_map(ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    """Retourne un dict {id: produit} à partir d'une liste d'IDs (doublons ignorés)."""
    unique = list(dict.fromkeys(str(i) for i in ids))
    products = fetch_products_by_ids(unique)
    return {str(p.get("id")): p for p in products}

def get_user_from_access_token(access_token: str) -> Dict[str, Any]:
    """Récupère et normalise l'utilisateur depuis supabase.auth.get_user(access_token)."""
    res = supabase_client.get_supabase().auth.get_user(access_token)
    user = getattr(res, "user", None) or {}
    if not isinstance(user, dict):
        user = {
            "id": getattr(user, "id", None),
            "email": getattr(user, "email", None),
        }
    return user or {}

def fetch_profile(user_id: str) -> Optional[dict]:
    """Profil applicatif (table 'profiles') pour connaître le rôle (customer/admin)."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("profiles")
            .select("id, user_id, role")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("cart.repository.fetch_profile failed user_id=%s", user_id)
        return None

def fetch_server_cart(user_id: str) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("carts")
            .select("*")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("cart.repository.fetch_server_cart failed user_id=%s", user_id)
        return None

def upsert_cart(user_id: str, items: List[Dict[str, Any]]) -> Optional[dict]:
    """Remplace le panier serveur de l'utilisateur (upsert sur user_id)."""
    payload = {
        "user_id": user_id,
        "items": items,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
    res = (
        supabase_client.get_service_supabase()
        .table("carts")
        .upsert(payload, on_conflict="user_id")
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None

def delete_cart(user_id: str) -> None:
    (
        supabase_client.get_service_supabase()
        .table("carts")
        .delete()
        .eq("user_id", user_id)
        .execute()
    )
