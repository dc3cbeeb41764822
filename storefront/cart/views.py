import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from storefront.cart import repository as cart_repo
from storefront.cart import service as cart_service
from storefront.utils.rate_limit import optional_rate_limit
from storefront.utils.security import get_current_user

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/v1/cart",
    tags=["Cart API"],
    dependencies=[Depends(optional_rate_limit("cart", times=60, seconds=60))],
)

def require_customer(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    """Seuls les profils 'customer' peuvent modifier un panier serveur."""
    profile = cart_repo.fetch_profile(user["id"])
    if not profile or profile.get("role") != "customer":
        raise HTTPException(status_code=403, detail="Forbidden: only customers may modify cart")
    return user

def _items(payload: Optional[Dict[str, Any]]) -> list:
    items = (payload or {}).get("items")
    return items if isinstance(items, list) else []

def _saved(row: Optional[dict]) -> dict:
    return row or {"items": []}

# module storefront.cart.views
@router.get("")
def get_cart(user: Dict[str, Any] = Depends(get_current_user)):
    """Panier serveur de l'utilisateur, ou {items: []} s'il n'existe pas."""
    return _saved(cart_repo.fetch_server_cart(user["id"]))

@router.put("")
def replace_cart(payload: Optional[Dict[str, Any]] = Body(default=None), user: Dict[str, Any] = Depends(require_customer)):
    """Remplace les articles du panier: {items:[{product_id, quantity}]}."""
    try:
        return _saved(cart_repo.upsert_cart(user["id"], _items(payload)))
    except Exception:
        logger.exception("Erreur replace_cart user_id=%s", user["id"])
        raise HTTPException(status_code=500, detail="Internal server error")

@router.patch("")
def merge_cart(payload: Optional[Dict[str, Any]] = Body(default=None), user: Dict[str, Any] = Depends(require_customer)):
    """Fusionne les articles reçus avec le panier serveur (quantités additionnées par product_id)."""
    server_cart = cart_repo.fetch_server_cart(user["id"]) or {"items": []}
    server_items = server_cart.get("items") if isinstance(server_cart.get("items"), list) else []
    merged = cart_service.merge_cart_items(server_items, _items(payload))
    try:
        return _saved(cart_repo.upsert_cart(user["id"], merged))
    except Exception:
        logger.exception("Erreur merge_cart user_id=%s", user["id"])
        raise HTTPException(status_code=500, detail="Internal server error")

@router.delete("")
def delete_cart(product_id: Optional[str] = None, user: Dict[str, Any] = Depends(require_customer)):
    """
    Supprime un article (?product_id=...) ou le panier entier.
    """
    try:
        if product_id:
            server_cart = cart_repo.fetch_server_cart(user["id"]) or {"items": []}
            remaining = cart_service.remove_cart_item(server_cart.get("items") or [], product_id)
            return _saved(cart_repo.upsert_cart(user["id"], remaining))
        cart_repo.delete_cart(user["id"])
        return {"ok": True}
    except Exception:
        logger.exception("Erreur delete_cart user_id=%s", user["id"])
        raise HTTPException(status_code=500, detail="Delete failed")
