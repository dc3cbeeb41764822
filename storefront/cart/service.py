"""
Cas d'usage 'cart': orchestre repository et line_items.
"""
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from . import repository
from .line_items import LineItem, build_line_items, normalize_cart_items

def price_cart(raw_items: Iterable[Mapping[str, Any]]) -> Tuple[List[LineItem], int]:
    """
    Charge les produits référencés par le panier et construit les lignes + sous-total.
    Les produits introuvables donnent une ligne de substitution à prix 0.
    """
    items = normalize_cart_items(raw_items)
    if not items:
        return [], 0
    products = repository.get_products_map(it.id for it in items)
    return build_line_items(items, products)

def merge_cart_items(
    server_items: Iterable[Mapping[str, Any]],
    incoming: Iterable[Mapping[str, Any]],
) -> List[Dict[str, Any]]:
    """
    Fusionne deux paniers par product_id en additionnant les quantités.
    L'ordre suit la première apparition de chaque produit (serveur puis entrant).
    """
    merged: Dict[str, int] = {}
    for it in list(server_items or []) + list(incoming or []):
        product_id = str(it.get("product_id") or it.get("id") or "").strip()
        if not product_id:
            continue
        try:
            qty = int(it.get("quantity") or 0)
        except (TypeError, ValueError):
            qty = 0
        merged[product_id] = merged.get(product_id, 0) + qty
    return [{"product_id": pid, "quantity": qty} for pid, qty in merged.items()]

def remove_cart_item(server_items: Iterable[Mapping[str, Any]], product_id: str) -> List[Dict[str, Any]]:
    return [dict(it) for it in server_items or [] if str(it.get("product_id")) != str(product_id)]
