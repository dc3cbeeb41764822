"""
Logique panier pure (pas de Supabase, pas de HTTP).
Construit les lignes affichables d'un panier à partir des produits du catalogue.
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from storefront.pricing import compute_price_after_discount

MISSING_PRODUCT_NAME = "Produit introuvable"

# module storefront.cart.line_items
@dataclass(frozen=True)
class CartItem:
    id: str
    quantity: int

@dataclass(frozen=True)
class LineItem:
    id: str
    name: str
    price: int
    unit_price: int
    discount_percent: int
    quantity: int
    stock_quantity: int
    image_url: Optional[str] = None

    @property
    def total(self) -> int:
        return self.unit_price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

def normalize_cart_items(items: Iterable[Union[Mapping[str, Any], CartItem]]) -> List[CartItem]:
    """
    Convertit un panier brut [{id, quantity}, ...] en CartItem.
    - Ignore les lignes invalides (id vide, quantity <= 0 ou non numérique).
    - Conserve l'ordre du panier, sans fusionner les doublons.
    """
    cart: List[CartItem] = []
    for it in items or []:
        if isinstance(it, CartItem):
            raw_id, raw_qty = it.id, it.quantity
        else:
            raw_id = it.get("id") or it.get("product_id")
            raw_qty = it.get("quantity")
        item_id = str(raw_id or "").strip()
        try:
            qty = int(raw_qty or 0)
        except (TypeError, ValueError):
            qty = 0
        if not item_id or qty <= 0:
            continue
        cart.append(CartItem(id=item_id, quantity=qty))
    return cart

def _stock(product: Mapping[str, Any]) -> int:
    try:
        return max(0, int(product.get("stock_quantity") or 0))
    except (TypeError, ValueError):
        return 0

def build_line_item(item: CartItem, product: Optional[Mapping[str, Any]]) -> LineItem:
    """
    Construit une ligne pour un article du panier.
    Produit absent du catalogue: nom de substitution et prix 0, sans lever d'erreur.
    """
    if not product:
        return LineItem(
            id=item.id,
            name=MISSING_PRODUCT_NAME,
            price=0,
            unit_price=0,
            discount_percent=0,
            quantity=item.quantity,
            stock_quantity=0,
        )
    info = compute_price_after_discount(
        product.get("price"),
        discount_percent=product.get("discount_percent") or 0,
    )
    return LineItem(
        id=item.id,
        name=product.get("name") or MISSING_PRODUCT_NAME,
        price=info.original,
        unit_price=info.discounted,
        discount_percent=info.discount_percent,
        quantity=item.quantity,
        stock_quantity=_stock(product),
        image_url=product.get("image_url"),
    )

def build_line_items(
    items: Iterable[CartItem],
    products: Union[Mapping[str, Mapping[str, Any]], Iterable[Mapping[str, Any]]],
) -> Tuple[List[LineItem], int]:
    """
    Joint les articles du panier avec les produits et calcule le sous-total.
    - products: dict {id: produit} ou liste de produits (indexée par "id").
    - Retour: (lignes dans l'ordre du panier, somme des unit_price × quantity).
    """
    if isinstance(products, Mapping):
        by_id = {str(k): v for k, v in products.items()}
    else:
        by_id = {str(p.get("id")): p for p in products or [] if p.get("id") is not None}

    line_items = [build_line_item(it, by_id.get(str(it.id))) for it in items or []]
    subtotal = sum(li.total for li in line_items)
    return line_items, subtotal
