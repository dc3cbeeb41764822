"""
Calcul de prix pur (pas de DB, pas de HTTP).
Les montants sont exprimés dans la plus petite unité utilisée par la boutique (IDR entiers).
"""
import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

# module storefront.pricing.calculator
@dataclass(frozen=True)
class PriceResult:
    original: int
    discounted: int
    discount_percent: int
    discount_amount: int

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

def _to_number(value: Any) -> float:
    """
    Parse numérique tolérant: str|int|float -> float.
    - None, NaN, infini ou valeur non numérique -> 0.0 (jamais d'exception).
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number

def round_half_up(value: float) -> int:
    # 2.5 -> 3 (et non 2 comme round() de Python)
    return int(math.floor(value + 0.5))

def compute_price_after_discount(
    price: Any,
    discount_percent: Optional[Any] = None,
    discount_amount: Optional[Any] = None,
) -> PriceResult:
    """
    Calcule le prix remisé.
    - discount_amount, s'il est fourni, est prioritaire: le pourcentage en est dérivé.
    - Sinon discount_percent est borné à [0, 100] et le montant en est dérivé.
    - discounted = max(0, round(original - discount_amount)).
    """
    original = max(0.0, _to_number(price))
    percent = 0.0
    amount = 0.0

    if discount_amount is not None:
        # Montant absolu prioritaire sur le pourcentage
        amount = min(max(0.0, _to_number(discount_amount)), original)
        percent = (amount / original) * 100 if original > 0 else 0.0
    elif discount_percent is not None:
        percent = min(max(0.0, _to_number(discount_percent)), 100.0)
        amount = round_half_up((percent / 100) * original)

    discounted = max(0, round_half_up(original - amount))
    return PriceResult(
        original=round_half_up(original),
        discounted=discounted,
        discount_percent=round_half_up(percent),
        discount_amount=round_half_up(amount),
    )

def format_price(amount: Any) -> str:
    """Formate un montant en rupiah: 150000 -> 'Rp 150.000'."""
    value = round_half_up(_to_number(amount))
    sign = "-" if value < 0 else ""
    return f"{sign}Rp {abs(value):,}".replace(",", ".")
