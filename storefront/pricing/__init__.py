"""
Module 'pricing': règles de remise et formatage des prix.
"""

from .calculator import (
    PriceResult,
    compute_price_after_discount,
    format_price,
    round_half_up,
)

__all__ = [
    "PriceResult",
    "compute_price_after_discount",
    "format_price",
    "round_half_up",
]
