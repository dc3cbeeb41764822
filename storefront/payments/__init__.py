"""
Module 'payments' (feature-first): point d'entrée public.
Réunit sélection du moyen de paiement, client du service de paiement, adaptateur Xendit et services.
"""

from .methods import PaymentSelection, resolve_gateway_methods
from .gateway_client import PaymentSessionError, build_session_payload, create_payment_session
from .invoice_client import InvoiceError, build_invoice_payload, create_invoice, get_invoice
from .repository import fetch_order
from .service import apply_invoice_callback, fetch_invoice, open_payment_session

__all__ = [
    # methods
    "PaymentSelection",
    "resolve_gateway_methods",
    # client storefront -> service de paiement
    "PaymentSessionError",
    "build_session_payload",
    "create_payment_session",
    # xendit
    "InvoiceError",
    "build_invoice_payload",
    "create_invoice",
    "get_invoice",
    # repository
    "fetch_order",
    # services
    "open_payment_session",
    "apply_invoice_callback",
    "fetch_invoice",
]
