"""
Catalogue des moyens de paiement et sélection courante (méthode + canal).
"""
from typing import List, Optional

# module storefront.payments.methods
PAYMENT_METHODS = [
    {"id": "QRIS", "name": "QRIS", "description": "Pembayaran QRIS melalui aplikasi bank/dompet digital"},
    {"id": "EWALLET", "name": "E-Wallet", "description": "Dompet digital (OVO, GoPay, Dana) sesuai ketersediaan"},
    {"id": "VIRTUAL_ACCOUNT", "name": "Virtual Account", "description": "Transfer bank via Virtual Account (BRI, BCA, BNI, Mandiri)"},
]
METHOD_IDS = tuple(m["id"] for m in PAYMENT_METHODS)
EWALLET_OPTIONS = ("OVO", "GOPAY", "DANA")
BANK_OPTIONS = ("BCA", "BNI", "BRI", "MANDIRI")

DEFAULT_PAYMENT_METHOD = METHOD_IDS[0]
DEFAULT_EWALLET = "OVO"
DEFAULT_BANK = "BCA"

# Enums acceptés par l'API Invoice de Xendit (sous-ensemble utilisé)
GATEWAY_METHODS = {
    "CARD",
    "BANK_TRANSFER",
    "RETAIL_OUTLET",
    "EWALLET",
    "QRIS",
    "DIRECT_DEBIT",
    "PAYLATER",
}
GATEWAY_ALIASES = {
    "e-wallet": "EWALLET",
    "ewallet": "EWALLET",
    "wallet": "EWALLET",
    "qris": "QRIS",
    "bank_transfer": "BANK_TRANSFER",
    "bank-transfer": "BANK_TRANSFER",
    "virtual_account": "BANK_TRANSFER",
}

def _upper(value: Optional[str]) -> str:
    return str(value or "").strip().upper()

class PaymentSelection:
    """
    État de sélection du paiement: méthode, e-wallet et banque choisis.
    Les setters valident contre le catalogue (ValueError si id inconnu).
    """

    def __init__(self, method: Optional[str] = None, ewallet: Optional[str] = None, bank: Optional[str] = None):
        self.method = DEFAULT_PAYMENT_METHOD
        self.ewallet = DEFAULT_EWALLET
        self.bank = DEFAULT_BANK
        if method:
            self.select_method(method)
        if ewallet:
            self.select_ewallet(ewallet)
        if bank:
            self.select_bank(bank)

    def select_method(self, method_id: str) -> None:
        value = _upper(method_id)
        if value not in METHOD_IDS:
            raise ValueError(f"Moyen de paiement inconnu: {method_id}")
        self.method = value

    def select_ewallet(self, ewallet: str) -> None:
        value = _upper(ewallet)
        if value not in EWALLET_OPTIONS:
            raise ValueError(f"E-wallet inconnu: {ewallet}")
        self.ewallet = value

    def select_bank(self, bank: str) -> None:
        value = _upper(bank)
        if value not in BANK_OPTIONS:
            raise ValueError(f"Banque inconnue: {bank}")
        self.bank = value

    def payment_channel(self) -> Optional[str]:
        if self.method == "EWALLET":
            return self.ewallet
        if self.method == "VIRTUAL_ACCOUNT":
            return self.bank
        return None

    def to_dict(self) -> dict:
        return {
            "payment_method": self.method,
            "payment_channel": self.payment_channel(),
        }

def resolve_gateway_methods(method: Optional[str]) -> Optional[List[str]]:
    """
    Traduit la méthode choisie côté front en enum Xendit.
    - Alias tolérés (ewallet, bank-transfer, ...); VIRTUAL_ACCOUNT -> BANK_TRANSFER.
    - Valeur non reconnue (ex: "xendit") -> None: la passerelle propose ses méthodes par défaut.
    """
    if not method:
        return None
    raw = str(method).strip()
    mapped = GATEWAY_ALIASES.get(raw.lower(), raw.upper())
    if mapped in GATEWAY_METHODS:
        return [mapped]
    return None
