from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

class CustomerInfo(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

class SessionItem(BaseModel):
    name: Optional[str] = None
    quantity: int = Field(default=1, ge=0)
    price: float = Field(default=0, ge=0)

class CreateSessionRequest(BaseModel):
    """
    Corps de POST /api/payments/create-session. Trois formes acceptées:
    - order_id seul: montant relu dans la table orders;
    - order_id + amount + items: payload du storefront (montant déjà calculé);
    - test=True + order: dry-run sans commande persistée (order.total_amount ou order.total).
    """
    order_id: Optional[str] = None
    amount: Optional[float] = Field(default=None, ge=0)
    customer: Optional[CustomerInfo] = None
    items: List[SessionItem] = Field(default_factory=list)
    return_url: Optional[str] = None
    payment_method: Optional[str] = None
    payment_channel: Optional[str] = None
    test: bool = False
    order: Optional[Dict[str, Any]] = None

    @model_validator(mode="after")
    def _require_order_or_test(self):
        if not self.order_id and not self.test:
            raise ValueError("order_id requis (ou test=true)")
        return self

class CreateSessionResult(BaseModel):
    provider: str
    session_id: Optional[str] = None
    checkout_url: Optional[str] = None
    url: Optional[str] = None
    amount: Optional[int] = None
