from typing import List, Optional

from pydantic import BaseModel, Field

class CartEntry(BaseModel):
    id: str
    quantity: int = 1

class CartPriceRequest(BaseModel):
    items: List[CartEntry] = Field(default_factory=list)

class CheckoutCustomer(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

class CheckoutRequest(BaseModel):
    order_id: str = Field(min_length=1)
    items: List[CartEntry] = Field(default_factory=list)
    customer: CheckoutCustomer = Field(default_factory=CheckoutCustomer)
    payment_method: Optional[str] = None
    ewallet: Optional[str] = None
    bank: Optional[str] = None
    return_url: Optional[str] = None
