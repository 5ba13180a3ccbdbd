"""
Order record consumed by the notification adapters.

The storefront owns the order schema; this is the subset the email templates
read from it.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Address(BaseModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = None
    country: str = "India"


class Customer(BaseModel):
    name: str
    email: str
    phone: str | None = None
    address: Address = Field(default_factory=Address)


class ProductLine(BaseModel):
    name: str
    quantity: int = Field(default=1, ge=1)
    price: float
    discount: float = 0


class Payment(BaseModel):
    method: str
    status: str = "pending"


class OrderRecord(BaseModel):
    """An order as seen by the email pipeline."""

    order_id: str
    order_date: datetime
    status: str
    customer: Customer
    product: ProductLine
    payment: Payment
    total_amount: float
    notes: str | None = None

    @property
    def formatted_order_date(self) -> str:
        return self.order_date.strftime("%d %B %Y, %I:%M %p")
