# supplyhub/models/order_models.py

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from supplyhub.models.money import to_money
from supplyhub.models.status import OrderStatus


class OrderItemIn(BaseModel):
    productId: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    # informational only; the catalog price at order time is what gets charged
    unitPrice: Optional[Decimal] = None

    @field_validator("unitPrice", mode="before")
    @classmethod
    def _price(cls, v):
        return None if v is None else to_money(v)


class CreateOrderBody(BaseModel):
    distributorId: str = Field(..., min_length=1)
    items: List[OrderItemIn]
    deliveryAddress: Optional[str] = None
    estimatedDeliveryDate: Optional[datetime] = None
    notes: Optional[str] = None


class OrderStatusBody(BaseModel):
    status: OrderStatus
