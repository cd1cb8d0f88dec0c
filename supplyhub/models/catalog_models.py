# supplyhub/models/catalog_models.py

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from supplyhub.models.money import to_money


class ProductCreateBody(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: str = Field(..., min_length=1)
    price: Decimal
    stockQuantity: int = Field(0, ge=0)
    unit: str = Field(..., min_length=1)
    minimumOrderQuantity: int = Field(1, ge=1)
    isActive: bool = True

    @field_validator("price", mode="before")
    @classmethod
    def _price(cls, v):
        return to_money(v)


class ProductUpdateBody(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1)
    price: Optional[Decimal] = None
    stockQuantity: Optional[int] = Field(None, ge=0)
    unit: Optional[str] = Field(None, min_length=1)
    minimumOrderQuantity: Optional[int] = Field(None, ge=1)
    isActive: Optional[bool] = None

    @field_validator("price", mode="before")
    @classmethod
    def _price(cls, v):
        return None if v is None else to_money(v)
