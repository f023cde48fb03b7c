from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator

from boutique.schemas.common import LedgerModel, coerce_money


class Product(LedgerModel):
    id: str
    sku: str
    name: str
    category: str = "General"
    cost_price: Decimal = Decimal("0")
    price: Decimal
    stock: int = Field(default=0, ge=0)
    min_stock: int = Field(default=0, ge=0)

    @field_validator("cost_price", "price", mode="before")
    @classmethod
    def _money(cls, value):
        return coerce_money(value)

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.min_stock


class ProductCreate(LedgerModel):
    sku: str = ""
    name: str
    category: str = ""
    cost_price: Decimal = Decimal("0")
    price: Decimal
    stock: int = 0
    min_stock: Optional[int] = None


class ProductUpdate(LedgerModel):
    sku: Optional[str] = None
    name: Optional[str] = None
    category: Optional[str] = None
    cost_price: Optional[Decimal] = None
    price: Optional[Decimal] = None
    stock: Optional[int] = None
    min_stock: Optional[int] = None
