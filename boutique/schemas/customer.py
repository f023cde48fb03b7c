from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, Field

from boutique.schemas.common import LedgerModel


class CustomerBase(LedgerModel):
    name: str
    phone: str
    email: Optional[str] = None
    address: Optional[str] = None
    tax_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("cpf", "taxId", "tax_id"),
        serialization_alias="cpf",
    )


class CustomerCreate(CustomerBase):
    pass


class Customer(CustomerBase):
    id: str
    created_at: datetime

