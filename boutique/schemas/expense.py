from decimal import Decimal

from pydantic import field_validator

from boutique.schemas.common import LedgerModel, coerce_money


class ExpenseCreate(LedgerModel):
    description: str
    amount: Decimal


class Expense(ExpenseCreate):
    id: str

    @field_validator("amount", mode="before")
    @classmethod
    def _money(cls, value):
        return coerce_money(value)
