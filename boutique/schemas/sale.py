from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import Field, field_validator, model_validator

from boutique.core.constants import STATUS_PAID, STATUS_PENDING
from boutique.core.payment_rules import derive_sale_status
from boutique.schemas.common import LedgerModel, coerce_money, money_or_zero

PaymentStatus = Literal["PENDING", "PARTIAL", "PAID"]
SaleType = Literal["cash", "credit"]


class Installment(LedgerModel):
    id: str
    sale_id: str = ""
    amount: Decimal
    paid_amount: Decimal = Decimal("0")
    due_date: date
    status: PaymentStatus = "PENDING"

    @field_validator("amount", "paid_amount", mode="before")
    @classmethod
    def _money(cls, value):
        return coerce_money(value)

    @model_validator(mode="after")
    def _consistent_payment(self):
        # PAID means fully paid; installments are never stored as PARTIAL.
        if self.status == STATUS_PAID:
            if self.paid_amount != self.amount:
                self.paid_amount = self.amount
        elif self.status != STATUS_PENDING:
            self.status = STATUS_PENDING
        return self


class Sale(LedgerModel):
    id: str
    customer_id: str
    product_id: Optional[str] = None
    description: str
    base_amount: Decimal
    discount: Decimal = Decimal("0")
    total_amount: Decimal
    card_fee_rate: Decimal = Decimal("0")
    card_fee_amount: Decimal = Decimal("0")
    net_amount: Decimal
    total_cost: Decimal = Decimal("0")
    sale_date: date = Field(alias="date")
    installments: List[Installment] = Field(default_factory=list)
    status: PaymentStatus = "PENDING"
    sale_type: SaleType = Field(default="credit", alias="type")
    update_stock: bool = False

    @field_validator(
        "discount",
        "card_fee_rate",
        "card_fee_amount",
        "total_cost",
        mode="before",
    )
    @classmethod
    def _optional_money(cls, value):
        return coerce_money(money_or_zero(value))

    @field_validator("base_amount", "total_amount", "net_amount", mode="before")
    @classmethod
    def _money(cls, value):
        return coerce_money(value)

    @field_validator("sale_type", mode="before")
    @classmethod
    def _default_type(cls, value):
        return value or "credit"

    @field_validator("update_stock", mode="before")
    @classmethod
    def _default_update_stock(cls, value):
        return bool(value) if value is not None else False

    @model_validator(mode="after")
    def _status_from_installments(self):
        self.status = derive_sale_status(self.installments)
        return self


class SaleCreate(LedgerModel):
    customer_id: Optional[str] = None
    walk_in: bool = False
    product_id: Optional[str] = None
    description: Optional[str] = None
    base_amount: Optional[Decimal] = None
    discount: Decimal = Decimal("0")
    card_fee_rate: Decimal = Decimal("0")
    sale_type: SaleType = "credit"
    installment_count: int = 1
    due_day: Optional[int] = None
    sale_date: Optional[date] = None
    update_stock: bool = True


class InstallmentPayment(LedgerModel):
    paid: bool = True
