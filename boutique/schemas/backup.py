from datetime import datetime
from typing import List, Optional

from pydantic import Field

from boutique.schemas.common import LedgerModel
from boutique.schemas.customer import Customer
from boutique.schemas.expense import Expense
from boutique.schemas.product import Product
from boutique.schemas.sale import Sale


class BackupDocument(LedgerModel):
    customers: List[Customer]
    sales: List[Sale]
    products: List[Product] = Field(default_factory=list)
    expenses: Optional[List[Expense]] = None
    export_date: Optional[datetime] = None
