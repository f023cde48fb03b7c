"""In-memory ledger for one user's workspace.

``LedgerStore`` is the single owner of the four record collections. Every
mutation validates its input first, then applies all of its writes under the
store lock, so a rejected call never leaves a partial write and no caller can
observe a sale whose status disagrees with its installments.
"""

import logging
import threading
from datetime import date, datetime, timezone
from typing import Callable, List, NamedTuple, Optional

from boutique.config import Settings, get_settings
from boutique.core.constants import (
    DEFAULT_CATEGORY,
    SALE_TYPE_CASH,
    SALE_TYPE_CREDIT,
    ZERO,
)
from boutique.core.errors import (
    LedgerConflictError,
    LedgerNotFoundError,
    LedgerValidationError,
)
from boutique.core.ids import IdAllocator
from boutique.core.payment_rules import apply_installment_payment, derive_sale_status
from boutique.core.pricing import price_sale
from boutique.core.schedule import attach_sale_id, build_cash_schedule, build_credit_schedule
from boutique.schemas.backup import BackupDocument
from boutique.schemas.customer import Customer, CustomerCreate
from boutique.schemas.expense import Expense, ExpenseCreate
from boutique.schemas.product import Product, ProductCreate, ProductUpdate
from boutique.schemas.sale import Sale, SaleCreate

logger = logging.getLogger(__name__)

_SKU_ATTEMPTS = 20


class SaleRecorded(NamedTuple):
    sale: Sale
    warnings: List[str]


def normalize_sku(value: Optional[str]) -> str:
    return (value or "").strip().upper()


def _require_text(value: Optional[str], message: str) -> str:
    text = (value or "").strip()
    if not text:
        raise LedgerValidationError(message)
    return text


class LedgerStore:
    def __init__(
        self,
        customers=None,
        products=None,
        sales=None,
        expenses=None,
        *,
        allocator: Optional[IdAllocator] = None,
        today: Optional[Callable[[], date]] = None,
        now: Optional[Callable[[], datetime]] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.walk_in_id = settings.WALK_IN_CUSTOMER_ID
        self.max_installments = settings.MAX_INSTALLMENTS
        self.default_min_stock = settings.DEFAULT_MIN_STOCK
        self.allocator = allocator or IdAllocator()
        self._today = today or date.today
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._lock = threading.RLock()
        self._listeners: list[Callable[["LedgerStore"], None]] = []

        self._customers: list[Customer] = list(customers or [])
        self._products: list[Product] = list(products or [])
        self._sales: list[Sale] = list(sales or [])
        self._expenses: list[Expense] = list(expenses or [])

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def today(self) -> date:
        return self._today()

    @property
    def customers(self) -> list[Customer]:
        with self._lock:
            return list(self._customers)

    @property
    def products(self) -> list[Product]:
        with self._lock:
            return list(self._products)

    @property
    def sales(self) -> list[Sale]:
        with self._lock:
            return list(self._sales)

    @property
    def expenses(self) -> list[Expense]:
        with self._lock:
            return list(self._expenses)

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "customers": list(self._customers),
                "sales": list(self._sales),
                "expenses": list(self._expenses),
                "products": list(self._products),
            }

    def get_customer(self, customer_id: str) -> Customer:
        customer = self._find(self.customers, customer_id)
        if customer is None:
            raise LedgerNotFoundError("Customer {} not found.".format(customer_id))
        return customer

    def get_product(self, product_id: str) -> Product:
        product = self._find(self.products, product_id)
        if product is None:
            raise LedgerNotFoundError("Product {} not found.".format(product_id))
        return product

    def get_sale(self, sale_id: str) -> Sale:
        sale = self._find(self.sales, sale_id)
        if sale is None:
            raise LedgerNotFoundError("Sale {} not found.".format(sale_id))
        return sale

    def list_sales(self, sale_type: Optional[str] = None) -> list[Sale]:
        sales = self.sales
        if sale_type is None:
            return sales
        return [sale for sale in sales if sale.sale_type == sale_type]

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, callback: Callable[["LedgerStore"], None]) -> None:
        self._listeners.append(callback)

    def _changed(self) -> None:
        for callback in list(self._listeners):
            callback(self)

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def add_customer(self, payload: CustomerCreate) -> Customer:
        name = _require_text(payload.name, "Customer name is required.")
        phone = _require_text(payload.phone, "Customer phone is required.")
        customer = Customer(
            id=self.allocator.new_id(),
            name=name,
            phone=phone,
            email=payload.email or None,
            address=payload.address or None,
            tax_id=payload.tax_id or None,
            created_at=self._now(),
        )
        with self._lock:
            self._customers.append(customer)
        self._changed()
        return customer

    def delete_customer(self, customer_id: str) -> None:
        with self._lock:
            self._customers = self._remove(self._customers, customer_id, "Customer")
        self._changed()

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def check_product(self, payload: ProductCreate) -> str:
        """Validate a new product without storing it; returns the cleaned name."""
        name = _require_text(payload.name, "Product name is required.")
        self._check_product_numbers(payload.cost_price, payload.price, payload.stock, payload.min_stock)
        return name

    def add_product(self, payload: ProductCreate) -> Product:
        name = self.check_product(payload)

        with self._lock:
            sku = normalize_sku(payload.sku) or self._generate_sku()
            self._ensure_unique_sku(sku)
            product = Product(
                id=self.allocator.new_id(),
                sku=sku,
                name=name,
                category=(payload.category or "").strip() or DEFAULT_CATEGORY,
                cost_price=payload.cost_price,
                price=payload.price,
                stock=payload.stock,
                min_stock=(
                    payload.min_stock
                    if payload.min_stock is not None
                    else self.default_min_stock
                ),
            )
            self._products.append(product)
        self._changed()
        return product

    def update_product(self, product_id: str, payload: ProductUpdate) -> Product:
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in changes:
            changes["name"] = _require_text(changes["name"], "Product name is required.")
        if "category" in changes:
            changes["category"] = changes["category"].strip() or DEFAULT_CATEGORY
        self._check_product_numbers(
            changes.get("cost_price"),
            changes.get("price"),
            changes.get("stock"),
            changes.get("min_stock"),
        )

        with self._lock:
            existing = self.get_product(product_id)
            if "sku" in changes:
                sku = normalize_sku(changes["sku"])
                if not sku:
                    raise LedgerValidationError("SKU cannot be blank.")
                self._ensure_unique_sku(sku, ignore_id=product_id)
                changes["sku"] = sku
            updated = existing.model_copy(update=changes)
            self._products = [
                updated if item.id == product_id else item for item in self._products
            ]
        self._changed()
        return updated

    def delete_product(self, product_id: str) -> None:
        with self._lock:
            self._products = self._remove(self._products, product_id, "Product")
        self._changed()

    def _generate_sku(self) -> str:
        for _ in range(_SKU_ATTEMPTS):
            sku = normalize_sku(self.allocator.new_sku())
            if not self._sku_taken(sku):
                return sku
        raise LedgerConflictError("Could not allocate a free SKU.")

    def _sku_taken(self, sku: str, ignore_id: Optional[str] = None) -> bool:
        return any(
            normalize_sku(item.sku) == sku and item.id != ignore_id
            for item in self._products
        )

    def _ensure_unique_sku(self, sku: str, ignore_id: Optional[str] = None) -> None:
        if self._sku_taken(sku, ignore_id=ignore_id):
            raise LedgerConflictError('SKU "{}" already exists.'.format(sku))

    @staticmethod
    def _check_product_numbers(cost_price, price, stock, min_stock) -> None:
        if cost_price is not None and cost_price < ZERO:
            raise LedgerValidationError("Cost price must be non-negative.")
        if price is not None and price < ZERO:
            raise LedgerValidationError("Price must be non-negative.")
        if stock is not None and stock < 0:
            raise LedgerValidationError("Stock must be non-negative.")
        if min_stock is not None and min_stock < 0:
            raise LedgerValidationError("Minimum stock must be non-negative.")

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    def add_expense(self, payload: ExpenseCreate) -> Expense:
        description = _require_text(payload.description, "Expense description is required.")
        if payload.amount is None or payload.amount <= ZERO:
            raise LedgerValidationError("Expense amount must be positive.")
        expense = Expense(
            id=self.allocator.new_id(),
            description=description,
            amount=payload.amount,
        )
        with self._lock:
            self._expenses.append(expense)
        self._changed()
        return expense

    def delete_expense(self, expense_id: str) -> None:
        with self._lock:
            self._expenses = self._remove(self._expenses, expense_id, "Expense")
        self._changed()

    # ------------------------------------------------------------------
    # Sales
    # ------------------------------------------------------------------

    def record_sale(self, payload: SaleCreate) -> SaleRecorded:
        with self._lock:
            sale, product = self._build_sale(payload)

            warnings = []
            if sale.update_stock and product.stock <= 0:
                warnings.append(
                    "Product {} is out of stock. Sale recorded anyway.".format(product.sku)
                )

            self._sales.append(sale)
            if sale.update_stock:
                self._decrement_stock(product.id)

        logger.info(
            "Recorded %s sale %s (total=%s, installments=%d)",
            sale.sale_type,
            sale.id,
            sale.total_amount,
            len(sale.installments),
            extra={"sale_id": sale.id},
        )
        self._changed()
        return SaleRecorded(sale=sale, warnings=warnings)

    def _build_sale(self, payload: SaleCreate):
        if payload.walk_in:
            customer_id = self.walk_in_id
        else:
            customer_id = (payload.customer_id or "").strip()
        if not customer_id:
            raise LedgerValidationError("A customer or a walk-in sale is required.")
        if customer_id != self.walk_in_id:
            self.get_customer(customer_id)

        product = self.get_product(payload.product_id) if payload.product_id else None

        base_amount = payload.base_amount
        if base_amount is None and product is not None:
            base_amount = product.price
        if base_amount is None:
            raise LedgerValidationError("Sale amount is required.")

        description = (payload.description or "").strip()
        if not description and product is not None:
            description = "{} - {}".format(product.sku, product.name)
        if not description:
            raise LedgerValidationError("Sale description is required.")

        pricing = price_sale(base_amount, payload.discount, payload.card_fee_rate)
        if pricing.total_amount <= ZERO:
            raise LedgerValidationError("Sale total must be positive.")

        sale_date = payload.sale_date or self.today()
        if payload.sale_type == SALE_TYPE_CASH:
            installments = build_cash_schedule(pricing.total_amount, sale_date, self.allocator)
        else:
            installments = build_credit_schedule(
                pricing.total_amount,
                payload.installment_count,
                payload.due_day or sale_date.day,
                sale_date,
                self.allocator,
                max_installments=self.max_installments,
            )

        sale_id = self.allocator.new_id()
        installments = attach_sale_id(installments, sale_id)
        sale = Sale(
            id=sale_id,
            customer_id=customer_id,
            product_id=product.id if product else None,
            description=description,
            base_amount=pricing.base_amount,
            discount=pricing.discount,
            total_amount=pricing.total_amount,
            card_fee_rate=pricing.card_fee_rate,
            card_fee_amount=pricing.card_fee_amount,
            net_amount=pricing.net_amount,
            total_cost=product.cost_price if product else ZERO,
            sale_date=sale_date,
            installments=installments,
            status=derive_sale_status(installments),
            sale_type=payload.sale_type or SALE_TYPE_CREDIT,
            update_stock=bool(product) and payload.update_stock,
        )
        return sale, product

    def _decrement_stock(self, product_id: str) -> None:
        self._products = [
            item.model_copy(update={"stock": max(0, item.stock - 1)})
            if item.id == product_id
            else item
            for item in self._products
        ]

    def set_installment_paid(self, sale_id: str, installment_id: str, paid: bool) -> Sale:
        with self._lock:
            sale = self.get_sale(sale_id)
            updated = apply_installment_payment(sale, installment_id, paid)
            self._sales = [updated if item.id == sale_id else item for item in self._sales]
        logger.info(
            "Installment %s of sale %s %s; sale status %s",
            installment_id,
            sale_id,
            "paid" if paid else "reversed",
            updated.status,
            extra={"sale_id": sale_id, "installment_id": installment_id},
        )
        self._changed()
        return updated

    # ------------------------------------------------------------------
    # Bulk replacement
    # ------------------------------------------------------------------

    def replace_all(self, document: BackupDocument) -> None:
        with self._lock:
            self._customers = list(document.customers)
            self._sales = list(document.sales)
            self._products = list(document.products)
            if document.expenses is not None:
                self._expenses = list(document.expenses)
        self._changed()

    def clear(self) -> None:
        with self._lock:
            self._customers = []
            self._sales = []
            self._expenses = []
            self._products = []
        self._changed()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _find(items, record_id):
        for item in items:
            if item.id == record_id:
                return item
        return None

    @staticmethod
    def _remove(items, record_id, label):
        remaining = [item for item in items if item.id != record_id]
        if len(remaining) == len(items):
            raise LedgerNotFoundError("{} {} not found.".format(label, record_id))
        return remaining


__all__ = ["LedgerStore", "SaleRecorded", "normalize_sku"]
