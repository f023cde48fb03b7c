from collections import OrderedDict
from datetime import date
from decimal import Decimal

from boutique.config import get_settings
from boutique.core.constants import (
    DELETED_CUSTOMER_LABEL,
    STATUS_PAID,
    WALK_IN_LABEL,
    ZERO,
)
from boutique.core.dates import month_key, shift_month
from boutique.core.money import money_sum, round_cents
from boutique.core.pricing import profit_margin, sale_profit


def _walk_in_id(walk_in_id=None):
    return walk_in_id or get_settings().WALK_IN_CUSTOMER_ID


def fixed_expense_total(expenses) -> Decimal:
    return money_sum(expense.amount for expense in expenses)


# ==============================
# Customers
# ==============================

def _customer_totals(sales, customer_id):
    purchased = ZERO
    paid = ZERO
    for sale in sales:
        if sale.customer_id != customer_id:
            continue
        purchased += sale.total_amount
        paid += money_sum(item.paid_amount for item in sale.installments)
    return purchased, paid


def customer_debt(sales, customer_id) -> Decimal:
    purchased, paid = _customer_totals(sales, customer_id)
    return purchased - paid


def customer_balances(customers, sales, walk_in_id=None):
    walk_in_id = _walk_in_id(walk_in_id)
    rows = []
    total_debt = ZERO
    total_purchased = ZERO
    for customer in customers:
        purchased, paid = _customer_totals(sales, customer.id)
        debt = purchased - paid
        total_debt += debt
        total_purchased += purchased
        rows.append(
            {
                "customer_id": customer.id,
                "name": customer.name,
                "phone": customer.phone,
                "total_purchased": purchased,
                "total_paid": paid,
                "debt": debt,
            }
        )

    walk_in_purchased, walk_in_paid = _customer_totals(sales, walk_in_id)
    return {
        "customers": rows,
        "total_debt": total_debt + walk_in_purchased - walk_in_paid,
        "total_purchased": total_purchased + walk_in_purchased,
        "walk_in": {
            "total_purchased": walk_in_purchased,
            "total_paid": walk_in_paid,
            "debt": walk_in_purchased - walk_in_paid,
        },
    }


def customer_name(customers_by_id, customer_id, walk_in_id=None):
    if customer_id == _walk_in_id(walk_in_id):
        return WALK_IN_LABEL
    customer = customers_by_id.get(customer_id)
    return customer.name if customer else DELETED_CUSTOMER_LABEL


# ==============================
# Profit and loss
# ==============================

def monthly_summary(sales, expenses, year: int, month: int):
    gross_revenue = ZERO
    discounts = ZERO
    card_fees = ZERO
    net_revenue = ZERO
    total_cost_of_goods = ZERO
    sale_count = 0

    for sale in sales:
        if sale.sale_date.year != year or sale.sale_date.month != month:
            continue
        sale_count += 1
        gross_revenue += sale.base_amount
        discounts += sale.discount
        card_fees += sale.card_fee_amount
        net_revenue += sale.net_amount
        total_cost_of_goods += sale.total_cost

    fixed_expenses = fixed_expense_total(expenses)
    product_profit = net_revenue - total_cost_of_goods
    return {
        "year": year,
        "month": month,
        "sale_count": sale_count,
        "gross_revenue": gross_revenue,
        "discounts": discounts,
        "card_fees": card_fees,
        "net_revenue": net_revenue,
        "total_cost_of_goods": total_cost_of_goods,
        "product_profit": product_profit,
        "fixed_expenses": fixed_expenses,
        "real_profit": product_profit - fixed_expenses,
    }


def profit_history(sales, expenses, today: date, months: int = 6):
    history = []
    for offset in range(months - 1, -1, -1):
        year, month = shift_month(today.year, today.month, -offset)
        history.append(monthly_summary(sales, expenses, year, month))
    return history


def sale_profit_row(sale):
    return {
        "sale_id": sale.id,
        "profit": sale_profit(sale.net_amount, sale.total_cost),
        "margin_percent": round_cents(profit_margin(sale.net_amount, sale.total_cost)),
    }


# ==============================
# Receivables
# ==============================

def sale_receivable(sale) -> Decimal:
    installment_total = money_sum(item.amount for item in sale.installments)
    if installment_total <= ZERO:
        return ZERO
    paid_total = money_sum(item.paid_amount for item in sale.installments)
    return sale.net_amount * (installment_total - paid_total) / installment_total


def total_receivable(sales) -> Decimal:
    return round_cents(money_sum(sale_receivable(sale) for sale in sales))


def is_overdue(installment, today: date) -> bool:
    return installment.status != STATUS_PAID and installment.due_date < today


def overdue_count(sales, today: date) -> int:
    return sum(
        1 for sale in sales if any(is_overdue(item, today) for item in sale.installments)
    )


def agenda(sales, customers, today: date, walk_in_id=None):
    """Every installment grouped by due month, oldest month first."""
    customers_by_id = {customer.id: customer for customer in customers}
    entries = []
    for sale in sales:
        total_installments = len(sale.installments)
        for index, item in enumerate(sale.installments, start=1):
            entries.append(
                {
                    "installment_id": item.id,
                    "sale_id": sale.id,
                    "customer_name": customer_name(customers_by_id, sale.customer_id, walk_in_id),
                    "sale_description": sale.description,
                    "installment_index": index,
                    "total_installments": total_installments,
                    "amount": item.amount,
                    "paid_amount": item.paid_amount,
                    "due_date": item.due_date,
                    "status": item.status,
                    "overdue": is_overdue(item, today),
                }
            )
    entries.sort(key=lambda entry: entry["due_date"])

    months = OrderedDict()
    for entry in entries:
        key = month_key(entry["due_date"])
        if key not in months:
            months[key] = {"month": key, "total": ZERO, "paid": ZERO, "installments": []}
        bucket = months[key]
        bucket["total"] += entry["amount"]
        bucket["paid"] += entry["paid_amount"]
        bucket["installments"].append(entry)
    return list(months.values())


# ==============================
# Inventory
# ==============================

def inventory_valuation(products):
    cost_value = money_sum(product.cost_price * product.stock for product in products)
    sale_value = money_sum(product.price * product.stock for product in products)
    return {
        "total_cost_value": cost_value,
        "total_sale_value": sale_value,
        "expected_profit": sale_value - cost_value,
    }


def low_stock_products(products):
    return [product for product in products if product.is_low_stock]


# ==============================
# Dashboard
# ==============================

def dashboard_summary(store, months: int = 6):
    snapshot = store.snapshot()
    sales = snapshot["sales"]
    expenses = snapshot["expenses"]
    products = snapshot["products"]
    today = store.today()

    return {
        "current_month": monthly_summary(sales, expenses, today.year, today.month),
        "history": profit_history(sales, expenses, today, months=months),
        "total_receivable": total_receivable(sales),
        "overdue_sales": overdue_count(sales, today),
        "fixed_expenses": fixed_expense_total(expenses),
        "stock_value_at_sale_price": inventory_valuation(products)["total_sale_value"],
        "customer_count": len(snapshot["customers"]),
        "sale_count": len(sales),
    }


__all__ = [
    "agenda",
    "customer_balances",
    "customer_debt",
    "dashboard_summary",
    "fixed_expense_total",
    "inventory_valuation",
    "low_stock_products",
    "monthly_summary",
    "overdue_count",
    "profit_history",
    "sale_profit_row",
    "sale_receivable",
    "total_receivable",
]
