import unittest
from datetime import date, datetime, timezone
from decimal import Decimal

from boutique.core.ids import SequentialIdAllocator
from boutique.schemas.customer import CustomerCreate
from boutique.schemas.expense import ExpenseCreate
from boutique.schemas.product import ProductCreate
from boutique.schemas.sale import SaleCreate
from boutique.services.ledger_service import LedgerStore
from boutique.services.report_service import (
    agenda,
    customer_balances,
    customer_debt,
    dashboard_summary,
    inventory_valuation,
    low_stock_products,
    monthly_summary,
    overdue_count,
    profit_history,
    sale_profit_row,
    sale_receivable,
    total_receivable,
)

TODAY = date(2026, 3, 15)


class ReportsTest(unittest.TestCase):
    def setUp(self):
        self.store = LedgerStore(
            allocator=SequentialIdAllocator(),
            today=lambda: TODAY,
            now=lambda: datetime(2026, 3, 1, tzinfo=timezone.utc),
        )
        self.customer = self.store.add_customer(CustomerCreate(name="Ana", phone="555"))
        self.store.add_expense(ExpenseCreate(description="Rent", amount=Decimal("100")))
        self.store.add_expense(ExpenseCreate(description="Power", amount=Decimal("50")))

    def _credit_sale(self, amount, count, sale_date, fee_rate="0", due_day=None):
        return self.store.record_sale(
            SaleCreate(
                customer_id=self.customer.id,
                description="Dress",
                base_amount=Decimal(amount),
                card_fee_rate=Decimal(fee_rate),
                installment_count=count,
                due_day=due_day,
                sale_date=sale_date,
            )
        ).sale

    def _pay(self, sale, *indexes):
        for index in indexes:
            sale = self.store.set_installment_paid(sale.id, sale.installments[index].id, True)
        return sale

    def test_month_without_sales_loses_fixed_expenses(self):
        summary = monthly_summary(self.store.sales, self.store.expenses, 2026, 2)
        self.assertEqual(summary["sale_count"], 0)
        self.assertEqual(summary["net_revenue"], Decimal("0"))
        self.assertEqual(summary["real_profit"], Decimal("-150"))

    def test_monthly_summary(self):
        product = self.store.add_product(
            ProductCreate(sku="A1", name="Blouse", cost_price=Decimal("40"), price=Decimal("100"), stock=5)
        )
        self.store.record_sale(
            SaleCreate(
                customer_id=self.customer.id,
                product_id=product.id,
                discount=Decimal("10"),
                card_fee_rate=Decimal("5"),
                sale_type="cash",
                sale_date=date(2026, 3, 2),
            )
        )
        self._credit_sale("200", 2, date(2026, 3, 5))
        self._credit_sale("999", 1, date(2026, 2, 28))

        summary = monthly_summary(self.store.sales, self.store.expenses, 2026, 3)
        self.assertEqual(summary["sale_count"], 2)
        self.assertEqual(summary["gross_revenue"], Decimal("300"))
        self.assertEqual(summary["discounts"], Decimal("10"))
        self.assertEqual(summary["card_fees"], Decimal("4.5"))
        self.assertEqual(summary["net_revenue"], Decimal("285.5"))
        self.assertEqual(summary["total_cost_of_goods"], Decimal("40"))
        self.assertEqual(summary["product_profit"], Decimal("245.5"))
        self.assertEqual(summary["real_profit"], Decimal("95.5"))

    def test_profit_history_is_oldest_first(self):
        history = profit_history(self.store.sales, self.store.expenses, TODAY, months=6)
        self.assertEqual(
            [(row["year"], row["month"]) for row in history],
            [(2025, 10), (2025, 11), (2025, 12), (2026, 1), (2026, 2), (2026, 3)],
        )

    def test_receivable_is_proportional_to_unpaid_installments(self):
        sale = self._credit_sale("400", 4, date(2026, 1, 10), fee_rate="10")
        self.assertEqual(sale.net_amount, Decimal("360"))
        sale = self._pay(sale, 0, 1)
        self.assertEqual(sale_receivable(sale), Decimal("180"))
        self.assertEqual(total_receivable(self.store.sales), Decimal("180.00"))

        sale = self._pay(sale, 2, 3)
        self.assertEqual(sale_receivable(sale), Decimal("0"))

    def test_cash_sale_has_no_receivable(self):
        self.store.record_sale(
            SaleCreate(walk_in=True, description="Belt", base_amount=Decimal("25"), sale_type="cash")
        )
        self.assertEqual(total_receivable(self.store.sales), Decimal("0"))

    def test_overdue_counts_sales_not_installments(self):
        sale = self._credit_sale("300", 3, date(2026, 1, 10))
        self.assertEqual(overdue_count(self.store.sales, TODAY), 1)
        self.assertEqual(overdue_count(self.store.sales, date(2026, 2, 10)), 0)

        self._pay(sale, 0, 1)
        self.assertEqual(overdue_count(self.store.sales, TODAY), 0)

    def test_customer_debt_and_balances(self):
        sale = self._credit_sale("400", 4, date(2026, 1, 10))
        self._pay(sale, 0, 1)
        self.store.record_sale(
            SaleCreate(walk_in=True, description="Belt", base_amount=Decimal("25"), sale_type="cash")
        )

        self.assertEqual(customer_debt(self.store.sales, self.customer.id), Decimal("200"))
        balances = customer_balances(self.store.customers, self.store.sales)
        self.assertEqual(len(balances["customers"]), 1)
        self.assertEqual(balances["customers"][0]["debt"], Decimal("200"))
        self.assertEqual(balances["total_purchased"], Decimal("425"))
        self.assertEqual(balances["total_debt"], Decimal("200"))
        self.assertEqual(balances["walk_in"]["total_purchased"], Decimal("25"))

    def test_agenda_groups_by_month(self):
        self._credit_sale("200", 2, date(2026, 1, 31), due_day=31)
        self.store.record_sale(
            SaleCreate(walk_in=True, description="Belt", base_amount=Decimal("25"), sale_type="cash", sale_date=date(2026, 2, 3))
        )
        buckets = agenda(self.store.sales, self.store.customers, TODAY)
        self.assertEqual([bucket["month"] for bucket in buckets], ["2026-02", "2026-03"])

        february = buckets[0]
        self.assertEqual(february["total"], Decimal("125"))
        self.assertEqual(february["paid"], Decimal("25"))
        names = [entry["customer_name"] for entry in february["installments"]]
        self.assertEqual(names, ["Walk-in sale", "Ana"])
        self.assertTrue(february["installments"][1]["overdue"])
        self.assertEqual(february["installments"][1]["installment_index"], 1)
        self.assertEqual(february["installments"][1]["total_installments"], 2)

    def test_agenda_labels_deleted_customers(self):
        self._credit_sale("100", 1, date(2026, 3, 1))
        self.store.delete_customer(self.customer.id)
        buckets = agenda(self.store.sales, self.store.customers, TODAY)
        self.assertEqual(buckets[0]["installments"][0]["customer_name"], "Deleted customer")

    def test_inventory(self):
        self.store.add_product(
            ProductCreate(sku="A1", name="Blouse", cost_price=Decimal("40"), price=Decimal("100"), stock=3)
        )
        self.store.add_product(
            ProductCreate(sku="A2", name="Skirt", cost_price=Decimal("30"), price=Decimal("70"), stock=1, min_stock=1)
        )
        valuation = inventory_valuation(self.store.products)
        self.assertEqual(valuation["total_cost_value"], Decimal("150"))
        self.assertEqual(valuation["total_sale_value"], Decimal("370"))
        self.assertEqual(valuation["expected_profit"], Decimal("220"))
        self.assertEqual([product.sku for product in low_stock_products(self.store.products)], ["A2"])

    def test_sale_profit_row(self):
        product = self.store.add_product(
            ProductCreate(sku="A1", name="Blouse", cost_price=Decimal("40"), price=Decimal("100"), stock=3)
        )
        sale = self.store.record_sale(
            SaleCreate(customer_id=self.customer.id, product_id=product.id, sale_type="cash")
        ).sale
        row = sale_profit_row(sale)
        self.assertEqual(row["profit"], Decimal("60"))
        self.assertEqual(row["margin_percent"], Decimal("60.00"))

    def test_dashboard(self):
        self._credit_sale("300", 3, date(2026, 1, 10))
        summary = dashboard_summary(self.store)
        self.assertEqual(summary["current_month"]["month"], 3)
        self.assertEqual(len(summary["history"]), 6)
        self.assertEqual(summary["total_receivable"], Decimal("300.00"))
        self.assertEqual(summary["overdue_sales"], 1)
        self.assertEqual(summary["fixed_expenses"], Decimal("150"))
        self.assertEqual(summary["sale_count"], 1)


if __name__ == "__main__":
    unittest.main()
