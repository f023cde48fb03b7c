import json
import unittest
from datetime import date, datetime, timezone
from decimal import Decimal

from boutique.core.errors import LedgerValidationError
from boutique.core.ids import SequentialIdAllocator
from boutique.schemas.customer import CustomerCreate
from boutique.schemas.expense import ExpenseCreate
from boutique.schemas.product import ProductCreate
from boutique.schemas.sale import SaleCreate
from boutique.services.backup_service import (
    encode_collections,
    encode_document,
    export_document,
    import_backup,
    parse_backup,
)
from boutique.services.ledger_service import LedgerStore

EXPORTED_AT = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)

LEGACY_BACKUP = {
    "customers": [
        {
            "id": "c1",
            "name": "Maria",
            "phone": "11 98888-7777",
            "cpf": "111.222.333-44",
            "createdAt": "2025-05-01T10:00:00Z",
        }
    ],
    "sales": [
        {
            "id": "s1",
            "customerId": "c1",
            "description": "Vestido Floral",
            "baseAmount": 259.9,
            "discount": 9.9,
            "totalAmount": 250,
            "cardFeeRate": 0,
            "cardFeeAmount": 0,
            "netAmount": 250,
            "date": "2025-05-01",
            "installments": [
                {"id": "i1", "saleId": "s1", "amount": 125, "paidAmount": 125, "dueDate": "2025-06-01", "status": "PAID"},
                {"id": "i2", "saleId": "s1", "amount": 125, "paidAmount": 0, "dueDate": "2025-07-01", "status": "PENDING"},
            ],
            "status": "PARTIAL",
        }
    ],
    "exportDate": "2025-08-01T00:00:00.000Z",
}


def make_store():
    return LedgerStore(allocator=SequentialIdAllocator(), today=lambda: date(2026, 3, 15))


class BackupTest(unittest.TestCase):
    def setUp(self):
        self.store = make_store()
        customer = self.store.add_customer(CustomerCreate(name="Ana", phone="555"))
        product = self.store.add_product(
            ProductCreate(sku="A1", name="Blouse", cost_price=Decimal("40"), price=Decimal("89.90"), stock=4)
        )
        self.store.add_expense(ExpenseCreate(description="Rent", amount=Decimal("1200")))
        self.store.record_sale(
            SaleCreate(
                customer_id=customer.id,
                product_id=product.id,
                card_fee_rate=Decimal("3.5"),
                installment_count=3,
            )
        )

    def test_export_then_import_is_stable(self):
        before = encode_collections(self.store)
        raw = encode_document(export_document(self.store, exported_at=EXPORTED_AT))

        restored = make_store()
        import_backup(restored, raw, confirm=True)
        self.assertEqual(encode_collections(restored), before)
        self.assertEqual(
            encode_document(export_document(restored, exported_at=EXPORTED_AT)),
            raw,
        )

    def test_export_shape(self):
        document = export_document(self.store, exported_at=EXPORTED_AT)
        self.assertEqual(
            sorted(document),
            ["customers", "expenses", "exportDate", "products", "sales"],
        )
        sale = document["sales"][0]
        self.assertIn("date", sale)
        self.assertEqual(sale["type"], "credit")
        self.assertEqual(sale["totalAmount"], "89.90")
        self.assertEqual(len(sale["installments"]), 3)

    def test_import_requires_confirmation(self):
        with self.assertRaises(LedgerValidationError):
            import_backup(self.store, LEGACY_BACKUP)
        self.assertEqual(self.store.customers[0].name, "Ana")

    def test_invalid_documents_change_nothing(self):
        before = encode_collections(self.store)
        bad_documents = [
            "{not json",
            json.dumps([1, 2]),
            {"customers": []},
            {"customers": [], "sales": "nope"},
            {"customers": [{"id": "c9"}], "sales": []},
        ]
        for document in bad_documents:
            with self.subTest(document=document):
                with self.assertRaises(LedgerValidationError):
                    import_backup(self.store, document, confirm=True)
        self.assertEqual(encode_collections(self.store), before)

    def test_import_older_backup(self):
        import_backup(self.store, LEGACY_BACKUP, confirm=True)

        customer = self.store.customers[0]
        self.assertEqual(customer.tax_id, "111.222.333-44")
        sale = self.store.sales[0]
        self.assertEqual(sale.base_amount, Decimal("259.9"))
        self.assertEqual(sale.discount, Decimal("9.9"))
        self.assertEqual(sale.sale_type, "credit")
        self.assertEqual(sale.status, "PARTIAL")
        self.assertEqual(self.store.products, [])
        self.assertEqual(len(self.store.expenses), 1)

    def test_imported_sale_status_follows_installments(self):
        document = json.loads(json.dumps(LEGACY_BACKUP))
        sale = document["sales"][0]
        sale["status"] = "PAID"
        sale["installments"][0].update(status="PENDING", paidAmount=0)
        sale["installments"][1].update(status="PAID", paidAmount=0)

        import_backup(self.store, document, confirm=True)

        imported = self.store.get_sale("s1")
        self.assertEqual(imported.status, "PARTIAL")
        self.assertEqual(imported.installments[1].paid_amount, Decimal("125"))
        self.assertEqual(imported.installments[0].status, "PENDING")

    def test_installment_partial_status_is_not_kept(self):
        document = json.loads(json.dumps(LEGACY_BACKUP))
        document["sales"][0]["installments"][1].update(status="PARTIAL", paidAmount=50)

        imported = parse_backup(document).sales[0]
        self.assertEqual(imported.installments[1].status, "PENDING")
        self.assertEqual(imported.installments[1].paid_amount, Decimal("50"))
        self.assertEqual(imported.status, "PARTIAL")

    def test_parse_backup_accepts_missing_products(self):
        document = parse_backup(json.dumps({"customers": [], "sales": [], "expenses": []}))
        self.assertEqual(document.products, [])
        self.assertEqual(document.expenses, [])


if __name__ == "__main__":
    unittest.main()
