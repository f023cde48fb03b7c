import unittest
from decimal import Decimal

from fastapi.testclient import TestClient

from boutique.config import Settings
from boutique.core.ids import SequentialIdAllocator
from boutique.database import Base, build_engine, build_sessionmaker
from boutique.main import create_app
from boutique.models import LedgerCollection, import_all_models
from boutique.services.insight_service import MESSAGE_NOT_CONFIGURED, InsightService
from boutique.services.persistence_service import DebouncedSaver, LedgerRepository
from boutique.services.workspace_service import WorkspaceRegistry

HEADERS = {"X-User-Id": "shop-1"}


class LedgerApiTest(unittest.TestCase):
    def setUp(self):
        import_all_models()
        engine = build_engine("sqlite:///:memory:")
        Base.metadata.create_all(bind=engine)
        self.repository = LedgerRepository(build_sessionmaker(engine))
        self.registry = WorkspaceRegistry(
            self.repository,
            DebouncedSaver(self.repository, delay_seconds=60),
            allocator_factory=SequentialIdAllocator,
        )
        app = create_app(
            workspaces=self.registry,
            insights=InsightService(Settings(INSIGHT_API_KEY=None)),
        )
        self.client = TestClient(app)

    def _customer(self):
        response = self.client.post(
            "/customers",
            json={"name": "Ana", "phone": "555", "cpf": "111.222.333-44"},
            headers=HEADERS,
        )
        self.assertEqual(response.status_code, 201)
        return response.json()

    def _product(self, sku="A1", stock=2):
        response = self.client.post(
            "/products",
            json={"sku": sku, "name": "Blouse", "costPrice": 40, "price": 120, "stock": stock},
            headers=HEADERS,
        )
        self.assertEqual(response.status_code, 201)
        return response.json()

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")
        self.assertEqual(response.json()["workspaces_loaded"], 0)

        self._customer()
        self.assertEqual(self.client.get("/health").json()["workspaces_loaded"], 1)

    def test_user_header_is_required(self):
        response = self.client.get("/customers")
        self.assertEqual(response.status_code, 400)

    def test_customer_wire_format(self):
        customer = self._customer()
        self.assertEqual(customer["cpf"], "111.222.333-44")
        self.assertIn("createdAt", customer)

        listing = self.client.get("/customers", headers=HEADERS).json()
        self.assertEqual(len(listing["items"]), 1)
        self.assertEqual(listing["total_debt"], "0")

    def test_duplicate_sku_conflicts(self):
        self._product()
        response = self.client.post(
            "/products",
            json={"sku": "a1", "name": "Other", "price": 10},
            headers=HEADERS,
        )
        self.assertEqual(response.status_code, 409)
        self.assertIn("A1", response.json()["detail"])

    def test_credit_sale_flow(self):
        customer = self._customer()
        product = self._product()
        response = self.client.post(
            "/sales",
            json={
                "customerId": customer["id"],
                "productId": product["id"],
                "saleType": "credit",
                "installmentCount": 3,
                "dueDay": 10,
            },
            headers=HEADERS,
        )
        self.assertEqual(response.status_code, 201)
        body = response.json()
        sale = body["sale"]
        self.assertEqual(body["warnings"], [])
        self.assertEqual(sale["type"], "credit")
        self.assertEqual(sale["status"], "PENDING")
        self.assertEqual(sale["totalAmount"], "120")
        self.assertEqual(len(sale["installments"]), 3)

        installment = sale["installments"][0]
        paid = self.client.post(
            "/sales/{}/installments/{}/payment".format(sale["id"], installment["id"]),
            json={"paid": True},
            headers=HEADERS,
        )
        self.assertEqual(paid.status_code, 200)
        self.assertEqual(paid.json()["status"], "PARTIAL")

        receivables = self.client.get("/reports/receivables", headers=HEADERS).json()
        self.assertEqual(receivables["total_receivable"], "80.00")

        products = self.client.get("/products", headers=HEADERS).json()
        self.assertEqual(products["items"][0]["stock"], 1)

        debt = self.client.get("/customers/{}/debt".format(customer["id"]), headers=HEADERS).json()
        self.assertEqual(Decimal(debt["debt"]), Decimal("80"))

    def test_rejected_sale_returns_400(self):
        customer = self._customer()
        response = self.client.post(
            "/sales",
            json={"customerId": customer["id"], "description": "Dress", "baseAmount": 50, "discount": 80},
            headers=HEADERS,
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.client.get("/sales", headers=HEADERS).json()["items"], [])

    def test_unknown_sale_is_404(self):
        response = self.client.get("/sales/missing", headers=HEADERS)
        self.assertEqual(response.status_code, 404)

    def test_workspaces_are_isolated(self):
        self._customer()
        other = self.client.get("/customers", headers={"X-User-Id": "shop-2"}).json()
        self.assertEqual(other["items"], [])

    def test_import_requires_confirm(self):
        self._customer()
        document = {"customers": [], "sales": []}
        response = self.client.post("/data/import", json=document, headers=HEADERS)
        self.assertEqual(response.status_code, 400)

        response = self.client.post("/data/import?confirm=true", json=document, headers=HEADERS)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["customers"], 0)
        self.assertEqual(self.client.get("/customers", headers=HEADERS).json()["items"], [])

    def test_export_and_sync(self):
        self._customer()
        exported = self.client.get("/data/export", headers=HEADERS).json()
        self.assertEqual(len(exported["customers"]), 1)
        self.assertIn("exportDate", exported)

        self.registry.shutdown()
        status = self.client.get("/data/sync-status", headers=HEADERS).json()
        self.assertEqual(status["status"], "synced")
        self.assertEqual(len(self.repository.load_collection("shop-1", "customers")), 1)

    def test_clear_removes_stored_rows(self):
        self._customer()
        self.registry.shutdown()
        self.assertEqual(len(self.repository.load_collection("shop-1", "customers")), 1)

        response = self.client.delete("/data", headers=HEADERS)
        self.assertEqual(response.status_code, 204)
        self.assertEqual(self.client.get("/customers", headers=HEADERS).json()["items"], [])
        with self.repository.session_factory() as db:
            self.assertEqual(
                db.query(LedgerCollection).filter(LedgerCollection.user_id == "shop-1").count(),
                0,
            )
        self.assertEqual(
            self.client.get("/data/sync-status", headers=HEADERS).json()["status"], "synced"
        )

    def test_insights_without_key(self):
        response = self.client.get("/insights", headers=HEADERS)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["insight"], MESSAGE_NOT_CONFIGURED)


if __name__ == "__main__":
    unittest.main()
