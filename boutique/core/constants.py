from decimal import Decimal

STATUS_PENDING = "PENDING"
STATUS_PARTIAL = "PARTIAL"
STATUS_PAID = "PAID"

SALE_TYPE_CASH = "cash"
SALE_TYPE_CREDIT = "credit"

COLLECTIONS = ("customers", "sales", "expenses", "products")

SYNC_SYNCED = "synced"
SYNC_SYNCING = "syncing"
SYNC_ERROR = "error"

WALK_IN_LABEL = "Walk-in sale"
DELETED_CUSTOMER_LABEL = "Deleted customer"
DEFAULT_CATEGORY = "General"

ZERO = Decimal("0")
CENT = Decimal("0.01")
