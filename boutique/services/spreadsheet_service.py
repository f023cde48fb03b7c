import logging
from pathlib import Path

from openpyxl import load_workbook
from pydantic import ValidationError

from boutique.core.errors import LedgerConflictError, LedgerValidationError
from boutique.core.money import to_decimal
from boutique.schemas.product import ProductCreate
from boutique.services.ledger_service import LedgerStore, normalize_sku

logger = logging.getLogger(__name__)

PRODUCT_SHEET = "products"

HEADER_ALIASES = {
    "sku": "sku",
    "code": "sku",
    "product_code": "sku",
    "item_code": "sku",
    "codigo": "sku",
    "name": "name",
    "product": "name",
    "product_name": "name",
    "article_name": "name",
    "category": "category",
    "department": "category",
    "cost": "cost_price",
    "cost_price": "cost_price",
    "unit_cost": "cost_price",
    "price": "price",
    "sale_price": "price",
    "selling_price": "price",
    "mrp": "price",
    "stock": "stock",
    "qty": "stock",
    "quantity": "stock",
    "min_stock": "min_stock",
    "minimum_stock": "min_stock",
    "reorder_level": "min_stock",
}

REQUIRED_COLUMNS = {"name", "price"}


def normalize_header(value):
    if value is None:
        return ""
    value_text = str(value).strip().lower()
    if not value_text:
        return ""
    for char in (" ", "-", ".", "/"):
        value_text = value_text.replace(char, "_")
    value_text = "_".join(part for part in value_text.split("_") if part)
    return HEADER_ALIASES.get(value_text, value_text)


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _to_int(value, default=0):
    if _is_blank(value):
        return default
    try:
        return int(float(str(value).strip()))
    except (ValueError, OverflowError):
        raise ValueError("not a whole number: {!r}".format(value)) from None


def _to_money(value):
    if _is_blank(value):
        return None
    amount = to_decimal(value, default=None)
    if amount is None or not amount.is_finite():
        raise ValueError("not an amount: {!r}".format(value))
    return amount


def _select_sheet(workbook, sheet_name):
    for worksheet in workbook.worksheets:
        if normalize_header(worksheet.title) == normalize_header(sheet_name):
            return worksheet
    return workbook.active


def load_product_rows(worksheet):
    rows = worksheet.iter_rows(values_only=True)
    header = next(rows, None)
    if header is None:
        return [], set()
    columns = [normalize_header(cell) for cell in header]
    missing = REQUIRED_COLUMNS - set(columns)
    if missing:
        raise ValueError(
            "Missing required columns in {}: {}".format(worksheet.title, ", ".join(sorted(missing)))
        )

    records = []
    for row_number, values in enumerate(rows, start=2):
        if all(_is_blank(value) for value in values):
            continue
        record = {"row": row_number}
        for column, value in zip(columns, values):
            if column:
                record[column] = value
        records.append(record)
    return records, set(columns)


def _build_payload(record) -> ProductCreate:
    min_stock = record.get("min_stock")
    return ProductCreate(
        sku="" if _is_blank(record.get("sku")) else str(record.get("sku")).strip(),
        name="" if _is_blank(record.get("name")) else str(record.get("name")).strip(),
        category="" if _is_blank(record.get("category")) else str(record.get("category")).strip(),
        cost_price=_to_money(record.get("cost_price")) or 0,
        price=_to_money(record.get("price")),
        stock=_to_int(record.get("stock")),
        min_stock=None if _is_blank(min_stock) else _to_int(min_stock),
    )


def import_products_workbook(store: LedgerStore, path, sheet=PRODUCT_SHEET, dry_run=False):
    """Load products from an .xlsx sheet into ``store``.

    Rows whose SKU already exists (in the store or earlier in the sheet) are
    skipped; rows that fail validation are reported in ``errors``.
    """
    path = Path(path)
    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        worksheet = _select_sheet(workbook, sheet)
        records, _columns = load_product_rows(worksheet)
    finally:
        workbook.close()

    counts = {"inserted": 0, "skipped": 0, "errors": []}
    seen_skus = {normalize_sku(product.sku) for product in store.products}
    for record in records:
        try:
            payload = _build_payload(record)
        except (ValueError, ValidationError) as exc:
            counts["errors"].append("row {}: {}".format(record["row"], exc))
            continue

        sku = normalize_sku(payload.sku)
        if sku and sku in seen_skus:
            counts["skipped"] += 1
            continue

        if dry_run:
            try:
                store.check_product(payload)
            except LedgerValidationError as exc:
                counts["errors"].append("row {}: {}".format(record["row"], exc))
                continue
            if sku:
                seen_skus.add(sku)
            counts["inserted"] += 1
            continue

        try:
            product = store.add_product(payload)
        except LedgerConflictError:
            counts["skipped"] += 1
            continue
        except LedgerValidationError as exc:
            counts["errors"].append("row {}: {}".format(record["row"], exc))
            continue
        seen_skus.add(normalize_sku(product.sku))
        counts["inserted"] += 1

    logger.info(
        "Workbook %s: %d inserted, %d skipped, %d errors%s",
        path.name,
        counts["inserted"],
        counts["skipped"],
        len(counts["errors"]),
        " (dry run)" if dry_run else "",
    )
    return counts


__all__ = ["import_products_workbook", "load_product_rows", "normalize_header"]
