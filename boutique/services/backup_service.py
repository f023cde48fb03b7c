import json
import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError

from boutique.core.constants import COLLECTIONS
from boutique.core.errors import LedgerValidationError
from boutique.schemas.backup import BackupDocument
from boutique.services.ledger_service import LedgerStore
from boutique.services.persistence_service import dump_records

logger = logging.getLogger(__name__)


def export_document(store: LedgerStore, exported_at: Optional[datetime] = None) -> dict:
    snapshot = store.snapshot()
    document = {name: dump_records(snapshot[name]) for name in ("customers", "sales", "products", "expenses")}
    document["exportDate"] = (exported_at or datetime.now(timezone.utc)).isoformat()
    return document


def encode_document(document: dict) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def encode_collections(store: LedgerStore) -> str:
    snapshot = store.snapshot()
    return json.dumps(
        {name: dump_records(snapshot[name]) for name in COLLECTIONS},
        indent=2,
        ensure_ascii=False,
    )


def parse_backup(raw) -> BackupDocument:
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise LedgerValidationError("Backup file is not valid JSON.") from exc
    if not isinstance(raw, dict):
        raise LedgerValidationError("Backup file must be a JSON object.")
    if not isinstance(raw.get("customers"), list) or not isinstance(raw.get("sales"), list):
        raise LedgerValidationError("Backup file must contain customers and sales lists.")
    if raw.get("products") is None:
        raw = dict(raw, products=[])
    try:
        return BackupDocument.model_validate(raw)
    except ValidationError as exc:
        raise LedgerValidationError(
            "Backup file has invalid records: {}".format(exc.error_count())
        ) from exc


def import_backup(store: LedgerStore, raw, confirm: bool = False) -> BackupDocument:
    """Replace the workspace with a backup document.

    Nothing changes unless ``confirm`` is set and the whole document validates.
    Expenses are only replaced when the document carries an ``expenses`` list.
    """
    if not confirm:
        raise LedgerValidationError("Import replaces the current data; confirm to continue.")
    document = parse_backup(raw)
    store.replace_all(document)
    logger.info(
        "Imported backup: %d customers, %d sales, %d products",
        len(document.customers),
        len(document.sales),
        len(document.products),
    )
    return document


__all__ = [
    "encode_collections",
    "encode_document",
    "export_document",
    "import_backup",
    "parse_backup",
]
