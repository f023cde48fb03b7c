import json
import logging
import threading
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from boutique.core.constants import COLLECTIONS, SYNC_ERROR, SYNC_SYNCED, SYNC_SYNCING
from boutique.database.session import SessionLocal
from boutique.models.ledger_collection import LedgerCollection
from boutique.schemas.customer import Customer
from boutique.schemas.expense import Expense
from boutique.schemas.product import Product
from boutique.schemas.sale import Sale
from boutique.services.ledger_service import LedgerStore

logger = logging.getLogger(__name__)

COLLECTION_SCHEMAS = {
    "customers": Customer,
    "sales": Sale,
    "expenses": Expense,
    "products": Product,
}


def dump_records(records) -> list[dict]:
    return [record.model_dump(mode="json", by_alias=True) for record in records]


def encode_records(records) -> str:
    return json.dumps(dump_records(records), ensure_ascii=False)


def parse_records(raw, schema, label=""):
    """Validate stored records, dropping anything that does not fit ``schema``."""
    if not isinstance(raw, list):
        logger.warning("Discarding %s: expected a list, got %s", label, type(raw).__name__)
        return []
    records = []
    for index, item in enumerate(raw):
        try:
            records.append(schema.model_validate(item))
        except ValidationError as exc:
            logger.warning(
                "Dropping malformed %s record at index %d: %s",
                label,
                index,
                exc.errors()[0].get("msg") if exc.errors() else exc,
            )
    return records


class LedgerRepository:
    """Stores each user's collections as JSON arrays, one row per collection."""

    def __init__(self, session_factory=None):
        self.session_factory = session_factory or SessionLocal

    def load_collection(self, user_id: str, collection: str) -> list:
        schema = COLLECTION_SCHEMAS[collection]
        with self.session_factory() as db:
            row = (
                db.execute(
                    select(LedgerCollection).where(
                        LedgerCollection.user_id == user_id,
                        LedgerCollection.collection == collection,
                    )
                )
                .scalars()
                .first()
            )
            payload = row.payload if row is not None else None

        if not payload:
            return []
        try:
            raw = json.loads(payload)
        except (TypeError, ValueError):
            logger.warning(
                "Discarding unreadable %s for user %s",
                collection,
                user_id,
                extra={"user_id": user_id, "collection": collection},
            )
            return []
        return parse_records(raw, schema, label=collection)

    def load_store(self, user_id: str, **store_kwargs) -> LedgerStore:
        loaded = {name: self.load_collection(user_id, name) for name in COLLECTIONS}
        logger.info(
            "Loaded workspace %s: %s",
            user_id,
            ", ".join("{}={}".format(name, len(items)) for name, items in loaded.items()),
        )
        return LedgerStore(**loaded, **store_kwargs)

    def save_snapshot(self, user_id: str, snapshot: dict) -> None:
        with self.session_factory() as db:
            try:
                for name in COLLECTIONS:
                    payload = encode_records(snapshot.get(name, []))
                    row = (
                        db.execute(
                            select(LedgerCollection).where(
                                LedgerCollection.user_id == user_id,
                                LedgerCollection.collection == name,
                            )
                        )
                        .scalars()
                        .first()
                    )
                    if row is None:
                        db.add(LedgerCollection(user_id=user_id, collection=name, payload=payload))
                    else:
                        row.payload = payload
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                raise

    def delete_user_data(self, user_id: str) -> None:
        with self.session_factory() as db:
            db.execute(delete(LedgerCollection).where(LedgerCollection.user_id == user_id))
            db.commit()


class DebouncedSaver:
    """Writes a workspace once mutations have been quiet for ``delay_seconds``.

    Writes are fire-and-forget: a failure is logged and reported through
    ``status()`` but never raised back into the mutation that triggered it.
    """

    def __init__(self, repository: LedgerRepository, delay_seconds: float = 1.0):
        self.repository = repository
        self.delay_seconds = max(0.0, float(delay_seconds))
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._timers: dict[str, threading.Timer] = {}
        self._generations: dict[str, int] = {}
        self._pending: dict[str, LedgerStore] = {}
        self._status: dict[str, str] = {}

    def schedule(self, user_id: str, store: LedgerStore) -> None:
        with self._lock:
            self._pending[user_id] = store
            previous = self._timers.pop(user_id, None)
            if previous is not None:
                previous.cancel()
            generation = self._generations.get(user_id, 0) + 1
            self._generations[user_id] = generation
            timer = threading.Timer(self.delay_seconds, self._fire, args=(user_id, generation))
            timer.daemon = True
            self._timers[user_id] = timer
            timer.start()

    def status(self, user_id: str) -> str:
        with self._lock:
            return self._status.get(user_id, SYNC_SYNCED)

    def flush(self, user_id: Optional[str] = None) -> None:
        with self._lock:
            user_ids = [user_id] if user_id is not None else list(self._pending)
            due = []
            for key in user_ids:
                timer = self._timers.pop(key, None)
                if timer is not None:
                    timer.cancel()
                self._generations[key] = self._generations.get(key, 0) + 1
                store = self._pending.pop(key, None)
                if store is not None:
                    due.append((key, store))
        for key, store in due:
            self._write(key, store)

    def _fire(self, user_id: str, generation: int) -> None:
        with self._lock:
            if self._generations.get(user_id) != generation:
                return
            self._timers.pop(user_id, None)
            store = self._pending.pop(user_id, None)
        if store is not None:
            self._write(user_id, store)

    def _set_status(self, user_id: str, value: str) -> None:
        with self._lock:
            self._status[user_id] = value

    def _write(self, user_id: str, store: LedgerStore) -> bool:
        with self._write_lock:
            self._set_status(user_id, SYNC_SYNCING)
            try:
                self.repository.save_snapshot(user_id, store.snapshot())
            except (SQLAlchemyError, OSError, TypeError, ValueError):
                logger.exception(
                    "Saving workspace %s failed",
                    user_id,
                    extra={"user_id": user_id, "sync_status": SYNC_ERROR},
                )
                self._set_status(user_id, SYNC_ERROR)
                return False
            self._set_status(user_id, SYNC_SYNCED)
            return True


__all__ = [
    "COLLECTION_SCHEMAS",
    "DebouncedSaver",
    "LedgerRepository",
    "dump_records",
    "encode_records",
    "parse_records",
]
