import logging
import threading
from typing import Callable, Optional

from boutique.config import Settings, get_settings
from boutique.core.errors import LedgerValidationError
from boutique.core.ids import IdAllocator
from boutique.services.ledger_service import LedgerStore
from boutique.services.persistence_service import DebouncedSaver, LedgerRepository

logger = logging.getLogger(__name__)


class WorkspaceRegistry:
    """Owns one ``LedgerStore`` per user and wires it to the debounced saver."""

    def __init__(
        self,
        repository: LedgerRepository,
        saver: Optional[DebouncedSaver] = None,
        *,
        settings: Optional[Settings] = None,
        allocator_factory: Callable[[], IdAllocator] = IdAllocator,
    ):
        self.settings = settings or get_settings()
        self.repository = repository
        self.saver = saver or DebouncedSaver(
            repository, delay_seconds=self.settings.SYNC_DEBOUNCE_SECONDS
        )
        self.allocator_factory = allocator_factory
        self._stores: dict[str, LedgerStore] = {}
        self._lock = threading.Lock()

    def get(self, user_id: Optional[str]) -> LedgerStore:
        user_id = (user_id or "").strip()
        if not user_id:
            raise LedgerValidationError("A user id is required.")
        with self._lock:
            store = self._stores.get(user_id)
            if store is None:
                store = self.repository.load_store(
                    user_id,
                    allocator=self.allocator_factory(),
                    settings=self.settings,
                )
                store.subscribe(lambda changed, key=user_id: self.saver.schedule(key, changed))
                self._stores[user_id] = store
            return store

    def loaded_count(self) -> int:
        with self._lock:
            return len(self._stores)

    def sync_status(self, user_id: str) -> str:
        return self.saver.status(user_id)

    def clear(self, user_id: str) -> None:
        """Empty the workspace and drop its stored rows."""
        store = self.get(user_id)
        store.clear()
        self.saver.flush(user_id)
        self.repository.delete_user_data(user_id)
        logger.info("Cleared workspace %s", user_id, extra={"user_id": user_id})

    def shutdown(self) -> None:
        self.saver.flush()
        logger.info("Flushed %d workspace(s)", len(self._stores))


__all__ = ["WorkspaceRegistry"]
