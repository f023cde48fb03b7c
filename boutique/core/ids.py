import itertools
import threading
import uuid


class IdAllocator:
    """Hands out record ids. The default draws uuid4 hex strings."""

    def new_id(self) -> str:
        return uuid.uuid4().hex

    def new_sku(self) -> str:
        return uuid.uuid4().hex[:6].upper()


class SequentialIdAllocator(IdAllocator):
    """Deterministic ids (``prefix1``, ``prefix2``...) for tests and fixtures."""

    def __init__(self, prefix="id", start=1):
        self.prefix = prefix
        self._counter = itertools.count(start)
        self._sku_counter = itertools.count(start)
        self._lock = threading.Lock()

    def new_id(self) -> str:
        with self._lock:
            return "{}{}".format(self.prefix, next(self._counter))

    def new_sku(self) -> str:
        with self._lock:
            return "SKU{:03d}".format(next(self._sku_counter))


__all__ = ["IdAllocator", "SequentialIdAllocator"]
