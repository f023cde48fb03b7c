class LedgerError(Exception):
    """Base class for rejected ledger operations."""


class LedgerValidationError(LedgerError):
    """Raised when input is rejected before any mutation happens."""


class LedgerNotFoundError(LedgerError):
    """Raised when a referenced record does not exist."""


class LedgerConflictError(LedgerError):
    """Raised when a write would break a uniqueness rule (e.g. product SKU)."""


__all__ = [
    "LedgerConflictError",
    "LedgerError",
    "LedgerNotFoundError",
    "LedgerValidationError",
]
