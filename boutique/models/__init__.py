import importlib

from boutique.models.ledger_collection import LedgerCollection


def import_all_models() -> None:
    for module_name in ("boutique.models.ledger_collection",):
        importlib.import_module(module_name)


__all__ = ["LedgerCollection", "import_all_models"]
