from boutique.services.backup_service import export_document, import_backup
from boutique.services.insight_service import InsightService, build_context
from boutique.services.ledger_service import LedgerStore, SaleRecorded
from boutique.services.persistence_service import DebouncedSaver, LedgerRepository
from boutique.services.spreadsheet_service import import_products_workbook
from boutique.services.workspace_service import WorkspaceRegistry

__all__ = [
    "DebouncedSaver",
    "InsightService",
    "LedgerRepository",
    "LedgerStore",
    "SaleRecorded",
    "WorkspaceRegistry",
    "build_context",
    "export_document",
    "import_backup",
    "import_products_workbook",
]
