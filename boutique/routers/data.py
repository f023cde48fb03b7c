from fastapi import APIRouter, Body, Depends, Query, Request

from boutique.dependencies import encode, get_ledger, get_registry, get_user_id, ledger_http_errors
from boutique.services.backup_service import export_document, import_backup
from boutique.services.ledger_service import LedgerStore

router = APIRouter(prefix="/data", tags=["Data"])


@router.get("/export")
def export_data(ledger: LedgerStore = Depends(get_ledger)):
    return export_document(ledger)


@router.post("/import")
def import_data(
    document: dict = Body(...),
    confirm: bool = Query(False, description="Must be true: import replaces current data"),
    ledger: LedgerStore = Depends(get_ledger),
):
    with ledger_http_errors():
        imported = import_backup(ledger, document, confirm=confirm)
    return encode(
        {
            "customers": len(imported.customers),
            "sales": len(imported.sales),
            "products": len(imported.products),
            "expenses": len(imported.expenses) if imported.expenses is not None else None,
        }
    )


@router.delete("", status_code=204)
def clear_data(request: Request, user_id: str = Depends(get_user_id)):
    get_registry(request).clear(user_id)


@router.get("/sync-status")
def sync_status(request: Request, user_id: str = Depends(get_user_id)):
    return {"user_id": user_id, "status": get_registry(request).sync_status(user_id)}
