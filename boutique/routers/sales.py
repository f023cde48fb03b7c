from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from boutique.dependencies import encode, get_ledger, ledger_http_errors
from boutique.schemas.sale import InstallmentPayment, SaleCreate
from boutique.services.ledger_service import LedgerStore
from boutique.services.report_service import sale_profit_row

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.get("")
def list_sales(
    sale_type: Optional[Literal["cash", "credit"]] = Query(None, alias="type"),
    ledger: LedgerStore = Depends(get_ledger),
):
    sales = ledger.list_sales(sale_type)
    return encode(
        {
            "items": sales,
            "profits": [sale_profit_row(sale) for sale in sales],
        }
    )


@router.post("", status_code=201)
def create_sale(payload: SaleCreate, ledger: LedgerStore = Depends(get_ledger)):
    with ledger_http_errors():
        recorded = ledger.record_sale(payload)
    return encode({"sale": recorded.sale, "warnings": recorded.warnings})


@router.get("/{sale_id}")
def get_sale(sale_id: str, ledger: LedgerStore = Depends(get_ledger)):
    with ledger_http_errors():
        return encode(ledger.get_sale(sale_id))


@router.post("/{sale_id}/installments/{installment_id}/payment")
def toggle_installment_payment(
    sale_id: str,
    installment_id: str,
    payload: InstallmentPayment,
    ledger: LedgerStore = Depends(get_ledger),
):
    with ledger_http_errors():
        return encode(ledger.set_installment_paid(sale_id, installment_id, payload.paid))
