from fastapi import APIRouter, Depends

from boutique.dependencies import encode, get_ledger, ledger_http_errors
from boutique.schemas.customer import CustomerCreate
from boutique.services.ledger_service import LedgerStore
from boutique.services.report_service import customer_balances, customer_debt

router = APIRouter(prefix="/customers", tags=["Customers"])


@router.get("")
def list_customers(ledger: LedgerStore = Depends(get_ledger)):
    snapshot = ledger.snapshot()
    balances = customer_balances(snapshot["customers"], snapshot["sales"], ledger.walk_in_id)
    return encode({"items": snapshot["customers"], **balances})


@router.post("", status_code=201)
def create_customer(payload: CustomerCreate, ledger: LedgerStore = Depends(get_ledger)):
    with ledger_http_errors():
        return encode(ledger.add_customer(payload))


@router.get("/{customer_id}/debt")
def get_customer_debt(customer_id: str, ledger: LedgerStore = Depends(get_ledger)):
    with ledger_http_errors():
        if customer_id != ledger.walk_in_id:
            ledger.get_customer(customer_id)
    return encode({"customer_id": customer_id, "debt": customer_debt(ledger.sales, customer_id)})


@router.delete("/{customer_id}", status_code=204)
def delete_customer(customer_id: str, ledger: LedgerStore = Depends(get_ledger)):
    with ledger_http_errors():
        ledger.delete_customer(customer_id)
