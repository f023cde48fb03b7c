from fastapi import APIRouter, Depends

from boutique.dependencies import encode, get_ledger, ledger_http_errors
from boutique.schemas.expense import ExpenseCreate
from boutique.services.ledger_service import LedgerStore
from boutique.services.report_service import fixed_expense_total

router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.get("")
def list_expenses(ledger: LedgerStore = Depends(get_ledger)):
    expenses = ledger.expenses
    return encode({"items": expenses, "total": fixed_expense_total(expenses)})


@router.post("", status_code=201)
def create_expense(payload: ExpenseCreate, ledger: LedgerStore = Depends(get_ledger)):
    with ledger_http_errors():
        return encode(ledger.add_expense(payload))


@router.delete("/{expense_id}", status_code=204)
def delete_expense(expense_id: str, ledger: LedgerStore = Depends(get_ledger)):
    with ledger_http_errors():
        ledger.delete_expense(expense_id)
