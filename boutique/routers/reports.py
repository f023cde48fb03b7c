from typing import Optional

from fastapi import APIRouter, Depends, Query

from boutique.dependencies import encode, get_ledger
from boutique.services.ledger_service import LedgerStore
from boutique.services.report_service import (
    agenda,
    dashboard_summary,
    monthly_summary,
    overdue_count,
    profit_history,
    total_receivable,
)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/dashboard")
def dashboard(ledger: LedgerStore = Depends(get_ledger)):
    return encode(dashboard_summary(ledger))


@router.get("/monthly")
def monthly(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    ledger: LedgerStore = Depends(get_ledger),
):
    today = ledger.today()
    return encode(
        monthly_summary(ledger.sales, ledger.expenses, year or today.year, month or today.month)
    )


@router.get("/history")
def history(
    months: int = Query(6, ge=1, le=36),
    ledger: LedgerStore = Depends(get_ledger),
):
    return encode(profit_history(ledger.sales, ledger.expenses, ledger.today(), months=months))


@router.get("/receivables")
def receivables(ledger: LedgerStore = Depends(get_ledger)):
    sales = ledger.sales
    return encode(
        {
            "total_receivable": total_receivable(sales),
            "overdue_sales": overdue_count(sales, ledger.today()),
        }
    )


@router.get("/agenda")
def installment_agenda(ledger: LedgerStore = Depends(get_ledger)):
    snapshot = ledger.snapshot()
    return encode(
        agenda(snapshot["sales"], snapshot["customers"], ledger.today(), ledger.walk_in_id)
    )
