from fastapi import APIRouter, Depends

from boutique.dependencies import get_insight_service, get_ledger, get_user_id
from boutique.services.insight_service import InsightService, build_context
from boutique.services.ledger_service import LedgerStore

router = APIRouter(prefix="/insights", tags=["Insights"])


@router.get("")
async def financial_insight(
    user_id: str = Depends(get_user_id),
    ledger: LedgerStore = Depends(get_ledger),
    insights: InsightService = Depends(get_insight_service),
):
    snapshot = ledger.snapshot()
    context = build_context(snapshot["sales"], snapshot["customers"])
    text = await insights.get_insight(user_id, context)
    return {"insight": text}
