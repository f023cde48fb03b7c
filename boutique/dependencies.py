from contextlib import contextmanager
from decimal import Decimal
from typing import Optional

from fastapi import Header, HTTPException, Request
from fastapi.encoders import jsonable_encoder

from boutique.core.errors import (
    LedgerConflictError,
    LedgerError,
    LedgerNotFoundError,
    LedgerValidationError,
)
from boutique.services.insight_service import InsightService
from boutique.services.ledger_service import LedgerStore
from boutique.services.workspace_service import WorkspaceRegistry


def _status_for(exc: LedgerError) -> int:
    if isinstance(exc, LedgerNotFoundError):
        return 404
    if isinstance(exc, LedgerConflictError):
        return 409
    return 400


@contextmanager
def ledger_http_errors():
    try:
        yield
    except LedgerError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc


def encode(value):
    return jsonable_encoder(value, custom_encoder={Decimal: str})


def get_registry(request: Request) -> WorkspaceRegistry:
    return request.app.state.workspaces


def get_insight_service(request: Request) -> InsightService:
    return request.app.state.insights


def get_user_id(user_id: Optional[str] = Header(None, alias="X-User-Id")) -> str:
    user_id = (user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=400, detail="X-User-Id header is required.")
    return user_id


def get_ledger(
    request: Request,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> LedgerStore:
    with ledger_http_errors():
        return get_registry(request).get(get_user_id(user_id))


__all__ = [
    "encode",
    "get_insight_service",
    "get_ledger",
    "get_registry",
    "get_user_id",
    "ledger_http_errors",
]
