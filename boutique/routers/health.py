from datetime import datetime, timezone

from fastapi import APIRouter, Request

from boutique.config import get_settings
from boutique.dependencies import get_registry

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request):
    settings = get_settings()
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "workspaces_loaded": get_registry(request).loaded_count(),
        "time": datetime.now(timezone.utc).isoformat(),
    }
