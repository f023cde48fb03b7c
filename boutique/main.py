from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from boutique.config import Settings, get_settings
from boutique.core.logging import setup_logging
from boutique.database import Base, engine
from boutique.models import import_all_models
from boutique.routers import (
    customers_router,
    data_router,
    expenses_router,
    health_router,
    insights_router,
    products_router,
    reports_router,
    sales_router,
)
from boutique.services.insight_service import InsightService
from boutique.services.persistence_service import LedgerRepository
from boutique.services.workspace_service import WorkspaceRegistry


def create_app(
    settings: Optional[Settings] = None,
    workspaces: Optional[WorkspaceRegistry] = None,
    insights: Optional[InsightService] = None,
) -> FastAPI:
    settings = settings or get_settings()
    workspaces = workspaces or WorkspaceRegistry(LedgerRepository(), settings=settings)
    insights = insights or InsightService(settings)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        import_all_models()
        Base.metadata.create_all(bind=engine)
        try:
            yield
        finally:
            workspaces.shutdown()

    application = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    application.state.workspaces = workspaces
    application.state.insights = insights

    application.include_router(health_router)
    application.include_router(customers_router)
    application.include_router(products_router)
    application.include_router(expenses_router)
    application.include_router(sales_router)
    application.include_router(reports_router)
    application.include_router(data_router)
    application.include_router(insights_router)
    return application


setup_logging()
app = create_app()


__all__ = ["app", "create_app"]
