from boutique.routers.customers import router as customers_router
from boutique.routers.data import router as data_router
from boutique.routers.expenses import router as expenses_router
from boutique.routers.health import router as health_router
from boutique.routers.insights import router as insights_router
from boutique.routers.products import router as products_router
from boutique.routers.reports import router as reports_router
from boutique.routers.sales import router as sales_router

__all__ = [
    "customers_router",
    "data_router",
    "expenses_router",
    "health_router",
    "insights_router",
    "products_router",
    "reports_router",
    "sales_router",
]
