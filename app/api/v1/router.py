from fastapi import APIRouter

from app.api.v1 import health, analytics, categories, sources, expenses, incomes

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(sources.router, prefix="/sources", tags=["sources"])
api_router.include_router(expenses.router, prefix="/expenses", tags=["expenses"])
api_router.include_router(incomes.router, prefix="/incomes", tags=["incomes"])
