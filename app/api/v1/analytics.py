import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.deps import get_db, get_current_db_user, get_session_factory
from app.config import get_settings
from app.models.user import User
from app.schemas.analytics import (
    TotalIncomeResponse,
    TotalExpenseResponse,
    NetBalanceResponse,
    TransactionFeedResponse,
    ExpenseSummaryResponse,
    IncomeSummaryResponse,
)
from app.services.analytics_service import AnalyticsService
from app.services.date_window import resolve_date_window

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter()

FROM_DATE_DESCRIPTION = "Window start (YYYY-MM-DD). Defaults to the current month when both bounds are omitted"
TO_DATE_DESCRIPTION = "Window end (YYYY-MM-DD), inclusive to the end of that day"


@router.get("/totalIncome", response_model=TotalIncomeResponse)
async def get_total_income(
    from_date: Optional[str] = Query(None, alias="fromDate", description=FROM_DATE_DESCRIPTION),
    to_date: Optional[str] = Query(None, alias="toDate", description=TO_DATE_DESCRIPTION),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """
    Total income in the window with a per-source breakdown.

    Sources are ordered by total, largest first; each carries its share of
    the total as a formatted percentage string.
    """
    window = resolve_date_window(from_date, to_date)
    logger.info(
        f"Total income request: user_id={current_user.id}, "
        f"from={window.start}, to={window.end}"
    )

    return await AnalyticsService(db).get_total_income(current_user.id, window)


@router.get("/totalExpense", response_model=TotalExpenseResponse)
async def get_total_expense(
    from_date: Optional[str] = Query(None, alias="fromDate", description=FROM_DATE_DESCRIPTION),
    to_date: Optional[str] = Query(None, alias="toDate", description=TO_DATE_DESCRIPTION),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Total expenses in the window with a per-category breakdown."""
    window = resolve_date_window(from_date, to_date)
    logger.info(
        f"Total expense request: user_id={current_user.id}, "
        f"from={window.start}, to={window.end}"
    )

    return await AnalyticsService(db).get_total_expense(current_user.id, window)


@router.get("/netBalance", response_model=NetBalanceResponse)
async def get_net_balance(
    from_date: Optional[str] = Query(None, alias="fromDate", description=FROM_DATE_DESCRIPTION),
    to_date: Optional[str] = Query(None, alias="toDate", description=TO_DATE_DESCRIPTION),
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    current_user: User = Depends(get_current_db_user),
):
    """Income minus expenses in the window."""
    window = resolve_date_window(from_date, to_date)
    logger.info(
        f"Net balance request: user_id={current_user.id}, "
        f"from={window.start}, to={window.end}"
    )

    analytics = AnalyticsService(db, session_factory=session_factory)
    return await analytics.get_net_balance(current_user.id, window)


@router.get("/transactions", response_model=TransactionFeedResponse)
async def get_transactions(
    from_date: Optional[str] = Query(None, alias="fromDate", description=FROM_DATE_DESCRIPTION),
    to_date: Optional[str] = Query(None, alias="toDate", description=TO_DATE_DESCRIPTION),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """
    Incomes and expenses in one feed, newest first.

    Each entry is tagged with its type and carries its category (expenses)
    or source (incomes) under `category`.
    """
    window = resolve_date_window(from_date, to_date)
    logger.info(
        f"Transaction feed request: user_id={current_user.id}, "
        f"from={window.start}, to={window.end}, page={page}, limit={limit}"
    )

    return await AnalyticsService(db).get_transactions(
        current_user.id, window, page=page, limit=limit
    )


@router.get("/expenseSummary", response_model=ExpenseSummaryResponse)
async def get_expense_summary(
    from_date: Optional[str] = Query(None, alias="fromDate", description=FROM_DATE_DESCRIPTION),
    to_date: Optional[str] = Query(None, alias="toDate", description=TO_DATE_DESCRIPTION),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """
    Per-category expense statistics.

    For each category: total, count, average, share of the total, the
    largest expense and the 3 most recent ones. Expenses whose category
    no longer exists are left out.
    """
    window = resolve_date_window(from_date, to_date)
    logger.info(
        f"Expense summary request: user_id={current_user.id}, "
        f"from={window.start}, to={window.end}"
    )

    return await AnalyticsService(db).get_expense_summary(current_user.id, window)


@router.get("/incomeSummary", response_model=IncomeSummaryResponse)
async def get_income_summary(
    from_date: Optional[str] = Query(None, alias="fromDate", description=FROM_DATE_DESCRIPTION),
    to_date: Optional[str] = Query(None, alias="toDate", description=TO_DATE_DESCRIPTION),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Per-source income statistics, same shape as the expense summary."""
    window = resolve_date_window(from_date, to_date)
    logger.info(
        f"Income summary request: user_id={current_user.id}, "
        f"from={window.start}, to={window.end}"
    )

    return await AnalyticsService(db).get_income_summary(current_user.id, window)
