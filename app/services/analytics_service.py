import asyncio
import logging
from math import ceil
from typing import Optional, List, Dict, Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import get_settings
from app.schemas.analytics import (
    DateRange,
    IncomeBySource,
    ExpenseByCategory,
    TotalIncomeResponse,
    TotalExpenseResponse,
    NetBalanceResponse,
    DimensionRef,
    FeedTransaction,
    Pagination,
    TransactionFeedResponse,
    RecordHighlight,
    ExpenseCategorySummary,
    IncomeSourceSummary,
    ExpenseSummaryResponse,
    IncomeSummaryResponse,
)
from app.services.aggregation import (
    EXPENSE,
    INCOME,
    RECENT_RECORDS_PER_GROUP,
    RecordKind,
    build_grand_total_query,
    build_group_query,
    build_ranked_records_query,
    build_feed_query,
)
from app.services.date_window import DateWindow, to_iso
from app.services.percentages import compute_percentage, format_percentage, average

logger = logging.getLogger(__name__)

settings = get_settings()


class AnalyticsService:
    """Read-only income/expense analytics for a single user and date window."""

    def __init__(
        self,
        db: AsyncSession,
        session_factory: Optional[async_sessionmaker] = None,
    ):
        self.db = db
        # Concurrent queries need their own sessions; an AsyncSession is not
        # safe to share between tasks.
        self.session_factory = session_factory

    # ------------------------------------------------------------------ #
    # Totals by dimension
    # ------------------------------------------------------------------ #

    async def _dimension_totals(
        self, kind: RecordKind, user_id: str, window: DateWindow
    ) -> tuple[float, List[Dict[str, Any]]]:
        result = await self.db.execute(build_group_query(kind, user_id, window))
        rows = result.all()

        grand_total = sum(row.total for row in rows)
        groups = [
            {
                "dimension_id": row.dimension_id,
                "name": row.name or kind.unknown_name,
                "icon": row.icon or settings.DEFAULT_DIMENSION_ICON,
                "total": row.total,
                "count": row.record_count,
                "percentage": format_percentage(row.total, grand_total),
            }
            for row in rows
        ]
        logger.info(
            f"{kind.key} totals: user_id={user_id}, groups={len(groups)}, total={grand_total}"
        )
        return grand_total, groups

    async def get_total_income(self, user_id: str, window: DateWindow) -> TotalIncomeResponse:
        """Income in the window, broken down by source."""
        total, groups = await self._dimension_totals(INCOME, user_id, window)
        return TotalIncomeResponse(
            total_income=total,
            income_by_source=[
                IncomeBySource(source_id=g.pop("dimension_id"), **g) for g in groups
            ],
            date_range=DateRange(**window.as_dict()),
        )

    async def get_total_expense(self, user_id: str, window: DateWindow) -> TotalExpenseResponse:
        """Expenses in the window, broken down by category."""
        total, groups = await self._dimension_totals(EXPENSE, user_id, window)
        return TotalExpenseResponse(
            total_expense=total,
            expense_by_category=[
                ExpenseByCategory(category_id=g.pop("dimension_id"), **g) for g in groups
            ],
            date_range=DateRange(**window.as_dict()),
        )

    # ------------------------------------------------------------------ #
    # Net balance
    # ------------------------------------------------------------------ #

    @staticmethod
    async def _grand_total(
        db: AsyncSession, kind: RecordKind, user_id: str, window: DateWindow
    ) -> float:
        result = await db.execute(build_grand_total_query(kind, user_id, window))
        return result.scalar() or 0

    async def _grand_total_in_own_session(
        self, kind: RecordKind, user_id: str, window: DateWindow
    ) -> float:
        async with self.session_factory() as session:
            return await self._grand_total(session, kind, user_id, window)

    async def get_net_balance(self, user_id: str, window: DateWindow) -> NetBalanceResponse:
        """
        Income total minus expense total.

        Both totals are read concurrently when a session factory is
        available; the first failure fails the whole request.
        """
        if self.session_factory is not None:
            income_total, expense_total = await asyncio.gather(
                self._grand_total_in_own_session(INCOME, user_id, window),
                self._grand_total_in_own_session(EXPENSE, user_id, window),
            )
        else:
            income_total = await self._grand_total(self.db, INCOME, user_id, window)
            expense_total = await self._grand_total(self.db, EXPENSE, user_id, window)

        logger.info(
            f"Net balance: user_id={user_id}, income={income_total}, expense={expense_total}"
        )
        return NetBalanceResponse(
            net_balance=income_total - expense_total,
            date_range=DateRange(**window.as_dict()),
        )

    # ------------------------------------------------------------------ #
    # Unified transaction feed
    # ------------------------------------------------------------------ #

    async def _feed_items(
        self, kind: RecordKind, user_id: str, window: DateWindow
    ) -> List[FeedTransaction]:
        result = await self.db.execute(build_feed_query(kind, user_id, window))
        items = []
        for record in result.scalars().all():
            dimension = getattr(record, kind.dimension_field)
            items.append(
                FeedTransaction(
                    id=record.id,
                    type=kind.key,
                    icon=record.icon,
                    name=record.name,
                    description=record.description or "",
                    amount=record.amount,
                    date=to_iso(record.date),
                    category=(
                        DimensionRef(id=dimension.id, name=dimension.name, icon=dimension.icon)
                        if dimension is not None
                        else None
                    ),
                    images=record.images or [],
                )
            )
        return items

    async def get_transactions(
        self,
        user_id: str,
        window: DateWindow,
        page: int = 1,
        limit: int = 10,
    ) -> TransactionFeedResponse:
        """
        Incomes and expenses merged into one list, newest first, one page of it.

        The merge and pagination happen in memory over everything in the window.
        """
        incomes = await self._feed_items(INCOME, user_id, window)
        expenses = await self._feed_items(EXPENSE, user_id, window)

        # ISO strings sort chronologically; the sort is stable for equal dates
        merged = sorted(incomes + expenses, key=lambda t: t.date, reverse=True)

        total_items = len(merged)
        total_pages = ceil(total_items / limit)
        offset = (page - 1) * limit

        logger.info(
            f"Transaction feed: user_id={user_id}, total_items={total_items}, "
            f"page={page}, limit={limit}"
        )
        return TransactionFeedResponse(
            transactions=merged[offset:offset + limit],
            pagination=Pagination(
                current_page=page,
                total_pages=total_pages,
                total_items=total_items,
                has_next_page=page < total_pages,
                has_prev_page=page > 1,
            ),
        )

    # ------------------------------------------------------------------ #
    # Detailed summaries
    # ------------------------------------------------------------------ #

    async def _summaries(
        self, kind: RecordKind, user_id: str, window: DateWindow
    ) -> tuple[float, List[Dict[str, Any]]]:
        """Per-dimension stats plus highlight records; records without a dimension are skipped."""
        result = await self.db.execute(build_ranked_records_query(kind, user_id, window))

        groups: Dict[str, Dict[str, Any]] = {}
        for r in result.all():
            group = groups.get(r.dimension_id)
            if group is None:
                group = groups[r.dimension_id] = {
                    "dimension_id": r.dimension_id,
                    "name": r.dimension_name,
                    "icon": r.dimension_icon,
                    "total": r.group_total,
                    "count": r.group_count,
                    "highest": None,
                    "recent": [],
                }
            highlight = RecordHighlight(
                amount=r.amount,
                name=r.name,
                date=to_iso(r.date),
                description=r.description or "",
            )
            if r.amount_rank == 1:
                group["highest"] = highlight
            if r.recency_rank <= RECENT_RECORDS_PER_GROUP:
                group["recent"].append(highlight)

        summaries = sorted(groups.values(), key=lambda g: (-g["total"], g["name"]))
        grand_total = sum(g["total"] for g in summaries)
        for group in summaries:
            group["average"] = average(group["total"], group["count"])
            group["percentage"] = compute_percentage(group["total"], grand_total)

        logger.info(
            f"{kind.key} summary: user_id={user_id}, groups={len(summaries)}, total={grand_total}"
        )
        return grand_total, summaries

    async def get_expense_summary(self, user_id: str, window: DateWindow) -> ExpenseSummaryResponse:
        total, summaries = await self._summaries(EXPENSE, user_id, window)
        return ExpenseSummaryResponse(
            total_expense=total,
            expense_summary=[
                ExpenseCategorySummary(
                    category_id=s["dimension_id"],
                    name=s["name"],
                    icon=s["icon"],
                    total=s["total"],
                    count=s["count"],
                    average_expense=s["average"],
                    percentage=s["percentage"],
                    highest_expense=s["highest"],
                    recent_expenses=s["recent"],
                )
                for s in summaries
            ],
            date_range=DateRange(**window.as_dict()),
        )

    async def get_income_summary(self, user_id: str, window: DateWindow) -> IncomeSummaryResponse:
        total, summaries = await self._summaries(INCOME, user_id, window)
        return IncomeSummaryResponse(
            total_income=total,
            income_summary=[
                IncomeSourceSummary(
                    source_id=s["dimension_id"],
                    name=s["name"],
                    icon=s["icon"],
                    total=s["total"],
                    count=s["count"],
                    average_income=s["average"],
                    percentage=s["percentage"],
                    highest_income=s["highest"],
                    recent_incomes=s["recent"],
                )
                for s in summaries
            ],
            date_range=DateRange(**window.as_dict()),
        )
