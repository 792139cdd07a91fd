"""
SQL building blocks for the analytics endpoints.

Every query is scoped to one user and to the resolved date window, and is
read-only. Records are grouped by their category (expenses) or source
(incomes); the grouping is called the record's dimension below.
"""
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select, select, func, and_, or_, desc
from sqlalchemy.orm import selectinload

from app.models.category import Category
from app.models.expense import Expense
from app.models.income import Income
from app.models.source import Source
from app.services.date_window import DateWindow

RECENT_RECORDS_PER_GROUP = 3


@dataclass(frozen=True)
class RecordKind:
    """Pairs a record model with the model it is grouped by."""

    key: str
    model: Any
    dimension_model: Any
    dimension_field: str
    unknown_name: str

    @property
    def dimension_column(self):
        return getattr(self.model, f"{self.dimension_field}_id")

    @property
    def dimension_relationship(self):
        return getattr(self.model, self.dimension_field)


EXPENSE = RecordKind(
    key="expense",
    model=Expense,
    dimension_model=Category,
    dimension_field="category",
    unknown_name="Unknown Category",
)

INCOME = RecordKind(
    key="income",
    model=Income,
    dimension_model=Source,
    dimension_field="source",
    unknown_name="Unknown Source",
)


def window_conditions(kind: RecordKind, user_id: str, window: DateWindow) -> list:
    """User scoping plus whichever window bounds are set (both inclusive)."""
    model = kind.model
    conditions = [model.user_id == user_id]
    if window.start is not None:
        conditions.append(model.date >= window.start)
    if window.end is not None:
        conditions.append(model.date <= window.end)
    return conditions


def build_grand_total_query(kind: RecordKind, user_id: str, window: DateWindow) -> Select:
    """Sum of amounts in the window (0 when there are no records)."""
    return select(func.coalesce(func.sum(kind.model.amount), 0)).where(
        and_(*window_conditions(kind, user_id, window))
    )


def build_group_query(kind: RecordKind, user_id: str, window: DateWindow) -> Select:
    """
    Per-dimension totals, largest first.

    Rows: dimension_id, name, icon, total, record_count. Records whose
    dimension is missing are kept and grouped under a NULL dimension
    (name/icon NULL).
    """
    model = kind.model
    dim = kind.dimension_model
    total = func.sum(model.amount).label("total")

    return (
        select(
            kind.dimension_column.label("dimension_id"),
            dim.name.label("name"),
            dim.icon.label("icon"),
            total,
            func.count(model.id).label("record_count"),
        )
        .select_from(model)
        .outerjoin(dim, dim.id == kind.dimension_column)
        .where(and_(*window_conditions(kind, user_id, window)))
        .group_by(kind.dimension_column, dim.name, dim.icon)
        .order_by(desc("total"), dim.name)
    )


def build_ranked_records_query(kind: RecordKind, user_id: str, window: DateWindow) -> Select:
    """
    The highest-amount record and the most recent records of every dimension,
    each row also carrying its dimension's totals.

    Rows: id, dimension_id, dimension_name, dimension_icon, group_total,
    group_count, name, amount, date, description, recency_rank (1 = newest)
    and amount_rank (1 = highest). Equal amounts rank the newer record first,
    then the more recently created one, then the lower id.

    Totals and highlights are read in the same statement. Records without a
    dimension are dropped.
    """
    model = kind.model
    dim = kind.dimension_model
    partition = kind.dimension_column

    recency_rank = func.row_number().over(
        partition_by=partition,
        order_by=(model.date.desc(), model.created_at.desc(), model.id.asc()),
    )
    amount_rank = func.row_number().over(
        partition_by=partition,
        order_by=(
            model.amount.desc(),
            model.date.desc(),
            model.created_at.desc(),
            model.id.asc(),
        ),
    )

    ranked = (
        select(
            model.id.label("id"),
            partition.label("dimension_id"),
            dim.name.label("dimension_name"),
            dim.icon.label("dimension_icon"),
            func.sum(model.amount).over(partition_by=partition).label("group_total"),
            func.count(model.id).over(partition_by=partition).label("group_count"),
            model.name.label("name"),
            model.amount.label("amount"),
            model.date.label("date"),
            model.description.label("description"),
            recency_rank.label("recency_rank"),
            amount_rank.label("amount_rank"),
        )
        .join(dim, dim.id == partition)
        .where(and_(*window_conditions(kind, user_id, window)))
        .subquery()
    )

    return (
        select(ranked)
        .where(
            or_(
                ranked.c.recency_rank <= RECENT_RECORDS_PER_GROUP,
                ranked.c.amount_rank == 1,
            )
        )
        .order_by(ranked.c.dimension_id, ranked.c.recency_rank)
    )


def build_feed_query(kind: RecordKind, user_id: str, window: DateWindow) -> Select:
    """All records in the window with their dimension loaded."""
    return (
        select(kind.model)
        .options(selectinload(kind.dimension_relationship))
        .where(and_(*window_conditions(kind, user_id, window)))
    )
