from datetime import datetime
from typing import Optional, List, Type, Union, Any

from sqlalchemy import select, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.expense import Expense
from app.models.income import Income

Record = Union[Expense, Income]


class RecordRepository:
    """Shared queries for dated money records (expenses, incomes)."""

    model: Type[Record]
    dimension_field: str

    def __init__(self, db: AsyncSession):
        self.db = db

    @property
    def _dimension_column(self):
        return getattr(self.model, f"{self.dimension_field}_id")

    @property
    def _dimension_relationship(self):
        return getattr(self.model, self.dimension_field)

    def _window_conditions(
        self,
        start: Optional[datetime],
        end: Optional[datetime],
    ) -> list:
        conditions = []
        if start is not None:
            conditions.append(self.model.date >= start)
        if end is not None:
            conditions.append(self.model.date <= end)
        return conditions

    async def get_by_id_and_user(self, record_id: str, user_id: str) -> Optional[Record]:
        result = await self.db.execute(
            select(self.model)
            .options(selectinload(self._dimension_relationship))
            .where(
                self.model.id == record_id,
                self.model.user_id == user_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _reload(self, record_id: str) -> Record:
        # Overwrite identity-map state so the grouping relationship is current
        result = await self.db.execute(
            select(self.model)
            .options(selectinload(self._dimension_relationship))
            .where(self.model.id == record_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def list_by_user(
        self,
        user_id: str,
        search: Optional[str] = None,
        dimension_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[List[Record], int]:
        """List a user's records with filters and pagination, newest first."""
        conditions = [self.model.user_id == user_id]
        conditions.extend(self._window_conditions(start, end))

        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    self.model.name.ilike(pattern),
                    self.model.description.ilike(pattern),
                )
            )
        if dimension_id:
            conditions.append(self._dimension_column == dimension_id)

        count_result = await self.db.execute(
            select(func.count(self.model.id)).where(and_(*conditions))
        )
        total = count_result.scalar() or 0

        result = await self.db.execute(
            select(self.model)
            .options(selectinload(self._dimension_relationship))
            .where(and_(*conditions))
            .order_by(self.model.date.desc(), self.model.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def list_for_export(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Record]:
        """All records in the window with their grouping loaded, oldest first."""
        conditions = [self.model.user_id == user_id]
        conditions.extend(self._window_conditions(start, end))

        result = await self.db.execute(
            select(self.model)
            .options(selectinload(self._dimension_relationship))
            .where(and_(*conditions))
            .order_by(self.model.date.asc())
        )
        return list(result.scalars().all())

    async def create(self, user_id: str, **fields: Any) -> Record:
        record = self.model(user_id=user_id, **fields)
        self.db.add(record)
        await self.db.flush()
        return await self._reload(record.id)

    async def update(self, record: Record, **fields: Any) -> Record:
        """Apply the given fields; None values leave the column unchanged."""
        for key, value in fields.items():
            if value is not None:
                setattr(record, key, value)
        await self.db.flush()
        return await self._reload(record.id)

    async def delete(self, record: Record) -> None:
        await self.db.delete(record)
        await self.db.flush()


class ExpenseRepository(RecordRepository):
    model = Expense
    dimension_field = "category"


class IncomeRepository(RecordRepository):
    model = Income
    dimension_field = "source"
