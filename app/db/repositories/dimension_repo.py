from typing import Optional, List, Type, Union

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.category import Category
from app.models.source import Source

Dimension = Union[Category, Source]


class DimensionRepository:
    """Shared queries for the user-owned groupings of records (categories, sources)."""

    model: Type[Dimension]

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id_and_user(self, dimension_id: str, user_id: str) -> Optional[Dimension]:
        result = await self.db.execute(
            select(self.model).where(
                self.model.id == dimension_id,
                self.model.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_name_and_user(self, name: str, user_id: str) -> Optional[Dimension]:
        result = await self.db.execute(
            select(self.model).where(
                self.model.name == name,
                self.model.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_by_user(
        self,
        user_id: str,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[List[Dimension], int]:
        """List a user's entries, optionally filtered by a case-insensitive name search."""
        conditions = [self.model.user_id == user_id]
        if search:
            conditions.append(self.model.name.ilike(f"%{search}%"))

        count_result = await self.db.execute(
            select(func.count(self.model.id)).where(and_(*conditions))
        )
        total = count_result.scalar() or 0

        result = await self.db.execute(
            select(self.model)
            .where(and_(*conditions))
            .order_by(self.model.name.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def create(self, user_id: str, name: str, icon: str) -> Dimension:
        dimension = self.model(user_id=user_id, name=name, icon=icon)
        self.db.add(dimension)
        await self.db.flush()
        await self.db.refresh(dimension)
        return dimension

    async def update(
        self,
        dimension: Dimension,
        name: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> Dimension:
        if name is not None:
            dimension.name = name
        if icon is not None:
            dimension.icon = icon
        await self.db.flush()
        await self.db.refresh(dimension)
        return dimension

    async def delete(self, dimension: Dimension) -> None:
        """Delete an entry; its records keep existing with no grouping."""
        await self.db.delete(dimension)
        await self.db.flush()


class CategoryRepository(DimensionRepository):
    model = Category


class SourceRepository(DimensionRepository):
    model = Source
