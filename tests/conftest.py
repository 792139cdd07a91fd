from datetime import datetime
from typing import AsyncGenerator, Optional
import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from app.main import app
from app.db.base import Base
from app.api.deps import get_db, get_current_db_user, get_session_factory
from app.models import User, Category, Source, Expense, Income


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create a test database engine.

    File-backed so that independent sessions (used for concurrent
    net-balance queries) see the same data.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def test_session(test_session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with test_session_factory() as session:
        yield session


async def _create_user(session: AsyncSession, firebase_uid: str, email: str) -> User:
    user = User(
        id=str(uuid.uuid4()),
        firebase_uid=firebase_uid,
        email=email,
        display_name="Test User",
        is_active=True,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture(scope="function")
async def test_user(test_session: AsyncSession) -> User:
    """Create a test user."""
    return await _create_user(test_session, "test_firebase_uid", "test@example.com")


@pytest_asyncio.fixture(scope="function")
async def other_user(test_session: AsyncSession) -> User:
    """A second user whose data must never leak into test_user's results."""
    return await _create_user(test_session, "other_firebase_uid", "other@example.com")


class LedgerFactory:
    """Inserts categories, sources and records directly through the ORM."""

    def __init__(self, session: AsyncSession, user: User):
        self.session = session
        self.user = user

    async def _save(self, obj):
        self.session.add(obj)
        await self.session.commit()
        await self.session.refresh(obj)
        return obj

    async def category(self, name: str, icon: str = "🍔", user: Optional[User] = None) -> Category:
        return await self._save(
            Category(user_id=(user or self.user).id, name=name, icon=icon)
        )

    async def source(self, name: str, icon: str = "💼", user: Optional[User] = None) -> Source:
        return await self._save(
            Source(user_id=(user or self.user).id, name=name, icon=icon)
        )

    async def expense(
        self,
        amount: float,
        date: datetime,
        category: Optional[Category] = None,
        name: str = "Expense",
        description: str = "",
        images: Optional[list] = None,
        user: Optional[User] = None,
    ) -> Expense:
        return await self._save(
            Expense(
                user_id=(user or self.user).id,
                category_id=category.id if category else None,
                icon="🧾",
                name=name,
                description=description,
                amount=amount,
                date=date,
                images=images or [],
            )
        )

    async def income(
        self,
        amount: float,
        date: datetime,
        source: Optional[Source] = None,
        name: str = "Income",
        description: str = "",
        images: Optional[list] = None,
        user: Optional[User] = None,
    ) -> Income:
        return await self._save(
            Income(
                user_id=(user or self.user).id,
                source_id=source.id if source else None,
                icon="💵",
                name=name,
                description=description,
                amount=amount,
                date=date,
                images=images or [],
            )
        )


@pytest_asyncio.fixture(scope="function")
async def ledger(test_session: AsyncSession, test_user: User) -> LedgerFactory:
    return LedgerFactory(test_session, test_user)


@pytest_asyncio.fixture(scope="function")
async def client(
    test_session: AsyncSession,
    test_session_factory: async_sessionmaker,
    test_user: User,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with mocked dependencies."""

    async def override_get_db():
        try:
            yield test_session
            await test_session.commit()
        except Exception:
            await test_session.rollback()
            raise

    async def override_get_current_db_user():
        return test_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: test_session_factory
    app.dependency_overrides[get_current_db_user] = override_get_current_db_user

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def this_month():
    """Build datetimes inside the current calendar month (the default analytics window)."""

    def _at(day: int, hour: int = 12) -> datetime:
        return datetime.now().replace(day=day, hour=hour, minute=0, second=0, microsecond=0)

    return _at
