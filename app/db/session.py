import logging

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from app.config import get_settings
from app.db.base import Base

logger = logging.getLogger(__name__)

settings = get_settings()


def _engine_kwargs(url: str) -> dict:
    # SQLite (local development) has no connection pool sizing
    if url.startswith("sqlite"):
        return {"echo": False}
    return {
        "pool_size": settings.DATABASE_POOL_SIZE,
        "max_overflow": settings.DATABASE_MAX_OVERFLOW,
        "pool_pre_ping": True,  # Detect stale connections before using them
        "echo": False,
    }


engine = create_async_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db():
    """Initialize database tables.

    When USE_ALEMBIC=True (default, production):
        - Skips create_all() since Alembic handles migrations
        - Run 'alembic upgrade head' before starting the app

    When USE_ALEMBIC=False (development):
        - Uses create_all() for convenience (creates tables if they don't exist)
    """
    # Import all models to ensure they're registered with SQLAlchemy
    from app.models import user, category, source, expense, income  # noqa

    if settings.USE_ALEMBIC:
        logger.info("Database models registered. Using Alembic for migrations (USE_ALEMBIC=True).")
    else:
        logger.info("Running create_all() for database initialization (USE_ALEMBIC=False).")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
