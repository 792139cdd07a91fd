import logging
from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.session import async_session_maker
from app.core.exceptions import PermissionDeniedError
from app.core.security import get_current_user, FirebaseUser
from app.db.repositories.user_repo import UserRepository
from app.models.user import User

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Database session dependency."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_factory() -> async_sessionmaker:
    """Session factory for services that run independent queries concurrently."""
    return async_session_maker


async def get_current_db_user(
    firebase_user: FirebaseUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get or create database user from Firebase auth.

    Every ledger query is scoped to the returned user's id.
    """
    user_repo = UserRepository(db)

    user = await user_repo.get_by_firebase_uid(firebase_user.uid)

    if user is None:
        # Concurrent first requests can both try to INSERT the same uid
        try:
            user = await user_repo.create(
                firebase_uid=firebase_user.uid,
                email=firebase_user.email,
                display_name=firebase_user.name,
            )
            logger.info(f"Created user {user.id} for firebase_uid={firebase_user.uid}")
        except IntegrityError:
            await db.rollback()
            user = await user_repo.get_by_firebase_uid(firebase_user.uid)

    if not user.is_active:
        raise PermissionDeniedError("User account is disabled")

    return user
