import logging
from math import ceil
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_db_user
from app.config import get_settings
from app.core.exceptions import ResourceNotFoundError, DuplicateResourceError
from app.db.repositories.dimension_repo import SourceRepository
from app.models.user import User
from app.schemas.source import (
    SourceCreate,
    SourceUpdate,
    SourceResponse,
    SourceEnvelope,
    SourceListResponse,
)
from app.schemas.common import MessageResponse

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter()


async def _get_owned_source(repo: SourceRepository, source_id: str, user: User):
    source = await repo.get_by_id_and_user(source_id, user.id)
    if not source:
        logger.error(f"Source not found: {source_id} for user: {user.id}")
        raise ResourceNotFoundError("Source not found")
    return source


@router.post("", response_model=SourceEnvelope, status_code=201)
async def create_source(
    data: SourceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Create an income source. Names are unique per user."""
    repo = SourceRepository(db)

    try:
        source = await repo.create(user_id=current_user.id, name=data.name, icon=data.icon)
    except IntegrityError:
        raise DuplicateResourceError(f"Source '{data.name}' already exists")

    logger.info(f"Source created: {source.id} by user: {current_user.id}")
    return SourceEnvelope(
        message="Source created successfully",
        source=SourceResponse.model_validate(source),
    )


@router.get("", response_model=SourceListResponse)
async def list_sources(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, description="Case-insensitive match on name"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """List the user's sources."""
    repo = SourceRepository(db)

    sources, total = await repo.list_by_user(
        user_id=current_user.id, search=search, page=page, limit=limit
    )

    logger.info(f"Categories fetched: {len(sources)} by user: {current_user.id}")
    return SourceListResponse(
        sources=[SourceResponse.model_validate(c) for c in sources],
        total=total,
        page=page,
        limit=limit,
        total_pages=ceil(total / limit),
    )


@router.get("/{source_id}", response_model=SourceEnvelope)
async def get_source(
    source_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    source = await _get_owned_source(SourceRepository(db), source_id, current_user)
    return SourceEnvelope(
        message="Source fetched successfully",
        source=SourceResponse.model_validate(source),
    )


@router.put("/{source_id}", response_model=SourceEnvelope)
async def update_source(
    source_id: str,
    data: SourceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Rename a source or change its icon."""
    repo = SourceRepository(db)
    source = await _get_owned_source(repo, source_id, current_user)

    try:
        source = await repo.update(source, name=data.name, icon=data.icon)
    except IntegrityError:
        raise DuplicateResourceError(f"Source '{data.name}' already exists")

    logger.info(f"Source updated: {source.id} by user: {current_user.id}")
    return SourceEnvelope(
        message="Source updated successfully",
        source=SourceResponse.model_validate(source),
    )


@router.delete("/{source_id}", response_model=MessageResponse)
async def delete_source(
    source_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Delete a source. Its incomes are kept without a source."""
    repo = SourceRepository(db)
    source = await _get_owned_source(repo, source_id, current_user)

    await repo.delete(source)

    logger.info(f"Source deleted: {source_id} by user: {current_user.id}")
    return MessageResponse(message="Source deleted successfully")
