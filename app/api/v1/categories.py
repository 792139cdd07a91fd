import logging
from math import ceil
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_db_user
from app.config import get_settings
from app.core.exceptions import ResourceNotFoundError, DuplicateResourceError
from app.db.repositories.dimension_repo import CategoryRepository
from app.models.user import User
from app.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryEnvelope,
    CategoryListResponse,
)
from app.schemas.common import MessageResponse

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter()


async def _get_owned_category(repo: CategoryRepository, category_id: str, user: User):
    category = await repo.get_by_id_and_user(category_id, user.id)
    if not category:
        logger.error(f"Category not found: {category_id} for user: {user.id}")
        raise ResourceNotFoundError("Category not found")
    return category


@router.post("", response_model=CategoryEnvelope, status_code=201)
async def create_category(
    data: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Create an expense category. Names are unique per user."""
    repo = CategoryRepository(db)

    try:
        category = await repo.create(user_id=current_user.id, name=data.name, icon=data.icon)
    except IntegrityError:
        raise DuplicateResourceError(f"Category '{data.name}' already exists")

    logger.info(f"Category created: {category.id} by user: {current_user.id}")
    return CategoryEnvelope(
        message="Category created successfully",
        category=CategoryResponse.model_validate(category),
    )


@router.get("", response_model=CategoryListResponse)
async def list_categories(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, description="Case-insensitive match on name"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """List the user's categories."""
    repo = CategoryRepository(db)

    categories, total = await repo.list_by_user(
        user_id=current_user.id, search=search, page=page, limit=limit
    )

    logger.info(f"Categories fetched: {len(categories)} by user: {current_user.id}")
    return CategoryListResponse(
        categories=[CategoryResponse.model_validate(c) for c in categories],
        total=total,
        page=page,
        limit=limit,
        total_pages=ceil(total / limit),
    )


@router.get("/{category_id}", response_model=CategoryEnvelope)
async def get_category(
    category_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    category = await _get_owned_category(CategoryRepository(db), category_id, current_user)
    return CategoryEnvelope(
        message="Category fetched successfully",
        category=CategoryResponse.model_validate(category),
    )


@router.put("/{category_id}", response_model=CategoryEnvelope)
async def update_category(
    category_id: str,
    data: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Rename a category or change its icon."""
    repo = CategoryRepository(db)
    category = await _get_owned_category(repo, category_id, current_user)

    try:
        category = await repo.update(category, name=data.name, icon=data.icon)
    except IntegrityError:
        raise DuplicateResourceError(f"Category '{data.name}' already exists")

    logger.info(f"Category updated: {category.id} by user: {current_user.id}")
    return CategoryEnvelope(
        message="Category updated successfully",
        category=CategoryResponse.model_validate(category),
    )


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Delete a category. Its expenses are kept and become uncategorized."""
    repo = CategoryRepository(db)
    category = await _get_owned_category(repo, category_id, current_user)

    await repo.delete(category)

    logger.info(f"Category deleted: {category_id} by user: {current_user.id}")
    return MessageResponse(message="Category deleted successfully")
