import logging
from math import ceil
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_db_user
from app.config import get_settings
from app.core.exceptions import ResourceNotFoundError
from app.db.repositories.dimension_repo import CategoryRepository
from app.db.repositories.record_repo import ExpenseRepository
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.expense import (
    ExpenseCreate,
    ExpenseUpdate,
    ExpenseResponse,
    ExpenseEnvelope,
    ExpenseListResponse,
)
from app.services.aggregation import EXPENSE
from app.services.date_window import parse_date_bounds
from app.services.export_service import build_workbook, export_filename, XLSX_MEDIA_TYPE

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter()


async def _get_owned_category(db: AsyncSession, category_id: str, user: User):
    category = await CategoryRepository(db).get_by_id_and_user(category_id, user.id)
    if not category:
        logger.error(f"Category not found: {category_id} by user: {user.id}")
        raise ResourceNotFoundError("Category not found")
    return category


async def _get_owned_expense(repo: ExpenseRepository, expense_id: str, user: User):
    expense = await repo.get_by_id_and_user(expense_id, user.id)
    if not expense:
        logger.error(f"Expense not found: {expense_id} by user: {user.id}")
        raise ResourceNotFoundError("Expense not found")
    return expense


@router.post("", response_model=ExpenseEnvelope, status_code=201)
async def create_expense(
    data: ExpenseCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Record an expense in one of the user's categories."""
    category = await _get_owned_category(db, data.category_id, current_user)

    expense = await ExpenseRepository(db).create(
        user_id=current_user.id,
        icon=data.icon,
        name=data.name,
        description=data.description,
        amount=data.amount,
        category_id=category.id,
        date=data.date,
        images=data.images,
    )

    logger.info(f"Expense created: {expense.id} by user: {current_user.id}")
    return ExpenseEnvelope(
        message="Expense created successfully",
        expense=ExpenseResponse.model_validate(expense),
    )


@router.get("", response_model=ExpenseListResponse)
async def list_expenses(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, description="Case-insensitive match on name or description"),
    category: Optional[str] = Query(None, description="Category id or name"),
    from_date: Optional[str] = Query(None, alias="fromDate"),
    to_date: Optional[str] = Query(None, alias="toDate"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """
    List the user's expenses, newest first.

    `category` accepts either a category id or a category name. An unknown
    category yields an empty page rather than an error.
    """
    category_id = None
    if category:
        category_repo = CategoryRepository(db)
        match = await category_repo.get_by_id_and_user(category, current_user.id)
        if match is None:
            match = await category_repo.get_by_name_and_user(category, current_user.id)
        if match is None:
            logger.info(f"Expense list: unknown category '{category}' for user: {current_user.id}")
            return ExpenseListResponse(page=page, limit=limit, total=0, total_pages=0, expenses=[])
        category_id = match.id

    window = parse_date_bounds(from_date, to_date)
    expenses, total = await ExpenseRepository(db).list_by_user(
        user_id=current_user.id,
        search=search,
        dimension_id=category_id,
        start=window.start,
        end=window.end,
        page=page,
        limit=limit,
    )

    logger.info(f"Expenses listed: {len(expenses)} of {total} by user: {current_user.id}")
    return ExpenseListResponse(
        page=page,
        limit=limit,
        total=total,
        total_pages=ceil(total / limit),
        expenses=[ExpenseResponse.model_validate(e) for e in expenses],
    )


@router.get("/downloadExcel")
async def download_expenses_excel(
    from_date: Optional[str] = Query(None, alias="fromDate"),
    to_date: Optional[str] = Query(None, alias="toDate"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Download expenses as an .xlsx spreadsheet. Without dates, every expense is included."""
    window = parse_date_bounds(from_date, to_date)
    expenses = await ExpenseRepository(db).list_for_export(
        user_id=current_user.id, start=window.start, end=window.end
    )

    logger.info(f"Expense export: {len(expenses)} rows for user: {current_user.id}")
    return Response(
        content=build_workbook(EXPENSE, expenses),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={export_filename(EXPENSE)}"},
    )


@router.get("/{expense_id}", response_model=ExpenseEnvelope)
async def get_expense(
    expense_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    expense = await _get_owned_expense(ExpenseRepository(db), expense_id, current_user)
    return ExpenseEnvelope(
        message="Expense found successfully",
        expense=ExpenseResponse.model_validate(expense),
    )


@router.put("/{expense_id}", response_model=ExpenseEnvelope)
async def update_expense(
    expense_id: str,
    data: ExpenseUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Update an expense. Omitted fields are left unchanged."""
    repo = ExpenseRepository(db)
    expense = await _get_owned_expense(repo, expense_id, current_user)

    if data.category_id is not None:
        await _get_owned_category(db, data.category_id, current_user)

    expense = await repo.update(expense, **data.model_dump(exclude_unset=True))

    logger.info(f"Expense updated: {expense.id} by user: {current_user.id}")
    return ExpenseEnvelope(
        message="Expense updated successfully",
        expense=ExpenseResponse.model_validate(expense),
    )


@router.delete("/{expense_id}", response_model=MessageResponse)
async def delete_expense(
    expense_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    repo = ExpenseRepository(db)
    expense = await _get_owned_expense(repo, expense_id, current_user)

    await repo.delete(expense)

    logger.info(f"Expense deleted: {expense_id} by user: {current_user.id}")
    return MessageResponse(message="Expense deleted successfully")
