import logging
from math import ceil
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_db_user
from app.config import get_settings
from app.core.exceptions import ResourceNotFoundError
from app.db.repositories.dimension_repo import SourceRepository
from app.db.repositories.record_repo import IncomeRepository
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.income import (
    IncomeCreate,
    IncomeUpdate,
    IncomeResponse,
    IncomeEnvelope,
    IncomeListResponse,
)
from app.services.aggregation import INCOME
from app.services.date_window import parse_date_bounds
from app.services.export_service import build_workbook, export_filename, XLSX_MEDIA_TYPE

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter()


async def _get_owned_source(db: AsyncSession, source_id: str, user: User):
    source = await SourceRepository(db).get_by_id_and_user(source_id, user.id)
    if not source:
        logger.error(f"Source not found: {source_id} by user: {user.id}")
        raise ResourceNotFoundError("Source not found")
    return source


async def _get_owned_income(repo: IncomeRepository, income_id: str, user: User):
    income = await repo.get_by_id_and_user(income_id, user.id)
    if not income:
        logger.error(f"Income not found: {income_id} by user: {user.id}")
        raise ResourceNotFoundError("Income not found")
    return income


@router.post("", response_model=IncomeEnvelope, status_code=201)
async def create_income(
    data: IncomeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Record an income in one of the user's sources."""
    source = await _get_owned_source(db, data.source_id, current_user)

    income = await IncomeRepository(db).create(
        user_id=current_user.id,
        icon=data.icon,
        name=data.name,
        description=data.description,
        amount=data.amount,
        source_id=source.id,
        date=data.date,
        images=data.images,
    )

    logger.info(f"Income created: {income.id} by user: {current_user.id}")
    return IncomeEnvelope(
        message="Income created successfully",
        income=IncomeResponse.model_validate(income),
    )


@router.get("", response_model=IncomeListResponse)
async def list_incomes(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, description="Case-insensitive match on name or description"),
    source: Optional[str] = Query(None, description="Source id or name"),
    from_date: Optional[str] = Query(None, alias="fromDate"),
    to_date: Optional[str] = Query(None, alias="toDate"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """
    List the user's incomes, newest first.

    `source` accepts either a source id or a source name. An unknown
    source yields an empty page rather than an error.
    """
    source_id = None
    if source:
        source_repo = SourceRepository(db)
        match = await source_repo.get_by_id_and_user(source, current_user.id)
        if match is None:
            match = await source_repo.get_by_name_and_user(source, current_user.id)
        if match is None:
            logger.info(f"Income list: unknown source '{source}' for user: {current_user.id}")
            return IncomeListResponse(page=page, limit=limit, total=0, total_pages=0, incomes=[])
        source_id = match.id

    window = parse_date_bounds(from_date, to_date)
    incomes, total = await IncomeRepository(db).list_by_user(
        user_id=current_user.id,
        search=search,
        dimension_id=source_id,
        start=window.start,
        end=window.end,
        page=page,
        limit=limit,
    )

    logger.info(f"Incomes listed: {len(incomes)} of {total} by user: {current_user.id}")
    return IncomeListResponse(
        page=page,
        limit=limit,
        total=total,
        total_pages=ceil(total / limit),
        incomes=[IncomeResponse.model_validate(e) for e in incomes],
    )


@router.get("/downloadExcel")
async def download_incomes_excel(
    from_date: Optional[str] = Query(None, alias="fromDate"),
    to_date: Optional[str] = Query(None, alias="toDate"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Download incomes as an .xlsx spreadsheet. Without dates, every income is included."""
    window = parse_date_bounds(from_date, to_date)
    incomes = await IncomeRepository(db).list_for_export(
        user_id=current_user.id, start=window.start, end=window.end
    )

    logger.info(f"Income export: {len(incomes)} rows for user: {current_user.id}")
    return Response(
        content=build_workbook(INCOME, incomes),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={export_filename(INCOME)}"},
    )


@router.get("/{income_id}", response_model=IncomeEnvelope)
async def get_income(
    income_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    income = await _get_owned_income(IncomeRepository(db), income_id, current_user)
    return IncomeEnvelope(
        message="Income found successfully",
        income=IncomeResponse.model_validate(income),
    )


@router.put("/{income_id}", response_model=IncomeEnvelope)
async def update_income(
    income_id: str,
    data: IncomeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Update an income. Omitted fields are left unchanged."""
    repo = IncomeRepository(db)
    income = await _get_owned_income(repo, income_id, current_user)

    if data.source_id is not None:
        await _get_owned_source(db, data.source_id, current_user)

    income = await repo.update(income, **data.model_dump(exclude_unset=True))

    logger.info(f"Income updated: {income.id} by user: {current_user.id}")
    return IncomeEnvelope(
        message="Income updated successfully",
        income=IncomeResponse.model_validate(income),
    )


@router.delete("/{income_id}", response_model=MessageResponse)
async def delete_income(
    income_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    repo = IncomeRepository(db)
    income = await _get_owned_income(repo, income_id, current_user)

    await repo.delete(income)

    logger.info(f"Income deleted: {income_id} by user: {current_user.id}")
    return MessageResponse(message="Income deleted successfully")
