from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field, field_validator

from app.schemas.common import CamelModel, to_local_naive
from app.schemas.analytics import DimensionRef


class IncomeCreate(BaseModel):
    icon: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    amount: float = Field(gt=0, le=100_000_000)
    source_id: str
    date: datetime
    images: List[str] = []

    normalize_date = field_validator("date")(to_local_naive)


class IncomeUpdate(BaseModel):
    icon: Optional[str] = Field(default=None, min_length=1)
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    amount: Optional[float] = Field(default=None, gt=0, le=100_000_000)
    source_id: Optional[str] = None
    date: Optional[datetime] = None
    images: Optional[List[str]] = None

    normalize_date = field_validator("date")(to_local_naive)


class IncomeResponse(CamelModel):
    id: str
    icon: str
    name: str
    description: str
    amount: float
    source_id: Optional[str] = None
    source: Optional[DimensionRef] = None
    date: datetime
    images: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class IncomeEnvelope(CamelModel):
    message: str
    income: IncomeResponse


class IncomeListResponse(CamelModel):
    message: str = "Incomes listed successfully"
    page: int
    limit: int
    total: int
    total_pages: int
    incomes: List[IncomeResponse]
