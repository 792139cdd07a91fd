from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.common import CamelModel


class DimensionCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    icon: str = Field(min_length=1)


class DimensionUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    icon: Optional[str] = Field(default=None, min_length=1)


class DimensionResponse(CamelModel):
    id: str
    name: str
    icon: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
