from typing import List

from app.schemas.common import CamelModel
from app.schemas.dimension import DimensionCreate, DimensionUpdate, DimensionResponse


class SourceCreate(DimensionCreate):
    pass


class SourceUpdate(DimensionUpdate):
    pass


class SourceResponse(DimensionResponse):
    pass


class SourceEnvelope(CamelModel):
    message: str
    source: SourceResponse


class SourceListResponse(CamelModel):
    message: str = "Sources fetched successfully"
    sources: List[SourceResponse]
    total: int
    page: int
    limit: int
    total_pages: int
