from typing import List

from app.schemas.common import CamelModel
from app.schemas.dimension import DimensionCreate, DimensionUpdate, DimensionResponse


class CategoryCreate(DimensionCreate):
    pass


class CategoryUpdate(DimensionUpdate):
    pass


class CategoryResponse(DimensionResponse):
    pass


class CategoryEnvelope(CamelModel):
    message: str
    category: CategoryResponse


class CategoryListResponse(CamelModel):
    message: str = "Categories fetched successfully"
    categories: List[CategoryResponse]
    total: int
    page: int
    limit: int
    total_pages: int
