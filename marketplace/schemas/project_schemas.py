from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from marketplace.schemas.base import ApiModel
from marketplace.schemas.order_schemas import Pagination


class ProjectCreate(ApiModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    category: Optional[str] = None
    price: Decimal = Field(gt=0, max_digits=12, decimal_places=2)


class ProjectRead(ApiModel):
    id: int
    title: str
    description: str
    category: Optional[str] = None
    price: float
    author_id: int
    is_active: bool
    created_at: datetime


class ProjectListResponse(ApiModel):
    projects: List[ProjectRead]
    pagination: Pagination
