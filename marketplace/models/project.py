from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal

from marketplace.utils.clock import utcnow


class Project(SQLModel, table=True):
    """A purchasable listing authored by a seller."""

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: str = ""
    category: Optional[str] = Field(default=None, index=True)

    price: Decimal = Field(max_digits=12, decimal_places=2)

    author_id: int = Field(foreign_key="user.id", index=True)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
