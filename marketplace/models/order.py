from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime, UniqueConstraint
from typing import Optional
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from marketplace.constants.order_status import OrderStatus
from marketplace.utils.clock import utcnow


class Order(SQLModel, table=True):
    __table_args__ = (
        # the same provider payment can never be attached twice for a buyer
        UniqueConstraint("buyer_id", "payment_id", name="uq_order_buyer_payment"),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)

    buyer_id: int = Field(foreign_key="user.id", index=True)
    project_id: int = Field(foreign_key="project.id", index=True)
    seller_id: int = Field(foreign_key="user.id", index=True)

    total_amount: Decimal = Field(max_digits=12, decimal_places=2)
    currency: str = Field(default="INR")

    status: OrderStatus = Field(default=OrderStatus.PENDING, index=True)

    payment_provider: Optional[str] = None
    payment_id: Optional[str] = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    paid_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    completed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    cancelled_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    refunded_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
