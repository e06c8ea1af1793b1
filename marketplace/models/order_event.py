from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, Index
from sqlmodel import Field, SQLModel

from marketplace.utils.clock import utcnow


class OrderEvent(SQLModel, table=True):
    """One row per status change; the order's audit timeline."""

    __tablename__ = "order_event"
    __table_args__ = (
        Index("ix_order_event_order_created", "order_id", "created_at"),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    order_id: str = Field(foreign_key="order.id", index=True)

    # target status value, e.g. "PAID"
    event_type: str = Field(index=True)
    label: str

    # provider event id/type, refund id, ...
    meta: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    # "system", "webhook" or "user:<id>"
    created_by: str = Field(default="system")
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
