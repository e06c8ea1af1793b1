from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

from marketplace.utils.clock import utcnow


class NotificationType(str, Enum):
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    ORDER_UPDATE = "ORDER_UPDATE"
    REFUND_PROCESSED = "REFUND_PROCESSED"
    GENERAL = "GENERAL"


class Notification(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: int = Field(foreign_key="user.id", index=True)

    title: str
    message: str
    type: NotificationType = NotificationType.GENERAL
    read: bool = Field(default=False)

    related_id: Optional[str] = None  # order id

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
