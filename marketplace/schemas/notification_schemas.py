from datetime import datetime
from typing import List, Optional

from marketplace.models.notifications import NotificationType
from marketplace.schemas.base import ApiModel
from marketplace.schemas.order_schemas import Pagination


class NotificationRead(ApiModel):
    id: int
    user_id: int
    title: str
    message: str
    type: NotificationType
    read: bool
    related_id: Optional[str] = None
    created_at: datetime


class NotificationListResponse(ApiModel):
    notifications: List[NotificationRead]
    unread: int
    pagination: Pagination
