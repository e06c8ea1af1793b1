from typing import Optional

from sqlmodel import Session
from marketplace.models.notifications import Notification, NotificationType


def create_notification(
    *,
    session: Session,
    user_id: int,
    title: str,
    message: str,
    type: NotificationType = NotificationType.GENERAL,
    related_id: Optional[str] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        related_id=related_id,
        read=False,
    )
    session.add(notification)
    session.flush()
    return notification
