# -------- ADMIN NOTIFICATIONS --------
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from marketplace.database import get_session
from marketplace.dependencies.admin import require_admin
from marketplace.models.notifications import Notification, NotificationType
from marketplace.models.user import User
from marketplace.schemas.notification_schemas import NotificationRead
from marketplace.utils.pagination import paginate

router = APIRouter()


@router.get("")
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    type: Optional[NotificationType] = None,
    user_id: Optional[int] = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    query = select(Notification)

    if type:
        query = query.where(Notification.type == type)

    if user_id:
        query = query.where(Notification.user_id == user_id)

    notifications, pagination = paginate(
        session=session,
        query=query.order_by(Notification.created_at.desc(), Notification.id.desc()),
        page=page,
        limit=limit,
    )

    return {
        "notifications": [NotificationRead.model_validate(n) for n in notifications],
        "pagination": pagination,
    }
