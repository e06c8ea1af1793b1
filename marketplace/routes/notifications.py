from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, update
from sqlmodel import Session, select

from marketplace.database import get_session
from marketplace.errors import NotFound
from marketplace.models.notifications import Notification
from marketplace.models.user import User
from marketplace.schemas.notification_schemas import (
    NotificationListResponse,
    NotificationRead,
)
from marketplace.utils.pagination import paginate
from marketplace.utils.token import get_current_user

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
def list_my_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = False,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    query = select(Notification).where(Notification.user_id == current_user.id)

    if unread_only:
        query = query.where(Notification.read == False)  # noqa: E712

    notifications, pagination = paginate(
        session=session,
        query=query.order_by(Notification.created_at.desc(), Notification.id.desc()),
        page=page,
        limit=limit,
    )

    unread = session.exec(
        select(func.count(Notification.id))
        .where(Notification.user_id == current_user.id)
        .where(Notification.read == False)  # noqa: E712
    ).one()

    return {
        "notifications": notifications,
        "unread": unread,
        "pagination": pagination,
    }


@router.patch("/{notification_id}/read", response_model=NotificationRead)
def mark_as_read(
    notification_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    notification = session.get(Notification, notification_id)

    # other users' notifications are reported as missing
    if not notification or notification.user_id != current_user.id:
        raise NotFound("Notification not found")

    notification.read = True
    session.add(notification)
    session.commit()
    session.refresh(notification)

    return notification


@router.post("/read-all")
def mark_all_as_read(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    result = session.exec(
        update(Notification)
        .where(Notification.user_id == current_user.id)
        .where(Notification.read == False)  # noqa: E712
        .values(read=True)
    )
    session.commit()

    return {"updated": result.rowcount}
