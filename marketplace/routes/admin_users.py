# -------- ADMIN USERS --------
import logging
from enum import Enum
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from marketplace.database import get_session
from marketplace.dependencies.admin import require_admin
from marketplace.errors import InvalidOperation, NotFound
from marketplace.models.user import User
from marketplace.utils.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()


class UserAction(str, Enum):
    activate = "activate"
    deactivate = "deactivate"
    suspend = "suspend"
    unsuspend = "unsuspend"


# suspend/unsuspend are aliases kept for the back-office UI
ACTION_CAN_LOGIN = {
    UserAction.activate: True,
    UserAction.deactivate: False,
    UserAction.suspend: False,
    UserAction.unsuspend: True,
}


def _user_row(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "canLogin": user.can_login,
        "createdAt": user.created_at,
    }


@router.get("")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    role: Optional[str] = None,
    active: Optional[bool] = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    query = select(User)

    if search:
        query = query.where(
            (User.name.ilike(f"%{search}%")) |
            (User.email.ilike(f"%{search}%"))
        )

    if role:
        query = query.where(User.role == role)

    if active is not None:
        query = query.where(User.can_login == active)

    users, pagination = paginate(
        session=session,
        query=query.order_by(User.created_at.desc()),
        page=page,
        limit=limit,
    )

    return {
        "users": [_user_row(u) for u in users],
        "pagination": pagination,
    }


@router.post("/{user_id}/{action}")
def user_action(
    user_id: int,
    action: UserAction,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    user = session.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    can_login = ACTION_CAN_LOGIN[action]

    if user.id == admin.id and not can_login:
        raise InvalidOperation("Admins cannot lock themselves out")

    user.can_login = can_login
    session.add(user)
    session.commit()
    session.refresh(user)

    logger.info(f"Admin {admin.id}: {action.value} user {user.id}")

    return {
        "message": f"User {action.value} successful",
        "user": _user_row(user),
    }
