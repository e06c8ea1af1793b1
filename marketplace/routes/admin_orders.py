# -------- ADMIN ORDERS --------
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import String, cast
from sqlmodel import Session, select

from marketplace.constants.order_status import OrderStatus
from marketplace.database import get_session
from marketplace.dependencies.admin import require_admin
from marketplace.dependencies.services import get_gateway
from marketplace.errors import NotFound
from marketplace.models.order import Order
from marketplace.models.project import Project
from marketplace.models.user import User
from marketplace.notifications import NotificationEmitter, get_notifier
from marketplace.schemas.order_schemas import OrderRead
from marketplace.services import order_service
from marketplace.services.order_event_service import list_order_events
from marketplace.services.payment_gateway import PaymentGateway
from marketplace.utils.pagination import paginate

router = APIRouter()


class OrderAction(str, Enum):
    complete = "complete"
    cancel = "cancel"
    refund = "refund"


ACTION_STATUS = {
    OrderAction.complete: OrderStatus.COMPLETED,
    OrderAction.cancel: OrderStatus.CANCELLED,
    OrderAction.refund: OrderStatus.REFUNDED,
}


@router.get("")
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    status: Optional[OrderStatus] = None,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    query = (
        select(Order, User, Project)
        .join(User, User.id == Order.buyer_id)
        .join(Project, Project.id == Order.project_id)
    )

    if search:
        query = query.where(
            (User.name.ilike(f"%{search}%")) |
            (User.email.ilike(f"%{search}%")) |
            (Project.title.ilike(f"%{search}%")) |
            (cast(Order.id, String).ilike(f"%{search}%"))
        )

    if status:
        query = query.where(Order.status == status)

    if start_date:
        query = query.where(
            Order.created_at >= datetime.combine(start_date, time.min, tzinfo=timezone.utc)
        )

    if end_date:
        query = query.where(
            Order.created_at <= datetime.combine(end_date, time.max, tzinfo=timezone.utc)
        )

    rows, pagination = paginate(
        session=session,
        query=query.order_by(Order.created_at.desc()),
        page=page,
        limit=limit,
    )

    return {
        "orders": [
            {
                "orderId": o.id,
                "buyerName": u.name,
                "buyerEmail": u.email,
                "projectTitle": p.title,
                "date": o.created_at.date(),
                "totalAmount": float(o.total_amount),
                "currency": o.currency,
                "status": o.status,
            }
            for o, u, p in rows
        ],
        "pagination": pagination,
    }


@router.get("/{order_id}")
def order_details(
    order_id: str,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    order = session.get(Order, order_id)
    if not order:
        raise NotFound("Order not found")

    buyer = session.get(User, order.buyer_id)
    seller = session.get(User, order.seller_id)
    project = session.get(Project, order.project_id)

    return {
        "order": OrderRead.from_order(order),
        "buyer": {"id": buyer.id, "name": buyer.name, "email": buyer.email} if buyer else None,
        "seller": {"id": seller.id, "name": seller.name, "email": seller.email} if seller else None,
        "project": {"id": project.id, "title": project.title} if project else None,
        "events": [
            {
                "eventType": e.event_type,
                "label": e.label,
                "createdBy": e.created_by,
                "createdAt": e.created_at,
            }
            for e in list_order_events(session, order.id)
        ],
    }


@router.post("/{order_id}/{action}", response_model=OrderRead)
def order_action(
    order_id: str,
    action: OrderAction,
    session: Session = Depends(get_session),
    gateway: PaymentGateway = Depends(get_gateway),
    notifier: NotificationEmitter = Depends(get_notifier),
    admin: User = Depends(require_admin),
):
    order = order_service.update_order_status(
        session=session,
        gateway=gateway,
        notifier=notifier,
        order_id=order_id,
        new_status=ACTION_STATUS[action],
        user=admin,
    )
    return OrderRead.from_order(order)
