from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from marketplace.config import Settings
from marketplace.constants.order_status import OrderStatus
from marketplace.database import get_session
from marketplace.dependencies.services import get_app_settings, get_gateway
from marketplace.models.user import User
from marketplace.notifications import NotificationEmitter, get_notifier
from marketplace.schemas.order_schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    OrderEventRead,
    OrderListResponse,
    OrderRead,
    UpdateOrderStatusRequest,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from marketplace.services import order_service
from marketplace.services.order_event_service import list_order_events
from marketplace.services.order_service import TransitionResult
from marketplace.services.payment_gateway import PaymentGateway
from marketplace.utils.token import get_current_user

router = APIRouter()


@router.post("", response_model=CreateOrderResponse, status_code=201)
def create_order(
    payload: CreateOrderRequest,
    session: Session = Depends(get_session),
    gateway: PaymentGateway = Depends(get_gateway),
    settings: Settings = Depends(get_app_settings),
    current_user: User = Depends(get_current_user),
):
    order, intent = order_service.create_order(
        session=session,
        gateway=gateway,
        settings=settings,
        buyer=current_user,
        item_id=payload.item_id,
    )

    return CreateOrderResponse(
        order=OrderRead.from_order(order),
        client_secret=intent.client_secret,
        provider=gateway.provider,
        public_key=gateway.public_key or None,
    )


@router.get("", response_model=OrderListResponse)
def list_my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[OrderStatus] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    orders, pagination = order_service.list_orders(
        session=session,
        user=current_user,
        status=status,
        page=page,
        limit=limit,
    )

    return {
        "orders": [OrderRead.from_order(o) for o in orders],
        "pagination": pagination,
    }


@router.get("/{order_id}", response_model=OrderRead)
def get_order(
    order_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = order_service.get_order(
        session=session, order_id=order_id, user=current_user
    )
    return OrderRead.from_order(order)


@router.patch("/{order_id}", response_model=OrderRead)
def update_order_status(
    order_id: str,
    payload: UpdateOrderStatusRequest,
    session: Session = Depends(get_session),
    gateway: PaymentGateway = Depends(get_gateway),
    notifier: NotificationEmitter = Depends(get_notifier),
    current_user: User = Depends(get_current_user),
):
    order = order_service.update_order_status(
        session=session,
        gateway=gateway,
        notifier=notifier,
        order_id=order_id,
        new_status=payload.status,
        user=current_user,
    )
    return OrderRead.from_order(order)


@router.post("/{order_id}/verify-payment", response_model=VerifyPaymentResponse)
def verify_payment(
    order_id: str,
    payload: VerifyPaymentRequest,
    session: Session = Depends(get_session),
    gateway: PaymentGateway = Depends(get_gateway),
    notifier: NotificationEmitter = Depends(get_notifier),
    current_user: User = Depends(get_current_user),
):
    order, result = order_service.verify_payment(
        session=session,
        gateway=gateway,
        notifier=notifier,
        order_id=order_id,
        payment_id=payload.payment_id,
        signature=payload.signature,
        user=current_user,
    )

    message = (
        "Payment successful"
        if result == TransitionResult.APPLIED
        else "Payment already processed"
    )
    return {"message": message, "order": OrderRead.from_order(order)}


@router.get("/{order_id}/events", response_model=list[OrderEventRead])
def order_timeline(
    order_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = order_service.get_order(
        session=session, order_id=order_id, user=current_user
    )
    return list_order_events(session, order.id)
