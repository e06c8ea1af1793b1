import logging
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional, Tuple

from sqlalchemy import update
from sqlmodel import Session, select

from marketplace.config import Settings
from marketplace.constants.order_status import (
    OrderStatus,
    SOURCE_STATUS,
    TRANSITION_TIMESTAMPS,
    can_transition,
    has_reached,
)
from marketplace.errors import (
    Forbidden,
    InternalFault,
    InvalidOperation,
    NotFound,
    SignatureInvalid,
)
from marketplace.models.order import Order
from marketplace.models.project import Project
from marketplace.models.user import User
from marketplace.notifications import NotificationEmitter, NotificationEvent
from marketplace.services.order_event_service import log_order_event
from marketplace.services.payment_gateway import PaymentGateway, PaymentIntent
from marketplace.utils.pagination import paginate
from marketplace.utils.clock import utcnow

logger = logging.getLogger(__name__)


class TransitionResult(str, Enum):
    APPLIED = "applied"
    # the order already sits at the target or further down its path
    ALREADY_APPLIED = "already_applied"
    REJECTED = "rejected"


# timeline entry for a provider refund whose status change lost a race
UNAPPLIED_REFUND_EVENT = "REFUND_UNAPPLIED"

STATUS_EVENTS = {
    OrderStatus.PAID: NotificationEvent.PAYMENT_SUCCESS,
    OrderStatus.COMPLETED: NotificationEvent.ORDER_COMPLETED,
    OrderStatus.CANCELLED: NotificationEvent.ORDER_CANCELLED,
    OrderStatus.REFUNDED: NotificationEvent.ORDER_REFUNDED,
}


def to_minor_units(amount: Decimal) -> int:
    """2500 -> 250000 (paise/cents)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def transition_order(
    session: Session,
    order: Order,
    target: OrderStatus,
    *,
    created_by: str = "system",
    label: Optional[str] = None,
    meta: Optional[dict] = None,
) -> TransitionResult:
    """
    Move ``order`` to ``target`` with a conditional update.

    The UPDATE only matches while the row still holds the single source
    status of ``target``, so of two concurrent writers exactly one gets
    APPLIED. The timeline entry commits in the same transaction.
    """
    current = OrderStatus(order.status)

    if has_reached(current, target):
        return TransitionResult.ALREADY_APPLIED

    if not can_transition(current, target):
        return TransitionResult.REJECTED

    now = utcnow()
    values = {"status": target, "updated_at": now, TRANSITION_TIMESTAMPS[target]: now}

    result = session.exec(
        update(Order)
        .where(Order.id == order.id)
        .where(Order.status == SOURCE_STATUS[target])
        .values(**values)
    )

    if result.rowcount != 1:
        # lost the race; report against what the winner left behind
        session.rollback()
        session.refresh(order)
        logger.info(
            f"Conditional update for order {order.id} to {target.value} "
            f"matched no row (now {order.status})"
        )
        if has_reached(OrderStatus(order.status), target):
            return TransitionResult.ALREADY_APPLIED
        return TransitionResult.REJECTED

    log_order_event(
        session,
        order_id=order.id,
        event_type=target.value,
        label=label or f"Order moved to {target.value}",
        created_by=created_by,
        meta=meta,
    )
    session.commit()
    session.refresh(order)

    logger.info(f"Order {order.id}: {current.value} -> {target.value} by {created_by}")
    return TransitionResult.APPLIED


# -------------------------
# ORDER API OPERATIONS
# -------------------------

def create_order(
    *,
    session: Session,
    gateway: PaymentGateway,
    settings: Settings,
    buyer: User,
    item_id: int,
) -> Tuple[Order, PaymentIntent]:
    project = session.get(Project, item_id)

    if not project or not project.is_active:
        raise NotFound("Project not found")

    if project.author_id == buyer.id:
        raise InvalidOperation("Cannot order your own project")

    if project.price is None or project.price <= 0:
        raise InvalidOperation("Project has no valid price")

    # The local order exists before any provider object, so every provider
    # payment can be traced back through its metadata.
    order = Order(
        buyer_id=buyer.id,
        project_id=project.id,
        seller_id=project.author_id,
        total_amount=project.price,
        currency=settings.payment_currency,
        status=OrderStatus.PENDING,
        payment_provider=gateway.provider,
    )
    session.add(order)
    session.flush()

    log_order_event(
        session,
        order_id=order.id,
        event_type=OrderStatus.PENDING.value,
        label="Order placed",
        created_by=f"user:{buyer.id}",
    )
    session.commit()
    session.refresh(order)

    metadata = {
        "order_id": order.id,
        "item_id": str(project.id),
        "buyer_id": str(buyer.id),
        "seller_id": str(project.author_id),
    }

    # PaymentProviderError propagates with the order left PENDING; a late
    # provider success still reconciles through the webhook.
    intent = gateway.create_payment_intent(
        to_minor_units(order.total_amount),
        order.currency,
        metadata,
    )

    session.exec(
        update(Order)
        .where(Order.id == order.id)
        .where(Order.payment_id.is_(None))
        .values(payment_id=intent.provider_order_id, updated_at=utcnow())
    )
    session.commit()
    session.refresh(order)

    return order, intent


def list_orders(
    *,
    session: Session,
    user: User,
    status: Optional[OrderStatus] = None,
    page: int = 1,
    limit: int = 10,
):
    query = select(Order).where(Order.buyer_id == user.id)

    if status:
        query = query.where(Order.status == status)

    return paginate(
        session=session,
        query=query.order_by(Order.created_at.desc()),
        page=page,
        limit=limit,
    )


def can_view_order(order: Order, user: User) -> bool:
    return user.is_admin or user.id in (order.buyer_id, order.seller_id)


def get_order(*, session: Session, order_id: str, user: User) -> Order:
    order = session.get(Order, order_id)

    if not order:
        raise NotFound("Order not found")

    if not can_view_order(order, user):
        raise Forbidden("You do not have access to this order")

    return order


def update_order_status(
    *,
    session: Session,
    gateway: PaymentGateway,
    notifier: NotificationEmitter,
    order_id: str,
    new_status: OrderStatus,
    user: User,
) -> Order:
    query = select(Order).where(Order.id == order_id)
    if new_status == OrderStatus.REFUNDED:
        # row stays locked until the transition commits, so concurrent
        # refunds reach the provider once
        query = query.with_for_update()

    order = session.exec(query).first()

    if not order:
        raise NotFound("Order not found")

    if not (user.is_admin or user.id == order.seller_id):
        raise Forbidden("Only the seller or an admin can update this order")

    if order.status == new_status:
        return order

    if not can_transition(OrderStatus(order.status), new_status):
        raise InvalidOperation(
            f"Cannot move order from {OrderStatus(order.status).value} "
            f"to {new_status.value}"
        )

    meta = None
    if new_status == OrderStatus.REFUNDED and order.payment_id:
        refund = gateway.refund(order.payment_id, to_minor_units(order.total_amount))
        meta = {"refund_id": refund.refund_id, "refund_status": refund.status}

    result = transition_order(
        session,
        order,
        new_status,
        created_by=f"user:{user.id}",
        meta=meta,
    )

    if result == TransitionResult.APPLIED:
        notifier.dispatch_order_event(STATUS_EVENTS[new_status], order)
    elif meta is not None:
        _record_unapplied_refund(session, order, meta, created_by=f"user:{user.id}")
    elif order.status != new_status:
        raise InvalidOperation(
            f"Cannot move order from {OrderStatus(order.status).value} "
            f"to {new_status.value}"
        )

    return order


def _record_unapplied_refund(session: Session, order: Order, meta: dict, created_by: str):
    """The provider refunded but another writer moved the order first."""
    log_order_event(
        session,
        order_id=order.id,
        event_type=UNAPPLIED_REFUND_EVENT,
        label=f"Refund issued while order was {OrderStatus(order.status).value}",
        created_by=created_by,
        meta=meta,
    )
    session.commit()

    logger.error(
        f"Refund {meta['refund_id']} issued for order {order.id} but the order "
        f"moved to {OrderStatus(order.status).value} first"
    )
    raise InternalFault("Refund was issued but the order status changed concurrently")


def verify_payment(
    *,
    session: Session,
    gateway: PaymentGateway,
    notifier: NotificationEmitter,
    order_id: str,
    payment_id: str,
    signature: str,
    user: User,
) -> Tuple[Order, TransitionResult]:
    """Apply a checkout confirmation submitted by the buyer's browser."""
    order = session.get(Order, order_id)

    if not order:
        raise NotFound("Order not found")

    if order.buyer_id != user.id:
        raise Forbidden("This order belongs to another user")

    if not order.payment_id:
        raise InvalidOperation("Payment not initialized")

    if not gateway.verify_client_confirmation(payment_id, order.payment_id, signature):
        logger.warning(f"Client payment confirmation failed for order {order.id}")
        raise SignatureInvalid("Payment verification failed")

    result = transition_order(
        session,
        order,
        OrderStatus.PAID,
        created_by=f"user:{user.id}",
        label="Payment confirmed by checkout",
        meta={"provider_payment_id": payment_id},
    )

    if result == TransitionResult.REJECTED:
        raise InvalidOperation(
            f"Order is {OrderStatus(order.status).value} and cannot be paid"
        )

    if result == TransitionResult.APPLIED:
        notifier.dispatch_order_event(NotificationEvent.PAYMENT_SUCCESS, order)

    return order, result
