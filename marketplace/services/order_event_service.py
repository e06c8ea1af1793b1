from typing import Optional
from uuid import uuid4
from sqlmodel import Session, select
from marketplace.models.order_event import OrderEvent
from marketplace.utils.clock import utcnow


def log_order_event(
    session: Session,
    order_id: str,
    event_type: str,
    label: str,
    created_by: str = "system",
    meta: Optional[dict] = None,
):
    """
    Append-only event log for order timeline.

    Added to the caller's session so it commits (or rolls back) together
    with the status change it describes.
    """

    event = OrderEvent(
        id=str(uuid4()),
        order_id=order_id,
        event_type=event_type,
        label=label,
        meta=meta,
        created_by=created_by,
        created_at=utcnow(),
    )

    session.add(event)
    return event


def list_order_events(session: Session, order_id: str):
    return session.exec(
        select(OrderEvent)
        .where(OrderEvent.order_id == order_id)
        .order_by(OrderEvent.created_at)
    ).all()
