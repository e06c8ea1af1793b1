from decimal import Decimal

import pytest
from sqlmodel import select

from marketplace.constants.order_status import OrderStatus
from marketplace.models.order import Order
from marketplace.models.notifications import Notification
from marketplace.models.order_event import OrderEvent
from marketplace.models.project import Project
from marketplace.models.user import User
from marketplace.services.order_service import TransitionResult, transition_order

from support import load_order


def _stale_copies(db, order_id):
    first, second = db.session(), db.session()
    return first, first.get(Order, order_id), second, second.get(Order, order_id)


def test_only_one_of_two_stale_writers_wins(db, placed_order):
    s1, order1, s2, order2 = _stale_copies(db, placed_order["id"])

    try:
        assert transition_order(s1, order1, OrderStatus.PAID) == TransitionResult.APPLIED

        # second writer still believes the order is PENDING
        assert order2.status == OrderStatus.PENDING
        result = transition_order(s2, order2, OrderStatus.CANCELLED)

        assert result == TransitionResult.REJECTED
        assert order2.status == OrderStatus.PAID
    finally:
        s1.close()
        s2.close()

    order = load_order(db, placed_order["id"])
    assert order.status == OrderStatus.PAID
    assert order.cancelled_at is None

    with db.session() as s:
        events = s.exec(select(OrderEvent).where(OrderEvent.order_id == order.id)).all()
    assert sorted(e.event_type for e in events) == ["PAID", "PENDING"]


def test_duplicate_stale_writer_sees_already_applied(db, placed_order):
    s1, order1, s2, order2 = _stale_copies(db, placed_order["id"])

    try:
        assert transition_order(s1, order1, OrderStatus.PAID) == TransitionResult.APPLIED
        assert transition_order(s2, order2, OrderStatus.PAID) == TransitionResult.ALREADY_APPLIED
    finally:
        s1.close()
        s2.close()


def test_transition_stamps_timestamp_and_event(db, placed_order):
    with db.session() as s:
        order = s.get(Order, placed_order["id"])
        result = transition_order(
            s,
            order,
            OrderStatus.CANCELLED,
            created_by="admin:1",
            label="Cancelled by support",
            meta={"reason": "duplicate"},
        )

    assert result == TransitionResult.APPLIED
    order = load_order(db, placed_order["id"])
    assert order.cancelled_at is not None
    assert order.updated_at >= order.created_at

    with db.session() as s:
        event = s.exec(
            select(OrderEvent)
            .where(OrderEvent.order_id == order.id)
            .where(OrderEvent.event_type == "CANCELLED")
        ).one()
    assert event.label == "Cancelled by support"
    assert event.created_by == "admin:1"
    assert event.meta == {"reason": "duplicate"}


def test_invalid_edge_is_rejected_without_writing(db, placed_order):
    with db.session() as s:
        order = s.get(Order, placed_order["id"])
        assert transition_order(s, order, OrderStatus.REFUNDED) == TransitionResult.REJECTED

    assert load_order(db, placed_order["id"]).status == OrderStatus.PENDING


@pytest.mark.parametrize("model", [Order, OrderEvent, Notification, Project, User])
def test_timestamp_columns_are_timezone_aware(model):
    columns = [c for c in model.__table__.columns if c.name.endswith("_at")]

    assert columns
    assert all(c.type.timezone for c in columns)


def test_new_rows_carry_utc_timestamps():
    order = Order(buyer_id=1, project_id=1, seller_id=2, total_amount=Decimal("10"))

    assert order.created_at.utcoffset().total_seconds() == 0
    assert order.updated_at.tzinfo is not None
