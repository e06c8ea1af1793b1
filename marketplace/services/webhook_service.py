"""
Inbound payment provider callbacks.

A delivery is handled in four steps: verify the signature over the raw
body, classify the event type, resolve the local order from the metadata
the order flow attached to the provider object, then apply the status
change through the conditional update. Nothing touches the database
before the signature check passes.
"""
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from sqlmodel import Session, select

from marketplace.constants.order_status import OrderStatus
from marketplace.errors import InvalidOperation, SignatureInvalid
from marketplace.models.order import Order
from marketplace.notifications import NotificationEmitter, NotificationEvent
from marketplace.services.order_service import TransitionResult, transition_order
from marketplace.services.payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)


class PaymentEventType(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"
    UNKNOWN = "unknown"


# Razorpay and Stripe names map onto the same three outcomes
EVENT_TYPES = {
    "payment.succeeded": PaymentEventType.SUCCEEDED,
    "payment.captured": PaymentEventType.SUCCEEDED,
    "order.paid": PaymentEventType.SUCCEEDED,
    "payment_intent.succeeded": PaymentEventType.SUCCEEDED,

    "payment.failed": PaymentEventType.FAILED,
    "payment_intent.payment_failed": PaymentEventType.FAILED,
    "payment_intent.canceled": PaymentEventType.FAILED,

    "refund.created": PaymentEventType.REFUNDED,
    "refund.processed": PaymentEventType.REFUNDED,
    "charge.refunded": PaymentEventType.REFUNDED,
}

TARGET_STATUS = {
    PaymentEventType.SUCCEEDED: OrderStatus.PAID,
    PaymentEventType.FAILED: OrderStatus.CANCELLED,
    PaymentEventType.REFUNDED: OrderStatus.REFUNDED,
}

TARGET_EVENT = {
    PaymentEventType.SUCCEEDED: NotificationEvent.PAYMENT_SUCCESS,
    PaymentEventType.FAILED: NotificationEvent.PAYMENT_FAILED,
    PaymentEventType.REFUNDED: NotificationEvent.ORDER_REFUNDED,
}


@dataclass
class PaymentEvent:
    provider_event_id: Optional[str]
    raw_type: str
    type: PaymentEventType
    order_id: Optional[str] = None
    provider_order_id: Optional[str] = None
    raw_payload: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class WebhookOutcome:
    event: PaymentEvent
    order_id: Optional[str] = None
    result: Optional[TransitionResult] = None
    notifications: int = 0

    @property
    def status(self) -> str:
        if self.event.type == PaymentEventType.UNKNOWN:
            return "ignored"
        if self.result is None:
            return "unmatched"
        return self.result.value


def _metadata_order_id(metadata: Optional[dict]) -> Optional[str]:
    if not isinstance(metadata, dict):
        return None
    value = metadata.get("order_id") or metadata.get("orderId")
    return str(value) if value else None


def parse_payment_event(
    payload: Dict[str, Any],
    event_id: Optional[str] = None,
) -> PaymentEvent:
    """Normalise a Razorpay-style or Stripe-style event body."""
    raw_type = str(payload.get("event") or payload.get("type") or "")
    event_type = EVENT_TYPES.get(raw_type, PaymentEventType.UNKNOWN)

    order_id = None
    provider_order_id = None

    if isinstance(payload.get("payload"), dict):
        # Razorpay: {"event": ..., "payload": {"payment": {"entity": {...}}, ...}}
        entities = payload["payload"]
        for name in ("payment", "order", "refund"):
            entity = (entities.get(name) or {}).get("entity") or {}
            order_id = order_id or _metadata_order_id(entity.get("notes"))
            if name == "order":
                provider_order_id = provider_order_id or entity.get("id")
            else:
                provider_order_id = provider_order_id or entity.get("order_id")
    else:
        # Stripe / generic: {"id": ..., "type": ..., "data": {"object": {...}}}
        obj = (payload.get("data") or {}).get("object") or {}
        order_id = _metadata_order_id(obj.get("metadata"))
        if raw_type == "charge.refunded":
            provider_order_id = obj.get("payment_intent")
        else:
            provider_order_id = obj.get("id")
        event_id = event_id or payload.get("id")

    return PaymentEvent(
        provider_event_id=event_id,
        raw_type=raw_type,
        type=event_type,
        order_id=order_id,
        provider_order_id=provider_order_id,
        raw_payload=payload,
    )


class WebhookReceiver:
    def __init__(
        self,
        *,
        session: Session,
        gateway: PaymentGateway,
        notifier: NotificationEmitter,
        webhook_secret: Optional[str],
    ):
        self.session = session
        self.gateway = gateway
        self.notifier = notifier
        self.webhook_secret = webhook_secret

    def handle(
        self,
        body: bytes,
        signature: Optional[str],
        event_id: Optional[str] = None,
    ) -> WebhookOutcome:
        if not self.webhook_secret:
            logger.error("Payment webhook secret is not configured; rejecting event")
            raise SignatureInvalid("Webhook verification is not configured")

        if not self.gateway.verify_webhook_signature(body, signature, self.webhook_secret):
            logger.warning("Payment webhook signature verification failed")
            raise SignatureInvalid()

        try:
            payload = json.loads(body)
        except (UnicodeDecodeError, ValueError) as e:
            logger.warning("Verified payment webhook carried a malformed body")
            raise InvalidOperation("Malformed event payload") from e

        if not isinstance(payload, dict):
            raise InvalidOperation("Malformed event payload")

        event = parse_payment_event(payload, event_id)

        if event.type == PaymentEventType.UNKNOWN:
            logger.info(f"Unhandled payment webhook event: {event.raw_type}")
            return WebhookOutcome(event=event)

        order = self.resolve_order(event)
        if order is None:
            logger.warning(
                f"Payment webhook {event.raw_type} ({event.provider_event_id}) "
                f"matched no order"
            )
            return WebhookOutcome(event=event)

        return self.apply(event, order)

    def resolve_order(self, event: PaymentEvent) -> Optional[Order]:
        order = None

        if event.order_id:
            order = self.session.get(Order, event.order_id)

        if order is None and event.provider_order_id:
            order = self.session.exec(
                select(Order).where(Order.payment_id == event.provider_order_id)
            ).first()

        if (
            order is not None
            and order.payment_id
            and event.provider_order_id
            and event.provider_order_id != order.payment_id
        ):
            logger.warning(
                f"Payment webhook for order {order.id} references provider object "
                f"{event.provider_order_id}, expected {order.payment_id}"
            )
            return None

        return order

    def apply(self, event: PaymentEvent, order: Order) -> WebhookOutcome:
        target = TARGET_STATUS[event.type]

        result = transition_order(
            self.session,
            order,
            target,
            created_by="webhook",
            label=f"Provider event {event.raw_type}",
            meta={
                "provider_event_id": event.provider_event_id,
                "provider_event_type": event.raw_type,
                "provider_order_id": event.provider_order_id,
            },
        )

        outcome = WebhookOutcome(event=event, order_id=order.id, result=result)

        if result == TransitionResult.APPLIED:
            outcome.notifications = self.notifier.dispatch_order_event(
                TARGET_EVENT[event.type], order
            )
        else:
            logger.info(
                f"Payment webhook {event.raw_type} for order {order.id} was a no-op "
                f"({result.value}, status {OrderStatus(order.status).value})"
            )

        return outcome
