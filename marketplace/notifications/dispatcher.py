import logging
from typing import Optional

from fastapi import Request

from marketplace.config import Settings
from marketplace.database import Database
from marketplace.models.notifications import Notification, NotificationType
from marketplace.models.order import Order
from marketplace.models.user import User
from marketplace.notifications.channels import Channel, Recipient
from marketplace.notifications.events import NotificationEvent
from marketplace.notifications.rules import NOTIFICATION_MESSAGES, NOTIFICATION_RULES
from marketplace.services.email_service import render_order_email, send_email
from marketplace.services.notification_service import create_notification

logger = logging.getLogger(__name__)


class NotificationEmitter:
    """
    Best-effort notification writer.

    Runs after the order transition has committed and uses its own
    session, so a failure here is logged and never undoes the transition.
    """

    def __init__(self, db: Database, settings: Settings):
        self.db = db
        self.settings = settings

    def notify(
        self,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType = NotificationType.GENERAL,
        related_id: Optional[str] = None,
    ) -> Optional[Notification]:
        try:
            with self.db.session() as session:
                notification = create_notification(
                    session=session,
                    user_id=user_id,
                    title=title,
                    message=message,
                    type=type,
                    related_id=related_id,
                )
                session.commit()
                return notification
        except Exception:
            logger.exception(f"Failed to store notification for user {user_id}")
            return None

    def dispatch_order_event(self, event: NotificationEvent, order: Order) -> int:
        """Fan an order event out to buyer/seller per ``NOTIFICATION_RULES``.

        Returns the number of in-app notifications written.
        """
        created = 0
        rules = NOTIFICATION_RULES.get(event, {})

        for recipient, channels in rules.items():
            user_id = order.buyer_id if recipient == Recipient.BUYER else order.seller_id
            title, template, notification_type = NOTIFICATION_MESSAGES[(event, recipient)]
            message = template.format(
                order_id=order.id,
                amount=order.total_amount,
                currency=order.currency,
            )

            if Channel.INAPP in channels:
                if self.notify(
                    user_id,
                    title,
                    message,
                    type=notification_type,
                    related_id=order.id,
                ) is not None:
                    created += 1

            if Channel.EMAIL in channels:
                self._send_email(user_id, title, message, order)

        return created

    def _send_email(self, user_id: int, title: str, message: str, order: Order):
        if not self.settings.brevo_api_key:
            return

        try:
            with self.db.session() as session:
                user = session.get(User, user_id)
        except Exception:
            logger.exception(f"Could not load user {user_id} for email")
            return

        if user is None:
            return

        html = render_order_email(
            title,
            message,
            f"{self.settings.base_url}/orders/{order.id}",
        )
        send_email(self.settings, user.email, title, html)


def get_notifier(request: Request) -> NotificationEmitter:
    return request.app.state.notifier
