from marketplace.models.notifications import NotificationType
from marketplace.notifications.channels import Channel, Recipient
from marketplace.notifications.events import NotificationEvent


NOTIFICATION_RULES = {

    NotificationEvent.PAYMENT_SUCCESS: {
        Recipient.BUYER: {Channel.INAPP, Channel.EMAIL},
        Recipient.SELLER: {Channel.INAPP, Channel.EMAIL},
    },

    NotificationEvent.PAYMENT_FAILED: {
        Recipient.BUYER: {Channel.INAPP, Channel.EMAIL},
    },

    NotificationEvent.ORDER_COMPLETED: {
        Recipient.BUYER: {Channel.INAPP, Channel.EMAIL},
    },

    NotificationEvent.ORDER_CANCELLED: {
        Recipient.BUYER: {Channel.INAPP, Channel.EMAIL},
    },

    NotificationEvent.ORDER_REFUNDED: {
        Recipient.BUYER: {Channel.INAPP, Channel.EMAIL},
        Recipient.SELLER: {Channel.INAPP},
    },

}


# (title, message, type); messages are formatted with the order fields
NOTIFICATION_MESSAGES = {
    (NotificationEvent.PAYMENT_SUCCESS, Recipient.BUYER): (
        "Payment Successful",
        "Your payment of {currency} {amount} has been processed successfully",
        NotificationType.PAYMENT_RECEIVED,
    ),
    (NotificationEvent.PAYMENT_SUCCESS, Recipient.SELLER): (
        "Payment Received",
        "You have received a payment of {currency} {amount} for your project",
        NotificationType.PAYMENT_RECEIVED,
    ),
    (NotificationEvent.PAYMENT_FAILED, Recipient.BUYER): (
        "Payment Failed",
        "Your payment could not be processed. Please try again.",
        NotificationType.PAYMENT_FAILED,
    ),
    (NotificationEvent.ORDER_COMPLETED, Recipient.BUYER): (
        "Order Completed",
        "Your order {order_id} has been marked as completed",
        NotificationType.ORDER_UPDATE,
    ),
    (NotificationEvent.ORDER_CANCELLED, Recipient.BUYER): (
        "Order Cancelled",
        "Your order {order_id} has been cancelled",
        NotificationType.ORDER_UPDATE,
    ),
    (NotificationEvent.ORDER_REFUNDED, Recipient.BUYER): (
        "Refund Processed",
        "Your payment of {currency} {amount} has been refunded",
        NotificationType.REFUND_PROCESSED,
    ),
    (NotificationEvent.ORDER_REFUNDED, Recipient.SELLER): (
        "Order Refunded",
        "Order {order_id} was refunded to the buyer",
        NotificationType.REFUND_PROCESSED,
    ),
}
