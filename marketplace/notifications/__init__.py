from .events import NotificationEvent
from .dispatcher import NotificationEmitter, get_notifier

__all__ = [
    "NotificationEvent",
    "NotificationEmitter",
    "get_notifier",
]
