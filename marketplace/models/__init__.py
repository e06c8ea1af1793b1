from marketplace.models.user import User
from marketplace.models.project import Project
from marketplace.models.order import Order
from marketplace.models.order_event import OrderEvent
from marketplace.models.notifications import Notification, NotificationType

# add ALL models here
