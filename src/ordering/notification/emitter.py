"""NotificationEmitter: fire-and-forget creation of notifications.

``emit`` never raises. Whatever goes wrong while saving a notification is
logged and dropped so that it cannot fail the order operation that caused it.
"""

from protean.utils.globals import current_domain

from ordering.accounts import get_directory
from ordering.domain import logger
from ordering.notification.notification import Notification

DEFAULT_CUSTOMER_NAME = "A customer"


class NotificationEmitter:
    def emit(self, recipient_id, notification_type, title, message, order_id=None) -> Notification | None:
        try:
            notification = Notification.create(
                recipient_id=recipient_id,
                notification_type=notification_type,
                title=title,
                message=message,
                order_id=order_id,
            )
            current_domain.repository_for(Notification).add(notification)
        except Exception:
            logger.exception(
                "Failed to create notification",
                recipient_id=str(recipient_id),
                notification_type=notification_type,
                order_id=str(order_id) if order_id else None,
            )
            return None
        return notification

    def emit_to_admins(self, notification_type, title, message, order_id=None) -> list[Notification]:
        try:
            admin_ids = get_directory().admin_ids()
        except Exception:
            logger.exception("Could not look up admins for notification", notification_type=notification_type)
            return []

        sent = [self.emit(admin_id, notification_type, title, message, order_id) for admin_id in admin_ids]
        return [n for n in sent if n is not None]


def customer_name(customer_id) -> str:
    try:
        name = get_directory().display_name(str(customer_id))
    except Exception:
        logger.exception("Could not look up customer name", customer_id=str(customer_id))
        name = None
    return name or DEFAULT_CUSTOMER_NAME


def short_ref(order_id) -> str:
    return str(order_id)[-6:]
