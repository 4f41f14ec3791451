"""Notification aggregate: an in-app message about an order.

Notifications are side effects of the order lifecycle. They are created
after the order change has been saved, and their own lifecycle (read,
deleted) never touches the order.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import Boolean, DateTime, Identifier, String, Text

from ordering.domain import ordering
from ordering.errors import AuthorizationError


class NotificationType(Enum):
    NEW_ORDER = "new_order"
    REFUND_REQUEST = "refund_request"
    REFUND_PROCESSED = "refund_processed"
    ORDER_STATUS_UPDATE = "order_status_update"
    PAYMENT_CONFIRMED = "payment_confirmed"


@ordering.aggregate
class Notification:
    recipient_id = Identifier(required=True)
    notification_type = String(required=True, choices=NotificationType)
    title = String(required=True, max_length=200)
    message = Text(required=True)
    order_id = Identifier()
    read = Boolean(default=False)
    read_at = DateTime()
    created_at = DateTime()

    @classmethod
    def create(cls, recipient_id, notification_type, title, message, order_id=None):
        return cls(
            recipient_id=recipient_id,
            notification_type=notification_type,
            title=title,
            message=message,
            order_id=order_id,
            read=False,
            created_at=datetime.now(UTC),
        )

    def assert_owned_by(self, user_id, message="Not authorized to access this notification"):
        if str(self.recipient_id) != str(user_id):
            raise AuthorizationError(message)

    def mark_read(self):
        """Mark as read. Re-reading keeps the first read time."""
        if self.read:
            return
        self.read = True
        self.read_at = datetime.now(UTC)
