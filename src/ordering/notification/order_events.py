"""Order lifecycle events -> notifications.

Runs after the order's unit of work has committed. Every branch goes
through ``NotificationEmitter`` which swallows and logs its own failures.
"""

from protean.utils.mixins import handle

from ordering.domain import ordering
from ordering.notification.emitter import NotificationEmitter, customer_name, short_ref
from ordering.notification.notification import Notification, NotificationType
from ordering.order.events import (
    OrderPlaced,
    OrderStatusUpdated,
    PaymentConfirmed,
    RefundProcessed,
    RefundRequested,
)


@ordering.event_handler(part_of=Notification, stream_category="ordering::order")
class OrderNotificationsHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        """Tell every admin a new order is waiting."""
        NotificationEmitter().emit_to_admins(
            notification_type=NotificationType.NEW_ORDER.value,
            title="New Order Received",
            message=(
                f"{customer_name(event.customer_id)} ordered #{short_ref(event.order_id)} "
                f"for ₹{event.total_amount:.2f}"
            ),
            order_id=str(event.order_id),
        )

    @handle(RefundRequested)
    def on_refund_requested(self, event: RefundRequested) -> None:
        NotificationEmitter().emit_to_admins(
            notification_type=NotificationType.REFUND_REQUEST.value,
            title="Refund Request Received",
            message=(
                f"{customer_name(event.customer_id)} cancelled order #{short_ref(event.order_id)}. "
                f"Refund requested for ₹{event.total_amount:.2f}"
            ),
            order_id=str(event.order_id),
        )

    @handle(RefundProcessed)
    def on_refund_processed(self, event: RefundProcessed) -> None:
        NotificationEmitter().emit(
            recipient_id=str(event.customer_id),
            notification_type=NotificationType.REFUND_PROCESSED.value,
            title="Refund Processed",
            message=(
                f"Your refund for order #{short_ref(event.order_id)} has been processed. "
                "Check your refund screenshot."
            ),
            order_id=str(event.order_id),
        )

    @handle(PaymentConfirmed)
    def on_payment_confirmed(self, event: PaymentConfirmed) -> None:
        NotificationEmitter().emit(
            recipient_id=str(event.customer_id),
            notification_type=NotificationType.PAYMENT_CONFIRMED.value,
            title="Payment Confirmed",
            message=f"Payment for order #{short_ref(event.order_id)} has been confirmed.",
            order_id=str(event.order_id),
        )

    @handle(OrderStatusUpdated)
    def on_status_updated(self, event: OrderStatusUpdated) -> None:
        if event.previous_status == event.new_status:
            return
        NotificationEmitter().emit(
            recipient_id=str(event.customer_id),
            notification_type=NotificationType.ORDER_STATUS_UPDATE.value,
            title="Order Status Updated",
            message=f"Your order #{short_ref(event.order_id)} is now {event.new_status}.",
            order_id=str(event.order_id),
        )
