"""Domain events for the Order aggregate.

Events are raised inside the order's unit of work and dispatched after it
commits, so anything reacting to them (notifications, mostly) runs only for
changes that were actually saved.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A cart was priced, its stock reserved and the order saved."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    payment_method = String(required=True)
    total_amount = Float(required=True)
    item_count = Integer(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentScreenshotAttached:
    """The customer uploaded proof of a manual transfer."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    screenshot_url = String(required=True, max_length=1000)
    replaced_url = String(max_length=1000)


@ordering.event(part_of="Order")
class PaymentConfirmed:
    """An admin verified the payment."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    order_status = String(required=True)
    confirmed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusUpdated:
    """An admin changed the order status."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    updated_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The customer cancelled the order; its stock went back on the shelf."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String(max_length=500)
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class RefundRequested:
    """A refund was opened (or its contact details re-submitted) for a paid, cancelled order."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total_amount = Float(required=True)
    contact_phone = String(max_length=20)
    contact_upi_id = String(max_length=100)
    requested_at = DateTime(required=True)


@ordering.event(part_of="Order")
class RefundContactUpdated:
    __version__ = 1

    order_id = Identifier(required=True)
    contact_phone = String(max_length=20)
    contact_upi_id = String(max_length=100)


@ordering.event(part_of="Order")
class RefundProcessed:
    """An admin paid the refund back and uploaded proof."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    total_amount = Float(required=True)
    screenshot_url = String(required=True, max_length=1000)
    processed_at = DateTime(required=True)
