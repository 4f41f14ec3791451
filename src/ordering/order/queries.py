"""Read side for orders: customer history, single lookups, admin listing."""

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.errors import AuthorizationError
from ordering.order.order import Order, OrderStatus, PaymentStatus, RefundStatus

NO_REFUND = "no-refund"
REFUND_FILTERS = {RefundStatus.PENDING.value, RefundStatus.PROCESSED.value, NO_REFUND}


def _newest_first(orders):
    return sorted(orders, key=lambda o: o.created_at, reverse=True)


def _refund_state(order) -> str:
    if not (order.refund and order.refund.requested):
        return NO_REFUND
    return order.refund.status


def orders_for_customer(customer_id) -> list[Order]:
    repo = current_domain.repository_for(Order)
    return _newest_first(repo._dao.query.filter(customer_id=str(customer_id)).all().items)


def order_for(order_id, user_id, is_admin=False) -> Order:
    """Fetch an order its owner (or any admin) may see."""
    order = current_domain.repository_for(Order).get(order_id)
    if not is_admin and not order.is_owned_by(user_id):
        raise AuthorizationError("Not authorized to view this order")
    return order


def all_orders(order_status=None, payment_status=None, refund_status=None) -> list[Order]:
    """Admin listing, newest first, with optional status filters."""
    errors = {}
    if order_status and order_status not in {s.value for s in OrderStatus}:
        errors["order_status"] = [f"Unknown order status {order_status!r}"]
    if payment_status and payment_status not in {s.value for s in PaymentStatus}:
        errors["payment_status"] = [f"Unknown payment status {payment_status!r}"]
    if refund_status and refund_status not in REFUND_FILTERS:
        errors["refund_status"] = [f"Refund status must be one of: {', '.join(sorted(REFUND_FILTERS))}"]
    if errors:
        raise ValidationError(errors)

    filters = {}
    if order_status:
        filters["order_status"] = order_status
    if payment_status:
        filters["payment_status"] = payment_status

    query = current_domain.repository_for(Order)._dao.query
    orders = query.filter(**filters).all().items if filters else query.all().items

    if refund_status:
        orders = [o for o in orders if _refund_state(o) == refund_status]
    return _newest_first(orders)
