"""Customer-initiated order cancellation."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.order.order import Order
from ordering.stock.ledger import StockLedger


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    requester_id = Identifier(required=True)
    reason = String(max_length=500)
    refund_phone = String(max_length=20)
    refund_upi_id = String(max_length=100)


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel(
            requester_id=command.requester_id,
            reason=command.reason,
            refund_phone=command.refund_phone,
            refund_upi_id=command.refund_upi_id,
        )
        StockLedger().restore(order.stock_lines())
        repo.add(order)

        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            customer_id=str(order.customer_id),
            refund_requested=bool(order.refund and order.refund.requested),
        )
