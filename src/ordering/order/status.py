"""Admin order status changes."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.order.order import Order
from ordering.stock.ledger import StockLedger


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    order_status = String(required=True, max_length=20)
    admin_notes = Text()


@ordering.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.order_status

        restores_stock = order.update_status(command.order_status, admin_notes=command.admin_notes)
        if restores_stock:
            # Same unit of work as the status write: never cancelled-but-reserved
            StockLedger().restore(order.stock_lines())

        repo.add(order)

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            previous_status=previous,
            new_status=order.order_status,
            stock_restored=restores_stock,
        )
