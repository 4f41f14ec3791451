"""Payment-side order actions: screenshot proof and admin confirmation."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.media import discard_blob
from ordering.order.order import Order


@ordering.command(part_of="Order")
class AttachPaymentScreenshot:
    order_id = Identifier(required=True)
    requester_id = Identifier(required=True)
    screenshot_url = String(required=True, max_length=1000)


@ordering.command(part_of="Order")
class ConfirmPayment:
    order_id = Identifier(required=True)
    admin_notes = Text()


@ordering.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(AttachPaymentScreenshot)
    def attach_payment_screenshot(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.assert_owned_by(command.requester_id, "Not authorized to update this order")
        order.assert_accepts_payment_screenshot()

        previous = order.payment_screenshot
        if previous and previous != command.screenshot_url:
            discard_blob(previous)

        order.attach_payment_screenshot(command.screenshot_url)
        repo.add(order)

        logger.info("Payment screenshot attached", order_id=str(order.id), replaced=bool(previous))

    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.confirm_payment(admin_notes=command.admin_notes)
        repo.add(order)

        logger.info("Payment confirmed", order_id=str(order.id), order_status=order.order_status)
