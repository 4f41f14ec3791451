"""Refund sub-workflow for cancelled orders whose payment was confirmed.

Customers request a refund (naming a phone number or UPI ID to be paid
back on), admins may correct those contact details, and the workflow ends
when an admin uploads proof of the refund transfer.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.media import REFUND_SCREENSHOTS, discard_blob, get_blob_store
from ordering.order.order import Order
from ordering.order.verification import verify_persisted


@ordering.command(part_of="Order")
class RequestRefund:
    order_id = Identifier(required=True)
    requester_id = Identifier(required=True)
    phone = String(max_length=20)
    upi_id = String(max_length=100)


@ordering.command(part_of="Order")
class UpdateRefundContact:
    order_id = Identifier(required=True)
    phone = String(max_length=20)
    upi_id = String(max_length=100)


@ordering.command(part_of="Order")
class AttachRefundScreenshot:
    order_id = Identifier(required=True)
    screenshot_url = String(required=True, max_length=1000)


@ordering.command_handler(part_of=Order)
class RefundHandler:
    @handle(RequestRefund)
    def request_refund(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.request_refund(command.requester_id, phone=command.phone, upi_id=command.upi_id)
        repo.add(order)

        logger.info("Refund requested", order_id=str(order.id), customer_id=str(order.customer_id))

    @handle(UpdateRefundContact)
    def update_refund_contact(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.update_refund_contact(phone=command.phone, upi_id=command.upi_id)
        repo.add(order)

    @handle(AttachRefundScreenshot)
    def attach_refund_screenshot(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.assert_accepts_refund_screenshot()

        previous = order.refund.screenshot_url
        if previous and previous != command.screenshot_url:
            discard_blob(previous)

        order.attach_refund_screenshot(command.screenshot_url)
        repo.add(order)

        logger.info("Refund processed", order_id=str(order.id), replaced=bool(previous))


def upload_refund_screenshot(order_id, content: bytes, content_type=None) -> Order:
    """Store refund proof, attach it and verify the write."""
    current_domain.repository_for(Order).get(order_id).assert_accepts_refund_screenshot()

    url = get_blob_store().store(content, REFUND_SCREENSHOTS, content_type)
    try:
        current_domain.process(AttachRefundScreenshot(order_id=order_id, screenshot_url=url), asynchronous=False)
    except Exception:
        discard_blob(url)
        raise

    return verify_persisted(order_id, "refund_screenshot", url, lambda o: o.refund.screenshot_url)
