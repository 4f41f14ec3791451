"""Payment screenshot uploads.

The order is checked before anything is uploaded, the image goes to the
blob store, the URL is attached through ``AttachPaymentScreenshot`` (which
also drops the previous image) and the saved order is read back to make
sure the URL really landed.
"""

from protean.utils.globals import current_domain

from ordering.domain import logger
from ordering.media import PAYMENT_SCREENSHOTS, discard_blob, get_blob_store
from ordering.order.order import Order
from ordering.order.payment import AttachPaymentScreenshot
from ordering.order.verification import verify_persisted


def upload_payment_screenshot(order_id, requester_id, content: bytes, content_type=None) -> Order:
    order = current_domain.repository_for(Order).get(order_id)
    order.assert_owned_by(requester_id, "Not authorized to update this order")
    order.assert_accepts_payment_screenshot()

    url = get_blob_store().store(content, PAYMENT_SCREENSHOTS, content_type)
    try:
        current_domain.process(
            AttachPaymentScreenshot(order_id=order_id, requester_id=requester_id, screenshot_url=url),
            asynchronous=False,
        )
    except Exception:
        # The new image is unreferenced if the order was not updated
        discard_blob(url)
        raise

    logger.info("Payment screenshot uploaded", order_id=str(order_id), url=url)
    return verify_persisted(order_id, "payment_screenshot", url, lambda o: o.payment_screenshot)
