"""FastAPI routes for the storefront: orders, refunds and notifications."""

import json

from fastapi import APIRouter, Depends, File, Query, UploadFile
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.api.dependencies import Requester, admin_requester, current_requester
from ordering.api.schemas import (
    CancelOrderRequest,
    ConfirmPaymentRequest,
    NotificationListResponse,
    OrderListResponse,
    OrderResponse,
    PaymentConfigResponse,
    PlaceOrderRequest,
    RefundContactRequest,
    StatusResponse,
    UpdateStatusRequest,
    notification_snapshot,
    order_snapshot,
)
from ordering.config import get_settings
from ordering.notification.inbox import (
    DeleteNotification,
    MarkAllNotificationsRead,
    MarkNotificationRead,
    inbox_for,
)
from ordering.order.cancellation import CancelOrder
from ordering.order.order import Order
from ordering.order.payment import ConfirmPayment
from ordering.order.placement import PlaceOrder
from ordering.order.queries import all_orders, order_for, orders_for_customer
from ordering.order.status import UpdateOrderStatus
from ordering.payment.screenshots import upload_payment_screenshot
from ordering.refund.workflow import RequestRefund, UpdateRefundContact, upload_refund_screenshot
from ordering.stock.locks import process_with_stock_guard


def _load(order_id) -> OrderResponse:
    return order_snapshot(current_domain.repository_for(Order).get(order_id))


async def _read_image(upload: UploadFile | None, missing_message: str) -> tuple[bytes, str]:
    """Read an uploaded screenshot, enforcing image type and size limits."""
    if upload is None or not upload.filename:
        raise ValidationError({"screenshot": [missing_message]})

    content_type = upload.content_type or ""
    if not content_type.startswith("image/"):
        raise ValidationError({"screenshot": ["Only image files are allowed"]})

    limit = get_settings().max_upload_bytes
    content = await upload.read()
    if not content:
        raise ValidationError({"screenshot": [missing_message]})
    if len(content) > limit:
        raise ValidationError({"screenshot": [f"Screenshot must be at most {limit // (1024 * 1024)}MB"]})
    return content, content_type


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def place_order(body: PlaceOrderRequest, requester: Requester = Depends(current_requester)) -> OrderResponse:
    command = PlaceOrder(
        customer_id=requester.user_id,
        payment_method=body.payment_method,
        shipping_address=json.dumps(body.shipping_address.model_dump()) if body.shipping_address else None,
        payment_details=json.dumps(body.payment_details.model_dump()) if body.payment_details else None,
    )
    order_id = process_with_stock_guard(command)
    return _load(order_id)


@order_router.get("", response_model=OrderListResponse)
async def list_my_orders(requester: Requester = Depends(current_requester)) -> OrderListResponse:
    orders = [order_snapshot(o) for o in orders_for_customer(requester.user_id)]
    return OrderListResponse(count=len(orders), orders=orders)


@order_router.get("/admin/all", response_model=OrderListResponse)
async def list_all_orders(
    order_status: str | None = Query(default=None, alias="orderStatus"),
    payment_status: str | None = Query(default=None, alias="paymentStatus"),
    refund_status: str | None = Query(default=None, alias="refundStatus"),
    requester: Requester = Depends(admin_requester),
) -> OrderListResponse:
    orders = [
        order_snapshot(o)
        for o in all_orders(order_status=order_status, payment_status=payment_status, refund_status=refund_status)
    ]
    return OrderListResponse(count=len(orders), orders=orders)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, requester: Requester = Depends(current_requester)) -> OrderResponse:
    return order_snapshot(order_for(order_id, requester.user_id, is_admin=requester.is_admin))


@order_router.post("/{order_id}/payment-screenshot", response_model=OrderResponse)
async def attach_payment_screenshot(
    order_id: str,
    screenshot: UploadFile | None = File(default=None),
    requester: Requester = Depends(current_requester),
) -> OrderResponse:
    content, content_type = await _read_image(screenshot, "Please upload a payment screenshot")
    order = upload_payment_screenshot(order_id, requester.user_id, content, content_type)
    return order_snapshot(order)


@order_router.put("/{order_id}/confirm-payment", response_model=OrderResponse)
async def confirm_payment(
    order_id: str,
    body: ConfirmPaymentRequest | None = None,
    requester: Requester = Depends(admin_requester),
) -> OrderResponse:
    command = ConfirmPayment(order_id=order_id, admin_notes=body.admin_notes if body else None)
    current_domain.process(command, asynchronous=False)
    return _load(order_id)


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateStatusRequest,
    requester: Requester = Depends(admin_requester),
) -> OrderResponse:
    command = UpdateOrderStatus(order_id=order_id, order_status=body.order_status, admin_notes=body.admin_notes)
    process_with_stock_guard(command)
    return _load(order_id)


@order_router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    body: CancelOrderRequest | None = None,
    requester: Requester = Depends(current_requester),
) -> OrderResponse:
    body = body or CancelOrderRequest()
    command = CancelOrder(
        order_id=order_id,
        requester_id=requester.user_id,
        reason=body.reason,
        refund_phone=body.phone,
        refund_upi_id=body.upi_id,
    )
    process_with_stock_guard(command)
    return _load(order_id)


@order_router.post("/{order_id}/request-refund", response_model=OrderResponse)
async def request_refund(
    order_id: str,
    body: RefundContactRequest,
    requester: Requester = Depends(current_requester),
) -> OrderResponse:
    command = RequestRefund(order_id=order_id, requester_id=requester.user_id, phone=body.phone, upi_id=body.upi_id)
    current_domain.process(command, asynchronous=False)
    return _load(order_id)


@order_router.put("/{order_id}/refund-details", response_model=OrderResponse)
async def update_refund_details(
    order_id: str,
    body: RefundContactRequest,
    requester: Requester = Depends(admin_requester),
) -> OrderResponse:
    command = UpdateRefundContact(order_id=order_id, phone=body.phone, upi_id=body.upi_id)
    current_domain.process(command, asynchronous=False)
    return _load(order_id)


@order_router.post("/{order_id}/refund-screenshot", response_model=OrderResponse)
async def attach_refund_screenshot(
    order_id: str,
    screenshot: UploadFile | None = File(default=None),
    requester: Requester = Depends(admin_requester),
) -> OrderResponse:
    content, content_type = await _read_image(screenshot, "Please upload a refund screenshot")
    return order_snapshot(upload_refund_screenshot(order_id, content, content_type))


# ---------------------------------------------------------------------------
# Notification Router
# ---------------------------------------------------------------------------
notification_router = APIRouter(prefix="/notifications", tags=["notifications"])


@notification_router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    requester: Requester = Depends(current_requester),
) -> NotificationListResponse:
    notifications, unread_count = inbox_for(requester.user_id, unread_only=unread_only)
    return NotificationListResponse(
        count=len(notifications),
        unread_count=unread_count,
        notifications=[notification_snapshot(n) for n in notifications],
    )


@notification_router.put("/read-all", response_model=StatusResponse)
async def mark_all_read(requester: Requester = Depends(current_requester)) -> StatusResponse:
    current_domain.process(MarkAllNotificationsRead(recipient_id=requester.user_id), asynchronous=False)
    return StatusResponse()


@notification_router.put("/{notification_id}/read", response_model=StatusResponse)
async def mark_read(notification_id: str, requester: Requester = Depends(current_requester)) -> StatusResponse:
    command = MarkNotificationRead(notification_id=notification_id, requester_id=requester.user_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@notification_router.delete("/{notification_id}", response_model=StatusResponse)
async def delete_notification(
    notification_id: str, requester: Requester = Depends(current_requester)
) -> StatusResponse:
    command = DeleteNotification(notification_id=notification_id, requester_id=requester.user_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payment", tags=["payment"])


@payment_router.get("/config", response_model=PaymentConfigResponse)
async def payment_config() -> PaymentConfigResponse:
    """Public: the store's UPI payee for manual payments, if one is configured."""
    upi_id = get_settings().upi_id
    return PaymentConfigResponse(upi_id=upi_id, has_upi_id=upi_id is not None)
