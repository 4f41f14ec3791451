"""Pydantic request/response schemas for the storefront ordering API.

These are external contracts, separate from the internal protean commands.
Fields are exposed in camelCase (``paymentMethod``, ``orderStatus``) and
accepted in either camelCase or snake_case.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ordering.config import get_settings
from ordering.payment.resolver import QR_UNAVAILABLE_NOTICE
from ordering.pricing.engine import grand_total_for, tax_for, to_money


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingAddressSchema(CamelModel):
    name: str
    phone: str
    street: str
    city: str
    state: str
    zip_code: str
    country: str = "India"


class PaymentDetailsSchema(CamelModel):
    upi_id: str | None = None
    account_number: str | None = None
    bank_name: str | None = None
    ifsc_code: str | None = None


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(CamelModel):
    payment_method: str
    shipping_address: ShippingAddressSchema | None = None
    payment_details: PaymentDetailsSchema | None = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "paymentMethod": "manual_payment",
                    "shippingAddress": {
                        "name": "Asha Rao",
                        "phone": "9876543210",
                        "street": "12 MG Road",
                        "city": "Bengaluru",
                        "state": "Karnataka",
                        "zipCode": "560001",
                        "country": "India",
                    },
                    "paymentDetails": {"upiId": "veggiestore@okbank"},
                }
            ]
        },
    )


class ConfirmPaymentRequest(CamelModel):
    admin_notes: str | None = None


class UpdateStatusRequest(CamelModel):
    order_status: str
    admin_notes: str | None = None


class CancelOrderRequest(CamelModel):
    reason: str | None = Field(default=None, max_length=500)
    phone: str | None = None
    upi_id: str | None = None


class RefundContactRequest(CamelModel):
    phone: str | None = None
    upi_id: str | None = None


# ---------------------------------------------------------------------------
# Order Response Schemas
# ---------------------------------------------------------------------------
class OrderItemResponse(CamelModel):
    product_id: str
    product_name: str
    quantity: int
    unit_price: float
    line_total: float


class PaymentQrResponse(CamelModel):
    payee: str
    amount: float
    transaction_note: str
    payment_uri: str
    image: str


class RefundResponse(CamelModel):
    requested: bool = False
    status: str = "none"
    contact_phone: str | None = None
    contact_upi_id: str | None = None
    screenshot_url: str | None = None
    requested_at: datetime | None = None
    processed_at: datetime | None = None


class OrderResponse(CamelModel):
    id: str
    customer_id: str
    items: list[OrderItemResponse]
    total_amount: float
    tax: float
    grand_total: float
    payment_method: str
    payment_status: str
    order_status: str
    shipping_address: ShippingAddressSchema | None = None
    payment_details: PaymentDetailsSchema | None = None
    qr_payload: PaymentQrResponse | None = None
    payment_notice: str | None = None
    payment_screenshot: str | None = None
    refund: RefundResponse
    cancellation_reason: str | None = None
    admin_notes: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderListResponse(CamelModel):
    count: int
    orders: list[OrderResponse]


def _vo_dict(value_object, fields):
    if value_object is None:
        return None
    return {field: getattr(value_object, field) for field in fields}


def order_snapshot(order) -> OrderResponse:
    """Build the API view of an order, including derived display totals."""
    tax_rate = get_settings().tax_rate
    qr = order.payment_qr
    notice = None
    if order.payment_method == "manual_payment" and qr is None and not order.payment_screenshot:
        notice = QR_UNAVAILABLE_NOTICE

    refund = order.refund
    return OrderResponse(
        id=str(order.id),
        customer_id=str(order.customer_id),
        items=[
            OrderItemResponse(
                product_id=str(item.product_id),
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                line_total=float(to_money(item.unit_price) * item.quantity),
            )
            for item in order.items
        ],
        total_amount=order.total_amount,
        tax=tax_for(order.total_amount, tax_rate),
        grand_total=grand_total_for(order.total_amount, tax_rate),
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        order_status=order.order_status,
        shipping_address=_vo_dict(
            order.shipping_address, ["name", "phone", "street", "city", "state", "zip_code", "country"]
        ),
        payment_details=_vo_dict(order.payment_details, ["upi_id", "account_number", "bank_name", "ifsc_code"]),
        qr_payload=_vo_dict(qr, ["payee", "amount", "transaction_note", "payment_uri", "image"]),
        payment_notice=notice,
        payment_screenshot=order.payment_screenshot,
        refund=RefundResponse(
            **(
                _vo_dict(
                    refund,
                    [
                        "requested",
                        "status",
                        "contact_phone",
                        "contact_upi_id",
                        "screenshot_url",
                        "requested_at",
                        "processed_at",
                    ],
                )
                or {}
            )
        ),
        cancellation_reason=order.cancellation_reason,
        admin_notes=order.admin_notes or "",
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


# ---------------------------------------------------------------------------
# Notification Schemas
# ---------------------------------------------------------------------------
class NotificationResponse(CamelModel):
    id: str
    type: str
    title: str
    message: str
    order_id: str | None = None
    read: bool
    read_at: datetime | None = None
    created_at: datetime | None = None


class NotificationListResponse(CamelModel):
    count: int
    unread_count: int
    notifications: list[NotificationResponse]


class StatusResponse(BaseModel):
    status: str = "ok"


def notification_snapshot(notification) -> NotificationResponse:
    return NotificationResponse(
        id=str(notification.id),
        type=notification.notification_type,
        title=notification.title,
        message=notification.message,
        order_id=str(notification.order_id) if notification.order_id else None,
        read=bool(notification.read),
        read_at=notification.read_at,
        created_at=notification.created_at,
    )


# ---------------------------------------------------------------------------
# Payment Schemas
# ---------------------------------------------------------------------------
class PaymentConfigResponse(CamelModel):
    upi_id: str | None = None
    has_upi_id: bool
