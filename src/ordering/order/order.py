"""Order aggregate: the priced, stock-reserving record of a purchase.

State Machine (order status):
    PENDING ─┬─> CONFIRMED ─> PROCESSING ─> SHIPPED ─> DELIVERED
             └──────────────────────────────────────────> CANCELLED

Admins may move a non-terminal order to any status; DELIVERED and
CANCELLED are terminal. Customers may only cancel while the order is
PENDING or CONFIRMED.

Payment status runs separately: PENDING -> CONFIRMED (admin verifies the
cash or the uploaded transfer screenshot). FAILED is a reserved terminal
state that the lifecycle itself never sets.

A cancelled order whose payment was confirmed carries a refund sub-record:
NONE -> PENDING (customer asks, with a phone number or UPI ID to pay back)
-> PROCESSED (admin uploads proof of the refund transfer).

Line items are a price snapshot. ``total_amount`` is computed from them
once, at creation, and never recomputed.
"""

import re
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.errors import AuthorizationError, ConflictError
from ordering.order.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusUpdated,
    PaymentConfirmed,
    PaymentScreenshotAttached,
    RefundContactUpdated,
    RefundProcessed,
    RefundRequested,
)
from ordering.pricing.engine import total_of
from ordering.stock.ledger import StockLine


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class PaymentMethod(Enum):
    COD = "cod"
    MANUAL_PAYMENT = "manual_payment"


class RefundStatus(Enum):
    NONE = "none"
    PENDING = "pending"
    PROCESSED = "processed"


class RefundAction(Enum):
    REQUEST = "request"
    PROCESS = "process"


# ---------------------------------------------------------------------------
# Transition tables
# ---------------------------------------------------------------------------
_NON_TERMINAL = {
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
}

# Admin status updates. Terminal states only accept a same-status update
# (used to attach notes).
_STATUS_TRANSITIONS = {
    **{status: set(OrderStatus) for status in _NON_TERMINAL},
    OrderStatus.DELIVERED: {OrderStatus.DELIVERED},
    OrderStatus.CANCELLED: {OrderStatus.CANCELLED},
}

_CUSTOMER_CANCELLABLE = {OrderStatus.PENDING, OrderStatus.CONFIRMED}

_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.CONFIRMED, PaymentStatus.FAILED},
    PaymentStatus.FAILED: set(),
    PaymentStatus.CONFIRMED: set(),
}

# Order status that a confirmed payment moves the order to. Statuses not
# listed keep their value.
_STATUS_ON_PAYMENT_CONFIRMED = {OrderStatus.PENDING: OrderStatus.CONFIRMED}

_REFUND_TRANSITIONS = {
    (RefundStatus.NONE, RefundAction.REQUEST): RefundStatus.PENDING,
    (RefundStatus.PENDING, RefundAction.REQUEST): RefundStatus.PENDING,
    (RefundStatus.PENDING, RefundAction.PROCESS): RefundStatus.PROCESSED,
    (RefundStatus.PROCESSED, RefundAction.PROCESS): RefundStatus.PROCESSED,
}

_PHONE_PATTERN = re.compile(r"^\+?[0-9]{10,15}$")


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingAddress:
    name = String(required=True, max_length=100)
    phone = String(required=True, max_length=20)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    zip_code = String(required=True, max_length=20)
    country = String(max_length=100, default="India")


@ordering.value_object(part_of="Order")
class PaymentDetails:
    upi_id = String(max_length=100)
    account_number = String(max_length=34)
    bank_name = String(max_length=100)
    ifsc_code = String(max_length=11)


@ordering.value_object(part_of="Order")
class PaymentQr:
    """The UPI intent shown to a manual-payment customer, fixed at creation."""

    payee = String(required=True, max_length=100)
    amount = Float(required=True)
    transaction_note = String(required=True, max_length=100)
    payment_uri = Text(required=True)
    image = Text(required=True)  # PNG data URI


@ordering.value_object(part_of="Order")
class Refund:
    requested = Boolean(default=False)
    status = String(choices=RefundStatus, default=RefundStatus.NONE.value)
    contact_phone = String(max_length=20)
    contact_upi_id = String(max_length=100)
    screenshot_url = String(max_length=1000)
    requested_at = DateTime()
    processed_at = DateTime()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=200)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    customer_id = Identifier(required=True)
    items = HasMany(OrderItem)
    total_amount = Float(required=True, min_value=0.0)
    payment_method = String(required=True, choices=PaymentMethod)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    order_status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    shipping_address = ValueObject(ShippingAddress)
    payment_details = ValueObject(PaymentDetails)
    payment_qr = ValueObject(PaymentQr)
    payment_screenshot = String(max_length=1000)
    refund = ValueObject(Refund)
    cancellation_reason = String(max_length=500)
    admin_notes = Text(default="")
    created_at = DateTime()
    updated_at = DateTime()
    payment_confirmed_at = DateTime()
    cancelled_at = DateTime()

    @invariant.post
    def refund_requires_cancelled_paid_order(self):
        if self.refund and self.refund.requested:
            if (
                self.order_status != OrderStatus.CANCELLED.value
                or self.payment_status != PaymentStatus.CONFIRMED.value
            ):
                raise ValidationError({"refund": ["Refunds apply only to cancelled orders with confirmed payment"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, customer_id, lines, payment_method, shipping_address, payment_details=None):
        """Create a pending order from priced lines.

        Args:
            customer_id: The purchasing user.
            lines: Priced line items (product_id, product_name, quantity,
                unit_price), already checked against stock.
            payment_method: "cod" or "manual_payment".
            shipping_address: Dict of ShippingAddress fields.
            payment_details: Optional dict of PaymentDetails fields.
        """
        if payment_method not in {m.value for m in PaymentMethod}:
            raise ValidationError({"payment_method": ['Invalid payment method. Must be "cod" or "manual_payment"']})
        if not lines:
            raise ValidationError({"items": ["Cart is empty"]})
        if not shipping_address:
            raise ValidationError({"shipping_address": ["Shipping address is required"]})

        now = datetime.now(UTC)
        order = cls(
            customer_id=customer_id,
            total_amount=total_of(lines),
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING.value,
            order_status=OrderStatus.PENDING.value,
            shipping_address=ShippingAddress(**shipping_address),
            payment_details=PaymentDetails(**(payment_details or {})),
            refund=Refund(),
            admin_notes="",
            created_at=now,
            updated_at=now,
        )
        order.add_items(
            [
                OrderItem(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                )
                for line in lines
            ]
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                payment_method=payment_method,
                total_amount=order.total_amount,
                item_count=sum(line.quantity for line in lines),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @property
    def short_ref(self) -> str:
        """Last six characters of the id, as shown to people."""
        return str(self.id)[-6:]

    def recomputed_total(self) -> float:
        return total_of(self.items)

    def stock_lines(self):
        return [StockLine(str(item.product_id), item.quantity) for item in self.items]

    def is_owned_by(self, user_id) -> bool:
        return str(self.customer_id) == str(user_id)

    def assert_owned_by(self, user_id, message="Not authorized to access this order"):
        if not self.is_owned_by(user_id):
            raise AuthorizationError(message)

    def _append_admin_note(self, note):
        if not note:
            return
        self.admin_notes = f"{self.admin_notes}\n{note}" if self.admin_notes else note

    @staticmethod
    def _validate_refund_contact(phone, upi_id):
        errors = {}
        if phone and not _PHONE_PATTERN.match(phone):
            errors["phone"] = ["Phone number must be 10 to 15 digits"]
        if upi_id and upi_id.count("@") != 1:
            errors["upi_id"] = ["UPI ID must look like name@bank"]
        if errors:
            raise ValidationError(errors)

    def _next_refund_status(self, action):
        current = RefundStatus(self.refund.status)
        target = _REFUND_TRANSITIONS.get((current, action))
        if target is None:
            raise ConflictError({"refund": [f"Cannot {action.value} a refund that is {current.value}"]})
        return target

    # -------------------------------------------------------------------
    # Payment path
    # -------------------------------------------------------------------
    def attach_payment_qr(self, payee, amount, transaction_note, payment_uri, image):
        """Record the UPI intent. Generated once and never replaced."""
        if self.payment_qr is not None:
            raise ConflictError({"payment_qr": ["Payment QR has already been generated for this order"]})
        self.payment_qr = PaymentQr(
            payee=payee,
            amount=amount,
            transaction_note=transaction_note,
            payment_uri=payment_uri,
            image=image,
        )

    def assert_accepts_payment_screenshot(self):
        if self.payment_method != PaymentMethod.MANUAL_PAYMENT.value:
            raise ConflictError(
                {"payment_screenshot": ["Payment screenshot is only required for manual payment orders"]}
            )

    def attach_payment_screenshot(self, screenshot_url):
        """Replace the payment screenshot. Returns the URL it replaced, if any."""
        self.assert_accepts_payment_screenshot()

        previous = self.payment_screenshot
        self.payment_screenshot = screenshot_url
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentScreenshotAttached(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                screenshot_url=screenshot_url,
                replaced_url=previous,
            )
        )
        return previous

    def confirm_payment(self, admin_notes=None):
        current = PaymentStatus(self.payment_status)
        if current == PaymentStatus.CONFIRMED:
            raise ConflictError({"payment_status": ["Payment already confirmed"]})
        if PaymentStatus.CONFIRMED not in _PAYMENT_TRANSITIONS[current]:
            raise ConflictError({"payment_status": [f"Cannot confirm payment. Payment is {current.value}."]})

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.CONFIRMED.value
        status = OrderStatus(self.order_status)
        self.order_status = _STATUS_ON_PAYMENT_CONFIRMED.get(status, status).value
        self.payment_confirmed_at = now
        self._append_admin_note(admin_notes)
        self.updated_at = now

        self.raise_(
            PaymentConfirmed(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                order_status=self.order_status,
                confirmed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Status changes
    # -------------------------------------------------------------------
    def update_status(self, new_status, admin_notes=None) -> bool:
        """Admin status change.

        Returns True when the change moves the order into CANCELLED, in
        which case the caller must restore the order's stock in the same
        unit of work.
        """
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError(
                {"order_status": [f"Invalid order status. Must be one of: {', '.join(s.value for s in OrderStatus)}"]}
            )

        current = OrderStatus(self.order_status)
        if target not in _STATUS_TRANSITIONS[current]:
            raise ConflictError({"order_status": [f"Cannot change order status. Order is already {current.value}."]})

        now = datetime.now(UTC)
        restores_stock = target == OrderStatus.CANCELLED and current != OrderStatus.CANCELLED

        self.order_status = target.value
        if restores_stock:
            self.cancelled_at = now
        self._append_admin_note(admin_notes)
        self.updated_at = now

        self.raise_(
            OrderStatusUpdated(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                previous_status=current.value,
                new_status=target.value,
                updated_at=now,
            )
        )
        return restores_stock

    def cancel(self, requester_id, reason=None, refund_phone=None, refund_upi_id=None):
        """Customer cancellation.

        Paid orders must name a phone number or UPI ID to refund to, which
        opens a pending refund. Unpaid orders are cancelled without one.
        """
        self.assert_owned_by(requester_id, "Not authorized to cancel this order")

        current = OrderStatus(self.order_status)
        if current == OrderStatus.CANCELLED:
            raise ConflictError({"order_status": ["Order is already cancelled"]})
        if current not in _CUSTOMER_CANCELLABLE:
            raise ConflictError(
                {
                    "order_status": [
                        f"Cannot cancel order. Order is already {current.value}. "
                        "You can only cancel orders that are pending or confirmed."
                    ]
                }
            )

        paid = self.payment_status == PaymentStatus.CONFIRMED.value
        if paid:
            if not refund_phone and not refund_upi_id:
                raise ValidationError({"refund": ["Please provide either phone number or UPI ID for refund"]})
            self._validate_refund_contact(refund_phone, refund_upi_id)

        now = datetime.now(UTC)
        self.order_status = OrderStatus.CANCELLED.value
        self.cancelled_at = now
        self.cancellation_reason = reason
        if reason:
            self._append_admin_note(f"Cancellation reason: {reason}")
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                previous_status=current.value,
                reason=reason,
                cancelled_at=now,
            )
        )

        if paid:
            self._open_refund(refund_phone, refund_upi_id, now)

    # -------------------------------------------------------------------
    # Refund sub-workflow
    # -------------------------------------------------------------------
    def _open_refund(self, phone, upi_id, now):
        status = self._next_refund_status(RefundAction.REQUEST)
        self.refund = Refund(
            requested=True,
            status=status.value,
            contact_phone=phone or None,
            contact_upi_id=upi_id or None,
            requested_at=now,
        )

        self.raise_(
            RefundRequested(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                total_amount=self.total_amount,
                contact_phone=phone,
                contact_upi_id=upi_id,
                requested_at=now,
            )
        )

    def request_refund(self, requester_id, phone=None, upi_id=None):
        """Open (or overwrite) a refund request on a cancelled, paid order."""
        if not phone and not upi_id:
            raise ValidationError({"refund": ["Please provide either phone number or UPI ID for refund"]})
        self.assert_owned_by(requester_id, "Not authorized to request refund for this order")
        if self.order_status != OrderStatus.CANCELLED.value:
            raise ConflictError({"order_status": ["Order must be cancelled before requesting refund"]})
        if self.payment_status != PaymentStatus.CONFIRMED.value:
            raise ConflictError({"payment_status": ["Refund can only be requested for orders with confirmed payment"]})
        self._validate_refund_contact(phone, upi_id)

        now = datetime.now(UTC)
        self._open_refund(phone, upi_id, now)
        self.updated_at = now

    def update_refund_contact(self, phone=None, upi_id=None):
        """Admin correction of refund contact details. Omitted fields stay."""
        if self.order_status != OrderStatus.CANCELLED.value:
            raise ConflictError({"order_status": ["Order must be cancelled to update refund details"]})
        self._validate_refund_contact(phone, upi_id)

        refund = self.refund or Refund()
        self.refund = Refund(
            requested=refund.requested,
            status=refund.status,
            contact_phone=phone if phone is not None else refund.contact_phone,
            contact_upi_id=upi_id if upi_id is not None else refund.contact_upi_id,
            screenshot_url=refund.screenshot_url,
            requested_at=refund.requested_at,
            processed_at=refund.processed_at,
        )
        self.updated_at = datetime.now(UTC)

        self.raise_(
            RefundContactUpdated(
                order_id=str(self.id),
                contact_phone=self.refund.contact_phone,
                contact_upi_id=self.refund.contact_upi_id,
            )
        )

    def assert_accepts_refund_screenshot(self):
        if self.order_status != OrderStatus.CANCELLED.value:
            raise ConflictError({"order_status": ["Order must be cancelled to upload refund screenshot"]})
        if not (self.refund and self.refund.requested):
            raise ConflictError({"refund": ["Refund must be requested before uploading screenshot"]})

    def attach_refund_screenshot(self, screenshot_url):
        """Record refund proof and mark the refund processed.

        Replacing the proof of an already processed refund does not raise
        ``RefundProcessed`` again.

        Returns the screenshot URL it replaced, if any.
        """
        self.assert_accepts_refund_screenshot()
        already_processed = self.refund.status == RefundStatus.PROCESSED.value
        status = self._next_refund_status(RefundAction.PROCESS)

        now = datetime.now(UTC)
        previous = self.refund.screenshot_url
        self.refund = Refund(
            requested=True,
            status=status.value,
            contact_phone=self.refund.contact_phone,
            contact_upi_id=self.refund.contact_upi_id,
            screenshot_url=screenshot_url,
            requested_at=self.refund.requested_at,
            processed_at=now,
        )
        self.updated_at = now

        if not already_processed:
            self.raise_(
                RefundProcessed(
                    order_id=str(self.id),
                    customer_id=str(self.customer_id),
                    total_amount=self.total_amount,
                    screenshot_url=screenshot_url,
                    processed_at=now,
                )
            )
        return previous
