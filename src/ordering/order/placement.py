"""Order placement: cart -> priced order with reserved stock."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart, cart_for_customer
from ordering.domain import logger, ordering
from ordering.errors import DependencyError
from ordering.order.order import Order, PaymentMethod
from ordering.payment.resolver import PaymentPathResolver
from ordering.pricing.engine import PricingEngine
from ordering.stock.ledger import StockLedger
from ordering.stock.locks import stock_guard

_METHOD_LABELS = {
    PaymentMethod.COD.value: "COD",
    PaymentMethod.MANUAL_PAYMENT.value: "manual payment",
}


@ordering.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    payment_method = String(required=True, max_length=20)
    shipping_address = Text()  # JSON: ShippingAddress fields
    payment_details = Text()  # JSON: PaymentDetails fields


def _loads(value):
    if not value:
        return {}
    return json.loads(value) if isinstance(value, str) else value


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        if command.payment_method not in _METHOD_LABELS:
            raise ValidationError({"payment_method": ['Invalid payment method. Must be "cod" or "manual_payment"']})

        cart = cart_for_customer(command.customer_id)
        if cart is None or cart.is_empty():
            raise ValidationError({"cart": ["Cart is empty"]})

        shipping_address = _loads(command.shipping_address)
        if not shipping_address:
            label = _METHOD_LABELS[command.payment_method]
            raise ValidationError({"shipping_address": [f"Shipping address is required for {label} orders"]})
        payment_details = {k: v for k, v in _loads(command.payment_details).items() if v}

        ledger = StockLedger()
        with stock_guard():
            priced = PricingEngine(ledger).price(cart.items)
            order = Order.create(
                customer_id=command.customer_id,
                lines=priced.lines,
                payment_method=command.payment_method,
                shipping_address=shipping_address,
                payment_details=payment_details,
            )
            ledger.reserve(priced.stock_lines())

        self._attach_payment_qr(order, payment_details)

        current_domain.repository_for(Order).add(order)

        cart.clear()
        current_domain.repository_for(ShoppingCart).add(cart)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            customer_id=str(command.customer_id),
            payment_method=command.payment_method,
            total_amount=order.total_amount,
        )
        return str(order.id)

    @staticmethod
    def _attach_payment_qr(order, payment_details):
        """Generate the UPI QR for manual payments. Failure leaves it empty."""
        try:
            intent = PaymentPathResolver().prepare(order.payment_method, order.total_amount, payment_details)
        except DependencyError as exc:
            logger.warning("Payment QR unavailable", order_id=str(order.id), reason=exc.message)
            return

        if intent is not None:
            order.attach_payment_qr(
                payee=intent.payee,
                amount=intent.amount,
                transaction_note=intent.transaction_note,
                payment_uri=intent.payment_uri,
                image=intent.image,
            )
