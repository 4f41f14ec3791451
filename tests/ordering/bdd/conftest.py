"""Shared BDD fixtures and step definitions for the order lifecycle."""

import json

import pytest
from ordering.errors import AuthorizationError, ConflictError, InsufficientStock
from ordering.order.cancellation import CancelOrder
from ordering.order.order import Order
from ordering.order.payment import ConfirmPayment
from ordering.order.placement import PlaceOrder
from ordering.order.status import UpdateOrderStatus
from ordering.stock.locks import process_with_stock_guard
from ordering.stock.product import Product
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when

SHIPPING_ADDRESS = {
    "name": "Asha Rao",
    "phone": "9876543210",
    "street": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "zip_code": "560001",
}

_FAILURE_KINDS = {
    "insufficient stock": InsufficientStock,
    "a conflict": ConflictError,
    "a validation error": ValidationError,
    "an authorization error": AuthorizationError,
}


class World:
    """What a scenario has done so far: products by name, the order, the last error."""

    def __init__(self):
        self.products = {}
        self.order_id = None
        self.error = None

    def attempt(self, action):
        self.error = None
        try:
            return action()
        except (ValidationError, AuthorizationError) as exc:
            self.error = exc
            return None

    @property
    def order(self) -> Order:
        return current_domain.repository_for(Order).get(self.order_id)

    def product(self, name) -> Product:
        return current_domain.repository_for(Product).get(self.products[name].id)


@pytest.fixture()
def world():
    return World()


def checkout(world, customer, method, payment_details=None):
    def _place():
        world.order_id = process_with_stock_guard(
            PlaceOrder(
                customer_id=customer,
                payment_method=method,
                shipping_address=json.dumps(SHIPPING_ADDRESS),
                payment_details=json.dumps(payment_details) if payment_details else None,
            )
        )

    world.attempt(_place)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced {price:g} with {stock:d} in stock'))
def _(world, make_product, name, price, stock):
    world.products[name] = make_product(name, price=price, stock=stock)


@given(parsers.cfparse('customer "{customer}" has {quantity:d} "{name}" in their cart'))
def _(world, fill_cart, customer, quantity, name):
    fill_cart(customer, (world.products[name], quantity))


@given(parsers.cfparse('customer "{customer}" placed a cash on delivery order for {quantity:d} "{name}"'))
def _(world, fill_cart, customer, quantity, name):
    fill_cart(customer, (world.products[name], quantity))
    checkout(world, customer, "cod")
    assert world.error is None


@given("the payment was confirmed")
def _(world):
    current_domain.process(ConfirmPayment(order_id=world.order_id), asynchronous=False)


@given(parsers.cfparse('the order was moved to "{status}"'))
def _(world, status):
    process_with_stock_guard(UpdateOrderStatus(order_id=world.order_id, order_status=status))


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('customer "{customer}" checks out with "{method}"'))
def _(world, customer, method):
    checkout(world, customer, method)


@when(parsers.cfparse('customer "{customer}" checks out paying by UPI to "{payee}"'))
def _(world, customer, payee):
    checkout(world, customer, "manual_payment", {"upi_id": payee})


@when(parsers.cfparse('customer "{customer}" cancels the order'))
def _(world, customer):
    world.attempt(
        lambda: process_with_stock_guard(CancelOrder(order_id=world.order_id, requester_id=customer))
    )


@when(parsers.cfparse('customer "{customer}" cancels the order giving refund phone "{phone}"'))
def _(world, customer, phone):
    world.attempt(
        lambda: process_with_stock_guard(
            CancelOrder(order_id=world.order_id, requester_id=customer, refund_phone=phone)
        )
    )


@when(parsers.cfparse('the admin moves the order to "{status}"'))
def _(world, status):
    world.attempt(lambda: process_with_stock_guard(UpdateOrderStatus(order_id=world.order_id, order_status=status)))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(world, status):
    assert world.order.order_status == status


@then(parsers.cfparse('the payment status is "{status}"'))
def _(world, status):
    assert world.order.payment_status == status


@then(parsers.cfparse('the refund status is "{status}"'))
def _(world, status):
    assert world.order.refund.status == status


@then(parsers.cfparse("the order total is {total:g}"))
def _(world, total):
    assert world.order.total_amount == total


@then(parsers.cfparse('"{name}" has {stock:d} in stock'))
def _(world, name, stock):
    assert world.product(name).stock == stock


@then(parsers.cfparse("the action is rejected with {kind}"))
def _(world, kind):
    assert isinstance(world.error, _FAILURE_KINDS[kind])


@then("no order was created")
def _(world):
    assert world.order_id is None
    assert current_domain.repository_for(Order)._dao.query.all().items == []
