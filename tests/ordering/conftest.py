import json

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

SHIPPING_ADDRESS = {
    "name": "Asha Rao",
    "phone": "9876543210",
    "street": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "zip_code": "560001",
    "country": "India",
}

CUSTOMER_ID = "cust-1"
OTHER_CUSTOMER_ID = "cust-2"
ADMIN_ID = "admin-1"


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture()
def directory():
    """Account directory with one admin and two customers."""
    from ordering.accounts import set_directory
    from ordering.accounts.memory_directory import InMemoryAccountDirectory

    directory = InMemoryAccountDirectory()
    directory.register(ADMIN_ID, "Store Admin", role="admin")
    directory.register(CUSTOMER_ID, "Asha Rao")
    directory.register(OTHER_CUSTOMER_ID, "Ravi Kumar")
    set_directory(directory)
    return directory


@pytest.fixture()
def blob_store():
    from ordering.media import set_blob_store
    from ordering.media.memory_store import InMemoryBlobStore

    store = InMemoryBlobStore()
    set_blob_store(store)
    return store


@pytest.fixture()
def fake_renderer():
    from ordering.payment.qr import set_renderer
    from ordering.payment.qr.fake_renderer import FakeQrRenderer

    renderer = FakeQrRenderer()
    set_renderer(renderer)
    return renderer


@pytest.fixture()
def make_product():
    from ordering.stock.product import Product

    def _make(name="Tomatoes", price=10.0, stock=10, is_active=True):
        product = Product.create(name=name, price=price, stock=stock, is_active=is_active)
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture()
def stock_of():
    from ordering.stock.product import Product

    def _stock(product):
        return current_domain.repository_for(Product).get(product.id).stock

    return _stock


@pytest.fixture()
def fill_cart():
    from ordering.cart.cart import ShoppingCart, cart_for_customer

    def _fill(customer_id, *lines):
        cart = cart_for_customer(customer_id) or ShoppingCart.create(customer_id)
        for product, quantity in lines:
            cart.add_item(str(product.id), quantity)
        current_domain.repository_for(ShoppingCart).add(cart)
        return cart

    return _fill


@pytest.fixture()
def place_order(fill_cart):
    """Fill the customer's cart with ``quantity`` of ``product`` and check out."""
    from ordering.order.order import Order
    from ordering.order.placement import PlaceOrder
    from ordering.stock.locks import process_with_stock_guard

    def _place(
        product,
        quantity=2,
        payment_method="cod",
        customer_id=CUSTOMER_ID,
        shipping_address=SHIPPING_ADDRESS,
        payment_details=None,
    ):
        fill_cart(customer_id, (product, quantity))
        order_id = process_with_stock_guard(
            PlaceOrder(
                customer_id=customer_id,
                payment_method=payment_method,
                shipping_address=json.dumps(shipping_address) if shipping_address else None,
                payment_details=json.dumps(payment_details) if payment_details else None,
            )
        )
        return current_domain.repository_for(Order).get(order_id)

    return _place


@pytest.fixture()
def reload_order():
    from ordering.order.order import Order

    def _reload(order):
        return current_domain.repository_for(Order).get(order.id)

    return _reload
