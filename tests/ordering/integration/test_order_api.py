"""Integration tests for the order and refund endpoints via TestClient."""

import pytest
from app import app
from fastapi.testclient import TestClient
from ordering.order.order import Order
from protean import current_domain

CUSTOMER = {"X-User-ID": "cust-1"}
OTHER_CUSTOMER = {"X-User-ID": "cust-2"}
ADMIN = {"X-User-ID": "admin-1", "X-User-Role": "admin"}

ADDRESS = {
    "name": "Asha Rao",
    "phone": "9876543210",
    "street": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "zipCode": "560001",
}

PNG = ("proof.png", b"\x89PNG\r\n\x1a\nproof", "image/png")


@pytest.fixture()
def client():
    return TestClient(app)


@pytest.fixture()
def tomatoes(make_product):
    return make_product("Tomatoes", price=10.0, stock=10)


def _place(client, fill_cart, product, quantity=2, payment_method="cod", payment_details=None, headers=CUSTOMER):
    fill_cart(headers["X-User-ID"], (product, quantity))
    body = {"paymentMethod": payment_method, "shippingAddress": ADDRESS}
    if payment_details:
        body["paymentDetails"] = payment_details
    return client.post("/orders", json=body, headers=headers)


def _error(response):
    return response.json()["error"]


class TestPlaceOrderEndpoint:
    def test_cod_order(self, client, fill_cart, tomatoes, stock_of):
        response = _place(client, fill_cart, tomatoes)

        assert response.status_code == 201
        data = response.json()
        assert data["totalAmount"] == 20.0
        assert data["tax"] == 2.0
        assert data["grandTotal"] == 22.0
        assert data["orderStatus"] == "pending"
        assert data["paymentStatus"] == "pending"
        assert data["paymentMethod"] == "cod"
        assert data["qrPayload"] is None
        assert data["items"][0]["productName"] == "Tomatoes"
        assert data["items"][0]["lineTotal"] == 20.0
        assert data["shippingAddress"]["zipCode"] == "560001"
        assert data["refund"]["status"] == "none"
        assert stock_of(tomatoes) == 8

    def test_line_totals_round_like_the_order_total(self, client, fill_cart, make_product):
        herbs = make_product("Coriander", price=0.145, stock=10)

        response = _place(client, fill_cart, herbs, quantity=3)

        assert response.status_code == 201
        data = response.json()
        assert data["items"][0]["lineTotal"] == 0.45
        assert data["totalAmount"] == 0.45

    def test_manual_payment_returns_qr(self, client, fill_cart, tomatoes, fake_renderer):
        response = _place(client, fill_cart, tomatoes, payment_method="manual_payment", payment_details={"upiId": "shop@upi"})

        assert response.status_code == 201
        qr = response.json()["qrPayload"]
        assert qr["payee"] == "shop@upi"
        assert qr["amount"] == 20.0
        assert "am=20.00" in qr["paymentUri"]
        assert qr["image"].startswith("data:image/png;base64,")
        assert response.json()["paymentNotice"] is None

    def test_manual_payment_without_payee_degrades(self, client, fill_cart, tomatoes, monkeypatch):
        monkeypatch.delenv("UPI_ID", raising=False)

        response = _place(client, fill_cart, tomatoes, payment_method="manual_payment")

        assert response.status_code == 201
        assert response.json()["qrPayload"] is None
        assert response.json()["paymentNotice"] == "Payment screenshot required, QR unavailable"

    def test_insufficient_stock(self, client, fill_cart, make_product, stock_of):
        onions = make_product("Onions", stock=1)

        response = _place(client, fill_cart, onions, quantity=3)

        assert response.status_code == 409
        error = _error(response)
        assert error["kind"] == "insufficient_stock"
        assert error["message"] == 'Insufficient stock for "Onions". Only 1 available.'
        assert stock_of(onions) == 1

    def test_empty_cart(self, client):
        response = client.post("/orders", json={"paymentMethod": "cod", "shippingAddress": ADDRESS}, headers=CUSTOMER)
        assert response.status_code == 400
        assert _error(response) == {
            "kind": "validation_error",
            "message": "Cart is empty",
            "details": {"cart": ["Cart is empty"]},
        }

    def test_invalid_payment_method(self, client, fill_cart, tomatoes):
        response = _place(client, fill_cart, tomatoes, payment_method="card")
        assert response.status_code == 400
        assert _error(response)["message"] == 'Invalid payment method. Must be "cod" or "manual_payment"'

    def test_requires_user_header(self, client):
        response = client.post("/orders", json={"paymentMethod": "cod"})
        assert response.status_code == 401
        assert _error(response) == {
            "kind": "authentication_error",
            "message": "Authentication required",
            "details": {},
        }

    def test_listing_without_identity_uses_error_shape(self, client):
        response = client.get("/orders")
        assert response.status_code == 401
        assert _error(response)["kind"] == "authentication_error"

    def test_malformed_body_uses_error_shape(self, client):
        response = client.post("/orders", json={}, headers=CUSTOMER)

        assert response.status_code == 400
        error = _error(response)
        assert error["kind"] == "validation_error"
        assert "paymentMethod" in error["details"]
        assert error["message"].startswith("paymentMethod: ")


class TestReadEndpoints:
    def test_customer_sees_own_orders_newest_first(self, client, fill_cart, tomatoes):
        first = _place(client, fill_cart, tomatoes).json()["id"]
        second = _place(client, fill_cart, tomatoes, quantity=1).json()["id"]
        _place(client, fill_cart, tomatoes, quantity=1, headers=OTHER_CUSTOMER)

        response = client.get("/orders", headers=CUSTOMER)

        assert response.status_code == 200
        assert response.json()["count"] == 2
        assert [o["id"] for o in response.json()["orders"]] == [second, first]

    def test_get_order_owner_admin_and_stranger(self, client, fill_cart, tomatoes):
        order_id = _place(client, fill_cart, tomatoes).json()["id"]

        assert client.get(f"/orders/{order_id}", headers=CUSTOMER).status_code == 200
        assert client.get(f"/orders/{order_id}", headers=ADMIN).status_code == 200

        response = client.get(f"/orders/{order_id}", headers=OTHER_CUSTOMER)
        assert response.status_code == 403
        assert _error(response)["kind"] == "authorization_error"

    def test_unknown_order(self, client):
        response = client.get("/orders/does-not-exist", headers=CUSTOMER)
        assert response.status_code == 404
        assert _error(response)["kind"] == "not_found"

    def test_admin_listing_filters(self, client, fill_cart, tomatoes):
        pending = _place(client, fill_cart, tomatoes).json()["id"]
        cancelled = _place(client, fill_cart, tomatoes, quantity=1).json()["id"]
        client.put(f"/orders/{cancelled}/cancel", headers=CUSTOMER)

        all_orders = client.get("/orders/admin/all", headers=ADMIN).json()
        only_cancelled = client.get("/orders/admin/all", params={"orderStatus": "cancelled"}, headers=ADMIN).json()
        no_refund = client.get("/orders/admin/all", params={"refundStatus": "no-refund"}, headers=ADMIN).json()

        assert all_orders["count"] == 2
        assert [o["id"] for o in only_cancelled["orders"]] == [cancelled]
        assert {o["id"] for o in no_refund["orders"]} == {pending, cancelled}

    def test_admin_listing_rejects_unknown_filter(self, client):
        response = client.get("/orders/admin/all", params={"orderStatus": "lost"}, headers=ADMIN)
        assert response.status_code == 400

    def test_admin_listing_requires_admin(self, client):
        response = client.get("/orders/admin/all", headers=CUSTOMER)
        assert response.status_code == 403
        assert _error(response)["message"] == "Admin access required"


class TestPaymentEndpoints:
    def test_upload_screenshot(self, client, fill_cart, tomatoes, blob_store, fake_renderer):
        order_id = _place(
            client, fill_cart, tomatoes, payment_method="manual_payment", payment_details={"upiId": "shop@upi"}
        ).json()["id"]

        response = client.post(f"/orders/{order_id}/payment-screenshot", files={"screenshot": PNG}, headers=CUSTOMER)

        assert response.status_code == 200
        url = response.json()["paymentScreenshot"]
        assert url in blob_store.blobs
        assert current_domain.repository_for(Order).get(order_id).payment_screenshot == url

    def test_upload_rejects_non_images(self, client, fill_cart, tomatoes, blob_store):
        order_id = _place(client, fill_cart, tomatoes, payment_method="manual_payment").json()["id"]

        response = client.post(
            f"/orders/{order_id}/payment-screenshot",
            files={"screenshot": ("notes.txt", b"hello", "text/plain")},
            headers=CUSTOMER,
        )

        assert response.status_code == 400
        assert _error(response)["message"] == "Only image files are allowed"
        assert blob_store.calls == []

    def test_upload_requires_file(self, client, fill_cart, tomatoes):
        order_id = _place(client, fill_cart, tomatoes, payment_method="manual_payment").json()["id"]
        response = client.post(f"/orders/{order_id}/payment-screenshot", headers=CUSTOMER)
        assert response.status_code == 400
        assert _error(response)["message"] == "Please upload a payment screenshot"

    def test_upload_on_cod_order_is_a_conflict(self, client, fill_cart, tomatoes, blob_store):
        order_id = _place(client, fill_cart, tomatoes).json()["id"]
        response = client.post(f"/orders/{order_id}/payment-screenshot", files={"screenshot": PNG}, headers=CUSTOMER)
        assert response.status_code == 409
        assert _error(response)["kind"] == "conflict"

    def test_confirm_payment(self, client, fill_cart, tomatoes):
        order_id = _place(client, fill_cart, tomatoes).json()["id"]

        response = client.put(
            f"/orders/{order_id}/confirm-payment", json={"adminNotes": "Cash collected"}, headers=ADMIN
        )

        assert response.status_code == 200
        assert response.json()["paymentStatus"] == "confirmed"
        assert response.json()["orderStatus"] == "confirmed"
        assert response.json()["adminNotes"] == "Cash collected"

        again = client.put(f"/orders/{order_id}/confirm-payment", headers=ADMIN)
        assert again.status_code == 409
        assert _error(again)["message"] == "Payment already confirmed"

    def test_confirm_payment_requires_admin(self, client, fill_cart, tomatoes):
        order_id = _place(client, fill_cart, tomatoes).json()["id"]
        assert client.put(f"/orders/{order_id}/confirm-payment", headers=CUSTOMER).status_code == 403


class TestStatusAndCancellationEndpoints:
    def test_admin_cancel_restores_stock(self, client, fill_cart, tomatoes, stock_of):
        order_id = _place(client, fill_cart, tomatoes).json()["id"]

        response = client.put(f"/orders/{order_id}/status", json={"orderStatus": "cancelled"}, headers=ADMIN)

        assert response.status_code == 200
        assert response.json()["orderStatus"] == "cancelled"
        assert stock_of(tomatoes) == 10

    def test_invalid_status(self, client, fill_cart, tomatoes):
        order_id = _place(client, fill_cart, tomatoes).json()["id"]
        response = client.put(f"/orders/{order_id}/status", json={"orderStatus": "lost"}, headers=ADMIN)
        assert response.status_code == 400

    def test_missing_status_uses_error_shape(self, client):
        response = client.put("/orders/abc/status", json={}, headers=ADMIN)

        assert response.status_code == 400
        assert _error(response)["kind"] == "validation_error"
        assert "orderStatus" in _error(response)["details"]

    def test_customer_cancel_with_reason(self, client, fill_cart, tomatoes, stock_of):
        order_id = _place(client, fill_cart, tomatoes).json()["id"]

        response = client.put(f"/orders/{order_id}/cancel", json={"reason": "Changed my mind"}, headers=CUSTOMER)

        assert response.status_code == 200
        assert response.json()["orderStatus"] == "cancelled"
        assert response.json()["cancellationReason"] == "Changed my mind"
        assert stock_of(tomatoes) == 10

    def test_paid_cancel_opens_refund(self, client, fill_cart, tomatoes):
        order_id = _place(client, fill_cart, tomatoes).json()["id"]
        client.put(f"/orders/{order_id}/confirm-payment", headers=ADMIN)

        missing = client.put(f"/orders/{order_id}/cancel", json={}, headers=CUSTOMER)
        assert missing.status_code == 400

        response = client.put(f"/orders/{order_id}/cancel", json={"phone": "9999999999"}, headers=CUSTOMER)
        assert response.status_code == 200
        refund = response.json()["refund"]
        assert refund["requested"] is True
        assert refund["status"] == "pending"
        assert refund["contactPhone"] == "9999999999"

    def test_shipped_order_cannot_be_cancelled(self, client, fill_cart, tomatoes, stock_of):
        order_id = _place(client, fill_cart, tomatoes).json()["id"]
        client.put(f"/orders/{order_id}/status", json={"orderStatus": "shipped"}, headers=ADMIN)

        response = client.put(f"/orders/{order_id}/cancel", headers=CUSTOMER)

        assert response.status_code == 409
        assert _error(response)["kind"] == "conflict"
        assert stock_of(tomatoes) == 8

    def test_stranger_cannot_cancel(self, client, fill_cart, tomatoes):
        order_id = _place(client, fill_cart, tomatoes).json()["id"]
        response = client.put(f"/orders/{order_id}/cancel", headers=OTHER_CUSTOMER)
        assert response.status_code == 403
        assert _error(response)["message"] == "Not authorized to cancel this order"


class TestRefundEndpoints:
    @pytest.fixture()
    def refund_order_id(self, client, fill_cart, tomatoes):
        order_id = _place(client, fill_cart, tomatoes).json()["id"]
        client.put(f"/orders/{order_id}/confirm-payment", headers=ADMIN)
        client.put(f"/orders/{order_id}/cancel", json={"upiId": "asha@okicici"}, headers=CUSTOMER)
        return order_id

    def test_request_refund_overwrites_contact(self, client, refund_order_id):
        response = client.post(
            f"/orders/{refund_order_id}/request-refund", json={"phone": "8888888888"}, headers=CUSTOMER
        )
        assert response.status_code == 200
        assert response.json()["refund"]["contactPhone"] == "8888888888"

    def test_request_refund_on_unpaid_order(self, client, fill_cart, tomatoes):
        order_id = _place(client, fill_cart, tomatoes).json()["id"]
        client.put(f"/orders/{order_id}/cancel", headers=CUSTOMER)

        response = client.post(f"/orders/{order_id}/request-refund", json={"phone": "9999999999"}, headers=CUSTOMER)

        assert response.status_code == 409
        assert _error(response)["message"] == "Refund can only be requested for orders with confirmed payment"

    def test_admin_updates_refund_details(self, client, refund_order_id):
        response = client.put(
            f"/orders/{refund_order_id}/refund-details", json={"phone": "9812345678"}, headers=ADMIN
        )
        assert response.status_code == 200
        refund = response.json()["refund"]
        assert refund["contactPhone"] == "9812345678"
        assert refund["contactUpiId"] == "asha@okicici"

    def test_refund_screenshot_processes_refund(self, client, refund_order_id, blob_store):
        response = client.post(
            f"/orders/{refund_order_id}/refund-screenshot", files={"screenshot": PNG}, headers=ADMIN
        )

        assert response.status_code == 200
        refund = response.json()["refund"]
        assert refund["status"] == "processed"
        assert refund["screenshotUrl"] in blob_store.blobs
        assert refund["processedAt"] is not None

    def test_refund_screenshot_requires_admin(self, client, refund_order_id):
        response = client.post(
            f"/orders/{refund_order_id}/refund-screenshot", files={"screenshot": PNG}, headers=CUSTOMER
        )
        assert response.status_code == 403
