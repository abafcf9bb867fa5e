from decimal import Decimal
from unittest.mock import patch

import pytest

from orders.models import Order
from payments.models import Payment

pytestmark = pytest.mark.django_db

PROCESS_URL = "/api/payments/process/"


def _body(order, **overrides):
    body = {"order_id": order.pk, "payment_method": "chapa", "amount": "170.00"}
    body.update(overrides)
    return body


def test_chapa_checkout_started(auth_client, order, user):
    init_result = {
        "ok": True,
        "transaction_id": "pay_x",
        "checkout_url": "https://checkout.chapa.co/abc",
        "gateway_response": {"status": "success"},
    }
    with patch("payments.views.chapa_initialize", return_value=init_result) as init:
        resp = auth_client.post(PROCESS_URL, _body(order, customer_info={"email": "a@b.com"}), format="json")

    assert resp.status_code == 200
    body = resp.json()
    payment = Payment.objects.get()
    assert body == {
        "success": True,
        "payment_id": payment.reference,
        "checkout_url": "https://checkout.chapa.co/abc",
        "transaction_id": "pay_x",
    }
    assert payment.status == "pending"
    assert payment.currency == "ETB"
    assert payment.amount == Decimal("170.00")
    assert payment.external_transaction_id == "pay_x"
    assert payment.gateway_response == {"status": "success"}
    assert payment.commission_eligible is False

    kwargs = init.call_args.kwargs
    assert kwargs["reference"] == payment.reference
    assert kwargs["order_id"] == order.pk
    assert kwargs["email"] == "a@b.com"
    assert kwargs["phone"] == user.phone_number
    assert kwargs["name"] == "Abebe Kebede"


def test_telebirr_dispatch(auth_client, order):
    with patch("payments.views.telebirr_initialize",
               return_value={"ok": True, "transaction_id": "tb_1", "checkout_url": "u", "gateway_response": {}}) as init, \
            patch("payments.views.chapa_initialize") as chapa_init:
        resp = auth_client.post(PROCESS_URL, _body(order, payment_method="telebirr",
                                                   customer_info={"phone": "0911000000"}), format="json")

    assert resp.status_code == 200
    assert init.call_args.kwargs["phone"] == "0911000000"
    chapa_init.assert_not_called()
    assert Payment.objects.get().payment_method == "telebirr"


def test_referred_user_payment_is_commission_eligible(auth_client, order, user):
    user.referral_source = "SUPAPP"
    user.save()
    with patch("payments.views.chapa_initialize",
               return_value={"ok": True, "transaction_id": "t", "checkout_url": "u", "gateway_response": {}}):
        auth_client.post(PROCESS_URL, _body(order), format="json")

    payment = Payment.objects.get()
    assert payment.referral_id == "SUPAPP"
    assert payment.commission_eligible is True


def test_amount_within_tolerance_is_accepted(auth_client, order):
    with patch("payments.views.chapa_initialize",
               return_value={"ok": True, "transaction_id": "t", "checkout_url": "u", "gateway_response": {}}):
        resp = auth_client.post(PROCESS_URL, _body(order, amount="170.01"), format="json")

    assert resp.status_code == 200


def test_amount_mismatch_is_400(auth_client, order):
    with patch("payments.views.chapa_initialize") as init:
        resp = auth_client.post(PROCESS_URL, _body(order, amount="150.00"), format="json")

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Payment amount does not match order total"}
    init.assert_not_called()
    assert Payment.objects.count() == 0


def test_order_not_pending_is_404(auth_client, order):
    order.status = Order.STATUS_PAID
    order.save()

    resp = auth_client.post(PROCESS_URL, _body(order), format="json")

    assert resp.status_code == 404
    assert resp.json()["error"] == "Order not found or not in pending status"


def test_someone_elses_order_is_404(api_client, order):
    from users.models import User

    other = User.objects.create_user(email="other@example.com", password="x")
    api_client.force_authenticate(user=other)

    resp = api_client.post(PROCESS_URL, _body(order), format="json")

    assert resp.status_code == 404


def test_missing_fields_is_400(auth_client):
    resp = auth_client.post(PROCESS_URL, {"payment_method": "chapa"}, format="json")

    assert resp.status_code == 400
    assert "order_id" in resp.json()
    assert "amount" in resp.json()


def test_unsupported_method_is_400(auth_client, order):
    resp = auth_client.post(PROCESS_URL, _body(order, payment_method="paypal"), format="json")

    assert resp.status_code == 400
    assert "payment_method" in resp.json()


def test_gateway_failure_marks_payment_failed(auth_client, order):
    with patch("payments.views.chapa_initialize",
               return_value={"ok": False, "error": "Chapa payment initialization failed"}):
        resp = auth_client.post(PROCESS_URL, _body(order), format="json")

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Chapa payment initialization failed"}
    payment = Payment.objects.get()
    assert payment.status == "failed"
    assert payment.gateway_response == {"error": "Chapa payment initialization failed"}


def test_requires_authentication(api_client, order):
    resp = api_client.post(PROCESS_URL, _body(order), format="json")

    assert resp.status_code in (401, 403)


def test_payment_detail_is_scoped_to_owner(auth_client, api_client, make_payment):
    from users.models import User

    payment = make_payment("pay_detail")

    resp = auth_client.get(f"/api/payments/{payment.reference}/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "pending"
    assert resp.json()["reference"] == "pay_detail"

    other = User.objects.create_user(email="other@example.com", password="x")
    api_client.force_authenticate(user=other)
    assert api_client.get(f"/api/payments/{payment.reference}/").status_code == 404
