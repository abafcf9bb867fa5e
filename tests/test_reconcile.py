from unittest.mock import patch

import pytest
from django.db import DatabaseError

from notifications.models import Notification
from payments.exceptions import PaymentNotFound
from payments.reconcile import reconcile


@pytest.mark.django_db
def test_completed_updates_payment_order_meal_plan_and_notifies(make_payment, order, user):
    payment = make_payment("pay_123")
    payload = {"status": "success", "tx_ref": "pay_123", "transaction_id": "chapa_tx_1"}

    result = reconcile("pay_123", "completed", payload)

    assert (result.payment_status, result.order_status, result.applied) == ("completed", "paid", True)
    payment.refresh_from_db()
    order.refresh_from_db()
    order.meal_plan.refresh_from_db()
    assert payment.status == "completed"
    assert payment.external_transaction_id == "chapa_tx_1"
    assert payment.gateway_response == payload
    assert payment.processed_at is not None
    assert order.status == "paid"
    assert order.payment_status == "paid"
    assert order.meal_plan.status == "confirmed"

    note = Notification.objects.get(user=user)
    assert note.title == "Payment Successful! 🎉"
    assert note.type == "payment"
    assert note.data == {
        "payment_id": "pay_123",
        "order_id": order.pk,
        "amount": 170.0,
        "transaction_id": "chapa_tx_1",
    }


@pytest.mark.django_db
def test_completed_without_meal_plan(make_payment, order):
    order.meal_plan = None
    order.save()
    make_payment("pay_nomp")

    result = reconcile("pay_nomp", "completed", {"status": "success", "tx_ref": "pay_nomp"})

    assert result.order_status == "paid"


@pytest.mark.django_db
def test_failed_leaves_order_unchanged(make_payment, order, user):
    payment = make_payment("pay_456", method="telebirr")
    payload = {"status": "FAILED", "telebirr_transaction_id": "tb_987", "reference": "pay_456"}

    result = reconcile("pay_456", "failed", payload)

    assert (result.payment_status, result.order_status) == ("failed", "pending")
    payment.refresh_from_db()
    order.refresh_from_db()
    order.meal_plan.refresh_from_db()
    assert payment.status == "failed"
    assert payment.gateway_response == payload
    assert order.status == "pending"
    assert order.payment_status == "pending"
    assert order.meal_plan.status == "pending"

    note = Notification.objects.get(user=user)
    assert note.title == "Payment Failed ❌"
    assert note.data["error"] == "Payment processing failed"


@pytest.mark.django_db
def test_failed_notification_carries_gateway_message(make_payment, user):
    make_payment("pay_msg")
    reconcile("pay_msg", "failed", {"status": "failed", "tx_ref": "pay_msg", "charge_response_message": "Card declined"})

    assert Notification.objects.get(user=user).data["error"] == "Card declined"


@pytest.mark.django_db
def test_unknown_reference_raises_not_found(make_payment):
    make_payment("pay_exists")
    with pytest.raises(PaymentNotFound):
        reconcile("pay_missing", "completed", {})
    with pytest.raises(PaymentNotFound):
        reconcile(None, "completed", {})


@pytest.mark.django_db
def test_non_terminal_outcome_is_rejected(make_payment):
    make_payment("pay_p")
    with pytest.raises(ValueError):
        reconcile("pay_p", "pending", {})


@pytest.mark.django_db
def test_repeat_delivery_is_a_no_op(make_payment, order, user):
    make_payment("pay_123")
    payload = {"status": "success", "tx_ref": "pay_123", "transaction_id": "t1"}

    first = reconcile("pay_123", "completed", payload)
    second = reconcile("pay_123", "completed", payload)

    assert first.applied is True
    assert second.applied is False
    assert (second.payment_status, second.order_status) == ("completed", "paid")
    assert Notification.objects.filter(user=user).count() == 1


@pytest.mark.django_db
def test_completed_payment_is_never_reversed(make_payment):
    payment = make_payment("pay_123")
    reconcile("pay_123", "completed", {"status": "success", "tx_ref": "pay_123"})

    result = reconcile("pay_123", "failed", {"status": "failed", "tx_ref": "pay_123"})

    payment.refresh_from_db()
    assert payment.status == "completed"
    assert result.applied is False


@pytest.mark.django_db
def test_notification_failure_does_not_fail_reconciliation(make_payment, order):
    payment = make_payment("pay_123")

    with patch("notifications.utils.Notification.objects.create", side_effect=DatabaseError("boom")):
        result = reconcile("pay_123", "completed", {"status": "success", "tx_ref": "pay_123"})

    assert result.payment_status == "completed"
    payment.refresh_from_db()
    order.refresh_from_db()
    assert payment.status == "completed"
    assert order.status == "paid"
    assert Notification.objects.count() == 0
