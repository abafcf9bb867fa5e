from datetime import timedelta
from io import StringIO
from unittest.mock import patch

import pytest
from django.core.management import call_command
from django.utils import timezone

from notifications.models import Notification
from payments.models import Payment
from payments.reconcile import reconcile_from_gateway

pytestmark = pytest.mark.django_db


def _age(payment, minutes=30):
    Payment.objects.filter(pk=payment.pk).update(created=timezone.now() - timedelta(minutes=minutes))


def _verified(status, reference="APx1", message="Payment details"):
    raw = {"status": "success", "message": message, "data": {"status": status, "reference": reference}}
    return {"ok": True, "status": status, "data": raw["data"], "raw": raw}


def test_reconcile_from_gateway_success(make_payment, order):
    payment = make_payment("pay_v1")

    with patch("payments.reconcile.chapa.verify", return_value=_verified("success")):
        result = reconcile_from_gateway(payment)

    assert result.payment_status == "completed"
    payment.refresh_from_db()
    assert payment.external_transaction_id == "APx1"
    order.refresh_from_db()
    assert order.status == "paid"


def test_reconcile_from_gateway_failed_uses_gateway_message(make_payment, user):
    payment = make_payment("pay_v2")

    with patch("payments.reconcile.chapa.verify", return_value=_verified("failed", message="Declined")):
        result = reconcile_from_gateway(payment)

    assert result.payment_status == "failed"
    assert Notification.objects.get(user=user).data["error"] == "Declined"


@pytest.mark.parametrize("res", [_verified("pending"), {"ok": False, "status": None, "error": "x"}])
def test_reconcile_from_gateway_leaves_non_terminal_alone(make_payment, res):
    payment = make_payment("pay_v3")

    with patch("payments.reconcile.chapa.verify", return_value=res):
        assert reconcile_from_gateway(payment) is None

    payment.refresh_from_db()
    assert payment.status == "pending"


def test_telebirr_payments_are_not_verified(make_payment):
    payment = make_payment("pay_tb", method="telebirr")

    with patch("payments.reconcile.chapa.verify") as verify:
        assert reconcile_from_gateway(payment) is None

    verify.assert_not_called()


def test_command_only_touches_stale_pending_chapa_payments(make_payment):
    stale = make_payment("pay_stale")
    _age(stale)
    fresh = make_payment("pay_fresh")
    done = make_payment("pay_done", status=Payment.STATUS_COMPLETED)
    _age(done)

    out = StringIO()
    with patch("payments.reconcile.chapa.verify", return_value=_verified("success")) as verify:
        call_command("verify_pending_payments", "--age-mins", "10", stdout=out)

    verify.assert_called_once_with("pay_stale")
    stale.refresh_from_db()
    fresh.refresh_from_db()
    assert stale.status == "completed"
    assert fresh.status == "pending"
    assert "Verified 1 payment(s). Completed 1, failed 0." in out.getvalue()


def test_command_reports_errors_and_continues(make_payment):
    first = make_payment("pay_a")
    second = make_payment("pay_b")
    _age(first, 40)
    _age(second, 20)

    out, err = StringIO(), StringIO()
    with patch("payments.reconcile.chapa.verify",
               side_effect=[RuntimeError("gateway down"), _verified("failed")]):
        call_command("verify_pending_payments", stdout=out, stderr=err)

    assert "pay_a: gateway down" in err.getvalue()
    second.refresh_from_db()
    assert second.status == "failed"
    assert "Completed 0, failed 1." in out.getvalue()
