# payments/reconcile.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.db import transaction
from django.utils import timezone

from notifications.utils import notify_user
from orders.models import MealPlan

from . import chapa
from .classify import CHAPA, COMPLETED, FAILED, PENDING, SUCCESS_STATUS
from .exceptions import PaymentNotFound
from .models import Payment

logger = logging.getLogger(__name__)

SUCCESS_TITLE = "Payment Successful! 🎉"
FAILURE_TITLE = "Payment Failed ❌"
DEFAULT_FAILURE_MESSAGE = "Payment processing failed"


@dataclass(frozen=True)
class ReconcileResult:
    payment_status: str
    order_status: str
    applied: bool = True


def _transaction_id(payload: Dict[str, Any]) -> Optional[str]:
    return payload.get("transaction_id") or payload.get("telebirr_transaction_id")


def _notify_success(payment: Payment, transaction_id: Optional[str]) -> None:
    order = payment.order
    notify_user(
        order.user,
        SUCCESS_TITLE,
        f"Your payment of {payment.amount} {payment.currency} has been processed successfully. "
        "Your order is now confirmed.",
        type="payment",
        data={
            "payment_id": payment.reference,
            "order_id": order.pk,
            "amount": float(payment.amount),
            "transaction_id": transaction_id,
        },
    )


def _notify_failure(payment: Payment, error: str) -> None:
    order = payment.order
    notify_user(
        order.user,
        FAILURE_TITLE,
        f"Your payment of {payment.amount} {payment.currency} could not be processed. "
        "Please try again or contact support.",
        type="payment",
        data={
            "payment_id": payment.reference,
            "order_id": order.pk,
            "amount": float(payment.amount),
            "error": error,
        },
    )


def reconcile(reference: Optional[str], outcome: str, payload: Dict[str, Any]) -> ReconcileResult:
    """
    Apply a gateway's terminal outcome to the payment, its order and meal plan.

    Runs as one transaction with the payment row locked. A payment that is no
    longer pending is left untouched (repeat delivery), and the current statuses
    are returned with applied=False.
    """
    if outcome not in (COMPLETED, FAILED):
        raise ValueError(f"not a terminal outcome: {outcome!r}")
    if not reference:
        raise PaymentNotFound()

    with transaction.atomic():
        try:
            payment = (
                Payment.objects.select_for_update()
                .select_related("order", "order__user")
                .get(reference=reference)
            )
        except Payment.DoesNotExist:
            raise PaymentNotFound() from None

        order = payment.order
        if not payment.is_pending:
            logger.info("payment %s already %s; skipping repeat delivery", reference, payment.status)
            return ReconcileResult(payment.status, order.status, applied=False)

        transaction_id = _transaction_id(payload)
        now = timezone.now()

        if outcome == COMPLETED:
            payment.mark_completed(transaction_id=transaction_id, response=payload, when=now)
            order.mark_paid()
            if order.meal_plan_id:
                MealPlan.objects.filter(pk=order.meal_plan_id).update(
                    status=MealPlan.STATUS_CONFIRMED, updated=now,
                )
            _notify_success(payment, transaction_id)
        else:
            payment.mark_failed(transaction_id=transaction_id, response=payload, when=now)
            _notify_failure(payment, payload.get("charge_response_message") or DEFAULT_FAILURE_MESSAGE)

        logger.info("payment %s -> %s (order %s -> %s)", reference, payment.status, order.pk, order.status)
        return ReconcileResult(payment.status, order.status)


def reconcile_from_gateway(payment: Payment) -> Optional[ReconcileResult]:
    """
    Pull-side reconciliation for a pending Chapa payment: ask Chapa's verify API
    and apply the outcome. Returns None when the gateway has no terminal answer.
    """
    if payment.payment_method != Payment.METHOD_CHAPA:
        logger.info("no verify API for %s; leaving %s pending", payment.payment_method, payment.reference)
        return None

    res = chapa.verify(payment.reference)
    raw_status = res.get("status")
    if not res.get("ok") or raw_status in (None, "", PENDING):
        return None

    data = res.get("data") or {}
    outcome = COMPLETED if raw_status == SUCCESS_STATUS[CHAPA] else FAILED
    payload = {
        "status": raw_status,
        "tx_ref": payment.reference,
        "transaction_id": data.get("reference"),
        "charge_response_message": res["raw"].get("message") if outcome == FAILED else None,
        "verify_response": res["raw"],
    }
    return reconcile(payment.reference, outcome, payload)