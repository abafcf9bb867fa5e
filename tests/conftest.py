"""Shared fixtures for the payments test suite."""

from __future__ import annotations

import json
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from orders.models import MealPlan, Order
from payments.models import Payment
from payments.signatures import sign
from users.models import User

CHAPA_SECRET = "chapa-webhook-secret"
TELEBIRR_SECRET = "telebirr-api-secret"


@pytest.fixture()
def user(db) -> User:
    return User.objects.create_user(
        email="abebe@example.com", password="pass1234", first_name="Abebe", last_name="Kebede",
        phone_number="+251911223344",
    )


@pytest.fixture()
def meal_plan(user) -> MealPlan:
    return MealPlan.objects.create(user=user, status=MealPlan.STATUS_PENDING)


@pytest.fixture()
def order(user, meal_plan) -> Order:
    return Order.objects.create(user=user, meal_plan=meal_plan, total_amount=Decimal("170.00"))


@pytest.fixture()
def make_payment(order):
    def _make(reference="pay_123", method=Payment.METHOD_CHAPA, **kwargs):
        return Payment.objects.create(
            reference=reference, order=order, payment_method=method, amount=order.total_amount, **kwargs
        )
    return _make


@pytest.fixture()
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture()
def auth_client(api_client, user) -> APIClient:
    api_client.force_authenticate(user=user)
    return api_client


def encode(payload: dict) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


@pytest.fixture()
def post_webhook(client):
    """POST a JSON webhook signed (by default) with the gateway's test secret."""

    def _post(payload: dict, *, gateway="chapa", signature=None, body=None):
        body = body if body is not None else encode(payload)
        headers = {}
        if signature is None:
            secret = CHAPA_SECRET if gateway == "chapa" else TELEBIRR_SECRET
            signature = sign(secret, body)
        if signature:
            header = "HTTP_CHAPA_SIGNATURE" if gateway == "chapa" else "HTTP_X_TELEBIRR_SIGNATURE"
            headers[header] = signature
        return client.post("/api/payments/webhook/", data=body, content_type="application/json", **headers)

    return _post
