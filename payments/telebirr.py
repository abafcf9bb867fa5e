# payments/telebirr.py
from __future__ import annotations

from decimal import Decimal
from typing import Dict, Optional

from django.conf import settings

from .gateway import make_gateway_logger, request_json


def initialize(
    *,
    reference: str,
    order_id,
    amount: Decimal,
    currency: str = "ETB",
    phone: Optional[str] = None,
    name: str = "",
) -> Dict:
    api_key = getattr(settings, "TELEBIRR_API_KEY", "")
    api_secret = getattr(settings, "TELEBIRR_API_SECRET", "")
    base = (getattr(settings, "TELEBIRR_BASE_URL", "") or "").rstrip("/")
    if not api_key or not api_secret or not base:
        return {"ok": False, "error": "Telebirr payment error: Telebirr configuration missing"}

    payload = {
        "amount": str(amount),
        "currency": currency,
        "reference": reference,
        "description": f"OZ Kitchen Order {order_id}",
        "customer": {"phone": phone, "name": name},
        "callback_url": settings.PAYMENT_WEBHOOK_URL,
        "return_url": f"{settings.APP_URL}/payment-success",
    }
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}",
        "X-API-Secret": api_secret,
    }
    save = make_gateway_logger("telebirr", reference)
    code, body = request_json("POST", f"{base}/api/payment/initialize", headers=headers, json=payload)
    save("/api/payment/initialize", payload, body, code)

    if code == 0:
        return {"ok": False, "error": f"Telebirr payment error: {body.get('error')}"}
    if not 200 <= code < 300:
        return {"ok": False, "error": body.get("message") or "Telebirr payment initialization failed"}

    return {
        "ok": True,
        "transaction_id": body.get("transaction_id"),
        "checkout_url": body.get("checkout_url"),
        "gateway_response": body,
    }
