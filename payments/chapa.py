# payments/chapa.py
from __future__ import annotations

from decimal import Decimal
from typing import Dict, Optional

from django.conf import settings

from .gateway import make_gateway_logger, request_json


def _conf():
    return (
        getattr(settings, "CHAPA_API_KEY", ""),
        (getattr(settings, "CHAPA_BASE_URL", "") or "").rstrip("/"),
    )


def _auth_headers(api_key: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}


def initialize(
    *,
    reference: str,
    order_id,
    amount: Decimal,
    currency: str = "ETB",
    email: Optional[str] = None,
    phone: Optional[str] = None,
    name: str = "",
) -> Dict:
    """
    Start a Chapa hosted checkout for one payment. The payment reference doubles
    as Chapa's tx_ref so the webhook can be correlated back.
    """
    api_key, base = _conf()
    if not api_key or not base:
        return {"ok": False, "error": "Chapa payment error: Chapa configuration missing"}

    payload = {
        "amount": str(amount),
        "currency": currency,
        "tx_ref": reference,
        "description": f"OZ Kitchen Order {order_id}",
        "customer": {
            "email": email or f"{reference}@ozkitchen.com",
            "phone_number": phone,
            "name": name,
        },
        "callback_url": settings.PAYMENT_WEBHOOK_URL,
        "return_url": f"{settings.APP_URL}/payment-success",
    }
    save = make_gateway_logger("chapa", reference)
    code, body = request_json("POST", f"{base}/v1/transaction/initialize", headers=_auth_headers(api_key), json=payload)
    save("/v1/transaction/initialize", payload, body, code)

    if code == 0:
        return {"ok": False, "error": f"Chapa payment error: {body.get('error')}"}
    if not 200 <= code < 300:
        return {"ok": False, "error": body.get("message") or "Chapa payment initialization failed"}

    data = body.get("data") or {}
    return {
        "ok": True,
        "transaction_id": data.get("tx_ref") or reference,
        "checkout_url": data.get("checkout_url"),
        "gateway_response": body,
    }


def verify(reference: str) -> Dict:
    """
    Ask Chapa for the current state of a transaction.
    `status` is Chapa's raw transaction status ("success", "failed", "pending", ...)
    or None when the lookup itself failed.
    """
    api_key, base = _conf()
    if not api_key or not base:
        return {"ok": False, "status": None, "error": "Chapa configuration missing"}

    save = make_gateway_logger("chapa", reference)
    code, body = request_json("GET", f"{base}/v1/transaction/verify/{reference}", headers=_auth_headers(api_key))
    save("/v1/transaction/verify", {"tx_ref": reference}, body, code)

    if not 200 <= code < 300:
        return {"ok": False, "status": None, "error": body.get("message") or body.get("error") or "verify failed", "raw": body}

    data = body.get("data") or {}
    return {"ok": True, "status": data.get("status"), "data": data, "raw": body}
