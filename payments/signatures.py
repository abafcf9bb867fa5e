"""Webhook signature verification for Chapa and Telebirr.

Both gateways sign the JSON body with HMAC-SHA256 (lowercase hex) using a
shared secret. Verification fails closed: a missing header, a missing secret,
an unknown gateway or any error while hashing rejects the webhook.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from django.conf import settings

logger = logging.getLogger(__name__)

SIGNATURE_HEADERS = {
    "chapa": ("chapa-signature", "x-chapa-signature"),
    "telebirr": ("x-telebirr-signature",),
}


@dataclass(frozen=True)
class WebhookSecrets:
    chapa: str = ""
    telebirr: str = ""

    @classmethod
    def from_settings(cls) -> "WebhookSecrets":
        return cls(
            chapa=getattr(settings, "CHAPA_WEBHOOK_SECRET", "") or "",
            telebirr=getattr(settings, "TELEBIRR_API_SECRET", "") or "",
        )

    def for_gateway(self, gateway: str) -> str:
        return getattr(self, gateway, "") if gateway in SIGNATURE_HEADERS else ""


def canonical_json(payload) -> bytes:
    """Compact serialization matching the sender's JSON.stringify output."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def sign(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def signature_header(gateway: str, headers: Mapping[str, str]) -> Optional[str]:
    for name in SIGNATURE_HEADERS.get(gateway, ()):
        value = headers.get(name)
        if value:
            return value
    return None


def verify(
    gateway: str,
    headers: Mapping[str, str],
    payload,
    *,
    secrets: WebhookSecrets,
    raw_body: Optional[bytes] = None,
) -> bool:
    """
    True only when the gateway's signature header equals the HMAC of either the
    raw body (when given) or the compact re-serialized payload.
    """
    try:
        signature = signature_header(gateway, headers)
        secret = secrets.for_gateway(gateway)
        if not signature or not secret:
            return False

        candidates = []
        if raw_body:
            candidates.append(raw_body)
        candidates.append(canonical_json(payload))

        return any(hmac.compare_digest(sign(secret, message), signature) for message in candidates)
    except Exception:
        logger.exception("error verifying %s signature", gateway)
        return False
