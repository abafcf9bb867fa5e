from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

CHAPA = "chapa"
TELEBIRR = "telebirr"
UNKNOWN = "unknown"

COMPLETED = "completed"
FAILED = "failed"
PENDING = "pending"

# Raw status value that counts as a successful charge, per gateway.
# Any other value is terminal failure; webhooks are never "in progress".
SUCCESS_STATUS = {
    CHAPA: "success",
    TELEBIRR: "COMPLETED",
}

# Identifying payload key per gateway, in precedence order.
GATEWAY_KEYS = (
    (CHAPA, "tx_ref"),
    (TELEBIRR, "telebirr_transaction_id"),
)


@dataclass(frozen=True)
class WebhookEvent:
    gateway: str
    outcome: str
    reference: Optional[str] = None
    external_transaction_id: Optional[str] = None
    failure_message: Optional[str] = None
    signers: Tuple[str, ...] = ()
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_known(self) -> bool:
        return self.gateway != UNKNOWN


def detect_gateway(payload: Dict[str, Any]) -> str:
    # Key presence decides, even when the value is null
    if "tx_ref" in payload:
        return CHAPA
    if "telebirr_transaction_id" in payload:
        return TELEBIRR
    return UNKNOWN


def claimed_gateways(payload: Dict[str, Any]) -> Tuple[str, ...]:
    """Every gateway whose identifying key is present; each must sign the request."""
    return tuple(gw for gw, key in GATEWAY_KEYS if key in payload)


def map_outcome(gateway: str, raw_status) -> str:
    if gateway not in SUCCESS_STATUS:
        return PENDING
    return COMPLETED if raw_status == SUCCESS_STATUS[gateway] else FAILED


def classify(payload: Dict[str, Any]) -> WebhookEvent:
    gateway = detect_gateway(payload)
    return WebhookEvent(
        gateway=gateway,
        outcome=map_outcome(gateway, payload.get("status")),
        reference=payload.get("reference") or payload.get("tx_ref"),
        external_transaction_id=payload.get("transaction_id") or payload.get("telebirr_transaction_id"),
        failure_message=payload.get("charge_response_message") or None,
        payload=payload,
        signers=claimed_gateways(payload),
    )
