# payments/gateway.py
from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional, Tuple

import requests

from .models import GatewayLog

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 5
READ_TIMEOUT = 25
DEFAULT_TIMEOUT = (CONNECT_TIMEOUT, READ_TIMEOUT)
MAX_RETRIES = 1  # retry only pre-flight network errors; never on HTTP responses

Session = requests.Session()

SENSITIVE_KEYS = ("phone", "phone_number", "email", "Authorization", "X-API-Secret")


# ============================================================================
# Masking / parsing helpers
# ============================================================================

def _mask_value(val: Optional[str]) -> str:
    if not val:
        return ""
    s = str(val)
    if "@" in s:
        name, _, domain = s.partition("@")
        return (name[:2] + "***@" + domain) if name else "***@" + domain
    if s.lstrip("+").isdigit() and len(s) >= 7:
        return f"{s[:3]}***{s[-4:]}"
    if len(s) > 6:
        return s[:3] + "***" + s[-3:]
    return "***"


def mask_payload(payload: Optional[Dict]) -> Dict:
    if not payload:
        return {}
    masked = {}
    for k, v in payload.items():
        if isinstance(v, dict):
            masked[k] = mask_payload(v)
        elif k in SENSITIVE_KEYS:
            masked[k] = _mask_value(v)
        else:
            masked[k] = v
    return masked


def _safe_json(resp: requests.Response) -> Dict:
    try:
        body = resp.json()
        if isinstance(body, dict):
            return body
        return {"raw": body}
    except ValueError:
        return {"raw": getattr(resp, "text", "")}


# ============================================================================
# Audit log
# ============================================================================

def log_exchange(gateway, reference, endpoint, request_payload, response_payload, status_code) -> None:
    """Persist one gateway exchange; never breaks the payment flow."""
    try:
        GatewayLog.objects.create(
            gateway=gateway,
            reference=reference,
            endpoint=endpoint,
            request_payload=mask_payload(request_payload),
            response_payload=mask_payload(response_payload),
            status_code=str(status_code),
        )
    except Exception:
        logger.warning("gateway log write failed for %s %s", gateway, reference, exc_info=True)


def make_gateway_logger(gateway: str, reference: Optional[str]) -> Callable[[str, Dict, Dict, int], None]:
    def _save(endpoint, request_payload, response_payload, status_code):
        log_exchange(gateway, reference, endpoint, request_payload, response_payload, status_code)
    return _save


# ============================================================================
# HTTP
# ============================================================================

def request_json(
    method: str,
    url: str,
    *,
    headers: Dict[str, str],
    json: Optional[Dict] = None,
    timeout: Tuple[int, int] = DEFAULT_TIMEOUT,
    retries: int = MAX_RETRIES,
) -> Tuple[int, Dict]:
    """
    Minimal retry loop for transient network errors only (connect/read timeouts).
    Never retries on any HTTP response to avoid duplicate gateway charges.
    Returns (0, {"error": ...}) when the gateway could not be reached.
    """
    for attempt in range(retries + 1):
        try:
            resp = Session.request(method=method, url=url, headers=headers, json=json, timeout=timeout)
            return resp.status_code, _safe_json(resp)
        except (requests.exceptions.ConnectTimeout,
                requests.exceptions.ReadTimeout,
                requests.exceptions.ConnectionError) as e:
            if attempt < retries:
                time.sleep(0.8)
                continue
            logger.warning("%s %s failed after %d attempt(s): %s", method, url, attempt + 1, e)
            return 0, {"error": str(e)}
    return 0, {"error": "unreachable"}
