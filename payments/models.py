# payments/models.py
import uuid

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone

from orders.models import Order


def generate_reference() -> str:
    return f"pay_{uuid.uuid4().hex}"


class Payment(models.Model):
    STATUS_PENDING = "pending"
    STATUS_COMPLETED = "completed"
    STATUS_FAILED = "failed"

    STATUS = [
        (STATUS_PENDING, "Pending"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_FAILED, "Failed"),
    ]

    METHOD_TELEBIRR = "telebirr"
    METHOD_CHAPA = "chapa"

    METHODS = [
        (METHOD_TELEBIRR, "Telebirr"),
        (METHOD_CHAPA, "Chapa"),
    ]

    # Sent to gateways as tx_ref / reference and echoed back in webhooks
    reference = models.CharField(max_length=64, unique=True, db_index=True, default=generate_reference)
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="payments")
    payment_method = models.CharField(max_length=16, choices=METHODS)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=8, default="ETB")
    status = models.CharField(max_length=16, choices=STATUS, default=STATUS_PENDING, db_index=True)

    external_transaction_id = models.CharField(max_length=128, blank=True, null=True)
    # Raw provider payloads for audit
    gateway_response = models.JSONField(blank=True, null=True, encoder=DjangoJSONEncoder)
    processed_at = models.DateTimeField(blank=True, null=True)

    referral_id = models.CharField(max_length=64, blank=True, null=True)
    commission_eligible = models.BooleanField(default=False)

    created = models.DateTimeField(auto_now_add=True)
    updated = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created",)
        indexes = [
            models.Index(fields=["payment_method", "status", "created"], name="payment_method_status_idx"),
        ]

    def __str__(self):
        return f"{self.reference} | {self.payment_method} | {self.amount} {self.currency} | {self.status}"

    @property
    def is_pending(self) -> bool:
        return self.status == self.STATUS_PENDING

    def mark_completed(self, *, transaction_id=None, response=None, when=None):
        self.status = self.STATUS_COMPLETED
        self.external_transaction_id = transaction_id or self.external_transaction_id
        self.gateway_response = response
        self.processed_at = when or timezone.now()
        self.save(update_fields=[
            "status", "external_transaction_id", "gateway_response", "processed_at", "updated",
        ])

    def mark_failed(self, *, transaction_id=None, response=None, when=None):
        self.status = self.STATUS_FAILED
        self.external_transaction_id = transaction_id or self.external_transaction_id
        self.gateway_response = response
        self.processed_at = when or timezone.now()
        self.save(update_fields=[
            "status", "external_transaction_id", "gateway_response", "processed_at", "updated",
        ])


class GatewayLog(models.Model):
    """Gateway I/O log (init/verify calls and inbound webhooks) with masked payloads."""

    GATEWAYS = Payment.METHODS + [("unknown", "Unknown")]

    gateway = models.CharField(max_length=16, choices=GATEWAYS)
    reference = models.CharField(max_length=64, blank=True, null=True, db_index=True)
    endpoint = models.CharField(max_length=128, blank=True, null=True)

    request_payload = models.JSONField(default=dict, encoder=DjangoJSONEncoder)
    response_payload = models.JSONField(default=dict, encoder=DjangoJSONEncoder)
    status_code = models.CharField(max_length=10)

    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-timestamp",)
        indexes = [
            models.Index(fields=["gateway", "timestamp"], name="gatewaylog_gateway_ts_idx"),
        ]

    def __str__(self):
        return f"{self.gateway} | {self.reference or '-'} | {self.endpoint} | {self.status_code}"
