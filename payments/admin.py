from __future__ import annotations

from django.contrib import admin, messages

from .models import Payment, GatewayLog
from .reconcile import reconcile_from_gateway


def _short(s, n=120):
    if s is None:
        return ""
    s = str(s)
    return s[:n] + ("..." if len(s) > n else "")


# -----------------------------
# Payments
# -----------------------------
@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = (
        "reference",
        "order",
        "payment_method",
        "amount",
        "currency",
        "status",
        "external_transaction_id",
        "commission_eligible",
        "created",
    )
    search_fields = ("reference", "external_transaction_id", "order__id", "order__user__email")
    list_filter = ("payment_method", "status", "commission_eligible", "created")
    date_hierarchy = "created"
    ordering = ("-created",)

    readonly_fields = (
        "reference",
        "order",
        "payment_method",
        "amount",
        "currency",
        "status",
        "external_transaction_id",
        "gateway_response",
        "referral_id",
        "commission_eligible",
        "processed_at",
        "created",
        "updated",
    )

    actions = ("admin_verify_with_gateway",)

    @admin.action(description="Verify selected pending payments with the gateway")
    def admin_verify_with_gateway(self, request, queryset):
        updated = skipped = errors = 0
        for payment in queryset.filter(status=Payment.STATUS_PENDING):
            try:
                result = reconcile_from_gateway(payment)
            except Exception as e:
                errors += 1
                self.message_user(request, f"{payment.reference}: {e}", level=messages.ERROR)
                continue
            if result is None:
                skipped += 1
            else:
                updated += 1
        self.message_user(
            request,
            f"Verified: {updated} updated, {skipped} still pending, {errors} error(s).",
            level=messages.SUCCESS if not errors else messages.WARNING,
        )


# -----------------------------
# Gateway logs
# -----------------------------
@admin.register(GatewayLog)
class GatewayLogAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "gateway", "reference", "endpoint", "status_code", "response_preview")
    search_fields = ("reference", "endpoint")
    list_filter = ("gateway", "status_code", "timestamp")
    date_hierarchy = "timestamp"
    readonly_fields = ("gateway", "reference", "endpoint", "request_payload", "response_payload", "status_code", "timestamp")

    @admin.display(description="Response")
    def response_preview(self, obj: GatewayLog) -> str:
        return _short(obj.response_payload)
