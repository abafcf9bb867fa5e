from __future__ import annotations

from django.apps import AppConfig
from django.conf import settings
from django.core.checks import register, Warning


class PaymentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "OZ Kitchen Payments"


# ---------------------------------------------------------------------------
# System checks: surface config issues early with `manage.py check`
# ---------------------------------------------------------------------------
@register()
def payments_system_checks(app_configs, **kwargs):
    messages = []
    production = getattr(settings, "ENV", "development") == "production"

    # 1) Webhook secrets: without them every webhook is rejected with 401
    secrets = {
        "CHAPA_WEBHOOK_SECRET": getattr(settings, "CHAPA_WEBHOOK_SECRET", ""),
        "TELEBIRR_API_SECRET": getattr(settings, "TELEBIRR_API_SECRET", ""),
    }
    missing = [k for k, v in secrets.items() if not v]
    if production and missing:
        messages.append(
            Warning(
                "Payment webhook secrets are missing; affected webhooks will be rejected.",
                id="payments.W001",
                hint=f"Missing settings: {', '.join(missing)}",
            )
        )

    # 2) Gateway credentials for checkout initialization
    gateways = {
        "chapa": ("CHAPA_API_KEY", "CHAPA_BASE_URL"),
        "telebirr": ("TELEBIRR_API_KEY", "TELEBIRR_API_SECRET", "TELEBIRR_BASE_URL"),
    }
    for gateway, keys in gateways.items():
        absent = [k for k in keys if not getattr(settings, k, "")]
        if production and absent:
            messages.append(
                Warning(
                    f"{gateway.capitalize()} checkout is not fully configured.",
                    id="payments.W002",
                    hint=f"Missing settings: {', '.join(absent)}",
                )
            )

    return messages
