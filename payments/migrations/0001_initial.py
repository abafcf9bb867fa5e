import django.core.serializers.json
import django.db.models.deletion
from django.db import migrations, models

import payments.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="GatewayLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("gateway", models.CharField(choices=[("telebirr", "Telebirr"), ("chapa", "Chapa"), ("unknown", "Unknown")], max_length=16)),
                ("reference", models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ("endpoint", models.CharField(blank=True, max_length=128, null=True)),
                ("request_payload", models.JSONField(default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ("response_payload", models.JSONField(default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ("status_code", models.CharField(max_length=10)),
                ("timestamp", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ("-timestamp",),
                "indexes": [models.Index(fields=["gateway", "timestamp"], name="gatewaylog_gateway_ts_idx")],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("reference", models.CharField(db_index=True, default=payments.models.generate_reference, max_length=64, unique=True)),
                ("payment_method", models.CharField(choices=[("telebirr", "Telebirr"), ("chapa", "Chapa")], max_length=16)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("currency", models.CharField(default="ETB", max_length=8)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("completed", "Completed"), ("failed", "Failed")], db_index=True, default="pending", max_length=16)),
                ("external_transaction_id", models.CharField(blank=True, max_length=128, null=True)),
                ("gateway_response", models.JSONField(blank=True, encoder=django.core.serializers.json.DjangoJSONEncoder, null=True)),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("referral_id", models.CharField(blank=True, max_length=64, null=True)),
                ("commission_eligible", models.BooleanField(default=False)),
                ("created", models.DateTimeField(auto_now_add=True)),
                ("updated", models.DateTimeField(auto_now=True)),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="payments", to="orders.order")),
            ],
            options={
                "ordering": ("-created",),
                "indexes": [models.Index(fields=["payment_method", "status", "created"], name="payment_method_status_idx")],
            },
        ),
    ]
