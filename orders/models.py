# orders/models.py
from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models


class MealPlan(models.Model):
    """A customer's scheduled meals for a subscription period."""

    STATUS_DRAFT = "draft"
    STATUS_PENDING = "pending"
    STATUS_CONFIRMED = "confirmed"
    STATUS_CANCELLED = "cancelled"

    STATUS = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_PENDING, "Pending"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="meal_plans")
    status = models.CharField(max_length=16, choices=STATUS, default=STATUS_PENDING)
    start_date = models.DateField(blank=True, null=True)
    end_date = models.DateField(blank=True, null=True)

    created = models.DateTimeField(auto_now_add=True)
    updated = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created",)

    def __str__(self) -> str:
        return f"MealPlan<{self.pk}> user={self.user_id} {self.status}"


class Order(models.Model):
    STATUS_PENDING = "pending"
    STATUS_PAID = "paid"
    STATUS_CANCELLED = "cancelled"

    STATUS = [
        (STATUS_PENDING, "Pending"),
        (STATUS_PAID, "Paid"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    PAYMENT_STATUS = [
        ("pending", "Pending"),
        ("paid", "Paid"),
        ("failed", "Failed"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="orders")
    status = models.CharField(max_length=16, choices=STATUS, default=STATUS_PENDING, db_index=True)
    payment_status = models.CharField(max_length=16, choices=PAYMENT_STATUS, default="pending")
    meal_plan = models.ForeignKey(
        MealPlan, on_delete=models.SET_NULL, blank=True, null=True, related_name="orders",
    )
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    created = models.DateTimeField(auto_now_add=True)
    updated = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created",)
        indexes = [
            models.Index(fields=["user", "status"], name="order_user_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Order<{self.pk}> user={self.user_id} {self.status} {self.total_amount}"

    def mark_paid(self):
        self.status = self.STATUS_PAID
        self.payment_status = "paid"
        self.save(update_fields=["status", "payment_status", "updated"])
