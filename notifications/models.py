from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class Notification(models.Model):
    TYPE_CHOICES = [
        ("payment", "Payment"),
        ("order", "Order"),
        ("system", "System"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications")
    title = models.CharField(max_length=200)
    message = models.TextField(blank=True)
    type = models.CharField(max_length=16, choices=TYPE_CHOICES, default="system")
    data = models.JSONField(blank=True, default=dict, encoder=DjangoJSONEncoder)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at",)
        indexes = [models.Index(fields=["user", "created_at"], name="notification_user_created_idx")]

    def __str__(self):
        return f"{self.user_id} [{self.type}] {self.title}"
