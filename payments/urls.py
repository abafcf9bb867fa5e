from django.urls import path
from .views import ProcessPaymentView, PaymentDetailView, PaymentWebhookView

urlpatterns = [
    path("process/", ProcessPaymentView.as_view(), name="payments_process"),
    path("webhook/", PaymentWebhookView.as_view(), name="payments_webhook"),
    path("<str:reference>/", PaymentDetailView.as_view(), name="payments_detail"),
]
