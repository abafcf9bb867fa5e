# payments/views.py
import json
import logging
from decimal import Decimal

from django.conf import settings
from django.views.decorators.csrf import csrf_exempt
from django.utils.decorators import method_decorator
from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response
from rest_framework import status

from drf_spectacular.utils import extend_schema, OpenApiResponse

from orders.models import Order
from .models import Payment
from .serializers import ProcessPaymentRequestSerializer, PaymentSerializer
from .chapa import initialize as chapa_initialize
from .telebirr import initialize as telebirr_initialize
from .classify import classify
from .exceptions import PaymentError, PaymentNotFound, SignatureInvalid, UnknownGateway
from .gateway import log_exchange
from .reconcile import reconcile
from .signatures import WebhookSecrets, verify

logger = logging.getLogger(__name__)

AMOUNT_TOLERANCE = Decimal("0.01")

# ---- helpers ----------------------------------------------------------------

def _start_checkout(payment: Payment, order: Order, customer_info: dict) -> dict:
    user = order.user
    phone = customer_info.get("phone") or user.phone_number or None
    name = user.display_name
    if payment.payment_method == Payment.METHOD_TELEBIRR:
        return telebirr_initialize(
            reference=payment.reference, order_id=order.pk, amount=payment.amount,
            currency=payment.currency, phone=phone, name=name,
        )
    return chapa_initialize(
        reference=payment.reference, order_id=order.pk, amount=payment.amount,
        currency=payment.currency, email=customer_info.get("email") or None, phone=phone, name=name,
    )

# ---- endpoints ---------------------------------------------------------------

@extend_schema(
    description="Create a pending payment for one of the caller's pending orders and start a gateway checkout.",
    request=ProcessPaymentRequestSerializer,
    responses={
        200: OpenApiResponse(description="Checkout started"),
        400: OpenApiResponse(description="Validation error or amount mismatch"),
        404: OpenApiResponse(description="Order not found or not pending"),
        500: OpenApiResponse(description="Gateway initialization failed"),
    },
)
class ProcessPaymentView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        ser = ProcessPaymentRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        amount = data["amount"]

        order = (
            Order.objects.select_related("user")
            .filter(pk=data["order_id"], user=request.user, status=Order.STATUS_PENDING)
            .first()
        )
        if order is None:
            return Response(
                {"success": False, "error": "Order not found or not in pending status"},
                status=status.HTTP_404_NOT_FOUND,
            )

        if abs(amount - order.total_amount) > AMOUNT_TOLERANCE:
            return Response(
                {"success": False, "error": "Payment amount does not match order total"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        referral = order.user.referral_source or None
        payment = Payment.objects.create(
            order=order,
            payment_method=data["payment_method"],
            amount=amount,
            currency=data.get("currency") or "ETB",
            status=Payment.STATUS_PENDING,
            referral_id=referral,
            commission_eligible=bool(referral),
        )

        result = _start_checkout(payment, order, data.get("customer_info") or {})

        if not result.get("ok"):
            logger.warning("checkout init failed for %s: %s", payment.reference, result.get("error"))
            payment.status = Payment.STATUS_FAILED
            payment.gateway_response = {"error": result.get("error")}
            payment.save(update_fields=["status", "gateway_response", "updated"])
            return Response(
                {"success": False, "error": result.get("error")},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        payment.external_transaction_id = result.get("transaction_id")
        payment.gateway_response = result.get("gateway_response")
        payment.save(update_fields=["external_transaction_id", "gateway_response", "updated"])

        return Response({
            "success": True,
            "payment_id": payment.reference,
            "checkout_url": result.get("checkout_url"),
            "transaction_id": payment.external_transaction_id,
        }, status=status.HTTP_200_OK)


@extend_schema(
    description="Current state of one of the caller's payments.",
    request=None,
    responses={200: PaymentSerializer, 404: OpenApiResponse(description="Unknown reference")},
)
class PaymentDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, reference: str):
        try:
            payment = Payment.objects.get(reference=reference, order__user=request.user)
        except Payment.DoesNotExist:
            return Response({"detail": "Unknown reference"}, status=status.HTTP_404_NOT_FOUND)
        return Response(PaymentSerializer(payment).data)


@method_decorator(csrf_exempt, name="dispatch")
class PaymentWebhookView(APIView):
    """
    Terminal payment notification from Chapa or Telebirr.
    The HMAC signature is the only authentication.
    """

    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = []

    def finalize_response(self, request, response, *args, **kwargs):
        response = super().finalize_response(request, response, *args, **kwargs)
        for header, value in getattr(settings, "WEBHOOK_CORS_HEADERS", {}).items():
            response[header] = value
        return response

    def options(self, request, *args, **kwargs):
        return Response({"ok": "ok"}, status=status.HTTP_200_OK)

    def post(self, request):
        raw = request.body
        try:
            payload = json.loads(raw)
        except ValueError:
            return Response({"error": "Malformed JSON payload"}, status=status.HTTP_400_BAD_REQUEST)
        if not isinstance(payload, dict):
            return Response({"error": "Malformed JSON payload"}, status=status.HTTP_400_BAD_REQUEST)

        event = classify(payload)
        logger.info("payment webhook received: gateway=%s reference=%s", event.gateway, event.reference)

        try:
            self._authenticate(request, event, raw)
        except PaymentError as e:
            return Response({"error": e.message}, status=e.status_code)

        response = self._reconcile(event)
        log_exchange(
            event.gateway, event.reference, "webhook",
            {"user_agent": request.headers.get("User-Agent", "")}, payload, response.status_code,
        )
        return response

    def _authenticate(self, request, event, raw: bytes) -> None:
        if not event.is_known:
            raise UnknownGateway()
        secrets = WebhookSecrets.from_settings()
        # A payload naming both gateways must carry both signatures.
        for gateway in event.signers:
            if not verify(gateway, request.headers, event.payload, secrets=secrets, raw_body=raw):
                logger.warning("rejected %s webhook for %s: bad signature", gateway, event.reference)
                raise SignatureInvalid(f"Invalid {gateway.capitalize()} signature")

    def _reconcile(self, event) -> Response:
        try:
            result = reconcile(event.reference, event.outcome, event.payload)
        except PaymentNotFound as e:
            logger.error("payment not found: %s", event.reference)
            return Response({"error": e.message}, status=e.status_code)
        except Exception as e:
            logger.exception("error processing payment webhook for %s", event.reference)
            return Response(
                {"error": "Internal server error", "message": str(e)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        return Response({
            "success": True,
            "message": "Webhook processed successfully" if result.applied else "Webhook already processed",
            "payment_status": result.payment_status,
            "order_status": result.order_status,
        }, status=status.HTTP_200_OK)
