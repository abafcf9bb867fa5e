# payments/serializers.py
from decimal import Decimal
from rest_framework import serializers
from .models import Payment

class CustomerInfoSerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    name = serializers.CharField(max_length=150, required=False, allow_blank=True)

class ProcessPaymentRequestSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    payment_method = serializers.ChoiceField(choices=Payment.METHODS)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField(max_length=8, required=False, default="ETB")
    customer_info = CustomerInfoSerializer(required=False)

    def validate_amount(self, v: Decimal):
        if v <= 0:
            raise serializers.ValidationError("Amount must be greater than zero.")
        return v

class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = [
            "id", "reference", "order", "payment_method", "amount", "currency", "status",
            "external_transaction_id", "processed_at", "created", "updated",
        ]
        read_only_fields = fields
