from rest_framework import serializers

from ..models import BillingState, PaymentRecord


class PaymentInfoSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=False)
    currency = serializers.CharField()
    address = serializers.CharField()
    network = serializers.CharField()
    referenceId = serializers.CharField(source="reference_id")


class PaymentRequiredSerializer(serializers.Serializer):
    """Corps de la réponse 402."""
    error = serializers.CharField(default="Payment Required")
    reason = serializers.CharField()
    paymentInfo = PaymentInfoSerializer(source="payment_info", allow_null=True)


class BillingStateOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = BillingState
        fields = ("user", "tier", "credits", "daily_usage_count", "last_reset_at", "updated_at")
        read_only_fields = fields


class PaymentRecordOutSerializer(serializers.ModelSerializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=False, read_only=True)

    class Meta:
        model = PaymentRecord
        fields = ("id", "tx_hash", "wallet_address", "amount", "status", "created_at")
        read_only_fields = fields


class SimulatePaymentSerializer(serializers.Serializer):
    txHash = serializers.CharField(required=False, allow_blank=True, max_length=128)
    walletAddress = serializers.CharField(required=False, allow_blank=True, max_length=128)


class ResourceRequestSerializer(serializers.Serializer):
    walletAddress = serializers.CharField(required=False, allow_blank=True, max_length=128)


def denial_payload(result) -> dict:
    """AccessResult refusé -> corps 402 sérialisé."""
    return PaymentRequiredSerializer({
        "error": "Payment Required",
        "reason": result.reason,
        "payment_info": result.payment_info,
    }).data
