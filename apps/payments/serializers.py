from rest_framework import serializers
from core.constants import CASH_RECEIVED_METHOD_CHOICES, PAYMENT_METHOD_CASH
from .models import CashPaymentDetails, OnlinePaymentDetails, Payment, ReceiptPhoto


class ReceiptPhotoSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReceiptPhoto
        fields = ['id', 'file', 'uploaded_by_role', 'uploaded_at']
        read_only_fields = fields


class CashPaymentDetailsSerializer(serializers.ModelSerializer):
    receipt_photos = ReceiptPhotoSerializer(many=True, read_only=True)

    class Meta:
        model = CashPaymentDetails
        # the verification code only ever travels in the customer's notification
        fields = [
            'professional_marked_received', 'professional_received_at', 'received_method',
            'amount', 'customer_confirmed', 'customer_confirmed_at', 'verification_code_matched',
            'tip_amount', 'dispute_reason', 'dispute_raised_at', 'dispute_status',
            'dispute_resolution', 'dispute_resolved_at', 'receipt_photos',
        ]
        read_only_fields = fields


class OnlinePaymentDetailsSerializer(serializers.ModelSerializer):
    class Meta:
        model = OnlinePaymentDetails
        fields = [
            'order_id', 'order_amount', 'gateway_payment_id', 'verified_at',
            'fallback_offered_at', 'manual_fallback_used', 'manual_confirmed_at',
        ]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    job_id = serializers.IntegerField(read_only=True)
    final_price = serializers.DecimalField(source='job.final_price', max_digits=10, decimal_places=2, read_only=True)
    verified = serializers.BooleanField(source='is_verified', read_only=True)
    details = serializers.SerializerMethodField()

    class Meta:
        model = Payment
        fields = ['job_id', 'method', 'status', 'verified', 'final_price', 'details', 'version', 'updated_at']
        read_only_fields = fields

    def get_details(self, obj):
        if obj.method == PAYMENT_METHOD_CASH:
            return CashPaymentDetailsSerializer(obj.cash_details, context=self.context).data
        return OnlinePaymentDetailsSerializer(obj.online_details, context=self.context).data


class OnlineOrderRequestSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)


class VerifyOnlinePaymentSerializer(serializers.Serializer):
    order_id = serializers.CharField(max_length=100)
    payment_id = serializers.CharField(max_length=100)
    signature = serializers.CharField(max_length=128)


class MarkCashReceivedSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    method = serializers.ChoiceField(choices=CASH_RECEIVED_METHOD_CHOICES, default='cash')


class ConfirmCashPaymentSerializer(serializers.Serializer):
    verification_code = serializers.CharField(max_length=6, required=False, allow_blank=True)
    tip_amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True)


class DisputeSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000)


class ResolveDisputeSerializer(serializers.Serializer):
    resolution = serializers.CharField(max_length=1000)


class ReceiptUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
