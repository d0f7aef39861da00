from rest_framework import serializers
from apps.users.models import Professional
from apps.users.serializers import PublicProfessionalSerializer
from core.constants import PAYMENT_METHOD_CHOICES, SERVICE_CATEGORY_CHOICES
from .models import Job, JobStatusHistory


class JobCreateSerializer(serializers.Serializer):
    category = serializers.ChoiceField(choices=SERVICE_CATEGORY_CHOICES)
    title = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    description = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')
    scheduled_date = serializers.DateField()
    scheduled_time = serializers.CharField(max_length=20)
    budget_min = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True)
    budget_max = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True)
    payment_method = serializers.ChoiceField(choices=PAYMENT_METHOD_CHOICES)
    professional = serializers.PrimaryKeyRelatedField(
        queryset=Professional.objects.all(), required=False, allow_null=True
    )

    def validate(self, data):
        budget_min, budget_max = data.get('budget_min'), data.get('budget_max')
        if budget_min is not None and budget_max is not None and budget_min > budget_max:
            raise serializers.ValidationError({'budget_min': "budget_min cannot exceed budget_max"})
        return data


class JobStatusHistorySerializer(serializers.ModelSerializer):
    changed_by = serializers.CharField(source='changed_by.username', read_only=True)

    class Meta:
        model = JobStatusHistory
        fields = ['from_status', 'status', 'changed_at', 'changed_by', 'changed_by_role', 'notes']
        read_only_fields = fields


class JobSerializer(serializers.ModelSerializer):
    customer = serializers.CharField(source='customer.username', read_only=True)
    professional = PublicProfessionalSerializer(read_only=True)
    commission = serializers.SerializerMethodField()
    payment_status = serializers.SerializerMethodField()

    class Meta:
        model = Job
        fields = [
            'id', 'customer', 'professional', 'category', 'title', 'description',
            'scheduled_date', 'scheduled_time', 'budget_min', 'budget_max',
            'status', 'payment_method', 'payment_status', 'final_price', 'commission',
            'completed_at', 'cancelled_at', 'version', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_commission(self, obj):
        commission = obj.commission
        if commission is None:
            return None
        return {name: str(value) for name, value in commission.items()}

    def get_payment_status(self, obj):
        payment = getattr(obj, 'payment', None)
        return payment.status if payment is not None else None


class JobDetailSerializer(JobSerializer):
    status_history = JobStatusHistorySerializer(many=True, read_only=True)

    class Meta(JobSerializer.Meta):
        fields = JobSerializer.Meta.fields + ['status_history']
        read_only_fields = fields
