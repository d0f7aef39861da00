from rest_framework import serializers
from .models import Invoice


class InvoiceSerializer(serializers.ModelSerializer):
    job_id = serializers.IntegerField(source='job.id', read_only=True)
    customer = serializers.CharField(source='job.customer.get_full_name', read_only=True)
    professional = serializers.SerializerMethodField()
    payment_method = serializers.CharField(source='job.payment_method', read_only=True)
    company_fee = serializers.DecimalField(source='job.company_fee', max_digits=10, decimal_places=2, read_only=True)
    provider_earnings = serializers.DecimalField(source='job.provider_earnings', max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = Invoice
        fields = [
            'number', 'job_id', 'date', 'customer', 'professional', 'payment_method',
            'items', 'subtotal', 'tax_rate', 'tax', 'total', 'status',
            'company_fee', 'provider_earnings',
        ]
        read_only_fields = fields

    def get_professional(self, obj):
        professional = obj.job.professional
        if professional is None:
            return None
        return professional.user.get_full_name() or professional.user.username
