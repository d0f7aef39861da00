from django.contrib import admin
from .models import Payment, CashPaymentDetails, GatewayOrder, OnlinePaymentDetails, ReceiptPhoto


class ReceiptPhotoInline(admin.TabularInline):
    model = ReceiptPhoto
    extra = 0
    readonly_fields = ('file', 'uploaded_by', 'uploaded_by_role', 'uploaded_at')


class GatewayOrderInline(admin.TabularInline):
    model = GatewayOrder
    extra = 0
    can_delete = False
    readonly_fields = ('order_id', 'amount', 'created_at')


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('job', 'method', 'status', 'updated_at')
    list_filter = ('method', 'status')
    search_fields = ('job__title', 'job__customer__username')
    readonly_fields = ('job', 'method', 'status', 'version', 'created_at', 'updated_at')
    inlines = [GatewayOrderInline]


@admin.register(CashPaymentDetails)
class CashPaymentDetailsAdmin(admin.ModelAdmin):
    list_display = ('payment', 'amount', 'received_method', 'professional_marked_received', 'customer_confirmed', 'dispute_status')
    list_filter = ('dispute_status', 'customer_confirmed', 'received_method')
    exclude = ('verification_code',)
    inlines = [ReceiptPhotoInline]


@admin.register(OnlinePaymentDetails)
class OnlinePaymentDetailsAdmin(admin.ModelAdmin):
    list_display = ('payment', 'order_id', 'gateway_payment_id', 'verified_at', 'manual_fallback_used')
    list_filter = ('manual_fallback_used',)
    search_fields = ('order_id', 'gateway_payment_id')
    readonly_fields = (
        'order_id', 'order_amount', 'gateway_payment_id', 'signature',
        'verified_at', 'fallback_offered_at', 'manual_confirmed_at',
    )
