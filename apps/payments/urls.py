from django.urls import path
from .views import (
    PaymentStatusView, OnlineOrderView, VerifyOnlinePaymentView, ConfirmManualPaymentView,
    GatewayWebhookView, MarkCashReceivedView, ConfirmCashPaymentView, CashDisputeView,
    ResolveDisputeView, ReceiptUploadView,
)

urlpatterns = [
    path('jobs/<int:job_id>/', PaymentStatusView.as_view(), name='payment_status'),
    path('jobs/<int:job_id>/online/order/', OnlineOrderView.as_view(), name='online_order'),
    path('jobs/<int:job_id>/online/verify/', VerifyOnlinePaymentView.as_view(), name='online_verify'),
    path('jobs/<int:job_id>/online/manual-confirm/', ConfirmManualPaymentView.as_view(), name='online_manual_confirm'),
    path('jobs/<int:job_id>/cash/mark-received/', MarkCashReceivedView.as_view(), name='cash_mark_received'),
    path('jobs/<int:job_id>/cash/confirm/', ConfirmCashPaymentView.as_view(), name='cash_confirm'),
    path('jobs/<int:job_id>/cash/dispute/', CashDisputeView.as_view(), name='cash_dispute'),
    path('jobs/<int:job_id>/cash/dispute/resolve/', ResolveDisputeView.as_view(), name='cash_dispute_resolve'),
    path('jobs/<int:job_id>/receipts/', ReceiptUploadView.as_view(), name='receipt_upload'),
    path('webhook/', GatewayWebhookView.as_view(), name='gateway_webhook'),
]
