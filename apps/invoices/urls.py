from django.urls import path
from .views import JobInvoiceView

urlpatterns = [
    path('jobs/<int:job_id>/', JobInvoiceView.as_view(), name='job_invoice'),
]
