from django.urls import path
from .views import (
    JobListCreateView, JobDetailView, JobStatusHistoryView, JobAcceptView,
    JobStartView, JobCompleteView, JobCancelView,
)

urlpatterns = [
    path('', JobListCreateView.as_view(), name='job_list_create'),
    path('<int:pk>/', JobDetailView.as_view(), name='job_detail'),
    path('<int:pk>/history/', JobStatusHistoryView.as_view(), name='job_status_history'),
    path('<int:pk>/accept/', JobAcceptView.as_view(), name='job_accept'),
    path('<int:pk>/start/', JobStartView.as_view(), name='job_start'),
    path('<int:pk>/complete/', JobCompleteView.as_view(), name='job_complete'),
    path('<int:pk>/cancel/', JobCancelView.as_view(), name='job_cancel'),
]
