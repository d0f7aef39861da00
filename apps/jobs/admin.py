from django.contrib import admin
from .models import Job, JobStatusHistory


class JobStatusHistoryInline(admin.TabularInline):
    model = JobStatusHistory
    extra = 0
    can_delete = False
    readonly_fields = ('from_status', 'status', 'changed_at', 'changed_by', 'changed_by_role', 'notes')

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Job)
class JobAdmin(admin.ModelAdmin):
    list_display = ('id', 'category', 'customer', 'professional', 'status', 'payment_method', 'final_price', 'scheduled_date')
    list_filter = ('status', 'payment_method', 'category')
    search_fields = ('title', 'customer__username', 'professional__user__username')
    # status, price and commission only change through the lifecycle services
    readonly_fields = (
        'status', 'final_price', 'commission_rate', 'company_fee', 'provider_earnings',
        'completed_at', 'cancelled_at', 'version', 'created_at', 'updated_at',
    )
    inlines = [JobStatusHistoryInline]
