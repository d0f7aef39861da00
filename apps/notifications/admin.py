from django.contrib import admin
from .models import Notification

@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('recipient', 'type', 'title', 'job', 'is_read', 'email_sent', 'sms_sent', 'created_at')
    list_filter = ('type', 'is_read', 'email_sent', 'sms_sent')
    search_fields = ('recipient__username', 'title', 'message')
    readonly_fields = ('created_at',)
