from django.contrib import admin
from .models import Invoice, InvoiceCounter

@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ('number', 'job', 'date', 'subtotal', 'tax', 'total', 'status')
    list_filter = ('status', 'date')
    search_fields = ('number', 'job__title', 'job__customer__username')
    readonly_fields = ('number', 'job', 'date', 'items', 'subtotal', 'tax_rate', 'tax', 'total', 'status', 'created_at', 'updated_at')

@admin.register(InvoiceCounter)
class InvoiceCounterAdmin(admin.ModelAdmin):
    list_display = ('name', 'last_number')
    readonly_fields = ('name', 'last_number')
