from django.contrib import admin
from .models import User, Customer, Professional

@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'email', 'phone_number', 'is_customer', 'is_professional', 'is_superuser', 'is_verified')
    list_filter = ('is_superuser', 'is_verified')
    search_fields = ('username', 'email', 'phone_number')

@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ('user', 'location')
    search_fields = ('user__username', 'user__email')

@admin.register(Professional)
class ProfessionalAdmin(admin.ModelAdmin):
    list_display = ('user', 'location', 'skills', 'created_at')
    search_fields = ('user__username', 'user__email', 'skills')
