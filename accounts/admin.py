"""
Accounts Admin - users and contractor profiles.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import ContractorProfile, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['email', 'first_name', 'last_name', 'role', 'stripe_onboarding_complete', 'is_active']
    list_filter = ['role', 'is_active', 'is_staff', 'stripe_onboarding_complete']
    search_fields = ['email', 'first_name', 'last_name', 'phone']
    ordering = ['email']
    readonly_fields = ['uuid', 'date_joined', 'last_login']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Marketplace', {
            'fields': ('uuid', 'role', 'phone', 'stripe_account_id', 'stripe_onboarding_complete'),
        }),
    )


@admin.register(ContractorProfile)
class ContractorProfileAdmin(admin.ModelAdmin):
    list_display = ['business_name', 'user', 'city', 'is_available', 'is_verified', 'rating']
    list_filter = ['is_available', 'is_verified', 'has_license']
    search_fields = ['business_name', 'user__email', 'city', 'zip_code']
    raw_id_fields = ['user']
    readonly_fields = ['created_at', 'updated_at']
