"""
Django admin configuration for core models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Store, Tenant, User


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    """Admin interface for Tenant model."""

    list_display = ["company_name", "email", "plan", "status", "trial_ends_at", "created_at"]
    list_filter = ["status", "plan", "created_at"]
    search_fields = ["company_name", "slug", "email", "id"]
    readonly_fields = ["id", "created_at", "updated_at"]

    fieldsets = (
        ("Basic Information", {"fields": ("id", "company_name", "slug", "email")}),
        ("Plan", {"fields": ("plan", "max_users", "max_stores", "trial_ends_at")}),
        ("Status", {"fields": ("status", "suspended_at")}),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )

    ordering = ["-created_at"]


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ["name", "code", "tenant", "is_headquarters", "is_active"]
    list_filter = ["is_active", "is_headquarters"]
    search_fields = ["name", "code", "tenant__company_name"]
    raw_id_fields = ["tenant", "manager"]


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin interface for the custom User model."""

    list_display = ["username", "email", "tenant", "role", "store", "is_active"]
    list_filter = ["role", "is_active", "is_staff"]
    search_fields = ["username", "email", "first_name", "last_name"]
    raw_id_fields = ["tenant", "store"]

    fieldsets = BaseUserAdmin.fieldsets + (
        ("Tenant Information", {"fields": ("tenant", "role", "store")}),
        ("Employment", {"fields": ("phone", "hourly_rate")}),
    )
