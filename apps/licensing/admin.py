"""
Admin configuration for licensing models.
"""

from django.contrib import admin

from .models import License, LicenseActivation


class LicenseActivationInline(admin.TabularInline):
    model = LicenseActivation
    extra = 0
    fields = ["activation_key", "domain", "hardware_id", "ip_address", "is_active", "activated_at"]
    readonly_fields = ["activation_key", "activated_at"]


@admin.register(License)
class LicenseAdmin(admin.ModelAdmin):
    list_display = [
        "license_key",
        "license_type",
        "status",
        "client_name",
        "client_email",
        "activation_count",
        "max_activations",
        "expires_at",
    ]
    list_filter = ["license_type", "status"]
    search_fields = ["license_key", "client_name", "client_email"]
    readonly_fields = ["activation_count", "last_activated_at", "last_verified_at"]
    inlines = [LicenseActivationInline]


@admin.register(LicenseActivation)
class LicenseActivationAdmin(admin.ModelAdmin):
    list_display = ["activation_key", "license", "domain", "is_active", "activated_at"]
    list_filter = ["is_active"]
    search_fields = ["activation_key", "license__license_key", "domain"]
