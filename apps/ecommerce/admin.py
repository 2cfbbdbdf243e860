"""
Admin configuration for e-commerce models.
"""

from django.contrib import admin

from .models import EcommerceOrder, EcommerceStore


@admin.register(EcommerceStore)
class EcommerceStoreAdmin(admin.ModelAdmin):
    list_display = ["name", "platform", "tenant", "store", "is_active", "last_sync_at"]
    list_filter = ["platform", "is_active"]
    search_fields = ["name", "store_url"]
    exclude = ["api_secret"]


@admin.register(EcommerceOrder)
class EcommerceOrderAdmin(admin.ModelAdmin):
    list_display = [
        "external_order_id",
        "ecommerce_store",
        "customer_name",
        "total",
        "status",
        "sale",
        "created_at",
    ]
    list_filter = ["status", "ecommerce_store__platform"]
    search_fields = ["external_order_id", "order_number", "customer_name", "customer_email"]
    readonly_fields = ["sale"]
