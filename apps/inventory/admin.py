"""
Admin configuration for inventory models.
"""

from django.contrib import admin

from .models import (
    Category,
    Inventory,
    InventoryAlert,
    Product,
    StockMovement,
    StockTransfer,
    StockTransferItem,
)


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    """Admin interface for Category."""

    list_display = ["name", "parent", "tenant", "is_active", "created_at"]
    list_filter = ["is_active", "created_at"]
    search_fields = ["name", "description"]
    readonly_fields = ["created_at", "updated_at"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("tenant", "name", "parent", "description", "is_active"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ["name", "sku", "barcode", "category", "price", "tenant", "is_active"]
    list_filter = ["is_active", "created_at"]
    search_fields = ["name", "sku", "barcode"]
    raw_id_fields = ["tenant", "category"]


@admin.register(Inventory)
class InventoryAdmin(admin.ModelAdmin):
    list_display = ["product", "store", "quantity", "min_stock", "max_stock", "expiry_date"]
    search_fields = ["product__name", "product__sku"]
    raw_id_fields = ["tenant", "product", "store"]


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ["product", "movement_type", "quantity", "reason", "store", "created_at"]
    list_filter = ["movement_type", "reason"]
    search_fields = ["product__name", "reference_id"]
    readonly_fields = ["created_at"]


@admin.register(InventoryAlert)
class InventoryAlertAdmin(admin.ModelAdmin):
    list_display = ["product", "alert_type", "severity", "is_resolved", "created_at"]
    list_filter = ["alert_type", "severity", "is_resolved"]


class StockTransferItemInline(admin.TabularInline):
    """Inline admin for transfer items."""

    model = StockTransferItem
    extra = 0
    raw_id_fields = ["product"]


@admin.register(StockTransfer)
class StockTransferAdmin(admin.ModelAdmin):
    """Admin interface for StockTransfer."""

    list_display = ["transfer_number", "from_store", "to_store", "status", "transfer_date"]
    list_filter = ["status", "transfer_date"]
    search_fields = ["transfer_number", "notes"]
    readonly_fields = ["transfer_date", "completed_at"]
    inlines = [StockTransferItemInline]
