"""
Admin configuration for procurement models.
"""

from django.contrib import admin
from django.utils.html import format_html

from .models import PurchaseOrder, PurchaseOrderItem, Supplier, SupplierLedger


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    """Admin interface for Supplier model."""

    list_display = [
        "name",
        "contact_person",
        "email",
        "phone",
        "rating_display",
        "balance",
        "is_active",
    ]
    list_filter = ["is_active", "rating", "created_at"]
    search_fields = ["name", "contact_person", "email", "phone"]
    readonly_fields = ["balance", "created_at", "updated_at"]

    fieldsets = (
        ("Basic Information", {"fields": ("tenant", "name", "contact_person", "is_active")}),
        ("Contact Information", {"fields": ("email", "phone", "address")}),
        ("Business Information", {"fields": ("tax_id", "payment_terms", "rating", "balance")}),
        ("Notes", {"fields": ("notes",)}),
        (
            "Audit Information",
            {"fields": ("created_by", "created_at", "updated_at"), "classes": ("collapse",)},
        ),
    )

    def rating_display(self, obj):
        """Display rating as stars."""
        stars = "★" * obj.rating + "☆" * (5 - obj.rating)
        return format_html('<span title="{}/5">{}</span>', obj.rating, stars)

    rating_display.short_description = "Rating"


@admin.register(SupplierLedger)
class SupplierLedgerAdmin(admin.ModelAdmin):
    list_display = ["supplier", "entry_type", "amount", "balance", "reference_id", "date"]
    list_filter = ["entry_type"]
    search_fields = ["supplier__name", "reference_id"]


class PurchaseOrderItemInline(admin.TabularInline):
    """Inline admin for PurchaseOrderItem."""

    model = PurchaseOrderItem
    extra = 0
    fields = ["product", "quantity", "received_quantity", "unit_price", "total_price"]
    readonly_fields = ["total_price"]
    raw_id_fields = ["product"]


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    """Admin interface for PurchaseOrder model."""

    list_display = [
        "po_number",
        "supplier",
        "store",
        "status",
        "total_amount",
        "expected_date",
        "created_at",
    ]
    list_filter = ["status", "created_at"]
    search_fields = ["po_number", "supplier__name"]
    readonly_fields = ["status", "subtotal", "tax_amount", "total_amount", "created_at", "updated_at"]
    raw_id_fields = ["tenant", "supplier", "store", "created_by"]
    inlines = [PurchaseOrderItemInline]
