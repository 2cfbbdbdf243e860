"""
Admin configuration for sales models.
"""

from django.contrib import admin

from .models import Payment, ProductReturn, ReturnItem, Sale, SaleItem


class SaleItemInline(admin.TabularInline):
    """Inline admin for sale items."""

    model = SaleItem
    extra = 0
    readonly_fields = ["total_price"]
    raw_id_fields = ["product"]


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    """Admin interface for Sale."""

    list_display = [
        "sale_number",
        "store",
        "customer",
        "total_amount",
        "payment_method",
        "status",
        "source",
        "created_at",
    ]
    list_filter = ["status", "payment_method", "source", "created_at"]
    search_fields = ["sale_number", "customer__name", "customer_name"]
    readonly_fields = ["created_at", "updated_at"]
    raw_id_fields = ["tenant", "store", "customer", "employee"]
    inlines = [SaleItemInline, PaymentInline]


class ReturnItemInline(admin.TabularInline):
    model = ReturnItem
    extra = 0
    readonly_fields = ["total_price"]


@admin.register(ProductReturn)
class ProductReturnAdmin(admin.ModelAdmin):
    list_display = ["return_number", "sale", "refund_amount", "refund_type", "status", "created_at"]
    list_filter = ["refund_type", "status"]
    search_fields = ["return_number", "sale__sale_number"]
    inlines = [ReturnItemInline]
