"""
Admin configuration for CRM models.
"""

from django.contrib import admin

from .models import Customer, CustomerLedger, LoyaltyProgram, LoyaltyTransaction


class LoyaltyTransactionInline(admin.TabularInline):
    model = LoyaltyTransaction
    extra = 0
    readonly_fields = ["transaction_type", "points", "description", "sale", "created_at"]
    can_delete = False


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    """Admin interface for Customer."""

    list_display = [
        "customer_number",
        "name",
        "phone",
        "loyalty_tier",
        "loyalty_points",
        "total_spent",
        "due_balance",
    ]
    list_filter = ["loyalty_tier", "is_active"]
    search_fields = ["customer_number", "name", "email", "phone"]
    readonly_fields = ["customer_number", "created_at", "updated_at"]
    inlines = [LoyaltyTransactionInline]


@admin.register(LoyaltyProgram)
class LoyaltyProgramAdmin(admin.ModelAdmin):
    list_display = ["tenant", "name", "points_per_dollar", "signup_bonus", "is_active"]


@admin.register(CustomerLedger)
class CustomerLedgerAdmin(admin.ModelAdmin):
    list_display = ["customer", "entry_type", "amount", "balance", "date"]
    list_filter = ["entry_type"]
    search_fields = ["customer__name", "reference_id"]
