"""
Admin configuration for franchise models.
"""

from django.contrib import admin

from .models import Franchise, FranchiseClient, FranchiseUser, RoyaltyPayment


class FranchiseUserInline(admin.TabularInline):
    model = FranchiseUser
    extra = 0
    fields = ["user", "role", "permissions", "is_active"]


@admin.register(Franchise)
class FranchiseAdmin(admin.ModelAdmin):
    list_display = [
        "name",
        "email",
        "status",
        "current_clients",
        "max_clients",
        "outstanding_balance",
        "is_blocked",
    ]
    list_filter = ["status", "is_blocked"]
    search_fields = ["name", "email", "contact_person"]
    readonly_fields = ["current_clients", "outstanding_balance", "total_revenue", "approved_at"]
    inlines = [FranchiseUserInline]


@admin.register(FranchiseClient)
class FranchiseClientAdmin(admin.ModelAdmin):
    list_display = ["client_id", "client_name", "client_email", "franchise", "status", "total_paid"]
    list_filter = ["status", "one_time_fee_paid", "monthly_fee_paid"]
    search_fields = ["client_id", "client_name", "client_email"]


@admin.register(RoyaltyPayment)
class RoyaltyPaymentAdmin(admin.ModelAdmin):
    list_display = ["franchise", "client", "payment_type", "amount", "status", "due_date"]
    list_filter = ["status", "payment_type"]
    date_hierarchy = "due_date"
