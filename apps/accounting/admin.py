"""
Admin configuration for accounting models.
"""

from django.contrib import admin

from .models import Account, Expense, ExpenseCategory, ExpenseItem


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ["name", "account_type", "store", "balance", "is_active"]
    list_filter = ["account_type", "is_active"]
    search_fields = ["name", "account_number"]


@admin.register(ExpenseCategory)
class ExpenseCategoryAdmin(admin.ModelAdmin):
    list_display = ["name", "tenant", "created_at"]
    search_fields = ["name"]


class ExpenseItemInline(admin.TabularInline):
    """Inline admin for expense items."""

    model = ExpenseItem
    extra = 0


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ["description", "category", "amount", "status", "date", "account"]
    list_filter = ["status", "payment_method", "date"]
    search_fields = ["description", "notes"]
    readonly_fields = ["paid_at", "created_at", "updated_at"]
    inlines = [ExpenseItemInline]
