"""
Admin configuration for payroll models.
"""

from django.contrib import admin

from .models import PayrollRecord, TimeEntry


@admin.register(TimeEntry)
class TimeEntryAdmin(admin.ModelAdmin):
    list_display = ["user", "store", "clock_in", "clock_out", "total_hours", "overtime_hours"]
    list_filter = ["store"]
    search_fields = ["user__username"]


@admin.register(PayrollRecord)
class PayrollRecordAdmin(admin.ModelAdmin):
    list_display = ["user", "period", "regular_pay", "overtime_pay", "net_pay", "status"]
    list_filter = ["status", "period"]
    search_fields = ["user__username", "period"]
    readonly_fields = ["net_pay", "created_at", "updated_at"]
