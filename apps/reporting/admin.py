"""
Admin configuration for reporting models.
"""

from django.contrib import admin

from .models import ReportRun, ReportSchedule


class ReportRunInline(admin.TabularInline):
    model = ReportRun
    extra = 0
    fields = ["status", "started_at", "completed_at", "row_count", "error_message"]
    readonly_fields = fields
    ordering = ["-created_at"]


@admin.register(ReportSchedule)
class ReportScheduleAdmin(admin.ModelAdmin):
    list_display = [
        "name",
        "tenant",
        "report_type",
        "frequency",
        "format",
        "is_active",
        "next_run_at",
        "last_run_at",
    ]
    list_filter = ["report_type", "frequency", "format", "is_active"]
    search_fields = ["name", "description"]
    readonly_fields = ["next_run_at", "last_run_at", "created_at", "updated_at"]
    inlines = [ReportRunInline]


@admin.register(ReportRun)
class ReportRunAdmin(admin.ModelAdmin):
    list_display = ["schedule", "status", "started_at", "completed_at", "row_count"]
    list_filter = ["status"]
    search_fields = ["schedule__name", "error_message"]
    readonly_fields = ["result", "output"]
