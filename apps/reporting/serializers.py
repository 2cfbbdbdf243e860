"""
Serializers for report schedules and runs.
"""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from rest_framework import serializers

from .models import ReportRun, ReportSchedule

RECENT_RUN_LIMIT = 5


class ReportRunSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReportRun
        fields = [
            "id",
            "schedule",
            "status",
            "started_at",
            "completed_at",
            "result",
            "output",
            "error_message",
            "row_count",
            "created_at",
        ]
        read_only_fields = fields


class ReportScheduleSerializer(serializers.ModelSerializer):
    """
    Report schedule with its runs.

    Nested ``runs`` holds the latest few runs unless the view passes
    ``all_runs`` in the context.
    """

    recipients = serializers.ListField(child=serializers.EmailField(), required=False)
    config = serializers.DictField(required=False)
    runs = serializers.SerializerMethodField()

    class Meta:
        model = ReportSchedule
        fields = [
            "id",
            "name",
            "description",
            "report_type",
            "frequency",
            "format",
            "config",
            "recipients",
            "timezone",
            "is_active",
            "next_run_at",
            "last_run_at",
            "created_at",
            "updated_at",
            "runs",
        ]
        read_only_fields = ["id", "next_run_at", "last_run_at", "created_at", "updated_at"]
        extra_kwargs = {"format": {"required": True}}

    def validate_timezone(self, value):
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise serializers.ValidationError(f"Unknown time zone: {value}")
        return value

    def get_runs(self, obj):
        runs = obj.runs.order_by("-created_at")
        if not self.context.get("all_runs"):
            runs = runs[:RECENT_RUN_LIMIT]
        return ReportRunSerializer(runs, many=True).data
