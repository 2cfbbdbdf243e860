"""
Reporting models: scheduled reports and their runs.
"""

import uuid

from django.contrib.auth import get_user_model
from django.db import models
from django.utils import timezone

from apps.core.models import Tenant

User = get_user_model()


class ReportSchedule(models.Model):
    """
    A report that is generated periodically for a tenant.

    ``next_run_at`` is kept in UTC but falls on local midnight in the
    schedule's ``timezone``.
    """

    SALES = "SALES"
    INVENTORY = "INVENTORY"
    CUSTOMERS = "CUSTOMERS"
    PURCHASES = "PURCHASES"
    EXPENSES = "EXPENSES"

    REPORT_TYPE_CHOICES = [
        (SALES, "Sales"),
        (INVENTORY, "Inventory"),
        (CUSTOMERS, "Customers"),
        (PURCHASES, "Purchases"),
        (EXPENSES, "Expenses"),
    ]

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"

    FREQUENCY_CHOICES = [
        (DAILY, "Daily"),
        (WEEKLY, "Weekly"),
        (MONTHLY, "Monthly"),
        (QUARTERLY, "Quarterly"),
        (YEARLY, "Yearly"),
    ]

    JSON = "JSON"
    CSV = "CSV"

    FORMAT_CHOICES = [
        (JSON, "JSON"),
        (CSV, "CSV"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="report_schedules")
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    report_type = models.CharField(max_length=20, choices=REPORT_TYPE_CHOICES)
    frequency = models.CharField(max_length=20, choices=FREQUENCY_CHOICES)
    format = models.CharField(max_length=10, choices=FORMAT_CHOICES, default=JSON)
    config = models.JSONField(default=dict, blank=True, help_text="Report options")
    recipients = models.JSONField(default=list, blank=True, help_text="Email addresses")
    timezone = models.CharField(max_length=50, default="UTC")
    is_active = models.BooleanField(default=True)

    next_run_at = models.DateTimeField(null=True, blank=True)
    last_run_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_report_schedules",
    )

    class Meta:
        db_table = "reporting_schedules"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["is_active", "next_run_at"], name="report_sched_due_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.frequency})"


class ReportRun(models.Model):
    """One generation of a scheduled report."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (RUNNING, "Running"),
        (COMPLETED, "Completed"),
        (FAILED, "Failed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    schedule = models.ForeignKey(ReportSchedule, on_delete=models.CASCADE, related_name="runs")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING)

    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    result = models.JSONField(default=dict, blank=True)
    output = models.TextField(blank=True, help_text="Rendered CSV body")
    error_message = models.TextField(blank=True)
    row_count = models.IntegerField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "reporting_runs"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.schedule.name} - {self.status}"

    def mark_running(self):
        self.status = self.RUNNING
        self.started_at = timezone.now()
        self.save(update_fields=["status", "started_at"])

    def mark_completed(self, result, output="", row_count=None):
        """Mark run as completed."""
        self.status = self.COMPLETED
        self.completed_at = timezone.now()
        self.result = result
        self.output = output
        self.row_count = row_count
        self.save(update_fields=["status", "completed_at", "result", "output", "row_count"])

    def mark_failed(self, error_message):
        """Mark run as failed."""
        self.status = self.FAILED
        self.completed_at = timezone.now()
        self.error_message = error_message
        self.save(update_fields=["status", "completed_at", "error_message"])
