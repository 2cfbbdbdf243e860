"""
Payroll models: employee time tracking and pay records.
"""

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from apps.core.models import Store, Tenant, User

# Hours in a regular shift before overtime starts
REGULAR_SHIFT_HOURS = Decimal("8")


class TimeEntry(models.Model):
    """
    One clock-in/clock-out shift. ``clock_out`` is empty while the user is
    on the clock.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="time_entries")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="time_entries")
    store = models.ForeignKey(
        Store, on_delete=models.SET_NULL, null=True, blank=True, related_name="time_entries"
    )

    clock_in = models.DateTimeField()
    clock_out = models.DateTimeField(null=True, blank=True)
    break_minutes = models.IntegerField(default=0, validators=[MinValueValidator(0)])
    total_hours = models.DecimalField(
        max_digits=6, decimal_places=2, default=Decimal("0.00"), help_text="Worked hours"
    )
    overtime_hours = models.DecimalField(
        max_digits=6, decimal_places=2, default=Decimal("0.00"), help_text="Hours past a regular shift"
    )
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "payroll_time_entries"
        ordering = ["-clock_in"]
        verbose_name_plural = "Time entries"
        indexes = [
            models.Index(fields=["tenant", "user", "clock_in"], name="time_entry_user_idx"),
        ]

    def __str__(self):
        return f"{self.user.username} {self.clock_in:%Y-%m-%d %H:%M}"

    def close(self, clock_out):
        """Clock out and compute worked and overtime hours."""
        if clock_out < self.clock_in:
            raise ValueError("Clock out cannot be before clock in")

        worked_seconds = (clock_out - self.clock_in).total_seconds() - self.break_minutes * 60
        total = (Decimal(max(worked_seconds, 0)) / Decimal(3600)).quantize(Decimal("0.01"))

        self.clock_out = clock_out
        self.total_hours = total
        self.overtime_hours = max(total - REGULAR_SHIFT_HOURS, Decimal("0.00"))
        self.save()


class PayrollRecord(models.Model):
    """
    Pay for one user over a period.

    ``net_pay`` is always derived from the pay components on save.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    PAID = "PAID"

    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (APPROVED, "Approved"),
        (PAID, "Paid"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="payroll_records")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="payroll_records")

    period = models.CharField(max_length=50, help_text="Pay period label, e.g. 2026-10")
    start_date = models.DateField()
    end_date = models.DateField()

    regular_hours = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("0.00"))
    overtime_hours = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("0.00"))
    regular_pay = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    overtime_pay = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    bonus = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    deductions = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    taxes = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    net_pay = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING)
    payment_date = models.DateTimeField(null=True, blank=True)
    payment_method = models.CharField(max_length=50, blank=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "payroll_records"
        ordering = ["-start_date", "-created_at"]
        indexes = [
            models.Index(fields=["tenant", "user", "period"], name="payroll_user_period_idx"),
        ]

    def __str__(self):
        return f"{self.user.username} {self.period}: {self.net_pay}"

    def save(self, *args, **kwargs):
        """Recompute net pay from the pay components."""
        self.net_pay = (
            Decimal(self.regular_pay)
            + Decimal(self.overtime_pay)
            + Decimal(self.bonus)
            - Decimal(self.deductions)
            - Decimal(self.taxes)
        )
        super().save(*args, **kwargs)
