"""
Payroll services: clocking in and out, and generating pay from time entries.
"""

import logging
from datetime import datetime, time
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from .models import PayrollRecord, TimeEntry

logger = logging.getLogger(__name__)

OVERTIME_MULTIPLIER = Decimal("1.5")


def _money(value):
    return Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class TimeClockService:
    @staticmethod
    def open_entry(user):
        return TimeEntry.objects.filter(user=user, clock_out__isnull=True).first()

    @staticmethod
    @transaction.atomic
    def clock_in(user, store=None, notes=""):
        if TimeClockService.open_entry(user):
            raise ValueError("User is already clocked in")

        entry = TimeEntry.objects.create(
            tenant=user.tenant,
            user=user,
            store=store or user.store,
            clock_in=timezone.now(),
            notes=notes,
        )
        logger.info(f"User {user.id} clocked in")
        return entry

    @staticmethod
    @transaction.atomic
    def clock_out(user, break_minutes=None, notes=""):
        entry = TimeClockService.open_entry(user)
        if entry is None:
            raise ValueError("User is not clocked in")

        if break_minutes is not None:
            entry.break_minutes = break_minutes
        if notes:
            entry.notes = notes
        entry.close(timezone.now())
        logger.info(f"User {user.id} clocked out after {entry.total_hours}h")
        return entry


class PayrollService:
    @staticmethod
    def _day_bounds(start_date, end_date):
        start = timezone.make_aware(datetime.combine(start_date, time.min))
        end = timezone.make_aware(datetime.combine(end_date, time.max))
        return start, end

    @staticmethod
    @transaction.atomic
    def generate(
        user,
        period,
        start_date,
        end_date,
        bonus=Decimal("0.00"),
        deductions=Decimal("0.00"),
        tax_rate=Decimal("0"),
    ):
        """
        Build a PENDING payroll record from the user's closed time entries
        between ``start_date`` and ``end_date``.

        Overtime is paid at 1.5 times the hourly rate; taxes are a share of
        gross pay.
        """
        if end_date < start_date:
            raise ValueError("End date must be on or after start date")
        if PayrollRecord.objects.filter(user=user, period=period).exists():
            raise ValueError(f"Payroll for {period} already exists for this user")

        start, end = PayrollService._day_bounds(start_date, end_date)
        totals = TimeEntry.objects.filter(
            user=user, clock_out__isnull=False, clock_in__range=(start, end)
        ).aggregate(total=Sum("total_hours"), overtime=Sum("overtime_hours"))

        total_hours = totals["total"] or Decimal("0.00")
        overtime_hours = totals["overtime"] or Decimal("0.00")
        regular_hours = total_hours - overtime_hours

        hourly_rate = user.hourly_rate or Decimal("0.00")
        regular_pay = _money(regular_hours * hourly_rate)
        overtime_pay = _money(overtime_hours * hourly_rate * OVERTIME_MULTIPLIER)
        gross = regular_pay + overtime_pay + bonus

        record = PayrollRecord.objects.create(
            tenant=user.tenant,
            user=user,
            period=period,
            start_date=start_date,
            end_date=end_date,
            regular_hours=regular_hours,
            overtime_hours=overtime_hours,
            regular_pay=regular_pay,
            overtime_pay=overtime_pay,
            bonus=bonus,
            deductions=deductions,
            taxes=_money(gross * tax_rate),
        )
        logger.info(f"Generated payroll {record.id} for user {user.id} ({period}): {record.net_pay}")
        return record

    @staticmethod
    def change_status(record, new_status, payment_method=""):
        if record.status == PayrollRecord.PAID:
            raise ValueError("Payroll record is already paid")
        record.status = new_status
        if new_status == PayrollRecord.PAID:
            record.payment_date = timezone.now()
            if payment_method:
                record.payment_method = payment_method
        record.save()
        logger.info(f"Payroll {record.id} is now {new_status}")
        return record
