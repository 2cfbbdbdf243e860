"""
Report scheduling and generation.

``ReportGenerator`` aggregates a tenant's data for a reporting period;
``ReportScheduleService`` runs schedules and keeps ``next_run_at`` moving.
"""

import csv
import io
import logging
from datetime import timezone as dt_timezone
from decimal import Decimal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.db.models import Count, DecimalField, F, Q, Sum
from django.utils import timezone

from dateutil.relativedelta import relativedelta

from apps.accounting.models import Expense
from apps.crm.models import Customer
from apps.inventory.models import Inventory
from apps.procurement.models import PurchaseOrder
from apps.sales.models import Sale

from .models import ReportRun, ReportSchedule

logger = logging.getLogger(__name__)

NEXT_RUN_OFFSETS = {
    ReportSchedule.DAILY: relativedelta(days=1),
    ReportSchedule.WEEKLY: relativedelta(days=7),
    ReportSchedule.MONTHLY: relativedelta(months=1, day=1),
    ReportSchedule.QUARTERLY: relativedelta(months=3, day=1),
    ReportSchedule.YEARLY: relativedelta(years=1, month=1, day=1),
}

REPORT_PERIODS = {
    ReportSchedule.DAILY: relativedelta(days=1),
    ReportSchedule.WEEKLY: relativedelta(weeks=1),
    ReportSchedule.MONTHLY: relativedelta(months=1),
    ReportSchedule.QUARTERLY: relativedelta(months=3),
    ReportSchedule.YEARLY: relativedelta(years=1),
}

MONEY = DecimalField(max_digits=14, decimal_places=2)


class ReportGenerationError(Exception):
    """A report run failed. The failed run is kept on ``run``."""

    def __init__(self, message, run):
        super().__init__(message)
        self.run = run


def get_zone(name):
    """Resolve a time zone name, falling back to UTC for unknown names."""
    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown time zone {name!r}, using UTC")
        return ZoneInfo("UTC")


def calculate_next_run(frequency, tz="UTC", now=None):
    """
    Next run time for ``frequency``: local midnight in ``tz``, returned in UTC.

    DAILY is tomorrow, WEEKLY a week from today, MONTHLY and QUARTERLY the
    first of the month one or three months ahead, YEARLY 1 January of next
    year. Unknown frequencies run daily.
    """
    now = now or timezone.now()
    local_now = now.astimezone(get_zone(tz))
    midnight = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    offset = NEXT_RUN_OFFSETS.get(frequency, NEXT_RUN_OFFSETS[ReportSchedule.DAILY])
    return (midnight + offset).astimezone(dt_timezone.utc)


def money(value):
    return str(Decimal(value or 0).quantize(Decimal("0.01")))


def render_csv(result):
    """Flatten a report's summary and breakdown into ``metric,value`` CSV rows."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=["metric", "value"])
    writer.writeheader()

    for metric, value in result["summary"].items():
        writer.writerow({"metric": metric, "value": value})

    for row in result["rows"]:
        label = row["label"]
        for key, value in row.items():
            if key != "label":
                writer.writerow({"metric": f"{label}.{key}", "value": value})

    return buffer.getvalue()


class ReportGenerator:
    """Build report payloads for one tenant over ``[start, end]``."""

    def __init__(self, tenant, start, end):
        self.tenant = tenant
        self.start = start
        self.end = end

    @classmethod
    def for_frequency(cls, tenant, frequency, now=None):
        """Generator covering the last day, week, month, quarter or year."""
        end = now or timezone.now()
        period = REPORT_PERIODS.get(frequency, REPORT_PERIODS[ReportSchedule.DAILY])
        return cls(tenant, end - period, end)

    def generate(self, report_type):
        builders = {
            ReportSchedule.SALES: self.sales_report,
            ReportSchedule.INVENTORY: self.inventory_report,
            ReportSchedule.CUSTOMERS: self.customers_report,
            ReportSchedule.PURCHASES: self.purchases_report,
            ReportSchedule.EXPENSES: self.expenses_report,
        }
        builder = builders.get(report_type)
        if builder is None:
            raise ValueError(f"Unknown report type: {report_type}")

        summary, rows = builder()
        return {
            "report_type": report_type,
            "generated_at": timezone.now().isoformat(),
            "period": {"start": self.start.isoformat(), "end": self.end.isoformat()},
            "summary": summary,
            "rows": rows,
        }

    def sales_report(self):
        sales = Sale.objects.filter(
            tenant=self.tenant, created_at__gte=self.start, created_at__lte=self.end
        ).exclude(status=Sale.CANCELLED)

        totals = sales.aggregate(
            count=Count("id"),
            revenue=Sum("total_amount"),
            tax=Sum("tax_amount"),
            discounts=Sum("discount"),
        )
        by_method = (
            sales.order_by()
            .values("payment_method")
            .annotate(count=Count("id"), total=Sum("total_amount"))
            .order_by("payment_method")
        )

        summary = {
            "sale_count": totals["count"],
            "revenue": money(totals["revenue"]),
            "tax": money(totals["tax"]),
            "discounts": money(totals["discounts"]),
        }
        rows = [
            {"label": row["payment_method"], "count": row["count"], "total": money(row["total"])}
            for row in by_method
        ]
        return summary, rows

    def inventory_report(self):
        """Stock on hand now; the period does not apply."""
        stock = Inventory.objects.filter(tenant=self.tenant)

        totals = stock.aggregate(
            rows=Count("id"),
            units=Sum("quantity"),
            value=Sum(F("quantity") * F("cost_price"), output_field=MONEY),
            low_stock=Count("id", filter=Q(quantity__lte=F("min_stock"))),
        )
        by_store = (
            stock.order_by()
            .values("store__name")
            .annotate(
                units=Sum("quantity"),
                value=Sum(F("quantity") * F("cost_price"), output_field=MONEY),
            )
            .order_by("store__name")
        )

        summary = {
            "inventory_rows": totals["rows"],
            "total_units": totals["units"] or 0,
            "stock_value": money(totals["value"]),
            "low_stock_count": totals["low_stock"],
        }
        rows = [
            {
                "label": row["store__name"] or "Unassigned",
                "units": row["units"] or 0,
                "value": money(row["value"]),
            }
            for row in by_store
        ]
        return summary, rows

    def customers_report(self):
        customers = Customer.objects.filter(tenant=self.tenant)

        totals = customers.aggregate(
            count=Count("id"),
            new=Count("id", filter=Q(created_at__gte=self.start, created_at__lte=self.end)),
            due=Sum("due_balance"),
        )
        by_tier = (
            customers.order_by()
            .values("loyalty_tier")
            .annotate(count=Count("id"))
            .order_by("loyalty_tier")
        )

        summary = {
            "customer_count": totals["count"],
            "new_customers": totals["new"],
            "total_due": money(totals["due"]),
        }
        rows = [{"label": row["loyalty_tier"], "count": row["count"]} for row in by_tier]
        return summary, rows

    def purchases_report(self):
        orders = PurchaseOrder.objects.filter(
            tenant=self.tenant, created_at__gte=self.start, created_at__lte=self.end
        )

        by_status = (
            orders.order_by()
            .values("status")
            .annotate(count=Count("id"), total=Sum("total_amount"))
            .order_by("status")
        )
        total_value = orders.exclude(status=PurchaseOrder.CANCELLED).aggregate(
            total=Sum("total_amount")
        )["total"]

        summary = {
            "order_count": orders.count(),
            "total_value": money(total_value),
        }
        rows = [
            {"label": row["status"], "count": row["count"], "total": money(row["total"])}
            for row in by_status
        ]
        return summary, rows

    def expenses_report(self):
        expenses = Expense.objects.filter(
            tenant=self.tenant,
            date__gte=timezone.localdate(self.start),
            date__lte=timezone.localdate(self.end),
        ).exclude(status=Expense.REJECTED)

        by_category = (
            expenses.order_by()
            .values("category__name")
            .annotate(count=Count("id"), total=Sum("amount"))
            .order_by("category__name")
        )

        summary = {
            "expense_count": expenses.count(),
            "total": money(expenses.aggregate(total=Sum("amount"))["total"]),
        }
        rows = [
            {
                "label": row["category__name"] or "Uncategorized",
                "count": row["count"],
                "total": money(row["total"]),
            }
            for row in by_category
        ]
        return summary, rows


class ReportScheduleService:
    @staticmethod
    def run(schedule, advance=True, now=None):
        """
        Generate ``schedule`` once and record it as a ``ReportRun``.

        A failed generation is stored on the run and raised as
        ``ReportGenerationError``. With ``advance`` the schedule's
        ``next_run_at`` moves on either way so a broken report is not picked
        up again on every beat.
        """
        now = now or timezone.now()
        run = ReportRun.objects.create(schedule=schedule)
        run.mark_running()

        try:
            generator = ReportGenerator.for_frequency(schedule.tenant, schedule.frequency, now=now)
            result = generator.generate(schedule.report_type)
            output = render_csv(result) if schedule.format == ReportSchedule.CSV else ""
        except Exception as e:
            logger.error(f"Report schedule {schedule.name} ({schedule.id}) failed: {e}")
            run.mark_failed(str(e))
            if advance:
                schedule.next_run_at = calculate_next_run(schedule.frequency, schedule.timezone, now)
                schedule.save(update_fields=["next_run_at"])
            raise ReportGenerationError(str(e), run=run) from e

        run.mark_completed(result, output=output, row_count=len(result["rows"]))

        update_fields = ["last_run_at"]
        schedule.last_run_at = now
        if advance:
            schedule.next_run_at = calculate_next_run(schedule.frequency, schedule.timezone, now)
            update_fields.append("next_run_at")
        schedule.save(update_fields=update_fields)

        logger.info(f"Report schedule {schedule.name} completed with {run.row_count} rows")
        return run
