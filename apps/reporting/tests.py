"""
Tests for report schedules, report generation and the scheduling tasks.
"""

import csv
import io
from datetime import datetime, timedelta
from datetime import timezone as dt_timezone
from decimal import Decimal
from unittest.mock import patch

from django.urls import reverse
from django.utils import timezone

import pytest
from rest_framework import status

from apps.accounting.models import Expense, ExpenseCategory
from apps.inventory.models import Inventory
from apps.procurement.models import PurchaseOrder
from apps.sales.models import Sale

from .models import ReportRun, ReportSchedule
from .services import ReportGenerator, ReportScheduleService, calculate_next_run, render_csv
from .tasks import execute_due_report_schedules, execute_report_schedule

UTC = dt_timezone.utc


@pytest.fixture
def schedule(tenant, tenant_user):
    return ReportSchedule.objects.create(
        tenant=tenant,
        name="Daily takings",
        report_type=ReportSchedule.SALES,
        frequency=ReportSchedule.DAILY,
        format=ReportSchedule.CSV,
        recipients=["owner@cornershop.test"],
        next_run_at=timezone.now() - timedelta(minutes=5),
        created_by=tenant_user,
    )


def make_sale(tenant, store, number, total, method=Sale.CASH, **extra):
    return Sale.objects.create(
        tenant=tenant,
        store=store,
        sale_number=number,
        subtotal=total,
        total_amount=total,
        payment_method=method,
        **extra,
    )


class TestCalculateNextRun:
    now = datetime(2026, 3, 14, 15, 30, tzinfo=UTC)

    @pytest.mark.parametrize(
        "frequency,expected",
        [
            ("DAILY", datetime(2026, 3, 15, tzinfo=UTC)),
            ("WEEKLY", datetime(2026, 3, 21, tzinfo=UTC)),
            ("MONTHLY", datetime(2026, 4, 1, tzinfo=UTC)),
            ("QUARTERLY", datetime(2026, 6, 1, tzinfo=UTC)),
            ("YEARLY", datetime(2027, 1, 1, tzinfo=UTC)),
            ("FORTNIGHTLY", datetime(2026, 3, 15, tzinfo=UTC)),
        ],
    )
    def test_frequencies(self, frequency, expected):
        assert calculate_next_run(frequency, "UTC", self.now) == expected

    def test_midnight_is_local_to_the_schedule(self):
        next_run = calculate_next_run("DAILY", "America/New_York", self.now)

        # Midnight EDT on 15 March is 04:00 UTC.
        assert next_run == datetime(2026, 3, 15, 4, tzinfo=UTC)

    def test_local_date_decides_the_day(self):
        late_evening = datetime(2026, 12, 31, 23, 0, tzinfo=UTC)

        next_run = calculate_next_run("YEARLY", "Asia/Tokyo", late_evening)

        # Already 1 January 2027 in Tokyo, so the next run is 1 January 2028.
        assert next_run == datetime(2027, 12, 31, 15, tzinfo=UTC)

    def test_month_end_rolls_to_first(self):
        assert calculate_next_run("MONTHLY", "UTC", datetime(2026, 1, 31, tzinfo=UTC)) == datetime(
            2026, 2, 1, tzinfo=UTC
        )

    def test_unknown_zone_uses_utc(self):
        assert calculate_next_run("DAILY", "Mars/Olympus", self.now) == datetime(
            2026, 3, 15, tzinfo=UTC
        )


@pytest.mark.django_db
class TestReportGenerator:
    def test_sales_report(self, tenant, store, other_tenant):
        make_sale(tenant, store, "S-1", Decimal("10.00"), tax_amount=Decimal("0.80"))
        make_sale(tenant, store, "S-2", Decimal("5.50"), method=Sale.CARD, discount=Decimal("1.00"))
        make_sale(tenant, store, "S-3", Decimal("99.00"), status=Sale.CANCELLED)
        make_sale(other_tenant, None, "S-1", Decimal("70.00"))

        result = ReportGenerator.for_frequency(tenant, "DAILY").generate("SALES")

        assert result["summary"] == {
            "sale_count": 2,
            "revenue": "15.50",
            "tax": "0.80",
            "discounts": "1.00",
        }
        assert result["rows"] == [
            {"label": "CARD", "count": 1, "total": "5.50"},
            {"label": "CASH", "count": 1, "total": "10.00"},
        ]

    def test_sales_outside_period_are_ignored(self, tenant, store):
        sale = make_sale(tenant, store, "S-1", Decimal("10.00"))
        Sale.objects.filter(pk=sale.pk).update(created_at=timezone.now() - timedelta(days=3))

        result = ReportGenerator.for_frequency(tenant, "DAILY").generate("SALES")

        assert result["summary"]["sale_count"] == 0
        assert result["summary"]["revenue"] == "0.00"

    def test_inventory_report(self, tenant, stocked_product, product, second_store):
        Inventory.objects.create(
            tenant=tenant, product=product, store=second_store, quantity=3, min_stock=5
        )

        result = ReportGenerator.for_frequency(tenant, "DAILY").generate("INVENTORY")

        assert result["summary"]["inventory_rows"] == 2
        assert result["summary"]["total_units"] == 53
        assert result["summary"]["stock_value"] == "100.00"
        assert result["summary"]["low_stock_count"] == 1

    def test_customers_report(self, tenant, customer):
        customer.due_balance = Decimal("12.50")
        customer.save()

        result = ReportGenerator.for_frequency(tenant, "MONTHLY").generate("CUSTOMERS")

        assert result["summary"] == {
            "customer_count": 1,
            "new_customers": 1,
            "total_due": "12.50",
        }
        assert result["rows"][0]["label"] == customer.loyalty_tier

    def test_purchases_report(self, tenant, supplier):
        PurchaseOrder.objects.create(
            tenant=tenant, supplier=supplier, po_number="PO-1", total_amount=Decimal("200.00")
        )
        PurchaseOrder.objects.create(
            tenant=tenant,
            supplier=supplier,
            po_number="PO-2",
            total_amount=Decimal("80.00"),
            status=PurchaseOrder.CANCELLED,
        )

        result = ReportGenerator.for_frequency(tenant, "WEEKLY").generate("PURCHASES")

        assert result["summary"] == {"order_count": 2, "total_value": "200.00"}
        assert {row["label"] for row in result["rows"]} == {"DRAFT", "CANCELLED"}

    def test_expenses_report(self, tenant):
        rent = ExpenseCategory.objects.create(tenant=tenant, name="Rent")
        Expense.objects.create(tenant=tenant, category=rent, amount=Decimal("900.00"), description="May")
        Expense.objects.create(tenant=tenant, amount=Decimal("15.00"), description="Stamps")
        Expense.objects.create(
            tenant=tenant, amount=Decimal("50.00"), description="Typo", status=Expense.REJECTED
        )

        result = ReportGenerator.for_frequency(tenant, "MONTHLY").generate("EXPENSES")

        assert result["summary"] == {"expense_count": 2, "total": "915.00"}
        totals = {row["label"]: row["total"] for row in result["rows"]}
        assert totals == {"Rent": "900.00", "Uncategorized": "15.00"}

    def test_unknown_report_type(self, tenant):
        with pytest.raises(ValueError):
            ReportGenerator.for_frequency(tenant, "DAILY").generate("PAYROLL")

    def test_render_csv(self):
        output = render_csv(
            {
                "summary": {"sale_count": 2, "revenue": "15.50"},
                "rows": [{"label": "CASH", "count": 1, "total": "10.00"}],
            }
        )

        rows = list(csv.reader(io.StringIO(output)))
        assert rows == [
            ["metric", "value"],
            ["sale_count", "2"],
            ["revenue", "15.50"],
            ["CASH.count", "1"],
            ["CASH.total", "10.00"],
        ]


@pytest.mark.django_db
class TestReportScheduleAPI:
    def test_create(self, authenticated_client):
        response = authenticated_client.post(
            reverse("reporting:schedule_list"),
            {
                "name": "Weekly stock",
                "report_type": "INVENTORY",
                "frequency": "WEEKLY",
                "format": "JSON",
                "recipients": ["owner@cornershop.test"],
                "config": {"include_empty": False},
                "timezone": "Europe/London",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["next_run_at"] is not None
        assert response.data["runs"] == []
        schedule = ReportSchedule.objects.get()
        assert schedule.is_active is True
        assert schedule.next_run_at > timezone.now()

    @pytest.mark.parametrize("missing", ["name", "report_type", "frequency", "format"])
    def test_required_fields(self, authenticated_client, missing):
        body = {"name": "X", "report_type": "SALES", "frequency": "DAILY", "format": "CSV"}
        del body[missing]

        response = authenticated_client.post(reverse("reporting:schedule_list"), body, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.parametrize(
        "field,value",
        [
            ("recipients", "owner@cornershop.test"),
            ("recipients", ["not-an-email"]),
            ("config", ["a", "b"]),
            ("timezone", "Nowhere/Special"),
        ],
    )
    def test_invalid_fields(self, authenticated_client, field, value):
        body = {"name": "X", "report_type": "SALES", "frequency": "DAILY", "format": "CSV"}
        body[field] = value

        response = authenticated_client.post(reverse("reporting:schedule_list"), body, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_list_filters_and_latest_runs(self, authenticated_client, schedule, tenant):
        ReportSchedule.objects.create(
            tenant=tenant,
            name="Paused",
            report_type=ReportSchedule.EXPENSES,
            frequency=ReportSchedule.MONTHLY,
            is_active=False,
        )
        for _ in range(7):
            ReportRun.objects.create(schedule=schedule, status=ReportRun.COMPLETED)

        response = authenticated_client.get(reverse("reporting:schedule_list"), {"is_active": "true"})

        assert response.data["pagination"]["total"] == 1
        assert len(response.data["results"][0]["runs"]) == 5

    def test_detail_includes_all_runs(self, authenticated_client, schedule):
        for _ in range(7):
            ReportRun.objects.create(schedule=schedule)

        response = authenticated_client.get(
            reverse("reporting:schedule_detail", kwargs={"id": schedule.id})
        )

        assert len(response.data["runs"]) == 7

    def test_other_tenants_schedule_is_404(self, authenticated_client, other_tenant):
        foreign = ReportSchedule.objects.create(
            tenant=other_tenant, name="Theirs", report_type="SALES", frequency="DAILY"
        )

        response = authenticated_client.get(
            reverse("reporting:schedule_detail", kwargs={"id": foreign.id})
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_frequency_change_recomputes_next_run(self, authenticated_client, schedule):
        response = authenticated_client.patch(
            reverse("reporting:schedule_detail", kwargs={"id": schedule.id}),
            {"frequency": "YEARLY"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        schedule.refresh_from_db()
        assert schedule.next_run_at == calculate_next_run("YEARLY", "UTC")

    def test_rename_keeps_next_run(self, authenticated_client, schedule):
        original = schedule.next_run_at

        authenticated_client.patch(
            reverse("reporting:schedule_detail", kwargs={"id": schedule.id}),
            {"name": "Takings"},
            format="json",
        )

        schedule.refresh_from_db()
        assert schedule.name == "Takings"
        assert schedule.next_run_at == original

    def test_delete_removes_runs(self, authenticated_client, schedule):
        ReportRun.objects.create(schedule=schedule)

        response = authenticated_client.delete(
            reverse("reporting:schedule_detail", kwargs={"id": schedule.id})
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not ReportSchedule.objects.exists()
        assert not ReportRun.objects.exists()

    def test_run_now(self, authenticated_client, schedule, store, tenant):
        make_sale(tenant, store, "S-1", Decimal("10.00"))
        original_next_run = schedule.next_run_at

        response = authenticated_client.post(
            reverse("reporting:schedule_run", kwargs={"id": schedule.id})
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["status"] == ReportRun.COMPLETED
        assert response.data["row_count"] == 1
        assert response.data["result"]["summary"]["revenue"] == "10.00"
        assert "revenue,10.00" in response.data["output"]
        schedule.refresh_from_db()
        assert schedule.last_run_at is not None
        assert schedule.next_run_at == original_next_run

    def test_failed_run_is_returned(self, authenticated_client, schedule):
        with patch.object(ReportGenerator, "generate", side_effect=RuntimeError("database away")):
            response = authenticated_client.post(
                reverse("reporting:schedule_run", kwargs={"id": schedule.id})
            )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["status"] == ReportRun.FAILED
        assert response.data["error_message"] == "database away"


@pytest.mark.django_db
class TestReportTasks:
    def test_due_schedules_are_queued(self, schedule, tenant):
        ReportSchedule.objects.create(
            tenant=tenant,
            name="Later",
            report_type="SALES",
            frequency="DAILY",
            next_run_at=timezone.now() + timedelta(hours=2),
        )
        ReportSchedule.objects.create(
            tenant=tenant,
            name="Paused",
            report_type="SALES",
            frequency="DAILY",
            is_active=False,
            next_run_at=timezone.now() - timedelta(hours=2),
        )

        with patch("apps.reporting.tasks.execute_report_schedule.delay") as delay:
            queued = execute_due_report_schedules()

        assert queued == 1
        delay.assert_called_once_with(str(schedule.id))

    def test_execute_advances_schedule(self, schedule):
        run_id = execute_report_schedule(str(schedule.id))

        run = ReportRun.objects.get(id=run_id)
        assert run.status == ReportRun.COMPLETED
        assert run.started_at is not None
        assert run.output.startswith("metric,value")
        schedule.refresh_from_db()
        assert schedule.last_run_at is not None
        assert schedule.next_run_at > timezone.now()

    def test_failure_marks_run_and_advances(self, schedule):
        with patch.object(ReportGenerator, "generate", side_effect=RuntimeError("boom")):
            with pytest.raises(Exception):
                ReportScheduleService.run(schedule)

        run = ReportRun.objects.get()
        assert run.status == ReportRun.FAILED
        assert run.error_message == "boom"
        schedule.refresh_from_db()
        assert schedule.last_run_at is None
        assert schedule.next_run_at > timezone.now()

    def test_missing_schedule(self, db):
        assert execute_report_schedule("00000000-0000-0000-0000-000000000000") is None

    def test_inactive_schedule_is_skipped(self, schedule):
        schedule.is_active = False
        schedule.save()

        assert execute_report_schedule(str(schedule.id)) is None
        assert not ReportRun.objects.exists()
