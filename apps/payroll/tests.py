"""
Tests for time tracking and payroll generation.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone

import pytest
from rest_framework import status

from .models import PayrollRecord, TimeEntry


def closed_entry(user, day, hours, break_minutes=0):
    clock_in = timezone.make_aware(datetime(day.year, day.month, day.day, 8, 0))
    entry = TimeEntry.objects.create(
        tenant=user.tenant, user=user, clock_in=clock_in, break_minutes=break_minutes
    )
    entry.close(clock_in + timedelta(hours=hours, minutes=break_minutes))
    return entry


@pytest.mark.django_db
class TestTimeEntryModel:
    def test_close_computes_hours_and_overtime(self, tenant_user):
        entry = closed_entry(tenant_user, date(2026, 10, 5), 10, break_minutes=30)

        assert entry.total_hours == Decimal("10.00")
        assert entry.overtime_hours == Decimal("2.00")

    def test_short_shift_has_no_overtime(self, tenant_user):
        entry = closed_entry(tenant_user, date(2026, 10, 5), 6)

        assert entry.overtime_hours == Decimal("0.00")

    def test_net_pay_is_computed_on_save(self, tenant, tenant_user):
        record = PayrollRecord.objects.create(
            tenant=tenant,
            user=tenant_user,
            period="2026-10",
            start_date=date(2026, 10, 1),
            end_date=date(2026, 10, 31),
            regular_pay=Decimal("800.00"),
            overtime_pay=Decimal("60.00"),
            bonus=Decimal("40.00"),
            deductions=Decimal("25.00"),
            taxes=Decimal("90.00"),
        )

        assert record.net_pay == Decimal("785.00")


@pytest.mark.django_db
class TestClockEndpoint:
    def test_clock_in_and_out(self, authenticated_client, tenant_user):
        url = reverse("payroll:time_entry_list")

        response = authenticated_client.post(url, {"action": "clock_in"}, format="json")
        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["clock_out"] is None

        response = authenticated_client.post(url, {"action": "clock_in"}, format="json")
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"] == "User is already clocked in"

        response = authenticated_client.post(url, {"action": "clock_out"}, format="json")
        assert response.status_code == status.HTTP_200_OK
        assert response.data["clock_out"] is not None
        assert not TimeEntry.objects.filter(user=tenant_user, clock_out__isnull=True).exists()

    def test_clock_out_without_open_entry(self, authenticated_client):
        response = authenticated_client.post(
            reverse("payroll:time_entry_list"), {"action": "clock_out"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_action(self, authenticated_client):
        response = authenticated_client.post(
            reverse("payroll:time_entry_list"), {"action": "nap"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_user_from_another_tenant_is_rejected(
        self, authenticated_client, other_tenant, django_user_model
    ):
        outsider = django_user_model.objects.create_user(
            username="outsider", password="x", tenant=other_tenant, role="TENANT_EMPLOYEE"
        )

        response = authenticated_client.post(
            reverse("payroll:time_entry_list"),
            {"action": "clock_in", "user": outsider.id},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not TimeEntry.objects.filter(user=outsider).exists()

    def test_list_filters_by_user(self, authenticated_client, tenant_user):
        closed_entry(tenant_user, date(2026, 10, 5), 8)

        response = authenticated_client.get(
            reverse("payroll:time_entry_list"), {"user": tenant_user.id}
        )

        assert response.data["pagination"]["total"] == 1


@pytest.mark.django_db
class TestPayrollEndpoints:
    def test_generate_from_time_entries(self, authenticated_client, tenant_user):
        closed_entry(tenant_user, date(2026, 10, 5), 10)
        closed_entry(tenant_user, date(2026, 10, 6), 8)
        closed_entry(tenant_user, date(2026, 11, 2), 8)

        response = authenticated_client.post(
            reverse("payroll:payroll_generate"),
            {
                "user": tenant_user.id,
                "period": "2026-10",
                "start_date": "2026-10-01",
                "end_date": "2026-10-31",
                "bonus": "10.00",
                "tax_rate": "0.10",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        # 16 regular hours at 20.00, 2 overtime hours at 30.00
        assert response.data["regular_hours"] == "16.00"
        assert response.data["overtime_hours"] == "2.00"
        assert response.data["regular_pay"] == "320.00"
        assert response.data["overtime_pay"] == "60.00"
        assert response.data["taxes"] == "39.00"
        assert response.data["net_pay"] == "351.00"
        assert response.data["status"] == PayrollRecord.PENDING

    def test_create_requires_fields(self, authenticated_client, tenant_user):
        response = authenticated_client.post(
            reverse("payroll:payroll_record_list"), {"user": tenant_user.id}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_create_record(self, authenticated_client, tenant_user):
        response = authenticated_client.post(
            reverse("payroll:payroll_record_list"),
            {
                "user": tenant_user.id,
                "period": "2026-09",
                "start_date": "2026-09-01",
                "end_date": "2026-09-30",
                "regular_pay": "500.00",
                "deductions": "20.00",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["net_pay"] == "480.00"

    def test_mark_paid_stamps_payment_date(self, authenticated_client, tenant, tenant_user):
        record = PayrollRecord.objects.create(
            tenant=tenant,
            user=tenant_user,
            period="2026-10",
            start_date=date(2026, 10, 1),
            end_date=date(2026, 10, 31),
        )
        url = reverse("payroll:payroll_status", kwargs={"id": record.id})

        response = authenticated_client.post(url, {"status": "APPROVED"}, format="json")
        assert response.data["status"] == PayrollRecord.APPROVED
        assert response.data["payment_date"] is None

        response = authenticated_client.post(
            url, {"status": "PAID", "payment_method": "BANK_TRANSFER"}, format="json"
        )
        assert response.data["status"] == PayrollRecord.PAID
        assert response.data["payment_date"] is not None

    def test_invalid_status(self, authenticated_client, tenant, tenant_user):
        record = PayrollRecord.objects.create(
            tenant=tenant,
            user=tenant_user,
            period="2026-10",
            start_date=date(2026, 10, 1),
            end_date=date(2026, 10, 31),
        )

        response = authenticated_client.post(
            reverse("payroll:payroll_status", kwargs={"id": record.id}),
            {"status": "PENDING"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_paid_record_is_final(self, authenticated_client, tenant, tenant_user):
        record = PayrollRecord.objects.create(
            tenant=tenant,
            user=tenant_user,
            period="2026-10",
            start_date=date(2026, 10, 1),
            end_date=date(2026, 10, 31),
            status=PayrollRecord.PAID,
        )
        url = reverse("payroll:payroll_status", kwargs={"id": record.id})

        for target in ["APPROVED", "PAID"]:
            response = authenticated_client.post(url, {"status": target}, format="json")
            assert response.status_code == status.HTTP_400_BAD_REQUEST
            assert response.data["error"] == "Payroll record is already paid"

        record.refresh_from_db()
        assert record.status == PayrollRecord.PAID
        assert record.payment_date is None

    def test_generate_twice_for_same_period(self, authenticated_client, tenant_user):
        closed_entry(tenant_user, date(2026, 10, 5), 8)
        body = {
            "user": tenant_user.id,
            "period": "2026-10",
            "start_date": "2026-10-01",
            "end_date": "2026-10-31",
        }
        url = reverse("payroll:payroll_generate")
        authenticated_client.post(url, body, format="json")

        response = authenticated_client.post(url, body, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "already exists" in response.data["error"]
        assert PayrollRecord.objects.filter(user=tenant_user, period="2026-10").count() == 1

    def test_create_rejects_duplicate_period(self, authenticated_client, tenant, tenant_user):
        PayrollRecord.objects.create(
            tenant=tenant,
            user=tenant_user,
            period="2026-09",
            start_date=date(2026, 9, 1),
            end_date=date(2026, 9, 30),
        )

        response = authenticated_client.post(
            reverse("payroll:payroll_record_list"),
            {
                "user": tenant_user.id,
                "period": "2026-09",
                "start_date": "2026-09-01",
                "end_date": "2026-09-30",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "period" in response.data["details"]


@pytest.mark.django_db
def test_employees_cannot_generate_payroll(api_client, tenant, store, django_user_model):
    employee = django_user_model.objects.create_user(
        username="barista", password="x", tenant=tenant, store=store, role="TENANT_EMPLOYEE"
    )
    api_client.force_authenticate(user=employee)

    response = api_client.post(
        reverse("payroll:payroll_generate"),
        {
            "user": employee.id,
            "period": "2026-10",
            "start_date": "2026-10-01",
            "end_date": "2026-10-31",
        },
        format="json",
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
