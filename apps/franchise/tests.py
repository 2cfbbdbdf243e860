"""
Tests for franchise onboarding, the franchise middleware and royalty
collection.
"""

from datetime import datetime, timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone

import pytest
from rest_framework import status
from rest_framework.test import APIClient

from .models import Franchise, FranchiseClient, FranchiseUser, RoyaltyPayment
from .services import FranchiseService, first_of_next_month
from .tasks import mark_overdue_royalty_payments

APPLICATION = {
    "name": "North Resellers",
    "email": "hq@northresellers.test",
    "contact_person": "Sam Ortiz",
    "admin_name": "Sam Ortiz",
    "admin_email": "sam@northresellers.test",
    "admin_password": "franchisepass123",
}


@pytest.fixture
def franchise(db):
    franchise = Franchise.objects.create(
        name="Harbor Partners",
        email="ops@harbor.test",
        contact_person="Lee Park",
        status=Franchise.APPROVED,
        approved_at=timezone.now(),
    )
    FranchiseService.create_franchise_user(
        franchise, "ops@harbor.test", "harborpass123", name="Lee Park", role=FranchiseUser.ADMIN
    )
    return franchise


@pytest.fixture
def franchise_client(franchise):
    client = APIClient()
    client.credentials(HTTP_X_FRANCHISE_ID=str(franchise.id), HTTP_X_FRANCHISE_EMAIL=franchise.email)
    return client


def add_client(franchise, email="buyer@shop.test"):
    return FranchiseService.add_client(
        franchise, {"client_name": "Corner Shop", "client_email": email}
    )


@pytest.mark.django_db
class TestFranchiseApplication:
    def test_apply_creates_pending_franchise_with_admin(self, api_client):
        response = api_client.post(reverse("franchise:franchise_apply"), APPLICATION, format="json")

        assert response.status_code == status.HTTP_201_CREATED
        franchise = Franchise.objects.get(email=APPLICATION["email"])
        assert franchise.status == Franchise.PENDING
        assert franchise.one_time_fee == Decimal("20.00")
        assert franchise.monthly_fee == Decimal("5.00")
        assert franchise.max_clients == 50
        membership = franchise.users.get()
        assert membership.role == FranchiseUser.ADMIN
        assert membership.user.email == APPLICATION["admin_email"]

    def test_apply_requires_admin_fields(self, api_client):
        data = {key: value for key, value in APPLICATION.items() if key != "admin_password"}

        response = api_client.post(reverse("franchise:franchise_apply"), data, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not Franchise.objects.exists()

    def test_duplicate_franchise_email_conflicts(self, api_client):
        api_client.post(reverse("franchise:franchise_apply"), APPLICATION, format="json")
        data = dict(APPLICATION, admin_email="other@northresellers.test")

        response = api_client.post(reverse("franchise:franchise_apply"), data, format="json")

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_duplicate_user_email_conflicts_and_rolls_back(self, api_client, tenant_user):
        data = dict(APPLICATION, admin_email=tenant_user.email)

        response = api_client.post(reverse("franchise:franchise_apply"), data, format="json")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert not Franchise.objects.filter(email=APPLICATION["email"]).exists()


@pytest.mark.django_db
class TestFranchiseLogin:
    def test_login_returns_tokens(self, api_client, franchise):
        response = api_client.post(
            reverse("franchise:franchise_login"),
            {"email": "ops@harbor.test", "password": "harborpass123"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["access"]
        assert response.data["refresh"]
        assert response.data["franchise"]["id"] == str(franchise.id)
        assert response.data["role"] == FranchiseUser.ADMIN

    def test_wrong_password_is_unauthorized(self, api_client, franchise):
        response = api_client.post(
            reverse("franchise:franchise_login"),
            {"email": "ops@harbor.test", "password": "wrong"},
            format="json",
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_pending_franchise_cannot_login(self, api_client):
        api_client.post(reverse("franchise:franchise_apply"), APPLICATION, format="json")

        response = api_client.post(
            reverse("franchise:franchise_login"),
            {"email": APPLICATION["admin_email"], "password": APPLICATION["admin_password"]},
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_blocked_franchise_cannot_login(self, api_client, franchise):
        FranchiseService.update_status(franchise, Franchise.APPROVED, block_reason="Unpaid fees")

        response = api_client.post(
            reverse("franchise:franchise_login"),
            {"email": "ops@harbor.test", "password": "harborpass123"},
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestFranchiseManage:
    def test_requires_platform_admin(self, authenticated_client):
        response = authenticated_client.get(reverse("franchise:franchise_manage"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_list_filters_by_status(self, admin_client, franchise):
        Franchise.objects.create(name="Pending Co", email="p@pending.test", contact_person="P")

        response = admin_client.get(
            reverse("franchise:franchise_manage"), {"status": Franchise.APPROVED}
        )

        assert response.data["pagination"]["total"] == 1
        assert response.data["results"][0]["user_count"] == 1

    def test_create_is_approved_with_default_fees(self, admin_client):
        response = admin_client.post(
            reverse("franchise:franchise_manage"),
            {
                "action": "create",
                "name": "Direct Co",
                "email": "direct@co.test",
                "contact_person": "Dee",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["status"] == Franchise.APPROVED
        assert response.data["approved_at"] is not None
        assert response.data["monthly_fee"] == "5.00"

    def test_update_status_approves_and_clears_block(self, admin_client):
        franchise = Franchise.objects.create(
            name="Held Co",
            email="held@co.test",
            contact_person="H",
            is_blocked=True,
            block_reason="Unpaid fees",
        )

        response = admin_client.post(
            reverse("franchise:franchise_manage"),
            {"action": "update_status", "franchise_id": str(franchise.id), "status": "APPROVED"},
            format="json",
        )

        assert response.data["status"] == Franchise.APPROVED
        assert response.data["is_blocked"] is False
        assert response.data["approved_at"] is not None

    def test_suspend_blocks(self, admin_client, franchise):
        response = admin_client.post(
            reverse("franchise:franchise_manage"),
            {"action": "update_status", "franchise_id": str(franchise.id), "status": "SUSPENDED"},
            format="json",
        )

        assert response.data["is_blocked"] is True

    def test_update_fees(self, admin_client, franchise):
        response = admin_client.post(
            reverse("franchise:franchise_manage"),
            {
                "action": "update_fees",
                "franchise_id": str(franchise.id),
                "monthly_fee": "7.50",
                "max_clients": 10,
            },
            format="json",
        )

        assert response.data["monthly_fee"] == "7.50"
        assert response.data["max_clients"] == 10
        assert response.data["one_time_fee"] == "20.00"

    def test_unknown_action(self, admin_client):
        response = admin_client.post(
            reverse("franchise:franchise_manage"), {"action": "merge"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestFranchiseMiddleware:
    def test_missing_headers_is_unauthorized(self, api_client, franchise):
        response = api_client.get(reverse("franchise:franchise_detail", kwargs={"id": franchise.id}))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"] == "Franchise credentials required"

    def test_email_mismatch(self, api_client, franchise):
        api_client.credentials(
            HTTP_X_FRANCHISE_ID=str(franchise.id), HTTP_X_FRANCHISE_EMAIL="intruder@x.test"
        )

        response = api_client.get(reverse("franchise:franchise_detail", kwargs={"id": franchise.id}))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"] == "Franchise email mismatch"

    def test_email_match_is_case_insensitive(self, api_client, franchise):
        api_client.credentials(
            HTTP_X_FRANCHISE_ID=str(franchise.id), HTTP_X_FRANCHISE_EMAIL="OPS@Harbor.test"
        )

        response = api_client.get(reverse("franchise:franchise_detail", kwargs={"id": franchise.id}))

        assert response.status_code == status.HTTP_200_OK

    def test_suspended_franchise_is_rejected(self, franchise_client, franchise):
        franchise.status = Franchise.SUSPENDED
        franchise.save()

        response = franchise_client.get(
            reverse("franchise:franchise_detail", kwargs={"id": franchise.id})
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"] == "Franchise account is suspended"

    def test_blocked_franchise_is_rejected(self, franchise_client, franchise):
        franchise.is_blocked = True
        franchise.save()

        response = franchise_client.get(
            reverse("franchise:franchise_detail", kwargs={"id": franchise.id})
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert "outstanding payments" in response.json()["error"]

    def test_inactive_franchise_user_is_rejected(self, franchise_client, franchise):
        franchise.users.update(is_active=False)

        response = franchise_client.get(
            reverse("franchise:franchise_detail", kwargs={"id": franchise.id})
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_other_franchise_url_is_rejected(self, franchise_client):
        other = Franchise.objects.create(
            name="Other", email="other@f.test", contact_person="O", status=Franchise.APPROVED
        )

        response = franchise_client.get(reverse("franchise:franchise_detail", kwargs={"id": other.id}))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"] == "Access denied to this franchise"

    def test_other_paths_pass_through(self, api_client):
        response = api_client.post(reverse("franchise:franchise_apply"), {}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestFranchiseEndpoints:
    def test_detail_and_contact_update(self, franchise_client, franchise):
        url = reverse("franchise:franchise_detail", kwargs={"id": franchise.id})

        response = franchise_client.put(
            url, {"phone": "555-0100", "status": "SUSPENDED", "monthly_fee": "0.00"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        franchise.refresh_from_db()
        assert franchise.phone == "555-0100"
        assert franchise.status == Franchise.APPROVED
        assert franchise.monthly_fee == Decimal("5.00")

    def test_admin_adds_user(self, franchise_client, franchise):
        response = franchise_client.post(
            reverse("franchise:franchise_users", kwargs={"id": franchise.id}),
            {
                "name": "Kim Staff",
                "email": "kim@harbor.test",
                "password": "staffpass123",
                "role": "STAFF",
                "permissions": ["view_clients"],
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert franchise.users.count() == 2

    def test_staff_without_permission_cannot_add_user(self, franchise):
        membership = franchise.users.get()
        membership.role = FranchiseUser.STAFF
        membership.save()
        client = APIClient()
        client.credentials(HTTP_X_FRANCHISE_ID=str(franchise.id), HTTP_X_FRANCHISE_EMAIL=franchise.email)

        response = client.post(
            reverse("franchise:franchise_users", kwargs={"id": franchise.id}),
            {"name": "X", "email": "x@harbor.test", "password": "staffpass123", "role": "STAFF"},
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_add_client_opens_royalty_payments(self, franchise_client, franchise):
        response = franchise_client.post(
            reverse("franchise:franchise_clients", kwargs={"id": franchise.id}),
            {"client_name": "Corner Shop", "client_email": "buyer@shop.test"},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["client_id"].startswith("CL-")
        franchise.refresh_from_db()
        assert franchise.current_clients == 1
        assert franchise.outstanding_balance == Decimal("25.00")

        one_time = RoyaltyPayment.objects.get(payment_type=RoyaltyPayment.ONE_TIME)
        monthly = RoyaltyPayment.objects.get(payment_type=RoyaltyPayment.MONTHLY)
        assert one_time.amount == Decimal("20.00")
        assert monthly.amount == Decimal("5.00")
        assert monthly.due_date.day == 1
        assert monthly.due_date > one_time.due_date

    def test_duplicate_client_email_conflicts(self, franchise_client, franchise):
        add_client(franchise)

        response = franchise_client.post(
            reverse("franchise:franchise_clients", kwargs={"id": franchise.id}),
            {"client_name": "Again", "client_email": "BUYER@shop.test"},
            format="json",
        )

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_client_limit(self, franchise_client, franchise):
        franchise.max_clients = 1
        franchise.save()
        add_client(franchise)

        response = franchise_client.post(
            reverse("franchise:franchise_clients", kwargs={"id": franchise.id}),
            {"client_name": "Second", "client_email": "second@shop.test"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert FranchiseClient.objects.count() == 1

    def test_client_requires_name_and_email(self, franchise_client, franchise):
        response = franchise_client.post(
            reverse("franchise:franchise_clients", kwargs={"id": franchise.id}),
            {"client_name": "No Email"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_payments_filter_by_status(self, franchise_client, franchise):
        add_client(franchise)
        RoyaltyPayment.objects.filter(payment_type=RoyaltyPayment.ONE_TIME).update(
            status=RoyaltyPayment.PAID
        )

        response = franchise_client.get(
            reverse("franchise:franchise_payments", kwargs={"id": franchise.id}),
            {"status": "PENDING"},
        )

        assert response.data["pagination"]["total"] == 1
        assert response.data["results"][0]["payment_type"] == RoyaltyPayment.MONTHLY


@pytest.mark.django_db
class TestRoyaltyPayments:
    def test_process_payments(self, admin_client, franchise):
        client = add_client(franchise)
        payment_ids = [str(p.id) for p in client.royalty_payments.all()]

        response = admin_client.post(
            reverse("franchise:royalty_payments"),
            {"payment_ids": payment_ids, "payment_method": "BANK_TRANSFER", "transaction_id": "TX-9"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["processed_count"] == 2
        assert response.data["total_amount"] == Decimal("25.00")

        franchise.refresh_from_db()
        # Paying the MONTHLY fee schedules the next one
        assert franchise.total_revenue == Decimal("25.00")
        assert franchise.outstanding_balance == Decimal("5.00")
        client.refresh_from_db()
        assert client.one_time_fee_paid is True
        assert client.monthly_fee_paid is True
        assert client.total_paid == Decimal("25.00")

        upcoming = RoyaltyPayment.objects.get(status=RoyaltyPayment.PENDING)
        assert upcoming.payment_type == RoyaltyPayment.MONTHLY
        assert upcoming.due_date.day == 1

    def test_already_paid_is_skipped(self, admin_client, franchise):
        client = add_client(franchise)
        one_time = client.royalty_payments.get(payment_type=RoyaltyPayment.ONE_TIME)
        FranchiseService.process_royalty_payments([one_time.id], "CASH")

        response = admin_client.post(
            reverse("franchise:royalty_payments"),
            {"payment_ids": [str(one_time.id)], "payment_method": "CASH"},
            format="json",
        )

        assert response.data["processed_count"] == 0
        franchise.refresh_from_db()
        assert franchise.total_revenue == Decimal("20.00")

    def test_unknown_payment_is_not_found(self, admin_client, franchise):
        client = add_client(franchise)
        known = client.royalty_payments.first()

        response = admin_client.post(
            reverse("franchise:royalty_payments"),
            {
                "payment_ids": [str(known.id), "00000000-0000-0000-0000-000000000000"],
                "payment_method": "CASH",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        known.refresh_from_db()
        assert known.status == RoyaltyPayment.PENDING

    def test_list_filters_by_type(self, admin_client, franchise):
        add_client(franchise)

        response = admin_client.get(reverse("franchise:royalty_payments"), {"type": "ONE_TIME"})

        assert response.data["pagination"]["total"] == 1

    def test_reports(self, admin_client, franchise):
        client = add_client(franchise)
        one_time = client.royalty_payments.get(payment_type=RoyaltyPayment.ONE_TIME)
        FranchiseService.process_royalty_payments([one_time.id], "CASH")

        response = admin_client.get(reverse("franchise:royalty_reports"))

        summary = response.data["summary"]
        assert summary["total_franchises"] == 1
        assert summary["total_clients"] == 1
        assert summary["total_revenue"] == Decimal("20.00")
        assert summary["total_outstanding"] == Decimal("5.00")
        assert summary["collection_rate"] == 80
        assert response.data["payment_stats"][RoyaltyPayment.PAID]["count"] == 1


@pytest.mark.django_db
class TestOverdueTask:
    def test_marks_overdue_and_blocks(self, franchise):
        add_client(franchise)
        RoyaltyPayment.objects.filter(payment_type=RoyaltyPayment.ONE_TIME).update(
            due_date=timezone.now() - timedelta(days=3)
        )

        count = mark_overdue_royalty_payments.delay().get()

        assert count == 1
        franchise.refresh_from_db()
        assert franchise.is_blocked is True
        assert franchise.block_reason == "Overdue royalty payments"
        assert RoyaltyPayment.objects.filter(status=RoyaltyPayment.OVERDUE).count() == 1

    def test_nothing_due(self, franchise):
        add_client(franchise)
        # ONE_TIME is due at creation, so look from just before it
        count = FranchiseService.mark_overdue_payments(now=timezone.now() - timedelta(hours=1))

        assert count == 0
        franchise.refresh_from_db()
        assert franchise.is_blocked is False


def test_first_of_next_month_rolls_over_year():
    moment = timezone.make_aware(datetime(2026, 12, 15, 13, 30))

    result = first_of_next_month(moment)

    assert (result.year, result.month, result.day, result.hour) == (2027, 1, 1, 0)
