"""
Tests for tenants, stores, users, authentication and the shared API plumbing.
"""

from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone

import pytest
from rest_framework import status
from rest_framework.test import APIClient

from apps.core.models import Store, Tenant, User
from apps.core.utils import is_uuid, next_sequence_number, parse_bool, random_code
from apps.payroll.models import TimeEntry


@pytest.mark.django_db
class TestTenants:
    def test_create_starts_trial(self, admin_client, settings):
        settings.TENANT_TRIAL_DAYS = 30

        response = admin_client.post(
            reverse("core:tenant_list"),
            {"company_name": "Bay Bakery", "email": "hello@baybakery.test"},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        tenant = Tenant.objects.get(email="hello@baybakery.test")
        assert tenant.slug == "bay-bakery"
        assert 29 <= (tenant.trial_ends_at - timezone.now()).days <= 30

    def test_required_fields(self, admin_client):
        response = admin_client.post(
            reverse("core:tenant_list"), {"company_name": "Nameless"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"] == "Company name and email are required"

    def test_duplicate_email(self, admin_client, tenant):
        response = admin_client.post(
            reverse("core:tenant_list"),
            {"company_name": "Copy", "email": tenant.email.upper()},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_duplicate_names_get_distinct_slugs(self, tenant):
        twin = Tenant.objects.create(company_name=tenant.company_name, email="twin@x.test")

        assert twin.slug != tenant.slug
        assert twin.slug.startswith(tenant.slug)

    def test_search(self, admin_client, tenant, other_tenant):
        response = admin_client.get(reverse("core:tenant_list"), {"search": "rival"})

        assert response.data["pagination"]["total"] == 1
        assert response.data["results"][0]["company_name"] == other_tenant.company_name

    def test_tenant_users_cannot_list_tenants(self, authenticated_client):
        response = authenticated_client.get(reverse("core:tenant_list"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_suspended_tenant_loses_access(self, authenticated_client, tenant):
        tenant.suspend()

        response = authenticated_client.get(reverse("core:store_list"))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        tenant.activate()
        assert authenticated_client.get(reverse("core:store_list")).status_code == 200


@pytest.mark.django_db
class TestStores:
    def test_list_includes_counts(self, authenticated_client, store, second_store):
        response = authenticated_client.get(reverse("core:store_list"))

        by_code = {row["code"]: row for row in response.data["results"]}
        assert by_code["MAIN"]["user_count"] == 1
        assert by_code["MAIN"]["sale_count"] == 0
        assert by_code["HARB"]["user_count"] == 0

    def test_list_is_tenant_scoped(self, authenticated_client, store, other_tenant):
        Store.objects.create(tenant=other_tenant, name="Elsewhere", code="MAIN")

        response = authenticated_client.get(reverse("core:store_list"))

        assert response.data["pagination"]["total"] == 1

    def test_filter_by_active_flag(self, authenticated_client, store, second_store):
        second_store.is_active = False
        second_store.save()

        response = authenticated_client.get(reverse("core:store_list"), {"is_active": "false"})

        assert [row["code"] for row in response.data["results"]] == ["HARB"]

    def test_duplicate_code(self, authenticated_client, store):
        response = authenticated_client.post(
            reverse("core:store_list"), {"name": "Copy", "code": store.code}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error"] == "code: Store code already exists"

    def test_code_may_repeat_across_tenants(self, authenticated_client, other_tenant):
        Store.objects.create(tenant=other_tenant, name="Elsewhere", code="PIER")

        response = authenticated_client.post(
            reverse("core:store_list"), {"name": "Pier", "code": "PIER"}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED

    def test_only_one_headquarters(self, authenticated_client, store):
        store.is_headquarters = True
        store.save()

        response = authenticated_client.post(
            reverse("core:store_list"),
            {"name": "Head Office", "code": "HQ", "is_headquarters": True},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        store.refresh_from_db()
        assert store.is_headquarters is False
        assert Store.objects.get(code="HQ").is_headquarters is True

    def test_update(self, authenticated_client, store):
        response = authenticated_client.patch(
            reverse("core:store_detail", kwargs={"id": store.id}),
            {"phone": "555-0100"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        store.refresh_from_db()
        assert store.phone == "555-0100"

    def test_missing_store(self, authenticated_client):
        response = authenticated_client.get(
            reverse("core:store_detail", kwargs={"id": "00000000-0000-0000-0000-000000000000"})
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data == {"error": "Not found"}

    def test_delete_store_with_inventory(self, authenticated_client, stocked_product, store):
        response = authenticated_client.delete(reverse("core:store_detail", kwargs={"id": store.id}))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert Store.objects.filter(id=store.id).exists()

    def test_delete_empty_store(self, authenticated_client, second_store):
        response = authenticated_client.delete(
            reverse("core:store_detail", kwargs={"id": second_store.id})
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Store.objects.filter(id=second_store.id).exists()


@pytest.mark.django_db
class TestUsers:
    def test_tenant_role_requires_tenant(self):
        with pytest.raises(ValueError):
            User.objects.create_user(username="drifter", password="x", role=User.TENANT_EMPLOYEE)

    def test_platform_admin_has_no_tenant(self, tenant):
        admin = User.objects.create_user(
            username="root", password="x", role=User.PLATFORM_ADMIN, tenant=tenant
        )

        assert admin.tenant is None
        assert admin.is_platform_admin()

    def test_jwt_token_pair(self, api_client, tenant_user):
        response = api_client.post(
            reverse("core:token_obtain"),
            {"username": "owner", "password": "testpass123"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        refresh = api_client.post(
            reverse("core:token_refresh"), {"refresh": response.data["refresh"]}, format="json"
        )
        assert "access" in refresh.data

    def test_unauthenticated_request(self, api_client, db):
        response = api_client.get(reverse("core:store_list"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert "error" in response.data


@pytest.mark.django_db
class TestEmployees:
    @pytest.fixture
    def employee(self, tenant, store):
        return User.objects.create_user(
            username="sam",
            password="testpass123",
            tenant=tenant,
            store=store,
            role=User.TENANT_EMPLOYEE,
            hourly_rate=Decimal("15.50"),
        )

    def client_for(self, user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    def test_create(self, authenticated_client, tenant, store):
        response = authenticated_client.post(
            reverse("core:employee_list"),
            {
                "username": "jo",
                "password": "counter-shift-9",
                "first_name": "Jo",
                "store": str(store.id),
                "hourly_rate": "18.25",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["role"] == User.TENANT_EMPLOYEE
        assert response.data["hourly_rate"] == "18.25"
        assert "password" not in response.data
        jo = User.objects.get(username="jo")
        assert jo.tenant == tenant
        assert jo.check_password("counter-shift-9")

    def test_password_is_required_on_create(self, authenticated_client):
        response = authenticated_client.post(
            reverse("core:employee_list"), {"username": "jo"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "password" in response.data["details"]

    def test_user_limit(self, authenticated_client, tenant):
        tenant.max_users = 1
        tenant.save()

        response = authenticated_client.post(
            reverse("core:employee_list"),
            {"username": "jo", "password": "counter-shift-9"},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not User.objects.filter(username="jo").exists()

    def test_list_shows_hours_and_clock_status(
        self, authenticated_client, tenant, tenant_user, employee
    ):
        start = timezone.now() - timedelta(hours=8)
        TimeEntry.objects.create(
            tenant=tenant,
            user=employee,
            clock_in=start,
            clock_out=start + timedelta(hours=6),
            total_hours=Decimal("6.00"),
        )
        TimeEntry.objects.create(tenant=tenant, user=tenant_user, clock_in=timezone.now())

        response = authenticated_client.get(reverse("core:employee_list"))

        by_username = {row["username"]: row for row in response.data["results"]}
        assert by_username["sam"]["total_hours"] == "6.00"
        assert by_username["sam"]["is_clocked_in"] is False
        assert by_username["owner"]["is_clocked_in"] is True

    def test_list_is_tenant_scoped(self, authenticated_client, employee, other_tenant):
        User.objects.create_user(username="rival", password="x", tenant=other_tenant)

        response = authenticated_client.get(reverse("core:employee_list"), {"search": "rival"})

        assert response.data["pagination"]["total"] == 0

    def test_employees_cannot_manage_staff(self, employee):
        response = self.client_for(employee).get(reverse("core:employee_list"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_manager_cannot_create_owner(self, tenant, store):
        manager = User.objects.create_user(
            username="mgr", password="x", tenant=tenant, role=User.TENANT_MANAGER
        )

        response = self.client_for(manager).post(
            reverse("core:employee_list"),
            {"username": "boss", "password": "counter-shift-9", "role": User.TENANT_OWNER},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_deactivate(self, authenticated_client, employee):
        response = authenticated_client.patch(
            reverse("core:employee_detail", kwargs={"id": employee.id}),
            {"is_active": False, "hourly_rate": "16.00"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        employee.refresh_from_db()
        assert employee.is_active is False
        assert employee.hourly_rate == Decimal("16.00")

    def test_other_tenants_employee_is_not_found(self, authenticated_client, other_tenant):
        rival = User.objects.create_user(username="rival", password="x", tenant=other_tenant)

        response = authenticated_client.get(
            reverse("core:employee_detail", kwargs={"id": rival.id})
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

@pytest.mark.django_db
class TestPagination:
    @pytest.fixture
    def many_stores(self, tenant):
        return Store.objects.bulk_create(
            [Store(tenant=tenant, name=f"Kiosk {n:03d}", code=f"K{n:03d}") for n in range(120)]
        )

    def test_defaults(self, authenticated_client, many_stores):
        response = authenticated_client.get(reverse("core:store_list"))

        pagination = response.data["pagination"]
        assert len(response.data["results"]) == 20
        assert pagination["page"] == 1
        assert pagination["total"] == 121
        assert pagination["has_next"] is True
        assert pagination["has_previous"] is False

    def test_limit_is_capped(self, authenticated_client, many_stores):
        response = authenticated_client.get(reverse("core:store_list"), {"limit": 500})

        assert len(response.data["results"]) == 100
        assert response.data["pagination"]["pages"] == 2

    def test_page_past_the_end_returns_last_page(self, authenticated_client, many_stores):
        response = authenticated_client.get(reverse("core:store_list"), {"page": 99, "limit": 50})

        assert response.data["pagination"]["page"] == 3
        assert len(response.data["results"]) == 21

    def test_malformed_values_fall_back(self, authenticated_client, many_stores):
        response = authenticated_client.get(
            reverse("core:store_list"), {"page": "abc", "limit": "lots"}
        )

        assert response.data["pagination"]["page"] == 1
        assert response.data["pagination"]["limit"] == 20


class TestUtils:
    @pytest.mark.parametrize(
        "value,expected",
        [("true", True), ("1", True), ("Yes", True), ("false", False), ("0", False), (None, None)],
    )
    def test_parse_bool(self, value, expected):
        assert parse_bool(value) is expected

    def test_random_code_groups(self):
        code = random_code(16, group=4)

        assert len(code) == 19
        assert [len(part) for part in code.split("-")] == [4, 4, 4, 4]

    def test_is_uuid(self):
        assert is_uuid("00000000-0000-0000-0000-000000000000")
        assert not is_uuid("not-a-uuid")
        assert not is_uuid(None)

    @pytest.mark.django_db
    def test_next_sequence_number(self, tenant, store, second_store):
        queryset = Store.objects.filter(tenant=tenant, code__startswith="ST-")
        assert next_sequence_number(queryset, "code", "ST-", 4) == "ST-0001"

        Store.objects.create(tenant=tenant, name="Third", code="ST-0007")
        assert next_sequence_number(queryset, "code", "ST-", 4) == "ST-0008"

    def test_trial_end_is_in_the_future(self):
        tenant = Tenant(company_name="Unsaved")

        tenant.start_trial(days=3)

        assert tenant.trial_ends_at - timezone.now() > timedelta(days=2)
