"""
Tests for license generation, activation and the license middleware.
"""

import re
from datetime import timedelta

from django.urls import reverse
from django.utils import timezone

import pytest
from rest_framework import status

from .models import License, LicenseActivation
from .services import LicenseService

LICENSE_KEY_FORMAT = re.compile(r"^[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}$")
ACTIVATION_KEY_FORMAT = re.compile(r"^[A-Z0-9]{8}-[A-Z0-9]{8}-[A-Z0-9]{8}-[A-Z0-9]{8}$")


@pytest.fixture
def license(db):
    return LicenseService.generate(
        License.YEARLY, "Corner Shop", "owner@cornershop.test", max_stores=2
    )


def activate(api_client, license, **extra):
    body = {"license_key": license.license_key, "client_email": license.client_email}
    body.update(extra)
    return api_client.post(reverse("licensing:license_activate"), body, format="json")


@pytest.mark.django_db
class TestLicenseGeneration:
    def test_generated_keys_follow_format(self, license):
        assert LICENSE_KEY_FORMAT.match(license.license_key)
        assert license.status == License.ACTIVE

    def test_expiry_per_type(self, db):
        now = timezone.now()
        monthly = LicenseService.generate(License.MONTHLY, "A", "a@x.test")
        yearly = LicenseService.generate(License.YEARLY, "B", "b@x.test")
        lifetime = LicenseService.generate(License.LIFETIME, "C", "c@x.test")

        assert 27 <= (monthly.expires_at - now).days <= 31
        assert 364 <= (yearly.expires_at - now).days <= 366
        assert lifetime.expires_at is None

    def test_generate_single(self, admin_client):
        response = admin_client.post(
            reverse("licensing:license_generate"),
            {
                "action": "generate_single",
                "type": "MONTHLY",
                "client_name": "Corner Shop",
                "client_email": "owner@cornershop.test",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert LICENSE_KEY_FORMAT.match(response.data["license_key"])

    def test_generate_bulk(self, admin_client):
        response = admin_client.post(
            reverse("licensing:license_generate"),
            {
                "action": "generate_bulk",
                "count": 3,
                "type": "LIFETIME",
                "client_name": "Chain",
                "client_email": "it@chain.test",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["count"] == 3
        assert len(set(response.data["license_keys"])) == 3
        assert License.objects.filter(client_name="Chain #2").exists()

    @pytest.mark.parametrize("count", [0, 101])
    def test_bulk_count_bounds(self, admin_client, count):
        response = admin_client.post(
            reverse("licensing:license_generate"),
            {
                "action": "generate_bulk",
                "count": count,
                "type": "TRIAL",
                "client_name": "Chain",
                "client_email": "it@chain.test",
            },
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not License.objects.exists()

    def test_generate_requires_platform_admin(self, authenticated_client):
        response = authenticated_client.post(
            reverse("licensing:license_generate"), {"action": "generate_single"}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_list_filters(self, admin_client, license):
        LicenseService.generate(License.TRIAL, "Kiosk", "kiosk@x.test")

        response = admin_client.get(reverse("licensing:license_list"), {"type": "YEARLY"})
        assert response.data["pagination"]["total"] == 1

        response = admin_client.get(reverse("licensing:license_list"), {"search": "kiosk"})
        assert response.data["results"][0]["client_name"] == "Kiosk"


@pytest.mark.django_db
class TestActivation:
    def test_activate(self, api_client, license):
        response = activate(api_client, license, domain="pos.cornershop.test", hardware_id="HW-1")

        assert response.status_code == status.HTTP_200_OK
        assert ACTIVATION_KEY_FORMAT.match(response.data["activation_key"])
        assert response.data["license"]["license_key"] == license.license_key
        license.refresh_from_db()
        assert license.activation_count == 1

    def test_records_forwarded_ip(self, api_client, license):
        api_client.credentials(HTTP_X_FORWARDED_FOR="203.0.113.9, 10.0.0.1")

        activate(api_client, license)

        assert LicenseActivation.objects.get().ip_address == "203.0.113.9"

    def test_missing_fields(self, api_client, license):
        response = api_client.post(
            reverse("licensing:license_activate"),
            {"license_key": license.license_key},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_key(self, api_client, db):
        response = api_client.post(
            reverse("licensing:license_activate"),
            {"license_key": "AAAA-BBBB-CCCC-DDDD", "client_email": "x@x.test"},
            format="json",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_email_is_case_insensitive(self, api_client, license):
        response = activate(api_client, license, client_email="OWNER@CornerShop.test")

        assert response.status_code == status.HTTP_200_OK

    def test_email_mismatch(self, api_client, license):
        response = activate(api_client, license, client_email="someone@else.test")

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_suspended_license(self, api_client, license):
        license.status = License.SUSPENDED
        license.save()

        response = activate(api_client, license)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_expired_license_is_marked(self, api_client, license):
        license.expires_at = timezone.now() - timedelta(days=1)
        license.save()

        response = activate(api_client, license)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error"] == "License has expired"
        license.refresh_from_db()
        assert license.status == License.EXPIRED

    def test_domain_restriction(self, api_client, license):
        license.allowed_domains = ["pos.cornershop.test"]
        license.save()

        assert activate(api_client, license, domain="evil.test").status_code == 403
        assert activate(api_client, license, domain="pos.cornershop.test").status_code == 200

    def test_hardware_binding(self, api_client, license):
        license.hardware_id = "HW-BOUND"
        license.save()

        response = activate(api_client, license, hardware_id="HW-OTHER")

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_activation_limit(self, api_client, license):
        activate(api_client, license, hardware_id="HW-1")

        response = activate(api_client, license, hardware_id="HW-2")

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error"] == "Maximum number of activations reached"

    def test_reactivation_on_same_hardware_replaces_old(self, api_client, license):
        first = activate(api_client, license, hardware_id="HW-1").data["activation_key"]

        response = activate(api_client, license, hardware_id="HW-1")

        assert response.status_code == status.HTTP_200_OK
        assert not LicenseActivation.objects.get(activation_key=first).is_active
        license.refresh_from_db()
        assert license.activation_count == 1


@pytest.mark.django_db
class TestCheckAndDeactivate:
    def test_check_with_headers(self, api_client, license):
        activation_key = activate(api_client, license).data["activation_key"]
        api_client.credentials(
            HTTP_X_LICENSE_KEY=license.license_key, HTTP_X_ACTIVATION_KEY=activation_key
        )

        response = api_client.get(reverse("licensing:license_check"))

        assert response.data["activated"] is True
        license.refresh_from_db()
        assert license.last_verified_at is not None

    def test_check_without_headers(self, api_client, db):
        response = api_client.get(reverse("licensing:license_check"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["activated"] is False

    def test_check_post_key_mismatch(self, api_client, license):
        activation_key = activate(api_client, license).data["activation_key"]

        response = api_client.post(
            reverse("licensing:license_check"),
            {"license_key": "AAAA-BBBB-CCCC-DDDD", "activation_key": activation_key},
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["activated"] is False

    def test_check_post_requires_keys(self, api_client, db):
        response = api_client.post(reverse("licensing:license_check"), {}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_deactivate(self, api_client, license):
        activation_key = activate(api_client, license).data["activation_key"]

        response = api_client.post(
            reverse("licensing:license_deactivate"),
            {"activation_key": activation_key, "license_key": license.license_key, "reason": "moved"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        activation = LicenseActivation.objects.get(activation_key=activation_key)
        assert activation.is_active is False
        assert activation.deactivation_reason == "moved"
        license.refresh_from_db()
        assert license.activation_count == 0

    def test_deactivate_twice_keeps_count_at_zero(self, api_client, license):
        activation_key = activate(api_client, license).data["activation_key"]
        body = {"activation_key": activation_key, "license_key": license.license_key}

        api_client.post(reverse("licensing:license_deactivate"), body, format="json")
        api_client.post(reverse("licensing:license_deactivate"), body, format="json")

        license.refresh_from_db()
        assert license.activation_count == 0

    def test_deactivate_unknown_activation(self, api_client, license):
        response = api_client.post(
            reverse("licensing:license_deactivate"),
            {"activation_key": "NOPE", "license_key": license.license_key},
            format="json",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestLicenseMiddleware:
    @pytest.fixture(autouse=True)
    def enforce_licenses(self, settings):
        settings.LICENSE_ENFORCEMENT_ENABLED = True

    def test_unlicensed_request_is_rejected(self, authenticated_client):
        response = authenticated_client.get(reverse("core:store_list"))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"] == "License activation required"

    def test_valid_headers_pass(self, authenticated_client, license):
        activation = LicenseService.activate(license.license_key, license.client_email)
        authenticated_client.credentials(
            HTTP_X_LICENSE_KEY=license.license_key,
            HTTP_X_ACTIVATION_KEY=activation.activation_key,
        )

        response = authenticated_client.get(reverse("core:store_list"))

        assert response.status_code == status.HTTP_200_OK

    def test_invalid_headers_are_rejected(self, authenticated_client, license):
        authenticated_client.credentials(
            HTTP_X_LICENSE_KEY=license.license_key, HTTP_X_ACTIVATION_KEY="MISSING"
        )

        response = authenticated_client.get(reverse("core:store_list"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_localhost_activation_allows_headerless_requests(self, authenticated_client, license):
        LicenseService.activate(license.license_key, license.client_email, domain="localhost")

        response = authenticated_client.get(reverse("core:store_list"))

        assert response.status_code == status.HTTP_200_OK

    def test_demo_activation_allows_headerless_requests(self, authenticated_client, license, settings):
        settings.LICENSE_DEMO_ACTIVATION_KEY = "DEMO-KEY"
        LicenseActivation.objects.create(license=license, activation_key="DEMO-KEY")

        response = authenticated_client.get(reverse("core:store_list"))

        assert response.status_code == status.HTTP_200_OK

    def test_license_endpoints_are_exempt(self, api_client, db):
        response = api_client.get(reverse("licensing:license_check"))

        assert response.status_code == status.HTTP_200_OK

    def test_non_api_paths_are_exempt(self, client, db):
        response = client.get("/not-an-api-path/")

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
def test_enforcement_disabled_lets_everything_through(authenticated_client, settings):
    settings.LICENSE_ENFORCEMENT_ENABLED = False
    response = authenticated_client.get(reverse("core:store_list"))

    assert response.status_code == status.HTTP_200_OK
