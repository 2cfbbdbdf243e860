"""
License services: generation, activation and verification.
"""

import logging

from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from dateutil.relativedelta import relativedelta

from apps.core.utils import random_code

from .models import License, LicenseActivation

logger = logging.getLogger(__name__)

# License lifetime per type; other types never expire
LICENSE_DURATIONS = {
    License.MONTHLY: relativedelta(months=1),
    License.YEARLY: relativedelta(years=1),
}


class LicenseError(ValueError):
    """A license operation was refused. ``status_code`` is the HTTP status to answer with."""

    def __init__(self, message, status_code=403):
        super().__init__(message)
        self.status_code = status_code


def generate_license_key():
    while True:
        key = random_code(16, group=4)
        if not License.objects.filter(license_key=key).exists():
            return key


def generate_activation_key():
    while True:
        key = random_code(32, group=8)
        if not LicenseActivation.objects.filter(activation_key=key).exists():
            return key


class LicenseService:
    @staticmethod
    def generate(license_type, client_name, client_email, max_users=1, max_stores=1, **extra):
        expires_at = None
        if license_type in LICENSE_DURATIONS:
            expires_at = timezone.now() + LICENSE_DURATIONS[license_type]

        license = License.objects.create(
            license_key=generate_license_key(),
            license_type=license_type,
            client_name=client_name,
            client_email=client_email,
            max_users=max_users,
            max_stores=max_stores,
            expires_at=expires_at,
            **extra,
        )
        logger.info(f"Generated {license_type} license {license.license_key} for {client_email}")
        return license

    @staticmethod
    @transaction.atomic
    def generate_bulk(count, license_type, client_name, client_email, **options):
        """Generate ``count`` licenses named ``"<client_name> #<n>"``."""
        return [
            LicenseService.generate(license_type, f"{client_name} #{number}", client_email, **options)
            for number in range(1, count + 1)
        ]

    @staticmethod
    def activate(
        license_key,
        client_email,
        domain="",
        hardware_id="",
        system_info=None,
        ip_address=None,
        user_agent="",
    ):
        """
        Activate a license on an installation.

        Live activations on the same hardware are replaced first. Raises
        ``LicenseError`` when the license cannot be activated.
        """
        license = License.objects.filter(license_key=license_key).first()
        if license is None:
            raise LicenseError("License key not found", 404)

        if license.status != License.ACTIVE:
            raise LicenseError(f"License is {license.status.lower()}")

        if license.is_expired():
            license.mark_expired()
            raise LicenseError("License has expired")

        if license.client_email.lower() != client_email.lower():
            raise LicenseError("Client email does not match license record")

        if license.allowed_domains and domain not in license.allowed_domains:
            raise LicenseError("Domain not allowed for this license")

        if license.hardware_id and hardware_id and hardware_id != license.hardware_id:
            raise LicenseError("Hardware binding mismatch")

        with transaction.atomic():
            if hardware_id:
                LicenseService._release_hardware(hardware_id)

            license = License.objects.select_for_update().get(pk=license.pk)
            if license.activation_count >= license.max_activations:
                raise LicenseError("Maximum number of activations reached")

            activation = LicenseActivation.objects.create(
                license=license,
                activation_key=generate_activation_key(),
                domain=domain or "",
                hardware_id=hardware_id or "",
                system_info=system_info or {},
                ip_address=ip_address,
                user_agent=user_agent or "",
            )

            now = timezone.now()
            license.activation_count += 1
            license.last_activated_at = now
            license.last_verified_at = now
            license.save()

        logger.info(f"License {license.license_key} activated ({activation.activation_key})")
        return activation

    @staticmethod
    def _release_hardware(hardware_id):
        replaced = LicenseActivation.objects.select_for_update().filter(
            hardware_id=hardware_id, is_active=True
        )
        for activation in replaced:
            activation.deactivate("New activation on same hardware")
            License.objects.filter(pk=activation.license_id, activation_count__gt=0).update(
                activation_count=F("activation_count") - 1
            )

    @staticmethod
    def verify(license_key, activation_key):
        """
        Check that an activation is live for ``license_key``.

        Stamps ``last_verified_at`` on success and returns the activation.
        """
        activation = (
            LicenseActivation.objects.select_related("license")
            .filter(activation_key=activation_key, is_active=True)
            .first()
        )
        if activation is None:
            raise LicenseError("Activation not found or inactive", 404)

        license = activation.license
        if license.license_key != license_key:
            raise LicenseError("License key mismatch")

        if license.status != License.ACTIVE:
            raise LicenseError(f"License is {license.status.lower()}")

        if license.is_expired():
            license.mark_expired()
            raise LicenseError("License has expired")

        now = timezone.now()
        License.objects.filter(pk=license.pk).update(last_verified_at=now)
        LicenseActivation.objects.filter(pk=activation.pk).update(last_verified_at=now)
        license.last_verified_at = now
        activation.last_verified_at = now
        return activation

    @staticmethod
    @transaction.atomic
    def deactivate(activation_key, license_key, reason=""):
        activation = (
            LicenseActivation.objects.select_related("license")
            .filter(activation_key=activation_key)
            .first()
        )
        if activation is None:
            raise LicenseError("Activation not found", 404)

        if activation.license.license_key != license_key:
            raise LicenseError("License key mismatch")

        if activation.is_active:
            activation.deactivate(reason or "Manual deactivation")
            License.objects.filter(pk=activation.license_id, activation_count__gt=0).update(
                activation_count=F("activation_count") - 1
            )
            logger.info(f"Activation {activation_key} deactivated")
        return activation

    @staticmethod
    def find_fallback_license(demo_activation_key):
        """
        License used when a request carries no license headers: an active
        license with a live demo or localhost activation.
        """
        activation = (
            LicenseActivation.objects.select_related("license")
            .filter(is_active=True, license__status=License.ACTIVE)
            .filter(Q(activation_key=demo_activation_key) | Q(domain="localhost"))
            .first()
        )
        return activation.license if activation else None
