"""
License models for installation licensing.

A ``License`` is sold to a client and may be activated on a limited number
of installations. Each activation is a ``LicenseActivation`` identified by
its own activation key.
"""

import uuid

from django.db import models
from django.utils import timezone


class License(models.Model):
    TRIAL = "TRIAL"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"
    LIFETIME = "LIFETIME"

    TYPE_CHOICES = [
        (TRIAL, "Trial"),
        (MONTHLY, "Monthly"),
        (YEARLY, "Yearly"),
        (LIFETIME, "Lifetime"),
    ]

    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    EXPIRED = "EXPIRED"
    REVOKED = "REVOKED"

    STATUS_CHOICES = [
        (ACTIVE, "Active"),
        (SUSPENDED, "Suspended"),
        (EXPIRED, "Expired"),
        (REVOKED, "Revoked"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    license_key = models.CharField(
        max_length=19, unique=True, db_index=True, help_text="XXXX-XXXX-XXXX-XXXX"
    )
    license_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TRIAL)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=ACTIVE)

    client_name = models.CharField(max_length=255)
    client_email = models.EmailField()

    max_users = models.IntegerField(default=1)
    max_stores = models.IntegerField(default=1)
    max_activations = models.IntegerField(default=1)
    activation_count = models.IntegerField(default=0)

    allowed_domains = models.JSONField(
        default=list, blank=True, help_text="Domains the license may be activated on; empty allows any"
    )
    hardware_id = models.CharField(
        max_length=255, blank=True, help_text="Hardware the license is bound to, if any"
    )

    franchise = models.ForeignKey(
        "franchise.Franchise",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="licenses",
    )

    expires_at = models.DateTimeField(null=True, blank=True)
    last_activated_at = models.DateTimeField(null=True, blank=True)
    last_verified_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "licenses"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.license_key} ({self.license_type}, {self.status})"

    def is_expired(self, now=None):
        return self.expires_at is not None and (now or timezone.now()) > self.expires_at

    def mark_expired(self):
        self.status = self.EXPIRED
        self.save(update_fields=["status", "updated_at"])


class LicenseActivation(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    license = models.ForeignKey(License, on_delete=models.CASCADE, related_name="activations")
    activation_key = models.CharField(
        max_length=35, unique=True, db_index=True, help_text="XXXXXXXX-XXXXXXXX-XXXXXXXX-XXXXXXXX"
    )
    domain = models.CharField(max_length=255, blank=True)
    hardware_id = models.CharField(max_length=255, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)
    system_info = models.JSONField(default=dict, blank=True)

    is_active = models.BooleanField(default=True)
    activated_at = models.DateTimeField(auto_now_add=True)
    last_verified_at = models.DateTimeField(null=True, blank=True)
    deactivated_at = models.DateTimeField(null=True, blank=True)
    deactivation_reason = models.CharField(max_length=255, blank=True)

    class Meta:
        db_table = "license_activations"
        ordering = ["-activated_at"]
        indexes = [
            models.Index(fields=["license", "is_active"], name="activation_license_active_idx"),
            models.Index(fields=["hardware_id", "is_active"], name="activation_hardware_idx"),
        ]

    def __str__(self):
        return f"{self.activation_key} for {self.license.license_key}"

    def deactivate(self, reason=""):
        self.is_active = False
        self.deactivated_at = timezone.now()
        self.deactivation_reason = reason
        self.save(update_fields=["is_active", "deactivated_at", "deactivation_reason"])
