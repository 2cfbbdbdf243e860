"""
Franchise models: reseller franchises, their users and clients, and the
royalty payments they owe the platform.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from apps.core.models import User


def default_one_time_fee():
    return Decimal(settings.FRANCHISE_DEFAULT_FEES["one_time_fee"])


def default_monthly_fee():
    return Decimal(settings.FRANCHISE_DEFAULT_FEES["monthly_fee"])


def default_max_clients():
    return settings.FRANCHISE_DEFAULT_FEES["max_clients"]


class Franchise(models.Model):
    """
    A reseller organisation.

    Applications start PENDING and only APPROVED, unblocked franchises can
    use the franchise API.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"

    STATUS_CHOICES = [
        (PENDING, "Pending Approval"),
        (APPROVED, "Approved"),
        (REJECTED, "Rejected"),
        (SUSPENDED, "Suspended"),
    ]

    # Statuses that lock the franchise out of its API
    INACTIVE_STATUSES = [PENDING, REJECTED, SUSPENDED]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    email = models.EmailField(unique=True, help_text="Franchise contact email, used for login")
    contact_person = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, blank=True)
    address = models.TextField(blank=True)
    website = models.URLField(blank=True)
    tax_id = models.CharField(max_length=50, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING)

    one_time_fee = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=default_one_time_fee,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Fee owed once per onboarded client",
    )
    monthly_fee = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=default_monthly_fee,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Fee owed per client per month",
    )
    max_clients = models.IntegerField(default=default_max_clients, validators=[MinValueValidator(0)])
    current_clients = models.IntegerField(default=0)
    outstanding_balance = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    total_revenue = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    is_blocked = models.BooleanField(default=False)
    block_reason = models.CharField(max_length=255, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "franchises"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.name} ({self.status})"


class FranchiseUser(models.Model):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    STAFF = "STAFF"

    ROLE_CHOICES = [
        (ADMIN, "Admin"),
        (MANAGER, "Manager"),
        (STAFF, "Staff"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    franchise = models.ForeignKey(Franchise, on_delete=models.CASCADE, related_name="users")
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="franchise_membership")
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=STAFF)
    permissions = models.JSONField(default=list, blank=True, help_text="Granted permission names")
    is_active = models.BooleanField(default=True)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "franchise_users"
        ordering = ["-joined_at"]

    def __str__(self):
        return f"{self.user.email} ({self.role}) @ {self.franchise.name}"

    def has_permission(self, permission):
        return self.role == self.ADMIN or permission in (self.permissions or [])


class FranchiseClient(models.Model):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"

    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (ACTIVE, "Active"),
        (INACTIVE, "Inactive"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    franchise = models.ForeignKey(Franchise, on_delete=models.CASCADE, related_name="clients")
    client_id = models.CharField(max_length=50, unique=True, help_text="Public client reference")
    client_name = models.CharField(max_length=255)
    client_email = models.EmailField()
    client_company = models.CharField(max_length=255, blank=True)
    client_phone = models.CharField(max_length=20, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING)

    one_time_fee_paid = models.BooleanField(default=False)
    monthly_fee_paid = models.BooleanField(default=False)
    total_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    last_payment_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "franchise_clients"
        ordering = ["-created_at"]
        unique_together = [["franchise", "client_email"]]

    def __str__(self):
        return f"{self.client_name} ({self.client_email})"


class RoyaltyPayment(models.Model):
    ONE_TIME = "ONE_TIME"
    MONTHLY = "MONTHLY"

    PAYMENT_TYPE_CHOICES = [
        (ONE_TIME, "One-time"),
        (MONTHLY, "Monthly"),
    ]

    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"

    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (PAID, "Paid"),
        (OVERDUE, "Overdue"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    franchise = models.ForeignKey(
        Franchise, on_delete=models.CASCADE, related_name="royalty_payments"
    )
    client = models.ForeignKey(
        FranchiseClient,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="royalty_payments",
    )
    amount = models.DecimalField(
        max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal("0.00"))]
    )
    payment_type = models.CharField(max_length=20, choices=PAYMENT_TYPE_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING)
    due_date = models.DateTimeField()
    paid_date = models.DateTimeField(null=True, blank=True)
    payment_method = models.CharField(max_length=50, blank=True)
    transaction_id = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "franchise_royalty_payments"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["franchise", "status"], name="royalty_franchise_status_idx"),
            models.Index(fields=["status", "due_date"], name="royalty_status_due_idx"),
        ]

    def __str__(self):
        return f"{self.payment_type} {self.amount} for {self.franchise.name} ({self.status})"
