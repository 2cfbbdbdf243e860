"""
Core models for the retail POS platform.

Tenants, their stores and the users that work in them.
"""

import uuid
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.text import slugify


class Tenant(models.Model):
    """
    Core tenant model for multi-tenancy.

    Each tenant represents a retail business that subscribes to the platform.
    Every tenant-owned row carries a ``tenant`` foreign key and API views
    scope their querysets to ``request.user.tenant``.
    """

    # Status choices
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    PENDING_DELETION = "PENDING_DELETION"

    STATUS_CHOICES = [
        (ACTIVE, "Active"),
        (SUSPENDED, "Suspended"),
        (PENDING_DELETION, "Pending Deletion"),
    ]

    # Plan choices
    PLAN_BASIC = "basic"
    PLAN_PROFESSIONAL = "professional"
    PLAN_ENTERPRISE = "enterprise"

    PLAN_CHOICES = [
        (PLAN_BASIC, "Basic"),
        (PLAN_PROFESSIONAL, "Professional"),
        (PLAN_ENTERPRISE, "Enterprise"),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the tenant",
    )

    company_name = models.CharField(max_length=255, help_text="Name of the retail business")

    slug = models.SlugField(
        unique=True, max_length=255, help_text="URL-friendly identifier for the tenant"
    )

    email = models.EmailField(unique=True, help_text="Primary contact email for the tenant")

    plan = models.CharField(
        max_length=20,
        choices=PLAN_CHOICES,
        default=PLAN_BASIC,
        help_text="Subscription plan",
    )

    max_users = models.PositiveIntegerField(default=5, help_text="Maximum number of users")

    max_stores = models.PositiveIntegerField(default=1, help_text="Maximum number of stores")

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=ACTIVE,
        help_text="Current operational status of the tenant",
    )

    trial_ends_at = models.DateTimeField(
        null=True, blank=True, help_text="End of the free trial period"
    )

    suspended_at = models.DateTimeField(
        null=True, blank=True, help_text="Timestamp when the tenant was suspended"
    )

    created_at = models.DateTimeField(
        auto_now_add=True, help_text="Timestamp when the tenant was created"
    )

    updated_at = models.DateTimeField(
        auto_now=True, help_text="Timestamp when the tenant was last updated"
    )

    class Meta:
        db_table = "tenants"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="tenant_status_idx"),
        ]
        verbose_name = "Tenant"
        verbose_name_plural = "Tenants"

    def __str__(self):
        return f"{self.company_name} ({self.status})"

    def save(self, *args, **kwargs):
        """
        Override save to auto-generate slug from company_name if not provided.
        """
        if not self.slug:
            self.slug = slugify(self.company_name)
            # Ensure uniqueness by appending UUID if slug already exists
            if Tenant.objects.filter(slug=self.slug).exists():
                self.slug = f"{self.slug}-{str(uuid.uuid4())[:8]}"
        super().save(*args, **kwargs)

    def is_active(self):
        """Check if tenant is in active status."""
        return self.status == self.ACTIVE

    def start_trial(self, days=None):
        """Set the trial end date, defaulting to ``TENANT_TRIAL_DAYS``."""
        if days is None:
            days = settings.TENANT_TRIAL_DAYS
        self.trial_ends_at = timezone.now() + timedelta(days=days)

    def suspend(self):
        """Suspend the tenant account. Data is retained."""
        self.status = self.SUSPENDED
        self.suspended_at = timezone.now()
        self.save(update_fields=["status", "suspended_at", "updated_at"])

    def activate(self):
        """Reactivate a suspended tenant."""
        self.status = self.ACTIVE
        self.suspended_at = None
        self.save(update_fields=["status", "suspended_at", "updated_at"])


class Store(models.Model):
    """
    A physical store (location) of a tenant.

    Inventory, sales, expenses and time entries are tracked per store.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the store",
    )

    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.CASCADE,
        related_name="stores",
        help_text="Tenant that owns this store",
    )

    name = models.CharField(max_length=255, help_text="Store name")

    code = models.CharField(max_length=20, help_text="Short store code, unique per tenant")

    address = models.TextField(blank=True, help_text="Street address")
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)
    country = models.CharField(max_length=100, blank=True)

    phone = models.CharField(max_length=20, blank=True, help_text="Store phone number")

    email = models.EmailField(blank=True, help_text="Store email address")

    timezone = models.CharField(max_length=64, default="UTC", help_text="Store time zone")

    currency = models.CharField(max_length=3, default="USD", help_text="ISO currency code")

    manager = models.ForeignKey(
        "User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="managed_stores",
        help_text="Store manager (must be a user from the same tenant)",
    )

    opening_hours = models.JSONField(
        default=dict,
        blank=True,
        help_text="Opening hours (e.g., {'monday': '9:00-18:00'})",
    )

    is_headquarters = models.BooleanField(
        default=False, help_text="Whether this store is the tenant's headquarters"
    )

    is_active = models.BooleanField(default=True, help_text="Whether the store is active")

    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "stores"
        ordering = ["name"]
        verbose_name = "Store"
        verbose_name_plural = "Stores"
        unique_together = [["tenant", "code"]]
        indexes = [
            models.Index(fields=["tenant", "is_active"], name="store_tenant_active_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.code})"

    def make_headquarters(self):
        """Flag this store as headquarters and clear the flag on the tenant's other stores."""
        Store.objects.filter(tenant_id=self.tenant_id, is_headquarters=True).exclude(
            pk=self.pk
        ).update(is_headquarters=False)
        if not self.is_headquarters:
            self.is_headquarters = True
            self.save(update_fields=["is_headquarters", "updated_at"])


class User(AbstractUser):
    """
    Extended user model with tenant association and additional fields.

    Supports multi-tenancy with role-based access control. Franchise users
    belong to a franchise rather than to a tenant.
    """

    # Role choices
    PLATFORM_ADMIN = "PLATFORM_ADMIN"
    TENANT_OWNER = "TENANT_OWNER"
    TENANT_MANAGER = "TENANT_MANAGER"
    TENANT_EMPLOYEE = "TENANT_EMPLOYEE"
    FRANCHISE_USER = "FRANCHISE_USER"

    ROLE_CHOICES = [
        (PLATFORM_ADMIN, "Platform Administrator"),
        (TENANT_OWNER, "Shop Owner"),
        (TENANT_MANAGER, "Shop Manager"),
        (TENANT_EMPLOYEE, "Shop Employee"),
        (FRANCHISE_USER, "Franchise User"),
    ]

    TENANT_ROLES = [TENANT_OWNER, TENANT_MANAGER, TENANT_EMPLOYEE]

    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="users",
        help_text="Tenant that this user belongs to (null for platform and franchise users)",
    )

    role = models.CharField(
        max_length=50,
        choices=ROLE_CHOICES,
        default=TENANT_EMPLOYEE,
        help_text="User's role in the system",
    )

    store = models.ForeignKey(
        Store,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="users",
        help_text="Store that this user is assigned to",
    )

    phone = models.CharField(
        max_length=20,
        blank=True,
        help_text="User's phone number",
    )

    hourly_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0)],
        help_text="Hourly pay rate used for payroll generation",
    )

    class Meta:
        db_table = "users"
        ordering = ["username"]
        verbose_name = "User"
        verbose_name_plural = "Users"
        indexes = [
            models.Index(fields=["tenant", "role"], name="user_tenant_role_idx"),
        ]

    def __str__(self):
        if self.tenant:
            return f"{self.username} ({self.get_role_display()} - {self.tenant.company_name})"
        return f"{self.username} ({self.get_role_display()})"

    def is_platform_admin(self):
        """Check if user is a platform administrator."""
        return self.role == self.PLATFORM_ADMIN

    def is_tenant_owner(self):
        """Check if user is a tenant owner."""
        return self.role == self.TENANT_OWNER

    def is_tenant_manager(self):
        """Check if user is a tenant manager."""
        return self.role == self.TENANT_MANAGER

    def has_tenant_access(self):
        """Check if user has access to tenant features."""
        return self.tenant_id is not None and self.role in self.TENANT_ROLES

    def save(self, *args, **kwargs):
        """
        Override save to ensure data consistency.
        """
        # Platform admins and franchise users are not tenant members
        if self.role in [self.PLATFORM_ADMIN, self.FRANCHISE_USER]:
            self.tenant = None
            self.store = None

        if self.role in self.TENANT_ROLES and not self.tenant_id:
            raise ValueError(f"Users with role {self.role} must have a tenant assigned")

        if self.store_id and self.tenant_id:
            store_tenant_id = (
                Store.objects.filter(id=self.store_id).values_list("tenant_id", flat=True).first()
            )
            if store_tenant_id != self.tenant_id:
                raise ValueError("Store must belong to the same tenant as the user")

        super().save(*args, **kwargs)
