"""
CRM models: customers, loyalty and the customer credit ledger.
"""

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from apps.core.models import Tenant, User
from apps.core.utils import next_sequence_number


class Customer(models.Model):
    """
    Customer of a tenant.

    Tracks contact details, loyalty standing and the outstanding ``due_balance``
    of sales made on credit.
    """

    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"

    TIER_CHOICES = [
        (BRONZE, "Bronze"),
        (SILVER, "Silver"),
        (GOLD, "Gold"),
        (PLATINUM, "Platinum"),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the customer",
    )

    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.CASCADE,
        related_name="customers",
        help_text="Tenant that owns this customer",
    )

    customer_number = models.CharField(
        max_length=50,
        help_text="Customer number (CUST-NNNNNN), generated when blank",
    )

    name = models.CharField(max_length=255, help_text="Customer's full name")

    email = models.EmailField(blank=True, help_text="Customer's email address")

    phone = models.CharField(max_length=20, blank=True, help_text="Customer's phone number")

    company = models.CharField(max_length=255, blank=True)

    address = models.TextField(blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)
    country = models.CharField(max_length=100, blank=True)

    notes = models.TextField(blank=True, help_text="Internal notes about the customer")

    loyalty_points = models.IntegerField(
        default=0,
        validators=[MinValueValidator(0)],
        help_text="Current loyalty points balance",
    )

    loyalty_tier = models.CharField(
        max_length=20,
        choices=TIER_CHOICES,
        default=BRONZE,
        help_text="Current loyalty tier",
    )

    total_spent = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Total amount spent by customer",
    )

    visit_count = models.IntegerField(default=0, help_text="Number of paid purchases")

    last_visit = models.DateTimeField(null=True, blank=True)

    due_balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Outstanding amount owed by the customer",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "crm_customers"
        ordering = ["-created_at"]
        unique_together = [["tenant", "customer_number"]]
        indexes = [
            models.Index(fields=["tenant", "phone"], name="customer_tenant_phone_idx"),
            models.Index(fields=["tenant", "email"], name="customer_tenant_email_idx"),
        ]

    def __str__(self):
        return f"{self.customer_number} - {self.name}"

    def save(self, *args, **kwargs):
        if not self.customer_number:
            self.customer_number = next_sequence_number(
                Customer.objects.filter(tenant_id=self.tenant_id), "customer_number", "CUST-", 6
            )
        super().save(*args, **kwargs)

    def update_loyalty_tier(self, tiers=None):
        """
        Move the customer to the highest tier whose ``min_spent`` does not
        exceed ``total_spent``.
        """
        from .services import LoyaltyService

        tier = LoyaltyService.tier_for_spending(
            self.total_spent, tiers if tiers is not None else LoyaltyService.get_tiers(self.tenant)
        )
        if tier and tier != self.loyalty_tier:
            self.loyalty_tier = tier
            self.save(update_fields=["loyalty_tier", "updated_at"])
        return self.loyalty_tier

    def add_loyalty_points(self, points, description="", transaction_type=None, sale=None):
        """Add loyalty points to customer account."""
        if points <= 0:
            return None

        self.loyalty_points += points
        self.save(update_fields=["loyalty_points", "updated_at"])

        return LoyaltyTransaction.objects.create(
            customer=self,
            transaction_type=transaction_type or LoyaltyTransaction.EARNED,
            points=points,
            description=description or f"Points earned: {points}",
            sale=sale,
        )

    def redeem_loyalty_points(self, points, description=""):
        """Redeem loyalty points from customer account."""
        if points <= 0 or points > self.loyalty_points:
            raise ValueError("Insufficient loyalty points")

        self.loyalty_points -= points
        self.save(update_fields=["loyalty_points", "updated_at"])

        return LoyaltyTransaction.objects.create(
            customer=self,
            transaction_type=LoyaltyTransaction.REDEEMED,
            points=-points,  # Negative for redemption
            description=description or f"Points redeemed: {points}",
        )

    def adjust_loyalty_points(self, points, description=""):
        """Apply a signed manual correction. The balance cannot go negative."""
        if points == 0:
            raise ValueError("Adjustment must be non-zero")
        if self.loyalty_points + points < 0:
            raise ValueError("Adjustment would make the points balance negative")

        self.loyalty_points += points
        self.save(update_fields=["loyalty_points", "updated_at"])

        return LoyaltyTransaction.objects.create(
            customer=self,
            transaction_type=LoyaltyTransaction.ADJUSTED,
            points=points,
            description=description or f"Points adjusted: {points}",
        )


class LoyaltyTransaction(models.Model):
    """
    Audit trail of loyalty point changes.
    """

    EARNED = "EARNED"
    REDEEMED = "REDEEMED"
    ADJUSTED = "ADJUSTED"
    BONUS = "BONUS"
    EXPIRED = "EXPIRED"

    TRANSACTION_TYPE_CHOICES = [
        (EARNED, "Points Earned"),
        (REDEEMED, "Points Redeemed"),
        (ADJUSTED, "Points Adjusted"),
        (BONUS, "Bonus Points"),
        (EXPIRED, "Points Expired"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    customer = models.ForeignKey(
        Customer,
        on_delete=models.CASCADE,
        related_name="loyalty_transactions",
        help_text="Customer for this transaction",
    )

    transaction_type = models.CharField(max_length=20, choices=TRANSACTION_TYPE_CHOICES)

    points = models.IntegerField(help_text="Points change (negative for redemptions)")

    description = models.CharField(max_length=255, blank=True)

    sale = models.ForeignKey(
        "sales.Sale",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="loyalty_transactions",
        help_text="Sale that earned the points",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "crm_loyalty_transactions"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.customer.name}: {self.transaction_type} {self.points}"


class LoyaltyProgram(models.Model):
    """
    Per-tenant loyalty configuration.

    ``tiers`` is a list of ``{"name", "min_spent", "discount"}`` objects.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant = models.OneToOneField(
        Tenant,
        on_delete=models.CASCADE,
        related_name="loyalty_program",
    )

    name = models.CharField(max_length=100, default="Loyalty Program")

    points_per_dollar = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        default=Decimal("1.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    signup_bonus = models.IntegerField(default=50, validators=[MinValueValidator(0)])

    tiers = models.JSONField(default=list, blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "crm_loyalty_programs"

    def __str__(self):
        return f"{self.name} ({self.tenant.company_name})"


class CustomerLedger(models.Model):
    """
    Running balance of what a customer owes.

    ``amount`` is signed (sales on credit are positive, payments negative) and
    ``balance`` is the balance after this entry.
    """

    SALE = "SALE"
    PAYMENT = "PAYMENT"
    RETURN = "RETURN"
    ADJUSTMENT = "ADJUSTMENT"

    ENTRY_TYPE_CHOICES = [
        (SALE, "Sale"),
        (PAYMENT, "Payment"),
        (RETURN, "Return"),
        (ADJUSTMENT, "Adjustment"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="customer_ledger")

    customer = models.ForeignKey(
        Customer, on_delete=models.CASCADE, related_name="ledger_entries"
    )

    entry_type = models.CharField(max_length=20, choices=ENTRY_TYPE_CHOICES)

    amount = models.DecimalField(max_digits=12, decimal_places=2)

    balance = models.DecimalField(max_digits=12, decimal_places=2)

    description = models.CharField(max_length=255, blank=True)

    reference_id = models.CharField(max_length=100, blank=True)

    date = models.DateTimeField(default=timezone.now)

    created_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "crm_customer_ledger"
        ordering = ["-date", "-created_at"]
        indexes = [
            models.Index(fields=["tenant", "customer"], name="cledger_tenant_customer_idx"),
        ]

    def __str__(self):
        return f"{self.customer.name} {self.entry_type} {self.amount} (balance {self.balance})"
