"""
Accounting models: money accounts, expense categories and expenses.

Paying an expense debits the linked account's balance.
"""

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from apps.core.models import Store, Tenant, User


class Account(models.Model):
    """
    A place money is kept: till, bank account, mobile wallet or credit line.
    """

    CASH = "CASH"
    BANK = "BANK"
    MOBILE = "MOBILE"
    CREDIT = "CREDIT"

    ACCOUNT_TYPE_CHOICES = [
        (CASH, "Cash"),
        (BANK, "Bank"),
        (MOBILE, "Mobile Money"),
        (CREDIT, "Credit"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="accounts")
    store = models.ForeignKey(
        Store,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="accounts",
        help_text="Store this account belongs to, empty for company-wide accounts",
    )

    name = models.CharField(max_length=255)
    account_type = models.CharField(max_length=20, choices=ACCOUNT_TYPE_CHOICES, default=CASH)
    account_number = models.CharField(max_length=100, blank=True)
    balance = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"), help_text="Current balance"
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "accounting_accounts"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["tenant", "account_type"], name="account_tenant_type_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.get_account_type_display()})"

    def debit(self, amount):
        """Take ``amount`` out of the account."""
        if amount > self.balance:
            raise ValueError(
                f"Insufficient funds in {self.name}. Balance: {self.balance}, required: {amount}"
            )
        self.balance -= amount
        self.save(update_fields=["balance", "updated_at"])


class ExpenseCategory(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        Tenant, on_delete=models.CASCADE, related_name="expense_categories"
    )
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "accounting_expense_categories"
        ordering = ["name"]
        unique_together = [["tenant", "name"]]
        verbose_name_plural = "Expense categories"

    def __str__(self):
        return self.name


class Expense(models.Model):
    """
    A business expense.

    Moves PENDING -> APPROVED | REJECTED -> PAID; a PAID expense is final.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    PAID = "PAID"
    REJECTED = "REJECTED"

    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (APPROVED, "Approved"),
        (PAID, "Paid"),
        (REJECTED, "Rejected"),
    ]

    PAYMENT_METHOD_CHOICES = [
        ("CASH", "Cash"),
        ("CHECK", "Check"),
        ("BANK_TRANSFER", "Bank Transfer"),
        ("CARD", "Card"),
        ("MOBILE", "Mobile Money"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="expenses")
    store = models.ForeignKey(
        Store, on_delete=models.SET_NULL, null=True, blank=True, related_name="expenses"
    )
    category = models.ForeignKey(
        ExpenseCategory,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="expenses",
    )
    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="expenses",
        help_text="Account the expense is paid from",
    )

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
        help_text="Expense amount",
    )
    description = models.CharField(max_length=255, help_text="Expense description")
    date = models.DateField(default=timezone.localdate)
    payment_method = models.CharField(
        max_length=20, choices=PAYMENT_METHOD_CHOICES, default="CASH"
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING)
    receipt_url = models.URLField(blank=True)
    notes = models.TextField(blank=True, help_text="Additional notes")
    paid_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="created_expenses"
    )

    class Meta:
        db_table = "accounting_expenses"
        ordering = ["-date", "-created_at"]
        indexes = [
            models.Index(fields=["tenant", "status"], name="expense_tenant_status_idx"),
            models.Index(fields=["tenant", "date"], name="expense_tenant_date_idx"),
        ]

    def __str__(self):
        return f"{self.description} - {self.amount}"


class ExpenseItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    expense = models.ForeignKey(Expense, on_delete=models.CASCADE, related_name="items")
    description = models.CharField(max_length=255)
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Unit amount",
    )
    quantity = models.IntegerField(default=1, validators=[MinValueValidator(1)])

    class Meta:
        db_table = "accounting_expense_items"

    def __str__(self):
        return f"{self.description} x{self.quantity}"

    @property
    def total(self):
        return self.amount * self.quantity
