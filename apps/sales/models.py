"""
Sales models for point of sale.

- Sales with line items and payments
- Sales on credit (``DUE``) tracked against the customer ledger
- Product returns with optional restocking
"""

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from apps.core.models import Store, Tenant, User
from apps.crm.models import Customer
from apps.inventory.models import Product


class Sale(models.Model):
    """
    Completed point of sale or imported e-commerce transaction.
    """

    # Payment methods
    CASH = "CASH"
    CARD = "CARD"
    MOBILE = "MOBILE"
    STORE_CREDIT = "STORE_CREDIT"
    DUE = "DUE"
    OTHER = "OTHER"

    PAYMENT_METHOD_CHOICES = [
        (CASH, "Cash"),
        (CARD, "Card"),
        (MOBILE, "Mobile Payment"),
        (STORE_CREDIT, "Store Credit"),
        (DUE, "Due (credit sale)"),
        (OTHER, "Other"),
    ]

    # Status choices
    COMPLETED = "COMPLETED"
    REFUNDED = "REFUNDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"
    CANCELLED = "CANCELLED"

    STATUS_CHOICES = [
        (COMPLETED, "Completed"),
        (REFUNDED, "Refunded"),
        (PARTIALLY_REFUNDED, "Partially Refunded"),
        (CANCELLED, "Cancelled"),
    ]

    SOURCE_POS = "POS"
    SOURCE_ECOMMERCE = "ECOMMERCE"

    SOURCE_CHOICES = [
        (SOURCE_POS, "Point of Sale"),
        (SOURCE_ECOMMERCE, "E-commerce"),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the sale",
    )

    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.CASCADE,
        related_name="sales",
        help_text="Tenant that owns this sale",
    )

    sale_number = models.CharField(
        max_length=50,
        help_text="Sale number (SALE-YYYYMMDD-NNNNNN)",
    )

    store = models.ForeignKey(
        Store,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="sales",
        help_text="Store where the sale was made",
    )

    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="sales",
        help_text="Customer who made the purchase (optional for walk-in)",
    )

    employee = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sales",
        help_text="Employee who processed the sale",
    )

    subtotal = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Sum of line totals",
    )

    tax_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    discount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Sale level discount",
    )

    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="subtotal + tax - discount",
    )

    payment_method = models.CharField(
        max_length=20, choices=PAYMENT_METHOD_CHOICES, default=CASH
    )

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=COMPLETED)

    source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default=SOURCE_POS)

    customer_name = models.CharField(max_length=255, blank=True)
    customer_email = models.EmailField(blank=True)

    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "sales"
        ordering = ["-created_at"]
        unique_together = [["tenant", "sale_number"]]
        indexes = [
            models.Index(fields=["tenant", "created_at"], name="sale_tenant_created_idx"),
            models.Index(fields=["tenant", "status"], name="sale_tenant_status_idx"),
            models.Index(fields=["store", "created_at"], name="sale_store_created_idx"),
        ]

    def __str__(self):
        return f"{self.sale_number} - {self.total_amount}"


class SaleItem(models.Model):
    """
    Line item of a sale.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name="items")

    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="sale_items")

    quantity = models.IntegerField(validators=[MinValueValidator(1)])

    unit_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    discount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    total_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="quantity * unit_price - discount",
    )

    class Meta:
        db_table = "sale_items"

    def __str__(self):
        return f"{self.quantity} x {self.product.name}"

    def save(self, *args, **kwargs):
        """Calculate total price before saving."""
        self.total_price = self.quantity * self.unit_price - self.discount
        super().save(*args, **kwargs)

    def returned_quantity(self):
        return self.return_items.aggregate(total=models.Sum("quantity"))["total"] or 0


class Payment(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name="payments")

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    method = models.CharField(max_length=20, choices=Sale.PAYMENT_METHOD_CHOICES)

    reference = models.CharField(max_length=100, blank=True, help_text="Card or transfer reference")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "sale_payments"
        ordering = ["created_at"]

    def __str__(self):
        return f"{self.method} {self.amount}"


class ProductReturn(models.Model):
    """
    Return of items from an earlier sale.
    """

    CASH = "CASH"
    CARD = "CARD"
    STORE_CREDIT = "STORE_CREDIT"
    ADJUSTMENT = "ADJUSTMENT"

    REFUND_TYPE_CHOICES = [
        (CASH, "Cash"),
        (CARD, "Card"),
        (STORE_CREDIT, "Store Credit"),
        (ADJUSTMENT, "Due Balance Adjustment"),
    ]

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"

    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (COMPLETED, "Completed"),
        (REJECTED, "Rejected"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="product_returns")

    return_number = models.CharField(max_length=50, help_text="Return number (RET-YYYYMMDD-NNNN)")

    sale = models.ForeignKey(Sale, on_delete=models.PROTECT, related_name="returns")

    customer = models.ForeignKey(
        Customer,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="returns",
    )

    store = models.ForeignKey(
        Store,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="returns",
    )

    processed_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="processed_returns"
    )

    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    refund_type = models.CharField(max_length=20, choices=REFUND_TYPE_CHOICES, default=CASH)

    restock_items = models.BooleanField(default=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=COMPLETED)

    reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "sale_returns"
        ordering = ["-created_at"]
        unique_together = [["tenant", "return_number"]]

    def __str__(self):
        return f"{self.return_number} for {self.sale.sale_number}"


class ReturnItem(models.Model):
    NEW = "NEW"
    OPENED = "OPENED"
    DAMAGED = "DAMAGED"

    CONDITION_CHOICES = [
        (NEW, "New"),
        (OPENED, "Opened"),
        (DAMAGED, "Damaged"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product_return = models.ForeignKey(
        ProductReturn, on_delete=models.CASCADE, related_name="items"
    )

    sale_item = models.ForeignKey(SaleItem, on_delete=models.PROTECT, related_name="return_items")

    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="return_items")

    quantity = models.IntegerField(validators=[MinValueValidator(1)])

    unit_price = models.DecimalField(max_digits=12, decimal_places=2)

    total_price = models.DecimalField(max_digits=12, decimal_places=2)

    reason = models.CharField(max_length=255, blank=True)

    condition = models.CharField(max_length=20, choices=CONDITION_CHOICES, default=NEW)

    restock = models.BooleanField(default=True)

    class Meta:
        db_table = "sale_return_items"

    def __str__(self):
        return f"{self.quantity} x {self.product.name}"

    def save(self, *args, **kwargs):
        self.total_price = self.quantity * self.unit_price
        super().save(*args, **kwargs)
