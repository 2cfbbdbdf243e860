"""
Procurement models for supplier and purchase order management.

This module contains models for managing suppliers, the supplier ledger,
purchase orders and purchase order items.
"""

import uuid
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from django_fsm import RETURN_VALUE, FSMField, transition

from apps.core.models import Store, Tenant, User
from apps.inventory.models import Product


class Supplier(models.Model):
    """
    Supplier model for managing vendor relationships.

    ``balance`` is what the tenant owes the supplier and follows the
    supplier ledger.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.CASCADE,
        related_name="suppliers",
        help_text="Tenant that owns this supplier",
    )

    # Basic Information
    name = models.CharField(max_length=255, help_text="Supplier company name")
    contact_person = models.CharField(
        max_length=255, blank=True, help_text="Primary contact person name"
    )

    # Contact Information
    email = models.EmailField(blank=True, help_text="Primary email address")
    phone = models.CharField(max_length=20, blank=True, help_text="Primary phone number")
    address = models.TextField(blank=True, help_text="Complete address")

    # Business Information
    tax_id = models.CharField(max_length=50, blank=True, help_text="Tax identification number")
    payment_terms = models.CharField(
        max_length=100, blank=True, help_text="Payment terms (e.g., Net 30, COD)"
    )

    rating = models.IntegerField(
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(5)],
        help_text="Supplier rating from 0-5 stars",
    )

    balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Amount owed to the supplier",
    )

    is_active = models.BooleanField(default=True, help_text="Whether supplier is active")
    notes = models.TextField(blank=True, help_text="Internal notes about supplier")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_suppliers",
    )

    class Meta:
        db_table = "procurement_suppliers"
        indexes = [
            models.Index(fields=["tenant", "is_active"], name="supplier_tenant_active_idx"),
            models.Index(fields=["tenant", "email"], name="supplier_tenant_email_idx"),
        ]
        ordering = ["name"]

    def __str__(self):
        return f"{self.name}"

    def get_total_orders(self):
        """Get total number of purchase orders for this supplier."""
        return self.purchase_orders.count()


class SupplierLedger(models.Model):
    """
    Running balance owed to a supplier.

    Purchases are positive, payments to the supplier negative.
    """

    PURCHASE = "PURCHASE"
    PAYMENT = "PAYMENT"
    RETURN = "RETURN"
    ADJUSTMENT = "ADJUSTMENT"

    ENTRY_TYPE_CHOICES = [
        (PURCHASE, "Purchase"),
        (PAYMENT, "Payment"),
        (RETURN, "Return"),
        (ADJUSTMENT, "Adjustment"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="supplier_ledger")
    supplier = models.ForeignKey(
        Supplier, on_delete=models.CASCADE, related_name="ledger_entries"
    )

    entry_type = models.CharField(max_length=20, choices=ENTRY_TYPE_CHOICES)
    amount = models.DecimalField(max_digits=12, decimal_places=2, help_text="Signed amount")
    balance = models.DecimalField(
        max_digits=12, decimal_places=2, help_text="Balance after this entry"
    )
    description = models.CharField(max_length=255, blank=True)
    reference_id = models.CharField(max_length=100, blank=True)
    date = models.DateTimeField(default=timezone.now)

    created_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "procurement_supplier_ledger"
        ordering = ["-date", "-created_at"]
        indexes = [
            models.Index(fields=["tenant", "supplier"], name="sledger_tenant_supplier_idx"),
        ]

    def __str__(self):
        return f"{self.supplier.name} {self.entry_type} {self.amount} (balance {self.balance})"


class PurchaseOrder(models.Model):
    """
    Purchase Order model with Finite State Machine for workflow management.

    DRAFT -> SENT -> CONFIRMED -> PARTIALLY_RECEIVED -> RECEIVED, with
    CANCELLED reachable until the order is confirmed.
    """

    DRAFT = "DRAFT"
    SENT = "SENT"
    CONFIRMED = "CONFIRMED"
    PARTIALLY_RECEIVED = "PARTIALLY_RECEIVED"
    RECEIVED = "RECEIVED"
    CANCELLED = "CANCELLED"

    STATUS_CHOICES = [
        (DRAFT, "Draft"),
        (SENT, "Sent to Supplier"),
        (CONFIRMED, "Confirmed"),
        (PARTIALLY_RECEIVED, "Partially Received"),
        (RECEIVED, "Received"),
        (CANCELLED, "Cancelled"),
    ]

    # Statuses in which the order can no longer be deleted
    LOCKED_STATUSES = [CONFIRMED, PARTIALLY_RECEIVED, RECEIVED]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.CASCADE,
        related_name="purchase_orders",
        help_text="Tenant that owns this purchase order",
    )

    po_number = models.CharField(max_length=50, help_text="Purchase order number (PO-YYYYMMDD-XXXXX)")
    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="purchase_orders",
        help_text="Supplier for this purchase order",
    )
    store = models.ForeignKey(
        Store,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="purchase_orders",
        help_text="Store that will receive the goods",
    )

    # Financial Information
    subtotal = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Subtotal before tax",
    )
    tax_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Tax amount",
    )
    shipping = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Shipping cost",
    )
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Total amount including tax and shipping",
    )

    status = FSMField(
        default=DRAFT, choices=STATUS_CHOICES, help_text="Current status of the purchase order"
    )

    expected_date = models.DateField(null=True, blank=True, help_text="Expected delivery date")
    received_date = models.DateTimeField(null=True, blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(blank=True, help_text="Internal notes about this purchase order")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_purchase_orders",
    )

    class Meta:
        db_table = "procurement_purchase_orders"
        unique_together = [["tenant", "po_number"]]
        indexes = [
            models.Index(fields=["tenant", "status"], name="po_tenant_status_idx"),
            models.Index(fields=["tenant", "supplier"], name="po_tenant_supplier_idx"),
        ]
        ordering = ["-created_at"]

    def __str__(self):
        return f"PO {self.po_number} - {self.supplier.name}"

    # FSM Transitions
    @transition(field=status, source=DRAFT, target=SENT)
    def send(self):
        """Mark order as sent to supplier."""
        self.sent_at = timezone.now()

    @transition(field=status, source=[DRAFT, SENT], target=CONFIRMED)
    def confirm(self):
        """Supplier confirmed the order."""

    @transition(
        field=status,
        source=[SENT, CONFIRMED, PARTIALLY_RECEIVED],
        target=RETURN_VALUE(PARTIALLY_RECEIVED, RECEIVED),
    )
    def receive(self):
        """
        Move to RECEIVED once every line is fully received, otherwise to
        PARTIALLY_RECEIVED.
        """
        self.received_date = timezone.now()
        if all(item.is_fully_received for item in self.items.all()):
            return self.RECEIVED
        return self.PARTIALLY_RECEIVED

    @transition(field=status, source=[DRAFT, SENT, CONFIRMED], target=CANCELLED)
    def cancel(self):
        """Cancel the purchase order."""

    def calculate_totals(self, tax_rate):
        """Calculate subtotal, tax, and total from line items."""
        self.subtotal = sum((item.total_price for item in self.items.all()), Decimal("0.00"))
        self.tax_amount = (self.subtotal * Decimal(str(tax_rate))).quantize(Decimal("0.01"))
        self.total_amount = self.subtotal + self.tax_amount + self.shipping
        self.save(update_fields=["subtotal", "tax_amount", "total_amount", "updated_at"])

    def get_received_percentage(self):
        """Calculate percentage of items received."""
        total_items = self.items.count()
        if total_items == 0:
            return 0

        received_items = sum(1 for item in self.items.all() if item.is_fully_received)
        return (received_items / total_items) * 100


class PurchaseOrderItem(models.Model):
    """
    Line items for purchase orders.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    purchase_order = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.CASCADE,
        related_name="items",
        help_text="Purchase order this item belongs to",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="purchase_order_items",
        help_text="Product being ordered",
    )

    # Quantities
    quantity = models.IntegerField(validators=[MinValueValidator(1)], help_text="Ordered quantity")
    received_quantity = models.IntegerField(
        default=0, validators=[MinValueValidator(0)], help_text="Quantity received so far"
    )

    # Pricing
    unit_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Price per unit",
    )
    total_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Total price for this line item",
    )

    notes = models.TextField(blank=True, help_text="Notes about this item")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "procurement_purchase_order_items"
        ordering = ["created_at"]

    def __str__(self):
        return f"{self.product.name} - {self.quantity} units"

    def save(self, *args, **kwargs):
        """Auto-calculate total price on save."""
        self.total_price = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    @property
    def remaining_quantity(self):
        """Calculate remaining quantity to be received."""
        return self.quantity - self.received_quantity

    @property
    def is_fully_received(self):
        """Check if item is fully received."""
        return self.received_quantity >= self.quantity

    def receive_quantity(self, quantity):
        """Receive a specific quantity of this item."""
        if quantity <= 0:
            raise ValueError("Quantity must be positive")

        if self.received_quantity + quantity > self.quantity:
            raise ValueError(
                f"Cannot receive more than ordered quantity for {self.product.name} "
                f"({self.remaining_quantity} outstanding)"
            )

        self.received_quantity += quantity
        self.save(update_fields=["received_quantity"])
