"""
Inventory models for retail stock management.

- Product catalogue organised in categories
- Stock levels per product and store
- Stock movement history for every quantity change
- Low stock, overstock and expiry alerts
- Inter-store stock transfers
"""

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from apps.core.models import Store, Tenant, User


class Category(models.Model):
    """
    Product categories for organizing the catalogue.

    Supports hierarchical categories with self-referential parent relationship.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the category",
    )

    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.CASCADE,
        related_name="categories",
        help_text="Tenant that owns this category",
    )

    name = models.CharField(max_length=100, help_text="Category name")

    parent = models.ForeignKey(
        "self",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="subcategories",
        help_text="Parent category for hierarchical organization",
    )

    description = models.TextField(blank=True, help_text="Optional description of the category")

    is_active = models.BooleanField(default=True, help_text="Whether this category is active")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "inventory_categories"
        ordering = ["name"]
        verbose_name = "Category"
        verbose_name_plural = "Categories"
        unique_together = [["tenant", "name", "parent"]]

    def __str__(self):
        if self.parent:
            return f"{self.parent.name} > {self.name}"
        return self.name

    def get_full_path(self):
        """Get the full category path (e.g., 'Beverages > Coffee > Beans')."""
        path = [self.name]
        parent = self.parent
        while parent:
            path.insert(0, parent.name)
            parent = parent.parent
        return " > ".join(path)


class Product(models.Model):
    """
    A sellable product in the tenant's catalogue.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the product",
    )

    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.CASCADE,
        related_name="products",
        help_text="Tenant that owns this product",
    )

    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="products",
        help_text="Product category",
    )

    name = models.CharField(max_length=255, help_text="Product name")

    description = models.TextField(blank=True)

    sku = models.CharField(max_length=100, blank=True, help_text="Stock Keeping Unit")

    barcode = models.CharField(max_length=100, blank=True, help_text="Barcode (EAN/UPC)")

    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Selling price",
    )

    cost_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Purchase cost per unit",
    )

    image_url = models.URLField(blank=True)

    is_active = models.BooleanField(default=True, help_text="Whether this product is for sale")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "inventory_products"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["tenant", "sku"], name="product_tenant_sku_idx"),
            models.Index(fields=["tenant", "barcode"], name="product_tenant_barcode_idx"),
        ]

    def __str__(self):
        return f"{self.sku} - {self.name}" if self.sku else self.name

    def total_quantity(self):
        """Units on hand across all stores."""
        return self.inventory_records.aggregate(total=models.Sum("quantity"))["total"] or 0


class Inventory(models.Model):
    """
    Stock level of a product at a store.

    ``store`` is null for stock that is not assigned to a location.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant = models.ForeignKey(
        Tenant,
        on_delete=models.CASCADE,
        related_name="inventory_records",
        help_text="Tenant that owns this stock",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="inventory_records",
        help_text="Product being stocked",
    )

    store = models.ForeignKey(
        Store,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="inventory_records",
        help_text="Store holding the stock",
    )

    quantity = models.IntegerField(
        default=0, validators=[MinValueValidator(0)], help_text="Units on hand"
    )

    min_stock = models.IntegerField(
        default=0,
        validators=[MinValueValidator(0)],
        help_text="Low stock threshold",
    )

    max_stock = models.IntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
        help_text="Overstock threshold",
    )

    cost_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Last purchase cost per unit",
    )

    expiry_date = models.DateField(null=True, blank=True, help_text="Expiry date of the stock")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "inventory_stock"
        verbose_name_plural = "Inventory"
        ordering = ["product__name"]
        unique_together = [["product", "store"]]
        indexes = [
            models.Index(fields=["tenant", "store"], name="stock_tenant_store_idx"),
        ]

    def __str__(self):
        return f"{self.product.name} @ {self.store or 'unassigned'}: {self.quantity}"

    def is_low_stock(self):
        """Check if item is at or below its minimum quantity threshold."""
        return self.quantity <= self.min_stock

    def calculate_total_value(self):
        """Calculate stock value (cost price * quantity)."""
        return self.cost_price * self.quantity


class StockMovement(models.Model):
    """
    Audit trail of every change to an inventory quantity.
    """

    IN = "IN"
    OUT = "OUT"
    ADJUSTMENT = "ADJUSTMENT"
    TRANSFER = "TRANSFER"

    TYPE_CHOICES = [
        (IN, "Stock In"),
        (OUT, "Stock Out"),
        (ADJUSTMENT, "Adjustment"),
        (TRANSFER, "Transfer"),
    ]

    REASON_PURCHASE = "PURCHASE"
    REASON_SALE = "SALE"
    REASON_RETURN = "RETURN"
    REASON_ADJUSTMENT = "ADJUSTMENT"
    REASON_TRANSFER = "TRANSFER"
    REASON_ECOMMERCE = "ECOMMERCE"

    REASON_CHOICES = [
        (REASON_PURCHASE, "Purchase"),
        (REASON_SALE, "Sale"),
        (REASON_RETURN, "Return"),
        (REASON_ADJUSTMENT, "Adjustment"),
        (REASON_TRANSFER, "Transfer"),
        (REASON_ECOMMERCE, "E-commerce Order"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="stock_movements")

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="stock_movements")

    inventory = models.ForeignKey(
        Inventory, on_delete=models.CASCADE, related_name="movements"
    )

    store = models.ForeignKey(
        Store,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="stock_movements",
    )

    movement_type = models.CharField(max_length=20, choices=TYPE_CHOICES)

    quantity = models.IntegerField(help_text="Units moved (signed for adjustments)")

    reason = models.CharField(max_length=20, choices=REASON_CHOICES)

    reference_id = models.CharField(
        max_length=100, blank=True, help_text="ID of the sale, order or transfer that caused it"
    )

    notes = models.TextField(blank=True)

    created_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="stock_movements"
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "inventory_stock_movements"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["tenant", "product"], name="movement_tenant_product_idx"),
            models.Index(fields=["tenant", "movement_type"], name="movement_tenant_type_idx"),
        ]

    def __str__(self):
        return f"{self.movement_type} {self.quantity} x {self.product.name}"


class InventoryAlert(models.Model):
    """
    Stock condition that needs attention.
    """

    LOW_STOCK = "LOW_STOCK"
    OVERSTOCK = "OVERSTOCK"
    EXPIRING = "EXPIRING"

    TYPE_CHOICES = [
        (LOW_STOCK, "Low Stock"),
        (OVERSTOCK, "Overstock"),
        (EXPIRING, "Expiring"),
    ]

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"

    SEVERITY_CHOICES = [
        (CRITICAL, "Critical"),
        (HIGH, "High"),
        (MEDIUM, "Medium"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="inventory_alerts")

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="alerts")

    inventory = models.ForeignKey(Inventory, on_delete=models.CASCADE, related_name="alerts")

    alert_type = models.CharField(max_length=20, choices=TYPE_CHOICES)

    severity = models.CharField(max_length=20, choices=SEVERITY_CHOICES)

    message = models.CharField(max_length=500)

    is_resolved = models.BooleanField(default=False)

    resolved_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "inventory_alerts"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["tenant", "is_resolved"], name="alert_tenant_resolved_idx"),
        ]

    def __str__(self):
        return f"[{self.severity}] {self.message}"


class StockTransfer(models.Model):
    """
    Movement of stock between two stores of the same tenant.
    """

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (COMPLETED, "Completed"),
        (CANCELLED, "Cancelled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="stock_transfers")

    transfer_number = models.CharField(max_length=50, help_text="Transfer reference number")

    from_store = models.ForeignKey(
        Store, on_delete=models.PROTECT, related_name="outgoing_transfers"
    )

    to_store = models.ForeignKey(Store, on_delete=models.PROTECT, related_name="incoming_transfers")

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING)

    transfer_date = models.DateTimeField(auto_now_add=True)

    expected_date = models.DateField(null=True, blank=True)

    completed_at = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(blank=True)

    requested_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="stock_transfers"
    )

    class Meta:
        db_table = "inventory_stock_transfers"
        ordering = ["-transfer_date"]
        unique_together = [["tenant", "transfer_number"]]

    def __str__(self):
        return f"{self.transfer_number}: {self.from_store} -> {self.to_store}"


class StockTransferItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    transfer = models.ForeignKey(StockTransfer, on_delete=models.CASCADE, related_name="items")

    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="transfer_items")

    quantity = models.IntegerField(validators=[MinValueValidator(1)])

    unit_cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    notes = models.TextField(blank=True)

    class Meta:
        db_table = "inventory_stock_transfer_items"

    def __str__(self):
        return f"{self.quantity} x {self.product.name}"
