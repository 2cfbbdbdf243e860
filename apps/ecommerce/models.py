"""
E-commerce models: connected online stores and the orders they send in.
"""

import uuid
from decimal import Decimal

from django.db import models

from django_fsm import FSMField, transition

from apps.core.models import Store, Tenant


class EcommerceStore(models.Model):
    """An online storefront whose orders are imported into the POS."""

    SHOPIFY = "SHOPIFY"
    WOOCOMMERCE = "WOOCOMMERCE"
    MAGENTO = "MAGENTO"
    CUSTOM = "CUSTOM"

    PLATFORM_CHOICES = [
        (SHOPIFY, "Shopify"),
        (WOOCOMMERCE, "WooCommerce"),
        (MAGENTO, "Magento"),
        (CUSTOM, "Custom"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="ecommerce_stores")
    name = models.CharField(max_length=255)
    platform = models.CharField(max_length=20, choices=PLATFORM_CHOICES)
    store_url = models.URLField()
    api_key = models.CharField(max_length=255)
    api_secret = models.CharField(max_length=255, blank=True)
    store = models.ForeignKey(
        Store,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="ecommerce_stores",
        help_text="POS store whose inventory fulfils online orders",
    )
    is_active = models.BooleanField(default=True)
    last_sync_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "ecommerce_stores"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.name} ({self.platform})"


class EcommerceOrder(models.Model):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (PROCESSING, "Processing"),
        (SHIPPED, "Shipped"),
        (DELIVERED, "Delivered"),
        (CANCELLED, "Cancelled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="ecommerce_orders")
    ecommerce_store = models.ForeignKey(
        EcommerceStore, on_delete=models.CASCADE, related_name="orders"
    )
    external_order_id = models.CharField(max_length=100, help_text="Order id on the platform")
    order_number = models.CharField(max_length=100, blank=True)

    customer_name = models.CharField(max_length=255)
    customer_email = models.EmailField(blank=True)
    customer_phone = models.CharField(max_length=20, blank=True)
    shipping_address = models.JSONField(default=dict, blank=True)
    billing_address = models.JSONField(default=dict, blank=True)
    items = models.JSONField(
        default=list, help_text="List of {sku, name, quantity, price, total} dicts"
    )

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    shipping = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    payment_method = models.CharField(max_length=50, blank=True)

    status = FSMField(default=PENDING, choices=STATUS_CHOICES)
    sale = models.OneToOneField(
        "sales.Sale",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="ecommerce_order",
    )
    ordered_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "ecommerce_orders"
        ordering = ["-created_at"]
        unique_together = [["ecommerce_store", "external_order_id"]]
        indexes = [
            models.Index(fields=["tenant", "status"], name="ecom_order_tenant_status_idx"),
        ]

    def __str__(self):
        return f"{self.order_number or self.external_order_id} ({self.status})"

    @property
    def is_imported(self):
        return self.sale_id is not None

    @transition(field=status, source=PENDING, target=PROCESSING)
    def start_processing(self):
        """Order was imported into the POS."""

    @transition(field=status, source=PROCESSING, target=SHIPPED)
    def ship(self):
        pass

    @transition(field=status, source=SHIPPED, target=DELIVERED)
    def deliver(self):
        pass

    @transition(field=status, source=[PENDING, PROCESSING], target=CANCELLED)
    def cancel(self):
        pass
