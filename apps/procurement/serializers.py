"""
Serializers for procurement app.
"""

from decimal import Decimal

from rest_framework import serializers

from apps.core.models import Store
from apps.core.serializers import TenantRelatedField
from apps.inventory.models import Product

from .models import PurchaseOrder, PurchaseOrderItem, Supplier, SupplierLedger


class SupplierSerializer(serializers.ModelSerializer):
    total_orders = serializers.IntegerField(source="get_total_orders", read_only=True)

    class Meta:
        model = Supplier
        fields = [
            "id",
            "name",
            "contact_person",
            "email",
            "phone",
            "address",
            "tax_id",
            "payment_terms",
            "rating",
            "balance",
            "is_active",
            "notes",
            "total_orders",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "balance", "created_at", "updated_at"]

    def validate_email(self, value):
        if not value:
            return value
        tenant = self.context.get("tenant")
        queryset = Supplier.objects.filter(tenant=tenant, email__iexact=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError("A supplier with this email already exists")
        return value


class SupplierLedgerSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)

    class Meta:
        model = SupplierLedger
        fields = [
            "id",
            "supplier",
            "supplier_name",
            "entry_type",
            "amount",
            "balance",
            "description",
            "reference_id",
            "date",
            "created_at",
        ]
        read_only_fields = fields


class SupplierLedgerEntrySerializer(serializers.Serializer):
    """Body of a manual supplier ledger entry."""

    supplier = TenantRelatedField(queryset=Supplier.objects.all())
    type = serializers.ChoiceField(choices=SupplierLedger.ENTRY_TYPE_CHOICES)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    reference_id = serializers.CharField(required=False, allow_blank=True, default="")
    date = serializers.DateTimeField(required=False)


class PurchaseOrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    product_sku = serializers.CharField(source="product.sku", read_only=True)
    remaining_quantity = serializers.IntegerField(read_only=True)

    class Meta:
        model = PurchaseOrderItem
        fields = [
            "id",
            "product",
            "product_name",
            "product_sku",
            "quantity",
            "received_quantity",
            "remaining_quantity",
            "unit_price",
            "total_price",
            "notes",
        ]
        read_only_fields = fields


class PurchaseOrderListSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    item_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = PurchaseOrder
        fields = [
            "id",
            "po_number",
            "supplier",
            "supplier_name",
            "store",
            "status",
            "total_amount",
            "expected_date",
            "received_date",
            "item_count",
            "created_at",
        ]
        read_only_fields = fields


class PurchaseOrderSerializer(serializers.ModelSerializer):
    """Purchase order detail with lines."""

    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    store_name = serializers.CharField(source="store.name", read_only=True, default=None)
    items = PurchaseOrderItemSerializer(many=True, read_only=True)
    received_percentage = serializers.FloatField(source="get_received_percentage", read_only=True)

    class Meta:
        model = PurchaseOrder
        fields = [
            "id",
            "po_number",
            "supplier",
            "supplier_name",
            "store",
            "store_name",
            "status",
            "subtotal",
            "tax_amount",
            "shipping",
            "total_amount",
            "expected_date",
            "received_date",
            "sent_at",
            "notes",
            "items",
            "received_percentage",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PurchaseOrderItemInputSerializer(serializers.Serializer):
    product = TenantRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.00")
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class PurchaseOrderCreateSerializer(serializers.Serializer):
    """
    Validates a new purchase order.

    Request body:
    {
        "supplier": "<uuid>",
        "store": "<uuid>",
        "items": [{"product": "<uuid>", "quantity": 10, "unit_price": "2.50"}],
        "shipping": "5.00",
        "expected_date": "2026-11-01",
        "notes": ""
    }
    """

    supplier = TenantRelatedField(queryset=Supplier.objects.all())
    store = TenantRelatedField(queryset=Store.objects.all(), required=False, allow_null=True)
    items = PurchaseOrderItemInputSerializer(many=True, allow_empty=False)
    shipping = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.00"), default=Decimal("0.00")
    )
    expected_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class PurchaseOrderUpdateSerializer(serializers.Serializer):
    store = TenantRelatedField(queryset=Store.objects.all(), required=False, allow_null=True)
    items = PurchaseOrderItemInputSerializer(many=True, required=False)
    shipping = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.00"), required=False
    )
    expected_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=PurchaseOrder.STATUS_CHOICES, required=False)


class ReceiveItemSerializer(serializers.Serializer):
    item = serializers.UUIDField()
    received_quantity = serializers.IntegerField(min_value=0)


class ReceivePurchaseOrderSerializer(serializers.Serializer):
    items = ReceiveItemSerializer(many=True, required=False)
