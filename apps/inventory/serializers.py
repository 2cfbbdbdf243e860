"""
Serializers for inventory models.
"""

from rest_framework import serializers

from apps.core.models import Store
from apps.core.serializers import TenantRelatedField

from .models import (
    Category,
    Inventory,
    InventoryAlert,
    Product,
    StockMovement,
    StockTransfer,
    StockTransferItem,
)


class CategorySerializer(serializers.ModelSerializer):
    """Serializer for Category model."""

    full_path = serializers.CharField(source="get_full_path", read_only=True)
    parent = TenantRelatedField(queryset=Category.objects.all(), required=False, allow_null=True)
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = [
            "id",
            "name",
            "parent",
            "full_path",
            "description",
            "is_active",
            "product_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def get_product_count(self, obj):
        return obj.products.count()

    def validate(self, data):
        """Prevent circular parent relationships."""
        parent = data.get("parent")
        if parent and self.instance:
            current = parent
            while current:
                if current == self.instance:
                    raise serializers.ValidationError(
                        {"parent": "Circular parent relationship detected."}
                    )
                current = current.parent
        return data


class ProductSerializer(serializers.ModelSerializer):
    """Serializer for Product model with aggregated stock."""

    category = TenantRelatedField(queryset=Category.objects.all(), required=False, allow_null=True)
    category_name = serializers.CharField(source="category.name", read_only=True)
    total_quantity = serializers.IntegerField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "sku",
            "barcode",
            "price",
            "cost_price",
            "category",
            "category_name",
            "image_url",
            "is_active",
            "total_quantity",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]


class InventorySerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    product_sku = serializers.CharField(source="product.sku", read_only=True)
    store_name = serializers.CharField(source="store.name", read_only=True, default=None)
    is_low_stock = serializers.BooleanField(read_only=True)
    total_value = serializers.DecimalField(
        source="calculate_total_value",
        max_digits=14,
        decimal_places=2,
        read_only=True,
    )

    class Meta:
        model = Inventory
        fields = [
            "id",
            "product",
            "product_name",
            "product_sku",
            "store",
            "store_name",
            "quantity",
            "min_stock",
            "max_stock",
            "cost_price",
            "expiry_date",
            "is_low_stock",
            "total_value",
            "updated_at",
        ]
        read_only_fields = fields


class StockAdjustmentSerializer(serializers.Serializer):
    """Validates the body of an inventory adjustment."""

    adjustment_type = serializers.ChoiceField(choices=["ADD", "DEDUCT", "SET"])
    quantity = serializers.IntegerField(min_value=0)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class StockMovementSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    store_name = serializers.CharField(source="store.name", read_only=True, default=None)
    created_by_name = serializers.CharField(
        source="created_by.username", read_only=True, default=None
    )

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "product",
            "product_name",
            "inventory",
            "store",
            "store_name",
            "movement_type",
            "quantity",
            "reason",
            "reference_id",
            "notes",
            "created_by",
            "created_by_name",
            "created_at",
        ]
        read_only_fields = fields


class InventoryAlertSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    current_quantity = serializers.IntegerField(source="inventory.quantity", read_only=True)

    class Meta:
        model = InventoryAlert
        fields = [
            "id",
            "product",
            "product_name",
            "inventory",
            "current_quantity",
            "alert_type",
            "severity",
            "message",
            "is_resolved",
            "resolved_at",
            "created_at",
        ]
        read_only_fields = fields


class StockTransferItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = StockTransferItem
        fields = ["id", "product", "product_name", "quantity", "unit_cost", "notes"]
        read_only_fields = fields


class StockTransferSerializer(serializers.ModelSerializer):
    """Read serializer for transfers with nested items."""

    from_store_name = serializers.CharField(source="from_store.name", read_only=True)
    to_store_name = serializers.CharField(source="to_store.name", read_only=True)
    items = StockTransferItemSerializer(many=True, read_only=True)

    class Meta:
        model = StockTransfer
        fields = [
            "id",
            "transfer_number",
            "from_store",
            "from_store_name",
            "to_store",
            "to_store_name",
            "status",
            "transfer_date",
            "expected_date",
            "completed_at",
            "notes",
            "requested_by",
            "items",
        ]
        read_only_fields = fields


class StockTransferItemInputSerializer(serializers.Serializer):
    product = TenantRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(min_value=1)
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class StockTransferCreateSerializer(serializers.Serializer):
    """
    Validates a new transfer. Store existence is checked by the view so it
    can answer 404.
    """

    from_store = serializers.UUIDField()
    to_store = serializers.UUIDField()
    expected_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = StockTransferItemInputSerializer(many=True, allow_empty=False)

    def validate(self, data):
        if data["from_store"] == data["to_store"]:
            raise serializers.ValidationError("Source and destination stores must be different")
        return data

    def get_store(self, store_id):
        return Store.objects.filter(tenant=self.context["tenant"], id=store_id).first()
