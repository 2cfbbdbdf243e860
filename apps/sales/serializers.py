"""
Serializers for sales app.
"""

from decimal import Decimal

from rest_framework import serializers

from apps.core.models import Store
from apps.core.serializers import TenantRelatedField
from apps.crm.models import Customer
from apps.inventory.models import Product

from .models import Payment, ProductReturn, ReturnItem, Sale, SaleItem


class SaleItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    product_sku = serializers.CharField(source="product.sku", read_only=True)
    returned_quantity = serializers.IntegerField(read_only=True)

    class Meta:
        model = SaleItem
        fields = [
            "id",
            "product",
            "product_name",
            "product_sku",
            "quantity",
            "unit_price",
            "discount",
            "total_price",
            "returned_quantity",
        ]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = ["id", "amount", "method", "reference", "created_at"]
        read_only_fields = fields


class SaleListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for sale lists."""

    store_name = serializers.CharField(source="store.name", read_only=True, default=None)
    customer_display = serializers.SerializerMethodField()
    item_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Sale
        fields = [
            "id",
            "sale_number",
            "store",
            "store_name",
            "customer",
            "customer_display",
            "total_amount",
            "payment_method",
            "status",
            "source",
            "item_count",
            "created_at",
        ]
        read_only_fields = fields

    def get_customer_display(self, obj):
        if obj.customer_id:
            return obj.customer.name
        return obj.customer_name or None


class SaleSerializer(serializers.ModelSerializer):
    """Sale detail with items and payments."""

    items = SaleItemSerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)
    store_name = serializers.CharField(source="store.name", read_only=True, default=None)
    employee_name = serializers.CharField(source="employee.username", read_only=True, default=None)

    class Meta:
        model = Sale
        fields = [
            "id",
            "sale_number",
            "store",
            "store_name",
            "customer",
            "customer_name",
            "customer_email",
            "employee",
            "employee_name",
            "subtotal",
            "tax_amount",
            "discount",
            "total_amount",
            "payment_method",
            "status",
            "source",
            "notes",
            "items",
            "payments",
            "created_at",
        ]
        read_only_fields = fields


class SaleItemInputSerializer(serializers.Serializer):
    product = TenantRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.00"), required=False
    )
    discount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.00"), required=False, default=Decimal("0.00")
    )


class SaleCreateSerializer(serializers.Serializer):
    """
    Validates a new sale.

    Request body:
    {
        "store": "<uuid>",
        "customer": "<uuid>",
        "items": [{"product": "<uuid>", "quantity": 2, "unit_price": "5.00"}],
        "tax_amount": "0.80",
        "discount": "0.00",
        "total_amount": "10.80",
        "payment_method": "CASH"
    }
    """

    store = TenantRelatedField(queryset=Store.objects.all(), required=False, allow_null=True)
    customer = TenantRelatedField(queryset=Customer.objects.all(), required=False, allow_null=True)
    items = SaleItemInputSerializer(many=True, allow_empty=False)
    tax_amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.00"), default=Decimal("0.00")
    )
    discount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.00"), default=Decimal("0.00")
    )
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    payment_method = serializers.ChoiceField(choices=Sale.PAYMENT_METHOD_CHOICES, default=Sale.CASH)
    payment_reference = serializers.CharField(required=False, allow_blank=True, default="")
    customer_name = serializers.CharField(required=False, allow_blank=True, default="")
    customer_email = serializers.EmailField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, data):
        if data["payment_method"] == Sale.DUE and not data.get("customer"):
            raise serializers.ValidationError("A customer is required for due sales")
        return data


class ReturnItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = ReturnItem
        fields = [
            "id",
            "sale_item",
            "product",
            "product_name",
            "quantity",
            "unit_price",
            "total_price",
            "reason",
            "condition",
            "restock",
        ]
        read_only_fields = fields


class ProductReturnSerializer(serializers.ModelSerializer):
    sale_number = serializers.CharField(source="sale.sale_number", read_only=True)
    items = ReturnItemSerializer(many=True, read_only=True)

    class Meta:
        model = ProductReturn
        fields = [
            "id",
            "return_number",
            "sale",
            "sale_number",
            "customer",
            "store",
            "processed_by",
            "total_amount",
            "tax_amount",
            "refund_amount",
            "refund_type",
            "restock_items",
            "status",
            "reason",
            "items",
            "created_at",
        ]
        read_only_fields = fields


class ReturnItemInputSerializer(serializers.Serializer):
    sale_item = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    reason = serializers.CharField(required=False, allow_blank=True, default="")
    condition = serializers.ChoiceField(choices=ReturnItem.CONDITION_CHOICES, default=ReturnItem.NEW)
    restock = serializers.BooleanField(required=False, allow_null=True, default=None)


class ProductReturnCreateSerializer(serializers.Serializer):
    sale = serializers.UUIDField()
    items = ReturnItemInputSerializer(many=True, allow_empty=False)
    refund_type = serializers.ChoiceField(
        choices=ProductReturn.REFUND_TYPE_CHOICES, default=ProductReturn.CASH
    )
    restock_items = serializers.BooleanField(default=True)
    reason = serializers.CharField(required=False, allow_blank=True, default="")
