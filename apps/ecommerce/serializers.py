"""
Serializers for ecommerce app.
"""

from decimal import Decimal

from rest_framework import serializers

from apps.core.models import Store
from apps.core.serializers import TenantRelatedField

from .models import EcommerceOrder, EcommerceStore


class EcommerceStoreSerializer(serializers.ModelSerializer):
    store = TenantRelatedField(queryset=Store.objects.all(), required=False, allow_null=True)
    order_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = EcommerceStore
        fields = [
            "id",
            "name",
            "platform",
            "store_url",
            "api_key",
            "api_secret",
            "store",
            "is_active",
            "last_sync_at",
            "order_count",
            "created_at",
        ]
        read_only_fields = ["id", "last_sync_at", "created_at"]
        extra_kwargs = {
            "api_key": {"write_only": True},
            "api_secret": {"write_only": True},
        }


class OrderItemSerializer(serializers.Serializer):
    sku = serializers.CharField(required=False, allow_blank=True, default="")
    name = serializers.CharField(max_length=255)
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.00"))
    total = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.00"), required=False
    )

    def validate(self, attrs):
        if "total" not in attrs:
            attrs["total"] = attrs["price"] * attrs["quantity"]
        # Stored in a JSONField
        return {
            "sku": attrs["sku"],
            "name": attrs["name"],
            "quantity": attrs["quantity"],
            "price": str(attrs["price"]),
            "total": str(attrs["total"]),
        }


class EcommerceOrderSerializer(serializers.ModelSerializer):
    ecommerce_store = TenantRelatedField(queryset=EcommerceStore.objects.all())
    store_name = serializers.CharField(source="ecommerce_store.name", read_only=True)
    items = OrderItemSerializer(many=True)
    is_imported = serializers.BooleanField(read_only=True)
    sale_number = serializers.CharField(source="sale.sale_number", read_only=True, default=None)

    class Meta:
        model = EcommerceOrder
        fields = [
            "id",
            "ecommerce_store",
            "store_name",
            "external_order_id",
            "order_number",
            "customer_name",
            "customer_email",
            "customer_phone",
            "shipping_address",
            "billing_address",
            "items",
            "subtotal",
            "tax",
            "shipping",
            "discount",
            "total",
            "payment_method",
            "status",
            "sale",
            "sale_number",
            "is_imported",
            "ordered_at",
            "created_at",
        ]
        read_only_fields = ["id", "status", "sale", "created_at"]
        # Duplicate external ids get a custom message in validate()
        validators = []

    def validate_shipping_address(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Must be a JSON object")
        return value

    def validate_billing_address(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Must be a JSON object")
        return value

    def validate(self, attrs):
        store = attrs.get("ecommerce_store")
        external_id = attrs.get("external_order_id")
        if EcommerceOrder.objects.filter(
            ecommerce_store=store, external_order_id=external_id
        ).exists():
            raise serializers.ValidationError(
                f"Order {external_id} already exists for this store"
            )
        return attrs

    def create(self, validated_data):
        return EcommerceOrder.objects.create(**validated_data)


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=EcommerceOrder.STATUS_CHOICES)
