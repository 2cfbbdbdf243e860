"""
Serializers for accounting app.
"""

from decimal import Decimal

from rest_framework import serializers

from apps.core.models import Store
from apps.core.serializers import TenantRelatedField

from .models import Account, Expense, ExpenseCategory, ExpenseItem


class AccountSerializer(serializers.ModelSerializer):
    store = TenantRelatedField(queryset=Store.objects.all(), required=False, allow_null=True)

    class Meta:
        model = Account
        fields = [
            "id",
            "store",
            "name",
            "account_type",
            "account_number",
            "balance",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]


class ExpenseCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ExpenseCategory
        fields = ["id", "name", "description", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate_name(self, value):
        tenant = self.context.get("tenant")
        if ExpenseCategory.objects.filter(tenant=tenant, name__iexact=value).exists():
            raise serializers.ValidationError("Expense category already exists")
        return value


class ExpenseItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = ExpenseItem
        fields = ["id", "description", "amount", "quantity"]
        read_only_fields = ["id"]


class ExpenseSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source="category.name", read_only=True, default=None)
    account_name = serializers.CharField(source="account.name", read_only=True, default=None)
    items = ExpenseItemSerializer(many=True, read_only=True)

    class Meta:
        model = Expense
        fields = [
            "id",
            "store",
            "category",
            "category_name",
            "account",
            "account_name",
            "amount",
            "description",
            "date",
            "payment_method",
            "status",
            "receipt_url",
            "notes",
            "paid_at",
            "items",
            "created_by",
            "created_at",
        ]
        read_only_fields = fields


class ExpenseCreateSerializer(serializers.Serializer):
    store = TenantRelatedField(queryset=Store.objects.all(), required=False, allow_null=True)
    category = TenantRelatedField(
        queryset=ExpenseCategory.objects.all(), required=False, allow_null=True
    )
    account = TenantRelatedField(queryset=Account.objects.all(), required=False, allow_null=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    description = serializers.CharField(max_length=255)
    date = serializers.DateField(required=False)
    payment_method = serializers.ChoiceField(
        choices=Expense.PAYMENT_METHOD_CHOICES, default="CASH"
    )
    receipt_url = serializers.URLField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = ExpenseItemSerializer(many=True, required=False)


class ExpenseStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Expense.STATUS_CHOICES)
