"""
Serializers for CRM functionality.
"""

from rest_framework import serializers

from apps.core.serializers import TenantRelatedField

from .models import Customer, CustomerLedger, LoyaltyProgram, LoyaltyTransaction


class CustomerListSerializer(serializers.ModelSerializer):
    """Serializer for customer list view."""

    class Meta:
        model = Customer
        fields = [
            "id",
            "customer_number",
            "name",
            "email",
            "phone",
            "company",
            "loyalty_tier",
            "loyalty_points",
            "total_spent",
            "due_balance",
            "last_visit",
            "is_active",
            "created_at",
        ]


class CustomerSerializer(serializers.ModelSerializer):
    """Full customer record. Loyalty and balance fields are managed by the system."""

    class Meta:
        model = Customer
        fields = [
            "id",
            "customer_number",
            "name",
            "email",
            "phone",
            "company",
            "address",
            "city",
            "state",
            "zip_code",
            "country",
            "notes",
            "loyalty_points",
            "loyalty_tier",
            "total_spent",
            "visit_count",
            "last_visit",
            "due_balance",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "customer_number",
            "loyalty_points",
            "loyalty_tier",
            "total_spent",
            "visit_count",
            "last_visit",
            "due_balance",
            "created_at",
            "updated_at",
        ]


class LoyaltyTransactionSerializer(serializers.ModelSerializer):
    sale_number = serializers.CharField(source="sale.sale_number", read_only=True, default=None)

    class Meta:
        model = LoyaltyTransaction
        fields = [
            "id",
            "transaction_type",
            "points",
            "description",
            "sale",
            "sale_number",
            "created_at",
        ]
        read_only_fields = fields


class LoyaltyAdjustmentSerializer(serializers.Serializer):
    """Body of a manual loyalty operation on a customer."""

    points = serializers.IntegerField()
    type = serializers.ChoiceField(
        choices=[
            LoyaltyTransaction.EARNED,
            LoyaltyTransaction.REDEEMED,
            LoyaltyTransaction.ADJUSTED,
            LoyaltyTransaction.BONUS,
        ]
    )
    description = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_points(self, value):
        if value == 0:
            raise serializers.ValidationError("Points must be non-zero.")
        return value


class LoyaltyTierField(serializers.Serializer):
    name = serializers.CharField(max_length=20)
    min_spent = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    discount = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, max_value=100, default=0
    )


class LoyaltyProgramSerializer(serializers.ModelSerializer):
    tiers = LoyaltyTierField(many=True, required=False)

    class Meta:
        model = LoyaltyProgram
        fields = [
            "id",
            "name",
            "points_per_dollar",
            "signup_bonus",
            "tiers",
            "is_active",
            "updated_at",
        ]
        read_only_fields = ["id", "updated_at"]

    def validate_tiers(self, value):
        # Stored as plain JSON numbers
        return [
            {
                "name": tier["name"].upper(),
                "min_spent": float(tier["min_spent"]),
                "discount": float(tier["discount"]),
            }
            for tier in value
        ]


class CustomerLedgerSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)

    class Meta:
        model = CustomerLedger
        fields = [
            "id",
            "customer",
            "customer_name",
            "entry_type",
            "amount",
            "balance",
            "description",
            "reference_id",
            "date",
            "created_at",
        ]
        read_only_fields = fields


class CustomerLedgerEntrySerializer(serializers.Serializer):
    """Body of a manual customer ledger entry."""

    customer = TenantRelatedField(queryset=Customer.objects.all())
    type = serializers.ChoiceField(choices=CustomerLedger.ENTRY_TYPE_CHOICES)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    reference_id = serializers.CharField(required=False, allow_blank=True, default="")
    date = serializers.DateTimeField(required=False)


class DueCustomerSerializer(serializers.ModelSerializer):
    """Customer with an outstanding balance and the sales that created it."""

    due_sales = serializers.SerializerMethodField()

    class Meta:
        model = Customer
        fields = [
            "id",
            "customer_number",
            "name",
            "phone",
            "email",
            "due_balance",
            "due_sales",
        ]

    def get_due_sales(self, obj):
        entries = obj.ledger_entries.filter(entry_type=CustomerLedger.SALE).order_by("-date")
        return CustomerLedgerSerializer(entries, many=True).data


class DuePaymentSerializer(serializers.Serializer):
    customer = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    payment_method = serializers.CharField(max_length=20)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be greater than 0.")
        return value
