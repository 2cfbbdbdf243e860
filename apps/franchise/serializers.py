"""
Serializers for franchise app.
"""

from decimal import Decimal

from rest_framework import serializers

from .models import Franchise, FranchiseClient, FranchiseUser, RoyaltyPayment


class FranchiseSerializer(serializers.ModelSerializer):
    user_count = serializers.IntegerField(read_only=True, required=False)
    pending_payments = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Franchise
        fields = [
            "id",
            "name",
            "email",
            "contact_person",
            "phone",
            "address",
            "website",
            "tax_id",
            "status",
            "one_time_fee",
            "monthly_fee",
            "max_clients",
            "current_clients",
            "outstanding_balance",
            "total_revenue",
            "is_blocked",
            "block_reason",
            "approved_at",
            "user_count",
            "pending_payments",
            "created_at",
        ]
        read_only_fields = fields


class FranchiseContactSerializer(serializers.ModelSerializer):
    """Fields a franchise may edit about itself."""

    class Meta:
        model = Franchise
        fields = ["name", "contact_person", "phone", "address", "website"]


class FranchiseApplicationSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    contact_person = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    address = serializers.CharField(required=False, allow_blank=True, default="")
    website = serializers.URLField(required=False, allow_blank=True, default="")
    tax_id = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    admin_name = serializers.CharField(max_length=255)
    admin_email = serializers.EmailField()
    admin_password = serializers.CharField(min_length=8, write_only=True)


class FranchiseFeesSerializer(serializers.Serializer):
    one_time_fee = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.00"), required=False
    )
    monthly_fee = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.00"), required=False
    )
    max_clients = serializers.IntegerField(min_value=0, required=False)


class FranchiseUserSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(source="user.email", read_only=True)
    name = serializers.SerializerMethodField()

    class Meta:
        model = FranchiseUser
        fields = ["id", "email", "name", "role", "permissions", "is_active", "joined_at"]
        read_only_fields = fields

    def get_name(self, obj):
        return obj.user.get_full_name() or obj.user.username


class FranchiseUserCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    password = serializers.CharField(min_length=8, write_only=True)
    role = serializers.ChoiceField(choices=FranchiseUser.ROLE_CHOICES)
    permissions = serializers.ListField(child=serializers.CharField(), required=False, default=list)


class FranchiseClientSerializer(serializers.ModelSerializer):
    class Meta:
        model = FranchiseClient
        fields = [
            "id",
            "client_id",
            "client_name",
            "client_email",
            "client_company",
            "client_phone",
            "status",
            "one_time_fee_paid",
            "monthly_fee_paid",
            "total_paid",
            "last_payment_date",
            "created_at",
        ]
        read_only_fields = [
            "id",
            "client_id",
            "status",
            "one_time_fee_paid",
            "monthly_fee_paid",
            "total_paid",
            "last_payment_date",
            "created_at",
        ]
        # Duplicate emails are reported by the service as a 409
        validators = []


class RoyaltyPaymentSerializer(serializers.ModelSerializer):
    franchise_name = serializers.CharField(source="franchise.name", read_only=True)
    client_name = serializers.CharField(source="client.client_name", read_only=True, default=None)

    class Meta:
        model = RoyaltyPayment
        fields = [
            "id",
            "franchise",
            "franchise_name",
            "client",
            "client_name",
            "amount",
            "payment_type",
            "status",
            "due_date",
            "paid_date",
            "payment_method",
            "transaction_id",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class RoyaltyProcessSerializer(serializers.Serializer):
    payment_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
    payment_method = serializers.CharField(max_length=50)
    transaction_id = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
