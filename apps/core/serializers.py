"""
Serializers for core models.
"""

from rest_framework import serializers

from .models import Store, Tenant, User


class TenantRelatedField(serializers.PrimaryKeyRelatedField):
    """Primary key field limited to objects of the serializer's tenant."""

    def get_queryset(self):
        queryset = super().get_queryset()
        tenant = self.context.get("tenant")
        if tenant is not None:
            queryset = queryset.filter(tenant=tenant)
        return queryset


class TenantSerializer(serializers.ModelSerializer):
    """Serializer for Tenant model (platform administration)."""

    user_count = serializers.IntegerField(read_only=True, required=False)
    store_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Tenant
        fields = [
            "id",
            "company_name",
            "slug",
            "email",
            "plan",
            "max_users",
            "max_stores",
            "status",
            "trial_ends_at",
            "user_count",
            "store_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "slug", "status", "trial_ends_at", "created_at", "updated_at"]
        # Duplicate emails are reported by the view as a plain 400 message
        extra_kwargs = {"email": {"validators": []}}


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact user representation embedded in other resources."""

    full_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "username", "email", "full_name", "role"]
        read_only_fields = fields

    def get_full_name(self, obj):
        return obj.get_full_name() or obj.username


class StoreSerializer(serializers.ModelSerializer):
    """Serializer for Store model."""

    manager_detail = UserSummarySerializer(source="manager", read_only=True)
    user_count = serializers.IntegerField(read_only=True, required=False)
    sale_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Store
        fields = [
            "id",
            "name",
            "code",
            "address",
            "city",
            "state",
            "zip_code",
            "country",
            "phone",
            "email",
            "timezone",
            "currency",
            "manager",
            "manager_detail",
            "opening_hours",
            "is_headquarters",
            "is_active",
            "notes",
            "user_count",
            "sale_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_manager(self, value):
        tenant = self.context.get("tenant")
        if value and tenant and value.tenant_id != tenant.id:
            raise serializers.ValidationError("Manager must belong to the same tenant.")
        return value

    def validate_code(self, value):
        tenant = self.context.get("tenant")
        queryset = Store.objects.filter(tenant=tenant, code=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError("Store code already exists")
        return value


class EmployeeSerializer(serializers.ModelSerializer):
    """
    Tenant staff member.

    ``password`` is write-only and required on create. ``total_hours`` and
    ``is_clocked_in`` come from the view's time entry annotations.
    """

    password = serializers.CharField(write_only=True, required=False, min_length=8)
    role = serializers.ChoiceField(choices=User.TENANT_ROLES, default=User.TENANT_EMPLOYEE)
    store = TenantRelatedField(queryset=Store.objects.all(), required=False, allow_null=True)
    full_name = serializers.SerializerMethodField()
    total_hours = serializers.DecimalField(
        max_digits=10, decimal_places=2, read_only=True, required=False
    )
    is_clocked_in = serializers.BooleanField(read_only=True, required=False)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "password",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "role",
            "store",
            "phone",
            "hourly_rate",
            "is_active",
            "total_hours",
            "is_clocked_in",
            "date_joined",
        ]
        read_only_fields = ["id", "date_joined"]

    def get_full_name(self, obj):
        return obj.get_full_name() or obj.username

    def validate_role(self, value):
        request = self.context.get("request")
        if value == User.TENANT_OWNER and request and not request.user.is_tenant_owner():
            raise serializers.ValidationError("Only tenant owners can assign the owner role.")
        return value

    def validate(self, attrs):
        if self.instance is None and not attrs.get("password"):
            raise serializers.ValidationError({"password": "This field is required."})
        return attrs

    def create(self, validated_data):
        password = validated_data.pop("password")
        return User.objects.create_user(password=password, **validated_data)

    def update(self, instance, validated_data):
        password = validated_data.pop("password", None)
        instance = super().update(instance, validated_data)
        if password:
            instance.set_password(password)
            instance.save(update_fields=["password"])
        return instance
