"""
Serializers for licensing app.
"""

from rest_framework import serializers

from .models import License, LicenseActivation


class LicenseSummarySerializer(serializers.ModelSerializer):
    """License details returned to an activated installation."""

    class Meta:
        model = License
        fields = [
            "id",
            "license_key",
            "license_type",
            "status",
            "client_name",
            "client_email",
            "max_users",
            "max_stores",
            "expires_at",
            "last_verified_at",
        ]
        read_only_fields = fields


class LicenseActivationSerializer(serializers.ModelSerializer):
    class Meta:
        model = LicenseActivation
        fields = [
            "id",
            "activation_key",
            "domain",
            "hardware_id",
            "ip_address",
            "is_active",
            "activated_at",
            "last_verified_at",
            "deactivated_at",
            "deactivation_reason",
        ]
        read_only_fields = fields


class LicenseSerializer(serializers.ModelSerializer):
    active_activations = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = License
        fields = [
            "id",
            "license_key",
            "license_type",
            "status",
            "client_name",
            "client_email",
            "max_users",
            "max_stores",
            "max_activations",
            "activation_count",
            "active_activations",
            "allowed_domains",
            "hardware_id",
            "franchise",
            "expires_at",
            "last_activated_at",
            "last_verified_at",
            "created_at",
        ]
        read_only_fields = fields


class LicenseGenerateSerializer(serializers.Serializer):
    GENERATE_SINGLE = "generate_single"
    GENERATE_BULK = "generate_bulk"

    action = serializers.ChoiceField(choices=[GENERATE_SINGLE, GENERATE_BULK])
    type = serializers.ChoiceField(choices=License.TYPE_CHOICES)
    client_name = serializers.CharField(max_length=255)
    client_email = serializers.EmailField()
    count = serializers.IntegerField(required=False, default=1)
    max_users = serializers.IntegerField(min_value=1, required=False, default=1)
    max_stores = serializers.IntegerField(min_value=1, required=False, default=1)
    max_activations = serializers.IntegerField(min_value=1, required=False, default=1)
    allowed_domains = serializers.ListField(
        child=serializers.CharField(max_length=255), required=False, default=list
    )
    hardware_id = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if attrs["action"] == self.GENERATE_BULK and not 1 <= attrs["count"] <= 100:
            raise serializers.ValidationError("Count must be between 1 and 100")
        return attrs
