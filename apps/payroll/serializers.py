"""
Serializers for payroll app.
"""

from decimal import Decimal

from rest_framework import serializers

from apps.core.models import User
from apps.core.serializers import TenantRelatedField

from .models import PayrollRecord, TimeEntry


class TimeEntrySerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="user.username", read_only=True)

    class Meta:
        model = TimeEntry
        fields = [
            "id",
            "user",
            "username",
            "store",
            "clock_in",
            "clock_out",
            "break_minutes",
            "total_hours",
            "overtime_hours",
            "notes",
        ]
        read_only_fields = fields


class ClockActionSerializer(serializers.Serializer):
    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"

    action = serializers.CharField()
    user = TenantRelatedField(queryset=User.objects.all(), required=False, allow_null=True)
    break_minutes = serializers.IntegerField(min_value=0, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_action(self, value):
        if value not in (self.CLOCK_IN, self.CLOCK_OUT):
            raise serializers.ValidationError("Action must be clock_in or clock_out")
        return value


class PayrollRecordSerializer(serializers.ModelSerializer):
    user = TenantRelatedField(queryset=User.objects.all())
    username = serializers.CharField(source="user.username", read_only=True)

    class Meta:
        model = PayrollRecord
        fields = [
            "id",
            "user",
            "username",
            "period",
            "start_date",
            "end_date",
            "regular_hours",
            "overtime_hours",
            "regular_pay",
            "overtime_pay",
            "bonus",
            "deductions",
            "taxes",
            "net_pay",
            "status",
            "payment_date",
            "payment_method",
            "notes",
            "created_at",
        ]
        read_only_fields = ["id", "net_pay", "status", "payment_date", "created_at"]

    def validate(self, attrs):
        user = attrs.get("user", getattr(self.instance, "user", None))
        period = attrs.get("period", getattr(self.instance, "period", None))
        duplicates = PayrollRecord.objects.filter(user=user, period=period)
        if self.instance is not None:
            duplicates = duplicates.exclude(pk=self.instance.pk)
        if duplicates.exists():
            raise serializers.ValidationError(
                {"period": f"Payroll for {period} already exists for this user"}
            )
        return attrs


class PayrollGenerateSerializer(serializers.Serializer):
    user = TenantRelatedField(queryset=User.objects.all())
    period = serializers.CharField(max_length=50)
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    bonus = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.00"), default=Decimal("0.00")
    )
    deductions = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.00"), default=Decimal("0.00")
    )
    tax_rate = serializers.DecimalField(
        max_digits=5,
        decimal_places=4,
        min_value=Decimal("0"),
        max_value=Decimal("1"),
        default=Decimal("0"),
    )


class PayrollStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[PayrollRecord.APPROVED, PayrollRecord.PAID])
    payment_method = serializers.CharField(required=False, allow_blank=True, default="")
