"""
API views for time tracking and payroll.
"""

import logging

from django.shortcuts import get_object_or_404

from rest_framework import generics, permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core.exceptions import error_response
from apps.core.mixins import TenantScopedMixin
from apps.core.permissions import HasTenantAccess, IsTenantManager
from apps.core.utils import date_range_from_params

from .models import PayrollRecord, TimeEntry
from .serializers import (
    ClockActionSerializer,
    PayrollGenerateSerializer,
    PayrollRecordSerializer,
    PayrollStatusSerializer,
    TimeEntrySerializer,
)
from .services import PayrollService, TimeClockService

logger = logging.getLogger(__name__)


class TimeEntryListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """
    Time entries, newest first. GET filters: ``user``, ``start_date`` and
    ``end_date``.

    POST body: ``{"action": "clock_in|clock_out", "user": "<id>"}``; ``user``
    defaults to the requester.
    """

    model = TimeEntry
    serializer_class = TimeEntrySerializer

    def get_base_queryset(self):
        return TimeEntry.objects.select_related("user")

    def filter_queryset_params(self, queryset):
        params = self.request.query_params
        if params.get("user"):
            queryset = queryset.filter(user_id=params["user"])
        start, end = date_range_from_params(params)
        if start:
            queryset = queryset.filter(clock_in__gte=start)
        if end:
            queryset = queryset.filter(clock_in__lte=end)
        return queryset.order_by("-clock_in")

    def create(self, request, *args, **kwargs):
        serializer = ClockActionSerializer(data=request.data, context={"tenant": request.user.tenant})
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        user = data.get("user") or request.user

        try:
            if data["action"] == ClockActionSerializer.CLOCK_IN:
                entry = TimeClockService.clock_in(user, notes=data["notes"])
                response_status = status.HTTP_201_CREATED
            else:
                entry = TimeClockService.clock_out(
                    user, break_minutes=data.get("break_minutes"), notes=data["notes"]
                )
                response_status = status.HTTP_200_OK
        except ValueError as e:
            return error_response(str(e))

        return Response(TimeEntrySerializer(entry).data, status=response_status)


class PayrollRecordListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """Payroll records. GET filters: ``user``, ``status`` and ``period``."""

    model = PayrollRecord
    serializer_class = PayrollRecordSerializer

    def get_base_queryset(self):
        return PayrollRecord.objects.select_related("user")

    def filter_queryset_params(self, queryset):
        params = self.request.query_params
        for param, field in (("user", "user_id"), ("status", "status"), ("period", "period")):
            if params.get(param):
                queryset = queryset.filter(**{field: params[param]})
        return queryset.order_by("-start_date", "-created_at")


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, IsTenantManager])
def payroll_generate(request):
    """
    Generate a payroll record from closed time entries.

    Request body:
    {
        "user": "<id>",
        "period": "2026-10",
        "start_date": "2026-10-01",
        "end_date": "2026-10-31",
        "bonus": "50.00",
        "deductions": "0.00",
        "tax_rate": "0.10"
    }
    """
    serializer = PayrollGenerateSerializer(data=request.data, context={"tenant": request.user.tenant})
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        record = PayrollService.generate(
            data["user"],
            data["period"],
            data["start_date"],
            data["end_date"],
            bonus=data["bonus"],
            deductions=data["deductions"],
            tax_rate=data["tax_rate"],
        )
    except ValueError as e:
        return error_response(str(e))

    return Response(PayrollRecordSerializer(record).data, status=status.HTTP_201_CREATED)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, IsTenantManager])
def payroll_status(request, id):
    """Approve or pay a payroll record."""
    record = get_object_or_404(PayrollRecord, id=id, tenant=request.user.tenant)

    serializer = PayrollStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        record = PayrollService.change_status(
            record,
            serializer.validated_data["status"],
            payment_method=serializer.validated_data["payment_method"],
        )
    except ValueError as e:
        return error_response(str(e))
    return Response(PayrollRecordSerializer(record).data)
