"""
API views for report schedules.
"""

import logging

from django.db import transaction
from django.shortcuts import get_object_or_404

from rest_framework import generics, permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core.mixins import TenantScopedMixin
from apps.core.permissions import HasTenantAccess
from apps.core.utils import parse_bool

from .models import ReportSchedule
from .serializers import ReportRunSerializer, ReportScheduleSerializer
from .services import ReportGenerationError, ReportScheduleService, calculate_next_run

logger = logging.getLogger(__name__)


class ReportScheduleListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """Report schedules with their five latest runs. GET filter: ``is_active``."""

    model = ReportSchedule
    serializer_class = ReportScheduleSerializer

    def filter_queryset_params(self, queryset):
        is_active = parse_bool(self.request.query_params.get("is_active"))
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        return queryset.order_by("-created_at")

    def perform_create(self, serializer):
        data = serializer.validated_data
        schedule = serializer.save(
            tenant=self.request.user.tenant,
            created_by=self.request.user,
            next_run_at=calculate_next_run(data["frequency"], data.get("timezone", "UTC")),
        )
        logger.info(f"Created {schedule.frequency} report schedule {schedule.name}")


class ReportScheduleDetailView(TenantScopedMixin, generics.RetrieveUpdateDestroyAPIView):
    model = ReportSchedule
    serializer_class = ReportScheduleSerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["all_runs"] = True
        return context

    def perform_update(self, serializer):
        schedule = serializer.instance
        data = serializer.validated_data
        frequency = data.get("frequency", schedule.frequency)
        tz = data.get("timezone", schedule.timezone)

        if frequency != schedule.frequency or tz != schedule.timezone:
            serializer.save(next_run_at=calculate_next_run(frequency, tz))
        else:
            serializer.save()

    @transaction.atomic
    def perform_destroy(self, instance):
        instance.runs.all().delete()
        instance.delete()
        logger.info(f"Deleted report schedule {instance.name}")


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasTenantAccess])
def report_schedule_run(request, id):
    """Generate a schedule now. A failed run is still returned, with its error."""
    schedule = get_object_or_404(ReportSchedule, id=id, tenant=request.user.tenant)

    try:
        run = ReportScheduleService.run(schedule, advance=False)
    except ReportGenerationError as e:
        run = e.run

    return Response(ReportRunSerializer(run).data, status=status.HTTP_201_CREATED)
