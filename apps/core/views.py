"""
Views for tenant, store and staff administration.
"""

import logging

from django.db import transaction
from django.db.models import Count, DecimalField, Exists, OuterRef, Q, Sum, Value
from django.db.models.functions import Coalesce

from rest_framework import generics, permissions, status
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from apps.core.exceptions import error_response
from apps.core.mixins import TenantScopedMixin
from apps.core.permissions import IsPlatformAdmin, IsTenantManager
from apps.core.utils import parse_bool
from apps.payroll.models import TimeEntry

from .models import Store, Tenant, User
from .serializers import EmployeeSerializer, StoreSerializer, TenantSerializer

logger = logging.getLogger(__name__)


class TenantListCreateView(generics.ListCreateAPIView):
    """
    Platform administration of tenants.

    GET supports ``search`` over company name and email.
    POST requires ``company_name`` and ``email`` and starts a trial.
    """

    serializer_class = TenantSerializer
    permission_classes = [permissions.IsAuthenticated, IsPlatformAdmin]

    def get_queryset(self):
        queryset = Tenant.objects.annotate(
            user_count=Count("users", distinct=True),
            store_count=Count("stores", distinct=True),
        ).order_by("-created_at")

        search = self.request.query_params.get("search")
        if search:
            queryset = queryset.filter(Q(company_name__icontains=search) | Q(email__icontains=search))
        return queryset

    def create(self, request, *args, **kwargs):
        company_name = request.data.get("company_name")
        email = request.data.get("email")
        if not company_name or not email:
            return error_response("Company name and email are required")

        if Tenant.objects.filter(email__iexact=email).exists():
            return error_response("Tenant with this email already exists")

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tenant = Tenant(**serializer.validated_data)
        tenant.start_trial()
        tenant.save()
        logger.info(f"Created tenant {tenant.company_name} ({tenant.id})")

        return Response(
            {
                "tenant": TenantSerializer(tenant).data,
                "message": "Tenant created successfully with trial period",
            },
            status=status.HTTP_201_CREATED,
        )


class StoreListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """List the tenant's stores or create a new one."""

    model = Store
    serializer_class = StoreSerializer

    def get_base_queryset(self):
        return Store.objects.select_related("manager").annotate(
            user_count=Count("users", distinct=True),
            sale_count=Count("sales", distinct=True),
        )

    def filter_queryset_params(self, queryset):
        is_active = parse_bool(self.request.query_params.get("is_active"))
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        return queryset.order_by("name")

    @transaction.atomic
    def perform_create(self, serializer):
        store = serializer.save(tenant=self.request.user.tenant)
        if store.is_headquarters:
            store.make_headquarters()


class StoreDetailView(TenantScopedMixin, generics.RetrieveUpdateDestroyAPIView):
    """Retrieve, update or delete a store."""

    model = Store
    serializer_class = StoreSerializer

    @transaction.atomic
    def perform_update(self, serializer):
        store = serializer.save()
        if store.is_headquarters:
            store.make_headquarters()

    def destroy(self, request, *args, **kwargs):
        store = self.get_object()
        if store.sales.exists() or store.inventory_records.exists():
            return error_response("Cannot delete store with existing sales or inventory")
        store.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


def employee_queryset():
    """Users annotated with closed-shift hours and whether a shift is open."""
    return User.objects.select_related("store").annotate(
        total_hours=Coalesce(
            Sum("time_entries__total_hours", filter=Q(time_entries__clock_out__isnull=False)),
            Value(0),
            output_field=DecimalField(max_digits=10, decimal_places=2),
        ),
        is_clocked_in=Exists(TimeEntry.objects.filter(user=OuterRef("pk"), clock_out__isnull=True)),
    )


class EmployeeListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """
    Tenant staff with hours worked and clock-in status.

    GET filters: ``role``, ``store``, ``is_active`` and ``search`` (username,
    name or email). POST creates a user in the requester's tenant, up to the
    tenant's ``max_users``.
    """

    model = User
    serializer_class = EmployeeSerializer
    permission_classes = [permissions.IsAuthenticated, IsTenantManager]

    def get_base_queryset(self):
        return employee_queryset()

    def filter_queryset_params(self, queryset):
        params = self.request.query_params
        if params.get("role"):
            queryset = queryset.filter(role=params["role"].upper())
        if params.get("store"):
            queryset = queryset.filter(store_id=params["store"])
        is_active = parse_bool(params.get("is_active"))
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        search = params.get("search")
        if search:
            queryset = queryset.filter(
                Q(username__icontains=search)
                | Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
                | Q(email__icontains=search)
            )
        return queryset.order_by("username")

    def create(self, request, *args, **kwargs):
        tenant = request.user.tenant
        if tenant.users.count() >= tenant.max_users:
            return error_response(f"User limit of {tenant.max_users} reached for this plan")
        return super().create(request, *args, **kwargs)

    def perform_create(self, serializer):
        employee = serializer.save(tenant=self.request.user.tenant)
        logger.info(
            f"Created employee {employee.username} ({employee.role}) for tenant {employee.tenant_id}"
        )


class EmployeeDetailView(TenantScopedMixin, generics.RetrieveUpdateAPIView):
    """Retrieve or update a staff member. Set ``is_active`` false to deactivate."""

    model = User
    serializer_class = EmployeeSerializer
    permission_classes = [permissions.IsAuthenticated, IsTenantManager]

    def get_base_queryset(self):
        return employee_queryset()

    def perform_update(self, serializer):
        employee = serializer.instance
        if employee.is_tenant_owner() and not self.request.user.is_tenant_owner():
            raise PermissionDenied("Only tenant owners can change an owner's account.")
        serializer.save()
