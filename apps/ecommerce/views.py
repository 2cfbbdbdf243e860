"""
API views for online stores and order import.
"""

import logging

from django.db.models import Count
from django.shortcuts import get_object_or_404

from rest_framework import generics, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core.exceptions import error_response
from apps.core.mixins import TenantScopedMixin
from apps.core.permissions import HasTenantAccess
from apps.core.utils import parse_bool
from apps.sales.serializers import SaleSerializer

from .models import EcommerceOrder, EcommerceStore
from .serializers import EcommerceOrderSerializer, EcommerceStoreSerializer, OrderStatusSerializer
from .services import EcommerceOrderService

logger = logging.getLogger(__name__)

DEFAULT_ORDER_LIMIT = 50
MAX_ORDER_LIMIT = 200


def _int_param(value, default, minimum, maximum):
    try:
        return max(minimum, min(int(value), maximum))
    except (TypeError, ValueError):
        return default


class EcommerceStoreListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """Connected online stores. API credentials are never echoed back."""

    model = EcommerceStore
    serializer_class = EcommerceStoreSerializer

    def get_base_queryset(self):
        return EcommerceStore.objects.select_related("store").annotate(order_count=Count("orders"))

    def perform_create(self, serializer):
        store = serializer.save(tenant=self.request.user.tenant)
        logger.info(f"Connected {store.platform} store {store.name} for tenant {store.tenant_id}")


class EcommerceOrderListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """
    Online orders, newest first.

    GET filters: ``status``, ``store``, ``imported`` and ``limit``/``offset``.
    Responds with ``{"orders", "total", "limit", "offset"}``.
    """

    model = EcommerceOrder
    serializer_class = EcommerceOrderSerializer

    def get_base_queryset(self):
        return EcommerceOrder.objects.select_related("ecommerce_store", "sale")

    def filter_queryset_params(self, queryset):
        params = self.request.query_params
        if params.get("status"):
            queryset = queryset.filter(status=params["status"])
        if params.get("store"):
            queryset = queryset.filter(ecommerce_store_id=params["store"])
        imported = parse_bool(params.get("imported"))
        if imported is not None:
            queryset = queryset.filter(sale__isnull=not imported)
        return queryset.order_by("-created_at")

    def list(self, request, *args, **kwargs):
        queryset = self.get_queryset()
        limit = _int_param(request.query_params.get("limit"), DEFAULT_ORDER_LIMIT, 1, MAX_ORDER_LIMIT)
        offset = _int_param(request.query_params.get("offset"), 0, 0, 10**9)

        orders = queryset[offset : offset + limit]
        return Response(
            {
                "orders": self.get_serializer(orders, many=True).data,
                "total": queryset.count(),
                "limit": limit,
                "offset": offset,
            }
        )


class EcommerceOrderDetailView(TenantScopedMixin, generics.RetrieveAPIView):
    model = EcommerceOrder
    serializer_class = EcommerceOrderSerializer

    def get_base_queryset(self):
        return EcommerceOrder.objects.select_related("ecommerce_store", "sale")


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasTenantAccess])
def ecommerce_order_import(request, id):
    """
    Import an online order as a completed POS sale.

    Lines that match no product are listed in ``unmatched_items``.
    """
    order = get_object_or_404(EcommerceOrder, id=id, tenant=request.user.tenant)

    try:
        order, sale, unmatched_items = EcommerceOrderService.import_order(order, user=request.user)
    except ValueError as e:
        return error_response(str(e))

    return Response(
        {
            "message": "Order successfully imported into POS",
            "order": EcommerceOrderSerializer(order).data,
            "sale": SaleSerializer(sale).data,
            "unmatched_items": unmatched_items,
        }
    )


@api_view(["PUT"])
@permission_classes([permissions.IsAuthenticated, HasTenantAccess])
def ecommerce_order_status(request, id):
    order = get_object_or_404(EcommerceOrder, id=id, tenant=request.user.tenant)

    serializer = OrderStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        order = EcommerceOrderService.change_status(order, serializer.validated_data["status"])
    except ValueError as e:
        return error_response(str(e))

    return Response(EcommerceOrderSerializer(order).data)
