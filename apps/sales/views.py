"""
API views for sales and returns.
"""

import logging

from django.db.models import Count

from rest_framework import generics, status
from rest_framework.response import Response

from apps.core.exceptions import error_response
from apps.core.mixins import TenantScopedMixin
from apps.core.utils import date_range_from_params

from .models import ProductReturn, Sale, SaleItem
from .serializers import (
    ProductReturnCreateSerializer,
    ProductReturnSerializer,
    SaleCreateSerializer,
    SaleListSerializer,
    SaleSerializer,
)
from .services import ReturnService, SaleService

logger = logging.getLogger(__name__)


class SaleListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """
    List sales or ring up a new one.

    GET filters: ``store``, ``customer``, ``status``, ``payment_method``,
    ``start_date`` and ``end_date``.
    """

    model = Sale
    serializer_class = SaleListSerializer

    def get_base_queryset(self):
        return Sale.objects.select_related("store", "customer").annotate(
            item_count=Count("items")
        )

    def filter_queryset_params(self, queryset):
        params = self.request.query_params
        for param, field in (
            ("store", "store_id"),
            ("customer", "customer_id"),
            ("status", "status"),
            ("payment_method", "payment_method"),
        ):
            if params.get(param):
                queryset = queryset.filter(**{field: params[param]})

        start, end = date_range_from_params(params)
        if start:
            queryset = queryset.filter(created_at__gte=start)
        if end:
            queryset = queryset.filter(created_at__lte=end)
        return queryset.order_by("-created_at")

    def create(self, request, *args, **kwargs):
        if not request.data.get("items"):
            return error_response("At least one item is required")

        serializer = SaleCreateSerializer(data=request.data, context={"tenant": request.user.tenant})
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            sale = SaleService.create_sale(
                tenant=request.user.tenant,
                items=[dict(item) for item in data["items"]],
                employee=request.user,
                store=data.get("store") or request.user.store,
                customer=data.get("customer"),
                payment_method=data["payment_method"],
                tax_amount=data["tax_amount"],
                discount=data["discount"],
                total_amount=data.get("total_amount"),
                notes=data["notes"],
                customer_name=data["customer_name"],
                customer_email=data["customer_email"],
                payment_reference=data["payment_reference"],
            )
        except ValueError as e:
            return error_response(str(e))

        return Response(SaleSerializer(sale).data, status=status.HTTP_201_CREATED)


class SaleDetailView(TenantScopedMixin, generics.RetrieveAPIView):
    model = Sale
    serializer_class = SaleSerializer

    def get_base_queryset(self):
        return Sale.objects.select_related("store", "employee").prefetch_related(
            "items__product", "payments"
        )


class ProductReturnListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """
    List returns or process a new one.

    POST body:
    {
        "sale": "<uuid>",
        "items": [{"sale_item": "<uuid>", "quantity": 1, "reason": "Damaged"}],
        "refund_type": "CASH|CARD|STORE_CREDIT|ADJUSTMENT",
        "restock_items": true
    }
    """

    model = ProductReturn
    serializer_class = ProductReturnSerializer

    def get_base_queryset(self):
        return ProductReturn.objects.select_related("sale").prefetch_related("items__product")

    def filter_queryset_params(self, queryset):
        params = self.request.query_params
        if params.get("status"):
            queryset = queryset.filter(status=params["status"])
        if params.get("store"):
            queryset = queryset.filter(store_id=params["store"])
        if params.get("customer"):
            queryset = queryset.filter(customer_id=params["customer"])
        start, end = date_range_from_params(params)
        if start:
            queryset = queryset.filter(created_at__gte=start)
        if end:
            queryset = queryset.filter(created_at__lte=end)
        return queryset.order_by("-created_at")

    def create(self, request, *args, **kwargs):
        if not request.data.get("sale") or not request.data.get("items"):
            return error_response("Sale and at least one item are required")

        serializer = ProductReturnCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        sale = Sale.objects.filter(tenant=request.user.tenant, id=data["sale"]).first()
        if sale is None:
            return error_response("Sale not found", status.HTTP_404_NOT_FOUND)

        try:
            product_return = ReturnService.create_return(
                sale,
                [dict(item) for item in data["items"]],
                processed_by=request.user,
                refund_type=data["refund_type"],
                restock_items=data["restock_items"],
                reason=data["reason"],
            )
        except SaleItem.DoesNotExist:
            return error_response("Sale item not found for this sale", status.HTTP_404_NOT_FOUND)
        except ValueError as e:
            return error_response(str(e))

        return Response(
            ProductReturnSerializer(product_return).data, status=status.HTTP_201_CREATED
        )


class ProductReturnDetailView(TenantScopedMixin, generics.RetrieveAPIView):
    model = ProductReturn
    serializer_class = ProductReturnSerializer
