"""
API views for suppliers, the supplier ledger and purchase orders.
"""

import logging

from django.db.models import Count, Q
from django.shortcuts import get_object_or_404

from rest_framework import generics, permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core.exceptions import error_response
from apps.core.mixins import TenantScopedMixin
from apps.core.permissions import HasTenantAccess
from apps.core.utils import date_range_from_params

from .models import PurchaseOrder, Supplier, SupplierLedger
from .serializers import (
    PurchaseOrderCreateSerializer,
    PurchaseOrderListSerializer,
    PurchaseOrderSerializer,
    PurchaseOrderUpdateSerializer,
    ReceivePurchaseOrderSerializer,
    SupplierLedgerEntrySerializer,
    SupplierLedgerSerializer,
    SupplierSerializer,
)
from .services import PurchaseOrderService, SupplierLedgerService

logger = logging.getLogger(__name__)


# Supplier Views


class SupplierListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """
    List or create suppliers.

    GET ``search`` matches name, contact person, email and phone.
    """

    model = Supplier
    serializer_class = SupplierSerializer

    def filter_queryset_params(self, queryset):
        search = self.request.query_params.get("search")
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search)
                | Q(contact_person__icontains=search)
                | Q(email__icontains=search)
                | Q(phone__icontains=search)
            )
        return queryset.order_by("name")

    def create(self, request, *args, **kwargs):
        if not request.data.get("name"):
            return error_response("Supplier name is required")
        return super().create(request, *args, **kwargs)

    def perform_create(self, serializer):
        supplier = serializer.save(tenant=self.request.user.tenant, created_by=self.request.user)
        logger.info(f"Created supplier {supplier.name} for tenant {supplier.tenant_id}")


class SupplierDetailView(TenantScopedMixin, generics.RetrieveUpdateDestroyAPIView):
    model = Supplier
    serializer_class = SupplierSerializer

    def destroy(self, request, *args, **kwargs):
        supplier = self.get_object()
        if supplier.purchase_orders.exists():
            return error_response("Cannot delete supplier with existing purchase orders")
        supplier.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


class SupplierLedgerListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """
    Supplier ledger entries, newest first.

    GET filters: ``supplier``, ``type``, ``start_date`` and ``end_date``.
    POST body: ``supplier``, ``type`` and signed ``amount``.
    """

    model = SupplierLedger
    serializer_class = SupplierLedgerSerializer

    def get_base_queryset(self):
        return SupplierLedger.objects.select_related("supplier")

    def filter_queryset_params(self, queryset):
        params = self.request.query_params
        if params.get("supplier"):
            queryset = queryset.filter(supplier_id=params["supplier"])
        if params.get("type"):
            queryset = queryset.filter(entry_type=params["type"])
        start, end = date_range_from_params(params)
        if start and end:
            queryset = queryset.filter(date__range=(start, end))
        return queryset.order_by("-date", "-created_at")

    def create(self, request, *args, **kwargs):
        if not all(request.data.get(key) not in (None, "") for key in ("supplier", "type", "amount")):
            return error_response("Supplier, type and amount are required")

        serializer = SupplierLedgerEntrySerializer(
            data=request.data, context={"tenant": request.user.tenant}
        )
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        entry = SupplierLedgerService.post_entry(
            data["supplier"],
            data["type"],
            data["amount"],
            description=data["description"],
            reference_id=data["reference_id"],
            user=request.user,
            date=data.get("date"),
        )
        return Response(SupplierLedgerSerializer(entry).data, status=status.HTTP_201_CREATED)


# Purchase Order Views


class PurchaseOrderListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """
    List or create purchase orders.

    GET filters: ``search`` (PO number or supplier name), ``status`` and
    ``supplier``.
    """

    model = PurchaseOrder
    serializer_class = PurchaseOrderListSerializer

    def get_base_queryset(self):
        return PurchaseOrder.objects.select_related("supplier").annotate(item_count=Count("items"))

    def filter_queryset_params(self, queryset):
        params = self.request.query_params
        search = params.get("search")
        if search:
            queryset = queryset.filter(
                Q(po_number__icontains=search) | Q(supplier__name__icontains=search)
            )
        if params.get("status"):
            queryset = queryset.filter(status=params["status"])
        if params.get("supplier"):
            queryset = queryset.filter(supplier_id=params["supplier"])
        return queryset.order_by("-created_at")

    def create(self, request, *args, **kwargs):
        if not request.data.get("supplier") or not request.data.get("items"):
            return error_response("Supplier and at least one item are required")

        serializer = PurchaseOrderCreateSerializer(
            data=request.data, context={"tenant": request.user.tenant}
        )
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            purchase_order = PurchaseOrderService.create_purchase_order(
                tenant=request.user.tenant,
                supplier=data["supplier"],
                items=[dict(item) for item in data["items"]],
                store=data.get("store") or request.user.store,
                user=request.user,
                shipping=data["shipping"],
                expected_date=data.get("expected_date"),
                notes=data["notes"],
            )
        except ValueError as e:
            return error_response(str(e))

        return Response(
            PurchaseOrderSerializer(purchase_order).data, status=status.HTTP_201_CREATED
        )


class PurchaseOrderDetailView(TenantScopedMixin, generics.RetrieveUpdateDestroyAPIView):
    model = PurchaseOrder
    serializer_class = PurchaseOrderSerializer

    def get_base_queryset(self):
        return PurchaseOrder.objects.select_related("supplier", "store").prefetch_related(
            "items__product"
        )

    def update(self, request, *args, **kwargs):
        purchase_order = self.get_object()
        serializer = PurchaseOrderUpdateSerializer(
            data=request.data, context={"tenant": request.user.tenant}
        )
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        if "items" in data:
            data["items"] = [dict(item) for item in data["items"]]

        try:
            purchase_order = PurchaseOrderService.update_purchase_order(purchase_order, data)
        except ValueError as e:
            return error_response(str(e))

        return Response(PurchaseOrderSerializer(purchase_order).data)

    def destroy(self, request, *args, **kwargs):
        purchase_order = self.get_object()
        if purchase_order.status in PurchaseOrder.LOCKED_STATUSES:
            return error_response(
                f"Cannot delete a purchase order with status {purchase_order.status}"
            )
        purchase_order.delete()
        logger.info(f"Deleted purchase order {purchase_order.po_number}")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasTenantAccess])
def purchase_order_receive(request, id):
    """
    Receive goods against a purchase order.

    Request body (optional; omitted ``items`` receives everything outstanding):
    {
        "items": [{"item": "<uuid>", "received_quantity": 5}]
    }
    """
    purchase_order = get_object_or_404(PurchaseOrder, id=id, tenant=request.user.tenant)

    serializer = ReceivePurchaseOrderSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    items = serializer.validated_data.get("items")

    try:
        purchase_order, received_value = PurchaseOrderService.receive_items(
            purchase_order,
            [dict(item) for item in items] if items else None,
            user=request.user,
        )
    except ValueError as e:
        return error_response(str(e))

    return Response(
        {
            "message": "Items received successfully",
            "received_value": received_value,
            "purchase_order": PurchaseOrderSerializer(purchase_order).data,
        }
    )
