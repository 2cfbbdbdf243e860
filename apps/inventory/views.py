"""
API views for inventory management.

- Categories and products (CRUD)
- Stock levels with ADD/DEDUCT/SET adjustments
- Stock movement history and manual stock in/out
- Inventory alerts
- Stock transfers between stores
"""

import logging

from django.db import transaction
from django.db.models import F, Q
from django.shortcuts import get_object_or_404
from django.utils import timezone

from rest_framework import generics, permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core.exceptions import error_response
from apps.core.mixins import TenantScopedMixin
from apps.core.models import Store
from apps.core.permissions import HasTenantAccess
from apps.core.utils import next_sequence_number, parse_bool

from .models import Category, Inventory, InventoryAlert, Product, StockMovement, StockTransfer
from .serializers import (
    CategorySerializer,
    InventoryAlertSerializer,
    InventorySerializer,
    ProductSerializer,
    StockAdjustmentSerializer,
    StockMovementSerializer,
    StockTransferCreateSerializer,
    StockTransferSerializer,
)
from .services import InventoryService

logger = logging.getLogger(__name__)


# Category Views


class CategoryListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """
    List or create product categories.

    Supports ``is_active`` and ``parent`` (``null`` for root categories).
    """

    model = Category
    serializer_class = CategorySerializer

    def get_base_queryset(self):
        return Category.objects.select_related("parent")

    def filter_queryset_params(self, queryset):
        is_active = parse_bool(self.request.query_params.get("is_active"))
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)

        parent_id = self.request.query_params.get("parent")
        if parent_id in ("null", ""):
            queryset = queryset.filter(parent__isnull=True)
        elif parent_id:
            queryset = queryset.filter(parent_id=parent_id)
        return queryset.order_by("name")


class CategoryDetailView(TenantScopedMixin, generics.RetrieveUpdateDestroyAPIView):
    model = Category
    serializer_class = CategorySerializer

    def destroy(self, request, *args, **kwargs):
        category = self.get_object()
        if category.products.exists():
            return error_response("Cannot delete category with existing products")
        category.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Product Views


class ProductListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """
    List or create products.

    Lookup precedence for GET: exact ``barcode``, then exact ``sku``, then
    ``search`` over name, sku, barcode and description. POST accepts an
    optional ``store`` to open a zero-quantity stock record there.
    """

    model = Product
    serializer_class = ProductSerializer

    def get_base_queryset(self):
        return Product.objects.select_related("category")

    def filter_queryset_params(self, queryset):
        params = self.request.query_params
        if params.get("barcode"):
            return queryset.filter(barcode=params["barcode"])
        if params.get("sku"):
            return queryset.filter(sku=params["sku"])

        search = params.get("search")
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search)
                | Q(sku__icontains=search)
                | Q(barcode__icontains=search)
                | Q(description__icontains=search)
            )

        category = params.get("category")
        if category:
            queryset = queryset.filter(category_id=category)

        is_active = parse_bool(params.get("is_active"))
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        return queryset.order_by("-created_at")

    def create(self, request, *args, **kwargs):
        if not request.data.get("name") or request.data.get("price") in (None, ""):
            return error_response("Name and price are required")

        store = None
        store_id = request.data.get("store")
        if store_id:
            store = Store.objects.filter(tenant=request.user.tenant, id=store_id).first()
            if store is None:
                return error_response("Store not found", status.HTTP_404_NOT_FOUND)

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            product = serializer.save(tenant=request.user.tenant)
            if store is not None:
                Inventory.objects.create(
                    tenant=request.user.tenant,
                    product=product,
                    store=store,
                    quantity=0,
                    min_stock=int(request.data.get("min_stock") or 0),
                    cost_price=product.cost_price,
                )

        logger.info(f"Created product {product.name} for tenant {request.user.tenant_id}")
        return Response(self.get_serializer(product).data, status=status.HTTP_201_CREATED)


class ProductDetailView(TenantScopedMixin, generics.RetrieveUpdateDestroyAPIView):
    model = Product
    serializer_class = ProductSerializer

    def destroy(self, request, *args, **kwargs):
        product = self.get_object()
        if product.sale_items.exists():
            return error_response("Cannot delete product with existing sales")
        product.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Inventory Views


class InventoryListView(TenantScopedMixin, generics.ListAPIView):
    """Stock levels, filterable by ``store``, ``product`` and ``low_stock``."""

    model = Inventory
    serializer_class = InventorySerializer

    def get_base_queryset(self):
        return Inventory.objects.select_related("product", "store")

    def filter_queryset_params(self, queryset):
        params = self.request.query_params
        if params.get("store"):
            queryset = queryset.filter(store_id=params["store"])
        if params.get("product"):
            queryset = queryset.filter(product_id=params["product"])
        if parse_bool(params.get("low_stock")):
            queryset = queryset.filter(quantity__lte=F("min_stock"))
        return queryset.order_by("product__name")


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasTenantAccess])
@transaction.atomic
def inventory_adjust(request, id):
    """
    Adjust a stock level.

    Request body:
    {
        "adjustment_type": "ADD|DEDUCT|SET",
        "quantity": <number>,
        "reason": "<optional reason>"
    }
    """
    try:
        inventory = Inventory.objects.select_for_update().get(id=id, tenant=request.user.tenant)
    except Inventory.DoesNotExist:
        return error_response("Inventory record not found", status.HTTP_404_NOT_FOUND)

    serializer = StockAdjustmentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        inventory = InventoryService.adjust(
            inventory,
            serializer.validated_data["adjustment_type"],
            serializer.validated_data["quantity"],
            serializer.validated_data["reason"],
            user=request.user,
        )
    except ValueError as e:
        return error_response(str(e))

    return Response(
        {"message": "Stock adjusted successfully", "inventory": InventorySerializer(inventory).data}
    )


# Stock Movement Views


class StockMovementListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """
    Movement history, or a manual stock in/out.

    POST body: ``product``, ``type`` (IN or OUT), ``quantity`` and optional
    ``store``, ``reason``, ``reference_id`` and ``notes``.
    """

    model = StockMovement
    serializer_class = StockMovementSerializer

    def get_base_queryset(self):
        return StockMovement.objects.select_related("product", "store", "created_by")

    def filter_queryset_params(self, queryset):
        params = self.request.query_params
        if params.get("product"):
            queryset = queryset.filter(product_id=params["product"])
        if params.get("store"):
            queryset = queryset.filter(store_id=params["store"])
        if params.get("type"):
            queryset = queryset.filter(movement_type=params["type"])
        return queryset.order_by("-created_at")

    def create(self, request, *args, **kwargs):
        tenant = request.user.tenant
        product_id = request.data.get("product")
        movement_type = request.data.get("type")
        try:
            quantity = int(request.data.get("quantity") or 0)
        except (TypeError, ValueError):
            quantity = 0

        if not product_id or not movement_type or quantity <= 0:
            return error_response("Product, type and a positive quantity are required")
        if movement_type not in (StockMovement.IN, StockMovement.OUT):
            return error_response("Type must be IN or OUT")

        product = Product.objects.filter(tenant=tenant, id=product_id).first()
        if product is None:
            return error_response("Product not found", status.HTTP_404_NOT_FOUND)

        store = None
        if request.data.get("store"):
            store = Store.objects.filter(tenant=tenant, id=request.data["store"]).first()
            if store is None:
                return error_response("Store not found", status.HTTP_404_NOT_FOUND)

        reason = request.data.get("reason") or StockMovement.REASON_ADJUSTMENT
        if reason not in dict(StockMovement.REASON_CHOICES):
            return error_response("Invalid reason")

        with transaction.atomic():
            inventory = InventoryService.get_locked_inventory(tenant, product, store)
            if movement_type == StockMovement.IN:
                handler = InventoryService.stock_in
            else:
                handler = InventoryService.stock_out
            movement = handler(
                inventory,
                quantity,
                reason,
                request.user,
                reference_id=request.data.get("reference_id", ""),
                notes=request.data.get("notes", ""),
            )

        return Response(self.get_serializer(movement).data, status=status.HTTP_201_CREATED)


# Alert Views


class InventoryAlertListView(TenantScopedMixin, generics.ListAPIView):
    """Alerts, filterable by ``is_resolved``, ``type`` and ``severity``."""

    model = InventoryAlert
    serializer_class = InventoryAlertSerializer

    def get_base_queryset(self):
        return InventoryAlert.objects.select_related("product", "inventory")

    def filter_queryset_params(self, queryset):
        params = self.request.query_params
        is_resolved = parse_bool(params.get("is_resolved"))
        if is_resolved is not None:
            queryset = queryset.filter(is_resolved=is_resolved)
        if params.get("type"):
            queryset = queryset.filter(alert_type=params["type"])
        if params.get("severity"):
            queryset = queryset.filter(severity=params["severity"])
        return queryset.order_by("-created_at")


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasTenantAccess])
def inventory_alert_resolve(request, id):
    alert = get_object_or_404(InventoryAlert, id=id, tenant=request.user.tenant)
    if not alert.is_resolved:
        alert.is_resolved = True
        alert.resolved_at = timezone.now()
        alert.save(update_fields=["is_resolved", "resolved_at"])
    return Response(InventoryAlertSerializer(alert).data)


# Stock Transfer Views


class StockTransferListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """
    List transfers or request a new one.

    POST body:
    {
        "from_store": "<uuid>",
        "to_store": "<uuid>",
        "items": [{"product": "<uuid>", "quantity": 5}],
        "expected_date": "YYYY-MM-DD",
        "notes": ""
    }
    """

    model = StockTransfer
    serializer_class = StockTransferSerializer

    def get_base_queryset(self):
        return StockTransfer.objects.select_related("from_store", "to_store").prefetch_related(
            "items__product"
        )

    def filter_queryset_params(self, queryset):
        params = self.request.query_params
        if params.get("status"):
            queryset = queryset.filter(status=params["status"])
        if params.get("store"):
            queryset = queryset.filter(
                Q(from_store_id=params["store"]) | Q(to_store_id=params["store"])
            )
        return queryset.order_by("-transfer_date")

    def create(self, request, *args, **kwargs):
        tenant = request.user.tenant
        if not request.data.get("from_store") or not request.data.get("to_store"):
            return error_response("Source and destination stores are required")
        if not request.data.get("items"):
            return error_response("At least one item is required")

        serializer = StockTransferCreateSerializer(data=request.data, context={"tenant": tenant})
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        from_store = serializer.get_store(data["from_store"])
        to_store = serializer.get_store(data["to_store"])
        if from_store is None or to_store is None:
            return error_response("Store not found", status.HTTP_404_NOT_FOUND)

        with transaction.atomic():
            date_prefix = timezone.now().strftime("%Y%m%d")
            transfer = StockTransfer.objects.create(
                tenant=tenant,
                transfer_number=next_sequence_number(
                    StockTransfer.objects.filter(tenant=tenant),
                    "transfer_number",
                    f"TRF-{date_prefix}-",
                    4,
                ),
                from_store=from_store,
                to_store=to_store,
                expected_date=data.get("expected_date"),
                notes=data.get("notes", ""),
                requested_by=request.user,
            )
            for item in data["items"]:
                transfer.items.create(
                    product=item["product"],
                    quantity=item["quantity"],
                    unit_cost=item.get("unit_cost", item["product"].cost_price),
                    notes=item.get("notes", ""),
                )

        logger.info(f"Created stock transfer {transfer.transfer_number}")
        return Response(StockTransferSerializer(transfer).data, status=status.HTTP_201_CREATED)


class StockTransferDetailView(TenantScopedMixin, generics.RetrieveAPIView):
    model = StockTransfer
    serializer_class = StockTransferSerializer


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasTenantAccess])
def stock_transfer_complete(request, id):
    transfer = get_object_or_404(StockTransfer, id=id, tenant=request.user.tenant)
    try:
        transfer = InventoryService.complete_transfer(transfer, user=request.user)
    except ValueError as e:
        return error_response(str(e))
    return Response(StockTransferSerializer(transfer).data)
