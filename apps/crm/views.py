"""
API views for customers, loyalty, the customer ledger and due payments.
"""

import logging

from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404

from rest_framework import generics, permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core.exceptions import error_response
from apps.core.mixins import TenantScopedMixin
from apps.core.pagination import paginate
from apps.core.permissions import HasTenantAccess
from apps.core.utils import date_range_from_params

from .models import Customer, CustomerLedger, LoyaltyProgram, LoyaltyTransaction
from .serializers import (
    CustomerLedgerEntrySerializer,
    CustomerLedgerSerializer,
    CustomerListSerializer,
    CustomerSerializer,
    DueCustomerSerializer,
    DuePaymentSerializer,
    LoyaltyAdjustmentSerializer,
    LoyaltyProgramSerializer,
    LoyaltyTransactionSerializer,
)
from .services import CustomerLedgerService, CustomerService, LoyaltyService

logger = logging.getLogger(__name__)


class CustomerListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """
    List or create customers.

    GET supports ``search`` (name, number, email, phone, company) and ``tier``.
    POST grants the loyalty program's signup bonus.
    """

    model = Customer

    def get_serializer_class(self):
        if self.request.method == "GET":
            return CustomerListSerializer
        return CustomerSerializer

    def filter_queryset_params(self, queryset):
        params = self.request.query_params
        search = params.get("search")
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search)
                | Q(customer_number__icontains=search)
                | Q(email__icontains=search)
                | Q(phone__icontains=search)
                | Q(company__icontains=search)
            )
        tier = params.get("tier")
        if tier:
            queryset = queryset.filter(loyalty_tier=tier.upper())
        return queryset.order_by("-created_at")

    def create(self, request, *args, **kwargs):
        if not request.data.get("name"):
            return error_response("Customer name is required")

        serializer = CustomerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            customer = serializer.save(tenant=request.user.tenant)
            LoyaltyService.grant_signup_bonus(customer)
            customer.refresh_from_db()

        logger.info(f"Created customer {customer.customer_number} for tenant {customer.tenant_id}")
        return Response(CustomerSerializer(customer).data, status=status.HTTP_201_CREATED)


class CustomerDetailView(TenantScopedMixin, generics.RetrieveUpdateDestroyAPIView):
    model = Customer
    serializer_class = CustomerSerializer

    def destroy(self, request, *args, **kwargs):
        customer = self.get_object()
        if customer.sales.exists():
            return error_response("Cannot delete customer with existing sales")
        if customer.due_balance != 0:
            return error_response("Cannot delete customer with an outstanding due balance")
        customer.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(["GET", "POST"])
@permission_classes([permissions.IsAuthenticated, HasTenantAccess])
def customer_loyalty(request, id):
    """
    GET: points, tier and transaction history.

    POST body: ``{"points": 100, "type": "EARNED|REDEEMED|ADJUSTED|BONUS",
    "description": "..."}``
    """
    customer = get_object_or_404(Customer, id=id, tenant=request.user.tenant)

    if request.method == "POST":
        serializer = LoyaltyAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        points = serializer.validated_data["points"]
        transaction_type = serializer.validated_data["type"]
        description = serializer.validated_data["description"]

        try:
            with transaction.atomic():
                if transaction_type == LoyaltyTransaction.REDEEMED:
                    customer.redeem_loyalty_points(abs(points), description)
                elif transaction_type == LoyaltyTransaction.ADJUSTED:
                    customer.adjust_loyalty_points(points, description)
                elif points > 0:
                    customer.add_loyalty_points(
                        points, description, transaction_type=transaction_type
                    )
                else:
                    return error_response("Points must be positive")
                customer.update_loyalty_tier()
        except ValueError as e:
            return error_response(str(e))

    transactions = customer.loyalty_transactions.select_related("sale").order_by("-created_at")
    return Response(
        {
            "customer": str(customer.id),
            "loyalty_points": customer.loyalty_points,
            "loyalty_tier": customer.loyalty_tier,
            "total_spent": customer.total_spent,
            "transactions": LoyaltyTransactionSerializer(transactions[:100], many=True).data,
        },
        status=status.HTTP_201_CREATED if request.method == "POST" else status.HTTP_200_OK,
    )


@api_view(["GET", "PUT"])
@permission_classes([permissions.IsAuthenticated, HasTenantAccess])
def loyalty_program(request):
    """
    The tenant's loyalty program. GET answers with the defaults when none
    has been saved; PUT creates or replaces it.
    """
    tenant = request.user.tenant
    program = LoyaltyService.get_program(tenant)

    if request.method == "GET":
        return Response(LoyaltyProgramSerializer(program or LoyaltyService.default_program(tenant)).data)

    serializer = LoyaltyProgramSerializer(program, data=request.data, partial=program is not None)
    serializer.is_valid(raise_exception=True)
    program, _ = LoyaltyProgram.objects.update_or_create(
        tenant=tenant, defaults=serializer.validated_data
    )
    logger.info(f"Updated loyalty program for tenant {tenant.id}")
    return Response(LoyaltyProgramSerializer(program).data)


class CustomerLedgerListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """
    Customer ledger entries, newest first.

    GET filters: ``customer``, ``type``, ``start_date`` and ``end_date``.
    POST body: ``customer``, ``type`` and signed ``amount``.
    """

    model = CustomerLedger
    serializer_class = CustomerLedgerSerializer

    def get_base_queryset(self):
        return CustomerLedger.objects.select_related("customer")

    def filter_queryset_params(self, queryset):
        params = self.request.query_params
        if params.get("customer"):
            queryset = queryset.filter(customer_id=params["customer"])
        if params.get("type"):
            queryset = queryset.filter(entry_type=params["type"])
        start, end = date_range_from_params(params)
        if start and end:
            queryset = queryset.filter(date__range=(start, end))
        return queryset.order_by("-date", "-created_at")

    def create(self, request, *args, **kwargs):
        if not all(request.data.get(key) not in (None, "") for key in ("customer", "type", "amount")):
            return error_response("Customer, type and amount are required")

        serializer = CustomerLedgerEntrySerializer(
            data=request.data, context={"tenant": request.user.tenant}
        )
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        entry = CustomerLedgerService.post_entry(
            data["customer"],
            data["type"],
            data["amount"],
            description=data["description"],
            reference_id=data["reference_id"],
            user=request.user,
            date=data.get("date"),
        )
        return Response(CustomerLedgerSerializer(entry).data, status=status.HTTP_201_CREATED)


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, HasTenantAccess])
def due_payment_list(request):
    """Customers with an outstanding balance, largest first."""
    queryset = Customer.objects.filter(tenant=request.user.tenant, due_balance__gt=0).order_by(
        "-due_balance"
    )
    search = request.query_params.get("search")
    if search:
        queryset = queryset.filter(Q(name__icontains=search) | Q(phone__icontains=search))
    return paginate(request, queryset, DueCustomerSerializer)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasTenantAccess])
def due_payment_receive(request):
    """
    Record a payment against a customer's due balance.

    Request body:
    {
        "customer": "<uuid>",
        "amount": "25.00",
        "payment_method": "CASH",
        "notes": ""
    }
    """
    if not all(request.data.get(key) for key in ("customer", "amount", "payment_method")):
        return error_response("Customer, amount and payment method are required")

    serializer = DuePaymentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    customer = Customer.objects.filter(tenant=request.user.tenant, id=data["customer"]).first()
    if customer is None:
        return error_response("Customer not found", status.HTTP_404_NOT_FOUND)

    try:
        entry = CustomerService.receive_due_payment(
            customer, data["amount"], data["payment_method"], user=request.user, notes=data["notes"]
        )
    except ValueError as e:
        return error_response(str(e))

    customer.refresh_from_db()
    return Response(
        {
            "message": "Payment received successfully",
            "customer": CustomerListSerializer(customer).data,
            "ledger_entry": CustomerLedgerSerializer(entry).data,
        }
    )
