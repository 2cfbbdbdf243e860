"""
API views for accounts, expense categories and expenses.
"""

import logging

from django.shortcuts import get_object_or_404

from rest_framework import generics, permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core.exceptions import error_response
from apps.core.mixins import TenantScopedMixin
from apps.core.permissions import HasTenantAccess
from apps.core.utils import date_range_from_params

from .models import Account, Expense, ExpenseCategory
from .serializers import (
    AccountSerializer,
    ExpenseCategorySerializer,
    ExpenseCreateSerializer,
    ExpenseSerializer,
    ExpenseStatusSerializer,
)
from .services import ExpenseService

logger = logging.getLogger(__name__)


class AccountListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """List or create accounts. GET filters: ``type`` and ``store``."""

    model = Account
    serializer_class = AccountSerializer

    def filter_queryset_params(self, queryset):
        params = self.request.query_params
        if params.get("type"):
            queryset = queryset.filter(account_type=params["type"].upper())
        if params.get("store"):
            queryset = queryset.filter(store_id=params["store"])
        return queryset.order_by("name")


class AccountDetailView(TenantScopedMixin, generics.RetrieveUpdateDestroyAPIView):
    model = Account
    serializer_class = AccountSerializer

    def destroy(self, request, *args, **kwargs):
        account = self.get_object()
        if account.expenses.exists():
            return error_response("Cannot delete account with existing expenses")
        account.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


class ExpenseCategoryListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    model = ExpenseCategory
    serializer_class = ExpenseCategorySerializer

    def filter_queryset_params(self, queryset):
        return queryset.order_by("name")


class ExpenseListCreateView(TenantScopedMixin, generics.ListCreateAPIView):
    """
    List or record expenses.

    GET filters: ``store``, ``category``, ``status``, ``start_date`` and
    ``end_date``.
    """

    model = Expense
    serializer_class = ExpenseSerializer

    def get_base_queryset(self):
        return Expense.objects.select_related("category", "account").prefetch_related("items")

    def filter_queryset_params(self, queryset):
        params = self.request.query_params
        for param, field in (
            ("store", "store_id"),
            ("category", "category_id"),
            ("status", "status"),
        ):
            if params.get(param):
                queryset = queryset.filter(**{field: params[param]})

        start, end = date_range_from_params(params)
        if start:
            queryset = queryset.filter(date__gte=start.date())
        if end:
            queryset = queryset.filter(date__lte=end.date())
        return queryset.order_by("-date", "-created_at")

    def create(self, request, *args, **kwargs):
        serializer = ExpenseCreateSerializer(
            data=request.data, context={"tenant": request.user.tenant}
        )
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        if "items" in data:
            data["items"] = [dict(item) for item in data["items"]]

        try:
            expense = ExpenseService.create_expense(request.user.tenant, data, user=request.user)
        except ValueError as e:
            return error_response(str(e))

        return Response(ExpenseSerializer(expense).data, status=status.HTTP_201_CREATED)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasTenantAccess])
def expense_status(request, id):
    """
    Change an expense's status.

    Request body: ``{"status": "APPROVED|REJECTED|PAID|PENDING"}``
    """
    expense = get_object_or_404(Expense, id=id, tenant=request.user.tenant)

    serializer = ExpenseStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        expense = ExpenseService.change_status(expense, serializer.validated_data["status"])
    except ValueError as e:
        return error_response(str(e))

    return Response(ExpenseSerializer(expense).data)
