"""
API views for franchises and royalty collection.

Endpoints under ``/api/franchise/<id>/`` carry no JWT; they are
authorized by ``FranchiseAuthorizationMiddleware``, which attaches
``request.franchise`` and ``request.franchise_user``.
"""

import logging

from django.db.models import Count, Q
from django.shortcuts import get_object_or_404
from django.utils import timezone

from rest_framework import permissions, status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken

from apps.core.exceptions import error_response
from apps.core.models import User
from apps.core.pagination import paginate
from apps.core.permissions import IsPlatformAdmin
from apps.core.utils import is_uuid

from .middleware import has_franchise_permission
from .models import Franchise, FranchiseUser, RoyaltyPayment
from .serializers import (
    FranchiseApplicationSerializer,
    FranchiseClientSerializer,
    FranchiseContactSerializer,
    FranchiseFeesSerializer,
    FranchiseSerializer,
    FranchiseUserCreateSerializer,
    FranchiseUserSerializer,
    RoyaltyPaymentSerializer,
    RoyaltyProcessSerializer,
)
from .services import FranchiseConflict, FranchiseService

logger = logging.getLogger(__name__)

MANAGE_ACTIONS = ("create", "update_status", "update_fees")


def _with_counts(queryset):
    return queryset.annotate(
        user_count=Count("users", distinct=True),
        pending_payments=Count(
            "royalty_payments",
            filter=Q(royalty_payments__status=RoyaltyPayment.PENDING),
            distinct=True,
        ),
    )


@api_view(["POST"])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def franchise_apply(request):
    """
    Submit a franchise application.

    The franchise starts PENDING together with an ADMIN franchise user built
    from the ``admin_*`` fields.
    """
    serializer = FranchiseApplicationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        franchise, membership = FranchiseService.apply(serializer.validated_data)
    except FranchiseConflict as e:
        return error_response(str(e), status.HTTP_409_CONFLICT)

    return Response(
        {
            "message": "Franchise application submitted successfully",
            "franchise": FranchiseSerializer(franchise).data,
            "admin": FranchiseUserSerializer(membership).data,
        },
        status=status.HTTP_201_CREATED,
    )


@api_view(["POST"])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def franchise_login(request):
    """Exchange franchise user credentials for a JWT pair."""
    email = request.data.get("email")
    password = request.data.get("password")
    if not email or not password:
        return error_response("Email and password are required")

    user = User.objects.filter(email__iexact=email, role=User.FRANCHISE_USER).first()
    if user is None or not user.is_active or not user.check_password(password):
        return error_response("Invalid credentials", status.HTTP_401_UNAUTHORIZED)

    membership = (
        FranchiseUser.objects.select_related("franchise").filter(user=user, is_active=True).first()
    )
    if membership is None:
        return error_response("Invalid credentials", status.HTTP_401_UNAUTHORIZED)

    franchise = membership.franchise
    if franchise.status in Franchise.INACTIVE_STATUSES:
        return error_response(
            f"Franchise is {franchise.status.lower()}", status.HTTP_403_FORBIDDEN
        )
    if franchise.is_blocked:
        return error_response(
            f"Franchise is blocked: {franchise.block_reason}", status.HTTP_403_FORBIDDEN
        )

    refresh = RefreshToken.for_user(user)
    logger.info(f"Franchise user {user.email} logged in to {franchise.id}")
    return Response(
        {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
            "franchise": {"id": str(franchise.id), "name": franchise.name, "email": franchise.email},
            "role": membership.role,
            "permissions": membership.permissions,
        }
    )


@api_view(["GET", "POST"])
@permission_classes([permissions.IsAuthenticated, IsPlatformAdmin])
def franchise_manage(request):
    """
    Platform administration of franchises.

    GET lists franchises (filter ``status``). POST dispatches on ``action``:

    - ``create``: franchise fields, created APPROVED with the default fees
    - ``update_status``: ``franchise_id``, ``status`` and ``block_reason``
    - ``update_fees``: ``franchise_id`` plus any of the fee fields
    """
    if request.method == "GET":
        queryset = _with_counts(Franchise.objects.all())
        if request.query_params.get("status"):
            queryset = queryset.filter(status=request.query_params["status"])
        return paginate(request, queryset.order_by("-created_at"), FranchiseSerializer)

    action = request.data.get("action")
    if action not in MANAGE_ACTIONS:
        return error_response(f"Invalid action. Choose from: {', '.join(MANAGE_ACTIONS)}")

    if action == "create":
        serializer = FranchiseContactSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = request.data.get("email")
        if not email:
            return error_response("Email is required")
        if Franchise.objects.filter(email__iexact=email).exists():
            return error_response(
                "Franchise with this email already exists", status.HTTP_409_CONFLICT
            )
        franchise = Franchise.objects.create(
            email=email,
            tax_id=request.data.get("tax_id", ""),
            status=Franchise.APPROVED,
            approved_at=timezone.now(),
            **serializer.validated_data,
        )
        logger.info(f"Platform admin {request.user.username} created franchise {franchise.id}")
        return Response(FranchiseSerializer(franchise).data, status=status.HTTP_201_CREATED)

    franchise_id = request.data.get("franchise_id")
    if not is_uuid(franchise_id):
        return error_response("A valid franchise_id is required")
    franchise = get_object_or_404(Franchise, id=franchise_id)

    if action == "update_status":
        new_status = request.data.get("status")
        if new_status not in dict(Franchise.STATUS_CHOICES):
            return error_response("Invalid status")
        franchise = FranchiseService.update_status(
            franchise, new_status, request.data.get("block_reason", "")
        )
    else:
        serializer = FranchiseFeesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        franchise = FranchiseService.update_fees(franchise, serializer.validated_data)

    return Response(FranchiseSerializer(franchise).data)


@api_view(["GET", "PUT"])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def franchise_detail(request, id):
    franchise = _with_counts(Franchise.objects.filter(id=request.franchise.id)).get()

    if request.method == "PUT":
        serializer = FranchiseContactSerializer(franchise, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        franchise = _with_counts(Franchise.objects.filter(id=franchise.id)).get()

    return Response(FranchiseSerializer(franchise).data)


@api_view(["GET", "POST"])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def franchise_users(request, id):
    """List franchise users, or add one (needs ``manage_users``)."""
    franchise = request.franchise

    if request.method == "GET":
        queryset = franchise.users.select_related("user").order_by("-joined_at")
        return paginate(request, queryset, FranchiseUserSerializer)

    if not has_franchise_permission(request, "manage_users"):
        return error_response("Permission denied", status.HTTP_403_FORBIDDEN)

    serializer = FranchiseUserCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        membership = FranchiseService.create_franchise_user(
            franchise,
            data["email"],
            data["password"],
            name=data["name"],
            role=data["role"],
            permissions=data["permissions"],
        )
    except FranchiseConflict as e:
        return error_response(str(e), status.HTTP_409_CONFLICT)

    return Response(FranchiseUserSerializer(membership).data, status=status.HTTP_201_CREATED)


@api_view(["GET", "POST"])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def franchise_clients(request, id):
    """List or onboard franchise clients."""
    franchise = request.franchise

    if request.method == "GET":
        queryset = franchise.clients.order_by("-created_at")
        if request.query_params.get("status"):
            queryset = queryset.filter(status=request.query_params["status"])
        return paginate(request, queryset, FranchiseClientSerializer)

    if not request.data.get("client_name") or not request.data.get("client_email"):
        return error_response("Client name and email are required")

    serializer = FranchiseClientSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        client = FranchiseService.add_client(franchise, serializer.validated_data)
    except FranchiseConflict as e:
        return error_response(str(e), status.HTTP_409_CONFLICT)
    except ValueError as e:
        return error_response(str(e))

    return Response(FranchiseClientSerializer(client).data, status=status.HTTP_201_CREATED)


@api_view(["GET"])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def franchise_payments(request, id):
    queryset = request.franchise.royalty_payments.select_related("franchise", "client")
    if request.query_params.get("status"):
        queryset = queryset.filter(status=request.query_params["status"])
    return paginate(request, queryset.order_by("-due_date"), RoyaltyPaymentSerializer)


@api_view(["GET", "POST"])
@permission_classes([permissions.IsAuthenticated, IsPlatformAdmin])
def royalty_payments(request):
    """
    Royalty payments across franchises.

    GET filters: ``franchise``, ``status`` and ``type``.

    POST request body:
    {
        "payment_ids": ["<uuid>", ...],
        "payment_method": "BANK_TRANSFER",
        "transaction_id": "TX-1",
        "notes": ""
    }
    """
    if request.method == "GET":
        queryset = RoyaltyPayment.objects.select_related("franchise", "client")
        params = request.query_params
        for param, field in (("franchise", "franchise_id"), ("status", "status"), ("type", "payment_type")):
            if params.get(param):
                queryset = queryset.filter(**{field: params[param]})
        return paginate(request, queryset.order_by("-due_date"), RoyaltyPaymentSerializer)

    serializer = RoyaltyProcessSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        processed, total = FranchiseService.process_royalty_payments(
            data["payment_ids"],
            data["payment_method"],
            transaction_id=data["transaction_id"],
            notes=data["notes"],
        )
    except RoyaltyPayment.DoesNotExist as e:
        return error_response(str(e), status.HTTP_404_NOT_FOUND)

    return Response(
        {
            "message": f"Processed {len(processed)} payments",
            "processed_count": len(processed),
            "total_amount": total,
            "payments": RoyaltyPaymentSerializer(processed, many=True).data,
        }
    )


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, IsPlatformAdmin])
def royalty_reports(request):
    """Royalty collection summary, optionally for one ``franchise``."""
    franchise_id = request.query_params.get("franchise")
    if franchise_id:
        if not is_uuid(franchise_id):
            return error_response("Invalid franchise id")
        get_object_or_404(Franchise, id=franchise_id)
    return Response(FranchiseService.royalty_overview(franchise_id))
