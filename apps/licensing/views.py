"""
API views for license activation and administration.

Activation, checking and deactivation are public: installations call them
before they have any user credentials.
"""

import logging

from django.db.models import Count, Q

from rest_framework import generics, permissions, status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.response import Response

from apps.core.exceptions import error_response
from apps.core.permissions import IsPlatformAdmin

from .models import License
from .serializers import (
    LicenseActivationSerializer,
    LicenseGenerateSerializer,
    LicenseSerializer,
    LicenseSummarySerializer,
)
from .services import LicenseError, LicenseService

logger = logging.getLogger(__name__)


def get_client_ip(request):
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


@api_view(["POST"])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def license_activate(request):
    """
    Activate a license on this installation.

    Request body:
    {
        "license_key": "ABCD-EFGH-IJKL-MNOP",
        "client_email": "owner@example.com",
        "domain": "pos.example.com",
        "hardware_id": "HW-1",
        "system_info": {}
    }
    """
    license_key = request.data.get("license_key")
    client_email = request.data.get("client_email")
    if not license_key or not client_email:
        return error_response("License key and client email are required")

    system_info = request.data.get("system_info") or {}
    if not isinstance(system_info, dict):
        return error_response("system_info must be an object")

    try:
        activation = LicenseService.activate(
            license_key,
            client_email,
            domain=request.data.get("domain") or system_info.get("domain", ""),
            hardware_id=request.data.get("hardware_id") or system_info.get("hardware_id", ""),
            system_info=system_info,
            ip_address=get_client_ip(request),
            user_agent=request.META.get("HTTP_USER_AGENT", ""),
        )
    except LicenseError as e:
        return error_response(str(e), e.status_code)

    return Response(
        {
            "success": True,
            "activation_key": activation.activation_key,
            "license": LicenseSummarySerializer(activation.license).data,
        }
    )


@api_view(["GET", "POST"])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def license_check(request):
    """
    Verify an activation.

    GET reads the ``X-License-Key`` and ``X-Activation-Key`` headers and
    always answers 200 with ``activated`` true or false. POST takes
    ``license_key`` and ``activation_key`` in the body and answers failures
    with an error status.
    """
    if request.method == "GET":
        license_key = request.headers.get("X-License-Key")
        activation_key = request.headers.get("X-Activation-Key")
        if not license_key or not activation_key:
            return Response({"activated": False, "message": "No activation information provided"})
        try:
            activation = LicenseService.verify(license_key, activation_key)
        except LicenseError as e:
            return Response({"activated": False, "message": str(e)})
        return Response(
            {"activated": True, "license": LicenseSummarySerializer(activation.license).data}
        )

    license_key = request.data.get("license_key")
    activation_key = request.data.get("activation_key")
    if not license_key or not activation_key:
        return error_response("Activation key and license key are required")

    try:
        activation = LicenseService.verify(license_key, activation_key)
    except LicenseError as e:
        return error_response(str(e), e.status_code, activated=False)

    return Response(
        {"activated": True, "license": LicenseSummarySerializer(activation.license).data}
    )


@api_view(["POST"])
@authentication_classes([])
@permission_classes([permissions.AllowAny])
def license_deactivate(request):
    activation_key = request.data.get("activation_key")
    license_key = request.data.get("license_key")
    if not activation_key or not license_key:
        return error_response("Activation key and license key are required")

    try:
        activation = LicenseService.deactivate(
            activation_key, license_key, reason=request.data.get("reason", "")
        )
    except LicenseError as e:
        return error_response(str(e), e.status_code)

    return Response(
        {
            "success": True,
            "message": "License deactivated successfully",
            "activation": LicenseActivationSerializer(activation).data,
        }
    )


class LicenseListView(generics.ListAPIView):
    """
    All licenses, newest first.

    Query params: ``status``, ``type`` and ``search`` (key, client name or
    client email).
    """

    serializer_class = LicenseSerializer
    permission_classes = [permissions.IsAuthenticated, IsPlatformAdmin]

    def get_queryset(self):
        queryset = License.objects.annotate(
            active_activations=Count("activations", filter=Q(activations__is_active=True))
        ).order_by("-created_at")

        params = self.request.query_params
        if params.get("status"):
            queryset = queryset.filter(status=params["status"])
        if params.get("type"):
            queryset = queryset.filter(license_type=params["type"])
        search = params.get("search")
        if search:
            queryset = queryset.filter(
                Q(license_key__icontains=search)
                | Q(client_name__icontains=search)
                | Q(client_email__icontains=search)
            )
        return queryset


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, IsPlatformAdmin])
def license_generate(request):
    """
    Generate one license (``generate_single``) or up to 100
    (``generate_bulk``).
    """
    serializer = LicenseGenerateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = dict(serializer.validated_data)

    action = data.pop("action")
    count = data.pop("count")
    license_type = data.pop("type")
    client_name = data.pop("client_name")
    client_email = data.pop("client_email")

    if action == LicenseGenerateSerializer.GENERATE_SINGLE:
        license = LicenseService.generate(license_type, client_name, client_email, **data)
        return Response(
            {"license": LicenseSerializer(license).data, "license_key": license.license_key},
            status=status.HTTP_201_CREATED,
        )

    licenses = LicenseService.generate_bulk(count, license_type, client_name, client_email, **data)
    logger.info(f"Platform admin {request.user.username} generated {len(licenses)} licenses")
    return Response(
        {
            "licenses": LicenseSerializer(licenses, many=True).data,
            "license_keys": [license.license_key for license in licenses],
            "count": len(licenses),
            "message": f"Generated {len(licenses)} licenses successfully",
        },
        status=status.HTTP_201_CREATED,
    )
