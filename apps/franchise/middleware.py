"""
Franchise authorization middleware.

Requests to ``/api/franchise/<uuid>/...`` must identify the franchise with
the ``X-Franchise-Id`` and ``X-Franchise-Email`` headers. Everything else
passes straight through.
"""

import logging
import re

from django.http import JsonResponse

from apps.core.utils import is_uuid

from .models import Franchise, FranchiseUser

logger = logging.getLogger(__name__)

FRANCHISE_PATH = re.compile(
    r"^/api/franchise/(?P<franchise_id>[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-"
    r"[0-9a-fA-F]{4}-[0-9a-fA-F]{12})(/|$)"
)

STATUS_ERRORS = {
    Franchise.PENDING: "Franchise application is pending approval",
    Franchise.REJECTED: "Franchise application was rejected",
    Franchise.SUSPENDED: "Franchise account is suspended",
}


def has_franchise_permission(request, permission):
    """True when the verified franchise user holds ``permission`` or is an ADMIN."""
    franchise_user = getattr(request, "franchise_user", None)
    return franchise_user is not None and franchise_user.has_permission(permission)


class FranchiseAuthorizationMiddleware:
    """
    Verify the franchise behind a franchise-scoped request.

    On success ``request.franchise`` and ``request.franchise_user`` are set.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        match = FRANCHISE_PATH.match(request.path)
        if match is None:
            return self.get_response(request)

        franchise_id = request.headers.get("X-Franchise-Id")
        franchise_email = request.headers.get("X-Franchise-Email")
        if not franchise_id or not franchise_email:
            return self._reject(request, "Franchise credentials required", 401)

        franchise = Franchise.objects.filter(id=franchise_id).first() if is_uuid(franchise_id) else None
        if franchise is None:
            return self._reject(request, "Franchise not found")

        if franchise.email.lower() != franchise_email.lower():
            return self._reject(request, "Franchise email mismatch")

        if franchise.status in STATUS_ERRORS:
            return self._reject(request, STATUS_ERRORS[franchise.status])

        if franchise.is_blocked:
            return self._reject(
                request, "Franchise account is blocked due to outstanding payments"
            )

        franchise_user = (
            FranchiseUser.objects.select_related("user")
            .filter(franchise=franchise, user__email__iexact=franchise_email, is_active=True)
            .first()
        )
        if franchise_user is None:
            return self._reject(request, "Franchise user not found or inactive")

        if str(franchise.id) != match.group("franchise_id").lower():
            return self._reject(request, "Access denied to this franchise")

        request.franchise = franchise
        request.franchise_user = franchise_user
        return self.get_response(request)

    def _reject(self, request, message, status=403):
        logger.warning(f"Franchise request to {request.path} rejected: {message}")
        return JsonResponse({"error": message}, status=status)
