"""
License enforcement middleware.

When ``LICENSE_ENFORCEMENT_ENABLED`` is set, API requests must come from a
licensed installation, identified by the ``X-License-Key`` and
``X-Activation-Key`` headers.
"""

import logging

from django.conf import settings
from django.http import JsonResponse

from .services import LicenseError, LicenseService

logger = logging.getLogger(__name__)

EXEMPT_PREFIXES = (
    "/api/auth/",
    "/api/license/",
    "/api/licenses/",
    "/api/franchise/apply/",
    "/api/franchise/login/",
)


class LicenseMiddleware:
    """
    Reject unlicensed API requests and attach ``request.license``.

    Requests without license headers are let through only when the
    installation holds an active demo or localhost activation.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if not self._applies(request.path):
            return self.get_response(request)

        license_key = request.headers.get("X-License-Key")
        activation_key = request.headers.get("X-Activation-Key")

        if license_key and activation_key:
            try:
                activation = LicenseService.verify(license_key, activation_key)
            except LicenseError as e:
                logger.warning(f"License check failed for {request.path}: {e}")
                return JsonResponse({"error": str(e)}, status=403)
            request.license = activation.license
            return self.get_response(request)

        license = LicenseService.find_fallback_license(settings.LICENSE_DEMO_ACTIVATION_KEY)
        if license is None:
            return JsonResponse({"error": "License activation required"}, status=403)

        request.license = license
        return self.get_response(request)

    @staticmethod
    def _applies(path):
        if not getattr(settings, "LICENSE_ENFORCEMENT_ENABLED", False):
            return False
        return path.startswith("/api/") and not path.startswith(EXEMPT_PREFIXES)
