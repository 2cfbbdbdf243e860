"""
API error formatting.

All API errors are rendered as ``{"error": "<message>"}``. Validation errors
additionally carry the per-field messages under ``"details"``.
"""

import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def _first_message(detail):
    """Pull the first human readable message out of a DRF error detail."""
    if isinstance(detail, dict):
        for key, value in detail.items():
            message = _first_message(value)
            if message is None:
                continue
            if key in ("non_field_errors", "detail", "error"):
                return message
            return f"{key}: {message}"
        return None
    if isinstance(detail, (list, tuple)):
        for item in detail:
            message = _first_message(item)
            if message is not None:
                return message
        return None
    return str(detail)


def api_exception_handler(exc, context):
    """
    DRF ``EXCEPTION_HANDLER`` producing the ``{"error": ...}`` payload.

    Unhandled exceptions are logged and turned into a generic 500 so that
    clients never receive an HTML debug page from the API.
    """
    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.exception(
            f"Unhandled error in {view.__class__.__name__ if view else 'API view'}: {exc}"
        )
        return Response(
            {"error": "Internal server error"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, exceptions.ValidationError):
        response.data = {
            "error": _first_message(exc.detail) or "Invalid request",
            "details": exc.detail,
        }
    elif isinstance(exc, Http404):
        response.data = {"error": "Not found"}
    elif isinstance(exc, PermissionDenied):
        response.data = {"error": str(exc) or "Permission denied"}
    elif isinstance(exc, exceptions.APIException):
        response.data = {"error": _first_message(exc.detail) or exc.default_detail}

    return response


def error_response(message, status_code=status.HTTP_400_BAD_REQUEST, **extra):
    """Build an ``{"error": message}`` response from a view."""
    data = {"error": message}
    data.update(extra)
    return Response(data, status=status_code)
