"""
Permission classes for tenant-based access control.
"""

from rest_framework import permissions


class HasTenantAccess(permissions.BasePermission):
    """
    Permission class to ensure users can only access resources from their own tenant.
    """

    message = "Access denied. User must belong to an active tenant."

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        if not user.has_tenant_access():
            return False
        return user.tenant.is_active()

    def has_object_permission(self, request, view, obj):
        # Check if the object belongs to the user's tenant
        if hasattr(obj, "tenant_id"):
            return obj.tenant_id == request.user.tenant_id
        return True


class IsPlatformAdmin(permissions.BasePermission):
    """Only platform administrators (or Django superusers)."""

    message = "Access denied. Platform administrator role required."

    def has_permission(self, request, view):
        user = request.user
        return bool(
            user and user.is_authenticated and (user.is_superuser or user.is_platform_admin())
        )


class IsTenantManager(HasTenantAccess):
    """Tenant owners and managers only."""

    message = "Access denied. Only tenant owners and managers can perform this action."

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        return request.user.is_tenant_owner() or request.user.is_tenant_manager()
