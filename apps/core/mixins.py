"""
View mixins shared by the tenant-scoped API views.
"""

from rest_framework import permissions

from apps.core.permissions import HasTenantAccess


class TenantScopedMixin:
    """
    Restrict a generic view's queryset to the requesting user's tenant.

    Subclasses set ``model`` (or override ``get_base_queryset``) and may
    extend ``filter_queryset_params`` to apply query-string filters.
    """

    model = None
    permission_classes = [permissions.IsAuthenticated, HasTenantAccess]
    lookup_field = "id"

    def get_base_queryset(self):
        return self.model.objects.all()

    def get_queryset(self):
        queryset = self.get_base_queryset().filter(tenant=self.request.user.tenant)
        return self.filter_queryset_params(queryset)

    def filter_queryset_params(self, queryset):
        return queryset

    def perform_create(self, serializer):
        """Set tenant from current user."""
        serializer.save(tenant=self.request.user.tenant)

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if self.request.user.is_authenticated:
            context["tenant"] = self.request.user.tenant
        return context
