"""
URL configuration for core app.
"""

from django.urls import path

from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from . import views

app_name = "core"

urlpatterns = [
    # Authentication
    path("api/auth/token/", TokenObtainPairView.as_view(), name="token_obtain"),
    path("api/auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    # Tenants (platform administration)
    path("api/tenants/", views.TenantListCreateView.as_view(), name="tenant_list"),
    # Stores
    path("api/stores/", views.StoreListCreateView.as_view(), name="store_list"),
    path("api/stores/<uuid:id>/", views.StoreDetailView.as_view(), name="store_detail"),
    # Staff
    path("api/employees/", views.EmployeeListCreateView.as_view(), name="employee_list"),
    path("api/employees/<int:id>/", views.EmployeeDetailView.as_view(), name="employee_detail"),
]
