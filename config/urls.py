"""
URL configuration for the retail POS platform.
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("apps.core.urls")),
    path("", include("apps.inventory.urls")),
    path("", include("apps.sales.urls")),
    path("", include("apps.crm.urls")),
    path("", include("apps.procurement.urls")),
    path("", include("apps.accounting.urls")),
    path("", include("apps.payroll.urls")),
    path("", include("apps.franchise.urls")),
    path("", include("apps.licensing.urls")),
    path("", include("apps.ecommerce.urls")),
    path("", include("apps.reporting.urls")),
]
