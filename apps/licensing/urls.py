"""
URL configuration for licensing app.
"""

from django.urls import path

from . import views

app_name = "licensing"

urlpatterns = [
    path("api/license/activate/", views.license_activate, name="license_activate"),
    path("api/license/check/", views.license_check, name="license_check"),
    path("api/license/deactivate/", views.license_deactivate, name="license_deactivate"),
    path("api/licenses/", views.LicenseListView.as_view(), name="license_list"),
    path("api/licenses/generate/", views.license_generate, name="license_generate"),
]
