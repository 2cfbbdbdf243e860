"""
URL configuration for sales app.
"""

from django.urls import path

from . import views

app_name = "sales"

urlpatterns = [
    # Sales
    path("api/sales/", views.SaleListCreateView.as_view(), name="sale_list"),
    path("api/sales/<uuid:id>/", views.SaleDetailView.as_view(), name="sale_detail"),
    # Returns
    path("api/returns/", views.ProductReturnListCreateView.as_view(), name="return_list"),
    path("api/returns/<uuid:id>/", views.ProductReturnDetailView.as_view(), name="return_detail"),
]
