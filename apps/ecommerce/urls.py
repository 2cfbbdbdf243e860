"""
URL configuration for ecommerce app.
"""

from django.urls import path

from . import views

app_name = "ecommerce"

urlpatterns = [
    path("api/ecommerce/stores/", views.EcommerceStoreListCreateView.as_view(), name="store_list"),
    path("api/ecommerce/orders/", views.EcommerceOrderListCreateView.as_view(), name="order_list"),
    path(
        "api/ecommerce/orders/<uuid:id>/",
        views.EcommerceOrderDetailView.as_view(),
        name="order_detail",
    ),
    path(
        "api/ecommerce/orders/<uuid:id>/import/",
        views.ecommerce_order_import,
        name="order_import",
    ),
    path(
        "api/ecommerce/orders/<uuid:id>/status/",
        views.ecommerce_order_status,
        name="order_status",
    ),
]
