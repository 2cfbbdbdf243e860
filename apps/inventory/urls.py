"""
URL configuration for inventory app.
"""

from django.urls import path

from . import views

app_name = "inventory"

urlpatterns = [
    # Categories
    path("api/categories/", views.CategoryListCreateView.as_view(), name="category_list"),
    path("api/categories/<uuid:id>/", views.CategoryDetailView.as_view(), name="category_detail"),
    # Products
    path("api/products/", views.ProductListCreateView.as_view(), name="product_list"),
    path("api/products/<uuid:id>/", views.ProductDetailView.as_view(), name="product_detail"),
    # Stock levels
    path("api/inventory/", views.InventoryListView.as_view(), name="inventory_list"),
    path("api/inventory/<uuid:id>/adjust/", views.inventory_adjust, name="inventory_adjust"),
    # Stock movements
    path(
        "api/stock-movements/",
        views.StockMovementListCreateView.as_view(),
        name="stock_movement_list",
    ),
    # Alerts
    path("api/inventory-alerts/", views.InventoryAlertListView.as_view(), name="alert_list"),
    path(
        "api/inventory-alerts/<uuid:id>/resolve/",
        views.inventory_alert_resolve,
        name="alert_resolve",
    ),
    # Transfers
    path(
        "api/stock-transfers/",
        views.StockTransferListCreateView.as_view(),
        name="transfer_list",
    ),
    path(
        "api/stock-transfers/<uuid:id>/",
        views.StockTransferDetailView.as_view(),
        name="transfer_detail",
    ),
    path(
        "api/stock-transfers/<uuid:id>/complete/",
        views.stock_transfer_complete,
        name="transfer_complete",
    ),
]
