"""
URL configuration for procurement app.
"""

from django.urls import path

from . import views

app_name = "procurement"

urlpatterns = [
    # Suppliers
    path("api/suppliers/", views.SupplierListCreateView.as_view(), name="supplier_list"),
    path("api/suppliers/<uuid:id>/", views.SupplierDetailView.as_view(), name="supplier_detail"),
    # Supplier ledger
    path(
        "api/supplier-ledger/",
        views.SupplierLedgerListCreateView.as_view(),
        name="supplier_ledger",
    ),
    # Purchase orders
    path("api/purchase-orders/", views.PurchaseOrderListCreateView.as_view(), name="po_list"),
    path(
        "api/purchase-orders/<uuid:id>/",
        views.PurchaseOrderDetailView.as_view(),
        name="po_detail",
    ),
    path(
        "api/purchase-orders/<uuid:id>/receive/",
        views.purchase_order_receive,
        name="po_receive",
    ),
]
