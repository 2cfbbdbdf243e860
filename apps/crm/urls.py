"""
URL configuration for CRM app.
"""

from django.urls import path

from . import views

app_name = "crm"

urlpatterns = [
    # Customers
    path("api/customers/", views.CustomerListCreateView.as_view(), name="customer_list"),
    path("api/customers/<uuid:id>/", views.CustomerDetailView.as_view(), name="customer_detail"),
    path("api/customers/<uuid:id>/loyalty/", views.customer_loyalty, name="customer_loyalty"),
    # Loyalty program
    path("api/loyalty/program/", views.loyalty_program, name="loyalty_program"),
    # Customer ledger
    path(
        "api/customer-ledger/",
        views.CustomerLedgerListCreateView.as_view(),
        name="customer_ledger",
    ),
    # Due payments
    path("api/due-payments/", views.due_payment_list, name="due_payment_list"),
    path("api/due-payments/receive/", views.due_payment_receive, name="due_payment_receive"),
]
