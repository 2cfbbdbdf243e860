"""
URL configuration for accounting app.
"""

from django.urls import path

from . import views

app_name = "accounting"

urlpatterns = [
    # Accounts
    path("api/accounts/", views.AccountListCreateView.as_view(), name="account_list"),
    path("api/accounts/<uuid:id>/", views.AccountDetailView.as_view(), name="account_detail"),
    # Expenses
    path(
        "api/expense-categories/",
        views.ExpenseCategoryListCreateView.as_view(),
        name="expense_category_list",
    ),
    path("api/expenses/", views.ExpenseListCreateView.as_view(), name="expense_list"),
    path("api/expenses/<uuid:id>/status/", views.expense_status, name="expense_status"),
]
