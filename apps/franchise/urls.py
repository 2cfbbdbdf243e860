"""
URL configuration for franchise app.
"""

from django.urls import path

from . import views

app_name = "franchise"

urlpatterns = [
    path("api/franchise/apply/", views.franchise_apply, name="franchise_apply"),
    path("api/franchise/login/", views.franchise_login, name="franchise_login"),
    path("api/franchise/manage/", views.franchise_manage, name="franchise_manage"),
    path("api/franchise/<uuid:id>/", views.franchise_detail, name="franchise_detail"),
    path("api/franchise/<uuid:id>/users/", views.franchise_users, name="franchise_users"),
    path("api/franchise/<uuid:id>/clients/", views.franchise_clients, name="franchise_clients"),
    path("api/franchise/<uuid:id>/payments/", views.franchise_payments, name="franchise_payments"),
    path("api/royalty/payments/", views.royalty_payments, name="royalty_payments"),
    path("api/royalty/reports/", views.royalty_reports, name="royalty_reports"),
]
