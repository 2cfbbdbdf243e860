"""
URL configuration for payroll app.
"""

from django.urls import path

from . import views

app_name = "payroll"

urlpatterns = [
    path("api/time-entries/", views.TimeEntryListCreateView.as_view(), name="time_entry_list"),
    path(
        "api/payroll-records/",
        views.PayrollRecordListCreateView.as_view(),
        name="payroll_record_list",
    ),
    path("api/payroll-records/generate/", views.payroll_generate, name="payroll_generate"),
    path("api/payroll-records/<uuid:id>/status/", views.payroll_status, name="payroll_status"),
]
