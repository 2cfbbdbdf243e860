"""
URL configuration for reporting app.
"""

from django.urls import path

from . import views

app_name = "reporting"

urlpatterns = [
    path(
        "api/report-schedules/",
        views.ReportScheduleListCreateView.as_view(),
        name="schedule_list",
    ),
    path(
        "api/report-schedules/<uuid:id>/",
        views.ReportScheduleDetailView.as_view(),
        name="schedule_detail",
    ),
    path(
        "api/report-schedules/<uuid:id>/run/",
        views.report_schedule_run,
        name="schedule_run",
    ),
]
