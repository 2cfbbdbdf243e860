"""
Celery configuration for the retail POS platform.
"""

import os

from celery import Celery
from celery.schedules import crontab

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.development")

app = Celery("retail_pos")

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

# Celery Beat Schedule for periodic tasks
app.conf.beat_schedule = {
    # Execute due report schedules every 15 minutes
    "execute-due-report-schedules": {
        "task": "apps.reporting.tasks.execute_due_report_schedules",
        "schedule": crontab(minute="*/15"),
        "options": {"queue": "reports", "priority": 7},
    },
    # Mark overdue royalty payments daily at 1 AM
    "mark-overdue-royalty-payments": {
        "task": "apps.franchise.tasks.mark_overdue_royalty_payments",
        "schedule": crontab(hour=1, minute=0),
        "options": {"queue": "default", "priority": 5},
    },
}

# Task routing configuration
app.conf.task_routes = {
    "apps.reporting.tasks.*": {"queue": "reports", "priority": 7},
}
