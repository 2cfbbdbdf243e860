"""
Celery tasks for scheduled report execution.
"""

import logging

from django.utils import timezone

from celery import shared_task

from .models import ReportSchedule
from .services import ReportScheduleService

logger = logging.getLogger(__name__)


@shared_task(
    name="apps.reporting.tasks.execute_due_report_schedules",
    bind=True,
    max_retries=3,
    default_retry_delay=300,  # 5 minutes
)
def execute_due_report_schedules(self):
    """
    Queue every active schedule whose ``next_run_at`` has passed.

    Runs every 15 minutes from the beat schedule.
    """
    try:
        due_ids = list(
            ReportSchedule.objects.filter(
                is_active=True, next_run_at__lte=timezone.now()
            ).values_list("id", flat=True)
        )
    except Exception as e:
        logger.exception(f"Error checking scheduled reports: {e}")
        raise self.retry(exc=e)

    for schedule_id in due_ids:
        execute_report_schedule.delay(str(schedule_id))

    logger.info(f"Queued {len(due_ids)} scheduled reports")
    return len(due_ids)


@shared_task(
    name="apps.reporting.tasks.execute_report_schedule",
    bind=True,
    max_retries=2,
    default_retry_delay=600,  # 10 minutes
)
def execute_report_schedule(self, schedule_id):
    """Generate one scheduled report and advance its schedule."""
    try:
        schedule = ReportSchedule.objects.select_related("tenant").get(id=schedule_id)
    except ReportSchedule.DoesNotExist:
        logger.error(f"Schedule {schedule_id} not found")
        return None

    if not schedule.is_active:
        logger.warning(f"Schedule {schedule.name} is no longer active, skipping")
        return None

    try:
        run = ReportScheduleService.run(schedule)
    except Exception as e:
        logger.error(f"Error executing scheduled report {schedule.name}: {e}")
        raise self.retry(exc=e)

    return str(run.id)
