"""
Celery tasks for royalty collection.
"""

import logging

from celery import shared_task

from .services import FranchiseService

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=300)
def mark_overdue_royalty_payments(self):
    """
    Flag royalty payments past their due date as OVERDUE and block the
    franchises that owe them.

    Runs daily from the beat schedule.
    """
    try:
        count = FranchiseService.mark_overdue_payments()
    except Exception as exc:
        logger.error(f"Failed to mark overdue royalty payments: {exc}")
        raise self.retry(exc=exc)

    if count:
        logger.warning(f"Marked {count} royalty payments as overdue")
    return count
