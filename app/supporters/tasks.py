"""
Celery tasks for the supporters app.
"""

from celery import shared_task

from supporters.services import SupporterService


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def refresh_segments(self) -> dict:
    """Daily move of idle supporters into dormant and cold."""
    return {"changed_count": SupporterService.refresh_segments()}
