"""
Celery tasks for the gamification app.
"""

from celery import shared_task

from gamification.services import MissionService
from gamification.types import MissionType


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def reset_daily_missions(self) -> dict:
    """Hourly: expire finished daily missions and refill daily slots."""
    expired, assigned = MissionService.reset_missions(MissionType.DAILY)
    return {"expired_count": expired, "assigned_count": assigned}


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def reset_weekly_missions(self) -> dict:
    """Sunday 23:59 UTC: expire the week's missions and assign the next."""
    expired, assigned = MissionService.reset_missions(MissionType.WEEKLY)
    return {"expired_count": expired, "assigned_count": assigned}
