"""
Celery tasks for the moderation app.
"""

from __future__ import annotations

from celery import shared_task

from moderation.services import ModerationService


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def expire_sanctions(self) -> dict:
    """Lift comment freezes past their end time and recompute enforcement."""
    return {"expired_count": ModerationService.expire_sanctions()}
