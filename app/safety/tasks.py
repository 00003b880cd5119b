"""
Celery tasks for the safety app.

Tasks:
    apply_daily_decay: Daily score recovery for users with no recent decay
    expire_interventions: Deactivates interventions past their expiry
"""

from __future__ import annotations

import logging

from celery import shared_task

from safety.services import SafetyService

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def apply_daily_decay(self) -> dict:
    updated = SafetyService.apply_daily_decay()
    return {"updated_count": updated}


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def expire_interventions(self) -> dict:
    expired = SafetyService.expire_interventions()
    logger.debug("Intervention expiry sweep finished", extra={"expired": expired})
    return {"expired_count": expired}
