"""
Signal receivers for creator missions.

Connected in GamificationConfig.ready().
"""

import logging

from django.db import transaction
from django.dispatch import receiver

from escrow.signals import escrow_settled
from gamification.models import CreatorMissionProfile
from gamification.services import MissionService
from gamification.types import ActivityReport, ActivityType

logger = logging.getLogger(__name__)


@receiver(escrow_settled)
def record_token_earnings(sender, escrow, payer_tokens, recipient_tokens, platform_tokens, **kwargs):
    """Count the creator's share of a settled escrow toward earn_tokens missions."""
    if recipient_tokens <= 0:
        return
    if not CreatorMissionProfile.objects.filter(creator_id=escrow.recipient_id).exists():
        return

    report = ActivityReport(
        activity_type=ActivityType.EARN_TOKENS,
        value=recipient_tokens,
        payer_id=escrow.payer_id,
        metadata={"escrow_id": str(escrow.pk)},
    )
    try:
        # Savepoint: a failure here must not roll back the settlement
        with transaction.atomic():
            result = MissionService.record_activity(escrow.recipient, report)
    except Exception as e:
        logger.error(
            f"Failed to record mission progress: {e}",
            extra={"escrow_id": str(escrow.pk)},
            exc_info=True,
        )
        return

    if not result.success:
        logger.info(
            "Settlement not counted toward missions",
            extra={"escrow_id": str(escrow.pk), "reason": result.error},
        )
