"""
Signal receivers for supporter rankings.

Connected in SupportersConfig.ready().
"""

import logging

from django.db import transaction
from django.dispatch import receiver

from escrow.signals import escrow_settled
from supporters.services import SupporterService

logger = logging.getLogger(__name__)


@receiver(escrow_settled)
def record_supporter_spend(sender, escrow, payer_tokens, recipient_tokens, platform_tokens, **kwargs):
    """
    Credit the payer's spend on the recipient once an escrow settles.

    Spend is what the payer did not get back. A full refund spends nothing.
    """
    spent = recipient_tokens + platform_tokens
    if recipient_tokens <= 0 or spent <= 0:
        return

    try:
        # Savepoint: a failure here must not roll back the settlement
        with transaction.atomic():
            SupporterService.record_spend(escrow.recipient, escrow.payer, spent)
    except Exception as e:
        logger.error(
            f"Failed to record supporter spend: {e}",
            extra={"escrow_id": str(escrow.pk), "tokens": spent},
            exc_info=True,
        )
        return

    logger.debug(
        "Supporter spend recorded",
        extra={"escrow_id": str(escrow.pk), "tokens": spent},
    )
