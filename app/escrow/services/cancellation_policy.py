"""
Time-windowed cancellation policy for meetings and events.

Only the recipient's share is ever refunded by a cancellation; the platform
commission stays with the platform.

Meetings:
    payer cancels >= 72h before start  -> 100% of the earner share refunded
    payer cancels 24h-72h before start -> 50% refunded, 50% kept by earner
    payer cancels < 24h before start   -> nothing refunded
    earner cancels                     -> 100% of the earner share refunded

Events:
    organizer cancels   -> 100% of the organizer share refunded
    participant cancels -> nothing refunded
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from escrow.state_machines import TransactionType

EARLY_CANCELLATION_WINDOW = timedelta(hours=72)
MID_CANCELLATION_WINDOW = timedelta(hours=24)
MID_CANCELLATION_REFUND_PERCENT = 50


class CancelledBy:
    PAYER = "payer"
    RECIPIENT = "recipient"


@dataclass(frozen=True)
class CancellationQuote:
    refund_tokens: int
    recipient_tokens: int
    platform_tokens: int
    policy: str


def quote_cancellation(
    *,
    transaction_type: str,
    recipient_tokens: int,
    platform_tokens: int,
    cancelled_by: str,
    scheduled_start: datetime | None,
    now: datetime,
) -> CancellationQuote:
    """
    Work out where an escrow's tokens go when a booking is cancelled.

    Raises:
        ValueError: For transaction types without a cancellation policy, or
            a payer cancellation of a meeting with no scheduled start
    """
    if transaction_type == TransactionType.EVENT:
        if cancelled_by == CancelledBy.RECIPIENT:
            return CancellationQuote(recipient_tokens, 0, platform_tokens, "organizer_cancelled")
        return CancellationQuote(0, recipient_tokens, platform_tokens, "participant_cancelled")

    if transaction_type != TransactionType.MEETING:
        raise ValueError(f"No cancellation policy for {transaction_type}")

    if cancelled_by == CancelledBy.RECIPIENT:
        return CancellationQuote(recipient_tokens, 0, platform_tokens, "earner_cancelled")

    if scheduled_start is None:
        raise ValueError("Meeting has no scheduled start")

    notice = scheduled_start - now
    if notice >= EARLY_CANCELLATION_WINDOW:
        return CancellationQuote(recipient_tokens, 0, platform_tokens, "early_cancellation")

    if notice >= MID_CANCELLATION_WINDOW:
        refund = recipient_tokens * MID_CANCELLATION_REFUND_PERCENT // 100
        return CancellationQuote(
            refund, recipient_tokens - refund, platform_tokens, "mid_cancellation"
        )

    return CancellationQuote(0, recipient_tokens, platform_tokens, "late_cancellation")
