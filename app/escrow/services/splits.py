"""
Split and refund arithmetic.

All amounts are whole tokens. The platform cut is floored; the recipient
gets the remainder, so the parts always add back up to the total.
"""

from __future__ import annotations

from django.conf import settings

from escrow.state_machines import RefundOutcome, TransactionType
from escrow.types import Split

# Recipient percentage per transaction type
DEFAULT_RECIPIENT_SHARE = {
    TransactionType.MESSAGE: 65,
    TransactionType.CALL: 65,
    TransactionType.MEETING: 65,
    TransactionType.EVENT: 80,
}

SUPPORTED_RECIPIENT_SHARES = frozenset(DEFAULT_RECIPIENT_SHARE.values())


def compute_split(total_tokens: int, recipient_share_percent: int) -> Split:
    """
    Split a total between recipient and platform.

    >>> compute_split(1000, 65)
    Split(total_tokens=1000, recipient_tokens=650, platform_tokens=350)
    >>> compute_split(7, 65)
    Split(total_tokens=7, recipient_tokens=5, platform_tokens=2)
    """
    if total_tokens <= 0:
        raise ValueError("total_tokens must be positive")
    if not 0 <= recipient_share_percent <= 100:
        raise ValueError("recipient_share_percent must be between 0 and 100")

    platform_tokens = total_tokens * (100 - recipient_share_percent) // 100
    return Split(
        total_tokens=total_tokens,
        recipient_tokens=total_tokens - platform_tokens,
        platform_tokens=platform_tokens,
    )


def refund_amount(total_tokens: int, outcome: str) -> int:
    """
    Tokens returned to the payer for a refund outcome.

    full -> total, partial -> REFUND_PARTIAL_PERCENT of total (floored),
    creator_wins -> 0.
    """
    if outcome == RefundOutcome.FULL:
        return total_tokens
    if outcome == RefundOutcome.PARTIAL:
        return total_tokens * settings.REFUND_PARTIAL_PERCENT // 100
    if outcome == RefundOutcome.CREATOR_WINS:
        return 0
    raise ValueError(f"Unknown refund outcome: {outcome}")


def distribute_remainder(remaining_tokens: int, recipient_share_percent: int) -> Split:
    """
    Split what is left after a refund using the escrow's own ratio.

    Zero remainder yields an all-zero split.
    """
    if remaining_tokens == 0:
        return Split(0, 0, 0)
    return compute_split(remaining_tokens, recipient_share_percent)
