"""
Refund tier routing and tier 1 evaluation.

Tier 1 reasons are decided from delivery evidence recorded on the escrow.
Tier 2 reasons wait in the review queue. Everything else goes to a human.
"""

from __future__ import annotations

from django.conf import settings

from escrow.models import EscrowRecord
from escrow.state_machines import (
    BookingStatus,
    RefundOutcome,
    RefundReason,
    RefundTier,
    TransactionType,
)

DISALLOWED_REASONS = frozenset({
    RefundReason.CHANGED_MIND,
    RefundReason.ALREADY_CONSUMED,
    RefundReason.PRICE_TOO_HIGH,
    RefundReason.DISLIKED_CONTENT,
})

AUTO_REASONS = frozenset({
    RefundReason.NOT_DELIVERED,
    RefundReason.CALL_NOT_CONNECTED,
    RefundReason.EVENT_CANCELLED,
    RefundReason.CREATOR_NO_SHOW,
})

ASSISTED_REASONS = frozenset({
    RefundReason.QUALITY_ISSUE,
    RefundReason.INCOMPLETE_DELIVERY,
    RefundReason.MISLEADING_DESCRIPTION,
})


def is_refundable_reason(reason: str) -> bool:
    return reason not in DISALLOWED_REASONS


def route(reason: str) -> RefundTier:
    """Tier for a refundable reason."""
    if reason in AUTO_REASONS:
        return RefundTier.AUTO
    if reason in ASSISTED_REASONS:
        return RefundTier.ASSISTED
    return RefundTier.HUMAN


def auto_evaluate(escrow: EscrowRecord) -> RefundOutcome:
    """
    Decide a tier 1 request from delivery evidence.

    message: delivered -> creator wins, otherwise full
    call: no duration -> full, under the billable minimum -> partial,
        otherwise creator wins
    event: cancelled -> full, completed -> creator wins, otherwise partial
    meeting: creator no-show -> full, completed -> creator wins,
        otherwise partial
    """
    transaction_type = escrow.transaction_type

    if transaction_type == TransactionType.MESSAGE:
        if escrow.message_delivered:
            return RefundOutcome.CREATOR_WINS
        return RefundOutcome.FULL

    if transaction_type == TransactionType.CALL:
        duration = escrow.call_duration_seconds or 0
        if duration == 0:
            return RefundOutcome.FULL
        if duration < settings.CALL_MIN_BILLABLE_SECONDS:
            return RefundOutcome.PARTIAL
        return RefundOutcome.CREATOR_WINS

    if transaction_type == TransactionType.EVENT:
        if escrow.booking_status == BookingStatus.CANCELLED:
            return RefundOutcome.FULL
        if escrow.booking_status == BookingStatus.COMPLETED:
            return RefundOutcome.CREATOR_WINS
        return RefundOutcome.PARTIAL

    if transaction_type == TransactionType.MEETING:
        if escrow.booking_status == BookingStatus.NO_SHOW:
            return RefundOutcome.FULL
        if escrow.booking_status == BookingStatus.COMPLETED:
            return RefundOutcome.CREATOR_WINS
        return RefundOutcome.PARTIAL

    raise ValueError(f"Unknown transaction type: {transaction_type}")
