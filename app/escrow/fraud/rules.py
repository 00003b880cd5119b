"""
Refund fraud rules.

Each rule reads a RefundFraudContext built by the detector. Confidence is
the sum of the weights of the signals that fire, capped at 1.0; the
detector keeps the highest-confidence hit.

To add a rule, append it to REFUND_FRAUD_RULES or pass a custom RuleSet to
RefundFraudDetector.
"""

from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings

from core.rules import Rule, RuleSet, Signal, contains_any, count_matches
from escrow.state_machines import BookingStatus, RefundReason


@dataclass(frozen=True)
class RefundFraudContext:
    """
    Everything the rules look at for one refund request.

    recent_requests / approved_requests / human_tier_requests count the
    requester's earlier requests inside the look-back window; the request
    being evaluated is not included.
    """

    reason: str
    details: str
    account_age_days: int
    recent_requests: int
    approved_requests: int
    human_tier_requests: int
    total_tokens: int
    message_delivered: bool = False
    call_duration_seconds: int | None = None
    booking_status: str | None = None

    @property
    def approval_rate(self) -> float:
        if self.recent_requests == 0:
            return 0.0
        return self.approved_requests / self.recent_requests


EMOTIONAL_BLACKMAIL_KEYWORDS = (
    "i will report you",
    "i'll report you",
    "expose you",
    "tell everyone",
    "ruin your",
    "leave a bad review",
    "you owe me",
    "after everything i did",
    "i'll hurt myself",
    "i will hurt myself",
    "you'll regret",
)

ROMANCE_MANIPULATION_KEYWORDS = (
    "i love you",
    "soulmate",
    "you led me on",
    "you promised to date",
    "we were in a relationship",
    "thought you loved me",
    "thought we had something",
    "my girlfriend",
    "my boyfriend",
    "broke my heart",
)

NON_DELIVERY_REASONS = frozenset({
    RefundReason.NOT_DELIVERED,
    RefundReason.CALL_NOT_CONNECTED,
    RefundReason.EVENT_CANCELLED,
    RefundReason.CREATOR_NO_SHOW,
})


def _farming_gate(ctx: RefundFraudContext) -> bool:
    return (
        ctx.recent_requests >= settings.REFUND_FARMING_MIN_REQUESTS
        and ctx.approved_requests * 100
        >= settings.REFUND_FARMING_APPROVAL_RATE * ctx.recent_requests
    )


REFUND_FARMING = Rule(
    name="REFUND_FARMING",
    gate=_farming_gate,
    signals=(
        Signal("repeated_approved_refunds", lambda ctx: True, 0.7),
        Signal(
            "high_volume",
            lambda ctx: ctx.recent_requests >= 2 * settings.REFUND_FARMING_MIN_REQUESTS,
            0.15,
        ),
        Signal("all_approved", lambda ctx: ctx.approval_rate == 1.0, 0.1),
    ),
)

EMOTIONAL_BLACKMAIL = Rule(
    name="EMOTIONAL_BLACKMAIL",
    signals=(
        Signal(
            "blackmail_language",
            lambda ctx: contains_any(ctx.details, EMOTIONAL_BLACKMAIL_KEYWORDS),
            0.6,
        ),
        Signal(
            "repeated_blackmail_language",
            lambda ctx: count_matches(ctx.details, EMOTIONAL_BLACKMAIL_KEYWORDS) >= 2,
            0.25,
        ),
    ),
)

ROMANCE_MANIPULATION = Rule(
    name="ROMANCE_MANIPULATION",
    signals=(
        Signal(
            "romance_language",
            lambda ctx: contains_any(ctx.details, ROMANCE_MANIPULATION_KEYWORDS),
            0.55,
        ),
        Signal(
            "repeated_romance_language",
            lambda ctx: count_matches(ctx.details, ROMANCE_MANIPULATION_KEYWORDS) >= 2,
            0.2,
        ),
    ),
)

NEW_ACCOUNT_ABUSE = Rule(
    name="NEW_ACCOUNT_ABUSE",
    gate=lambda ctx: ctx.account_age_days < settings.NEW_ACCOUNT_AGE_DAYS,
    signals=(
        Signal("new_account", lambda ctx: True, 0.3),
        Signal("same_day_account", lambda ctx: ctx.account_age_days < 1, 0.2),
        Signal("earlier_requests", lambda ctx: ctx.recent_requests >= 1, 0.15),
    ),
)

SERIAL_DISPUTER = Rule(
    name="SERIAL_DISPUTER",
    gate=lambda ctx: ctx.human_tier_requests >= 3,
    signals=(
        Signal("repeated_disputes", lambda ctx: True, 0.55),
        Signal("frequent_disputes", lambda ctx: ctx.human_tier_requests >= 5, 0.2),
    ),
)

def _message_contradicted(ctx: RefundFraudContext) -> bool:
    return ctx.reason == RefundReason.NOT_DELIVERED and ctx.message_delivered


def _call_contradicted(ctx: RefundFraudContext) -> bool:
    return (
        ctx.reason == RefundReason.CALL_NOT_CONNECTED
        and (ctx.call_duration_seconds or 0) >= settings.CALL_MIN_BILLABLE_SECONDS
    )


def _booking_contradicted(ctx: RefundFraudContext) -> bool:
    return (
        ctx.reason in (RefundReason.EVENT_CANCELLED, RefundReason.CREATOR_NO_SHOW)
        and ctx.booking_status == BookingStatus.COMPLETED
    )


DELIVERY_CONTRADICTION = Rule(
    name="DELIVERY_CONTRADICTION",
    gate=lambda ctx: ctx.reason in NON_DELIVERY_REASONS
    and (_message_contradicted(ctx) or _call_contradicted(ctx) or _booking_contradicted(ctx)),
    signals=(
        Signal("message_marked_delivered", _message_contradicted, 0.4),
        Signal("billable_call_recorded", _call_contradicted, 0.4),
        Signal("booking_completed", _booking_contradicted, 0.4),
        Signal("repeat_requester", lambda ctx: ctx.recent_requests >= 2, 0.2),
    ),
)


REFUND_FRAUD_RULES = RuleSet([
    REFUND_FARMING,
    EMOTIONAL_BLACKMAIL,
    ROMANCE_MANIPULATION,
    NEW_ACCOUNT_ABUSE,
    SERIAL_DISPUTER,
    DELIVERY_CONTRADICTION,
])
