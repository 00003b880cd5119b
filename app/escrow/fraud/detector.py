"""
Refund fraud detector.

Builds the rule context for a refund request from the requester's history,
runs the rule set and records the winning hit as a FraudDetectionRecord.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings
from django.db.models import Count, Q
from django.utils import timezone

from core.rules import RuleHit, RuleSet
from escrow.fraud.rules import REFUND_FRAUD_RULES, RefundFraudContext
from escrow.models import FraudDetectionRecord, RefundRequest
from escrow.state_machines import (
    FraudAction,
    FraudSeverity,
    RefundOutcome,
    RefundRequestState,
    RefundTier,
)

logger = logging.getLogger(__name__)


@dataclass
class FraudVerdict:
    """A rule hit plus the action taken and its audit record."""

    hit: RuleHit
    severity: str
    action: str
    record: FraudDetectionRecord

    @property
    def blocks_refund(self) -> bool:
        return self.action == FraudAction.REFUND_BLOCKED

    @property
    def forces_human_review(self) -> bool:
        return self.action == FraudAction.ESCALATED_TO_HUMAN


def severity_for(confidence: float) -> str:
    if confidence > 0.8:
        return FraudSeverity.CRITICAL
    if confidence >= 0.5:
        return FraudSeverity.HIGH
    return FraudSeverity.MEDIUM


def action_for(confidence: float) -> str:
    if confidence >= settings.FRAUD_BLOCK_CONFIDENCE:
        return FraudAction.REFUND_BLOCKED
    if confidence >= settings.FRAUD_ESCALATION_CONFIDENCE:
        return FraudAction.ESCALATED_TO_HUMAN
    return FraudAction.FLAGGED


class RefundFraudDetector:
    """
    Usage:
        verdict = RefundFraudDetector().check(refund_request)
        if verdict and verdict.blocks_refund:
            ...
    """

    def __init__(self, rules: RuleSet | None = None):
        self.rules = rules if rules is not None else REFUND_FRAUD_RULES

    def build_context(self, request: RefundRequest) -> RefundFraudContext:
        window_start = timezone.now() - timedelta(days=settings.REFUND_FARMING_WINDOW_DAYS)
        history = (
            RefundRequest.objects.filter(
                requester_id=request.requester_id,
                created_at__gte=window_start,
            )
            .exclude(pk=request.pk)
            .aggregate(
                total=Count("id"),
                approved=Count(
                    "id",
                    filter=Q(
                        state=RefundRequestState.RESOLVED,
                        outcome__in=[RefundOutcome.FULL, RefundOutcome.PARTIAL],
                    ),
                ),
                human=Count("id", filter=Q(tier=RefundTier.HUMAN)),
            )
        )
        escrow = request.escrow
        return RefundFraudContext(
            reason=request.reason,
            details=request.details,
            account_age_days=request.requester.account_age_days,
            recent_requests=history["total"],
            approved_requests=history["approved"],
            human_tier_requests=history["human"],
            total_tokens=escrow.total_tokens,
            message_delivered=escrow.message_delivered,
            call_duration_seconds=escrow.call_duration_seconds,
            booking_status=escrow.booking_status,
        )

    def check(self, request: RefundRequest) -> FraudVerdict | None:
        """Evaluate every rule; record and return the best hit, if any."""
        context = self.build_context(request)
        hit = self.rules.best_hit(context)
        if hit is None:
            return None

        severity = severity_for(hit.confidence)
        action = action_for(hit.confidence)
        record = FraudDetectionRecord.objects.create(
            user_id=request.requester_id,
            refund_request=request,
            pattern=hit.rule,
            confidence=hit.confidence,
            severity=severity,
            action=action,
            signals=hit.signals,
        )

        logger.warning(
            "Refund fraud pattern detected",
            extra={
                "refund_request_id": str(request.pk),
                "user_id": str(request.requester_id),
                "pattern": hit.rule,
                "confidence": hit.confidence,
                "action": action,
            },
        )
        return FraudVerdict(hit=hit, severity=severity, action=action, record=record)
