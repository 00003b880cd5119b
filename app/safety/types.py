"""
Choices and typed results for the safety app.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING

from django.db import models

if TYPE_CHECKING:
    from safety.models import SafetyEvent, SafetyIntervention


class SafetyDimension(models.TextChoices):
    """Behaviour dimensions; each is a 0-100 score field on SafetyScore."""

    RESPECTING_CONSENT = "respecting_consent", "Respecting Consent"
    TONE_AND_BOUNDARIES = "tone_and_boundaries", "Tone and Boundaries"
    PAYMENT_ETHICS = "payment_ethics", "Payment Ethics"
    PLATFORM_SAFETY = "platform_safety", "Platform Safety"


class RiskLevel(models.TextChoices):
    SAFE = "safe", "Safe"
    LOW_RISK = "low_risk", "Low Risk"
    MEDIUM_RISK = "medium_risk", "Medium Risk"
    HIGH_RISK = "high_risk", "High Risk"
    CRITICAL = "critical", "Critical"

    @classmethod
    def for_score(cls, score: int) -> RiskLevel:
        if score >= 80:
            return cls.SAFE
        if score >= 60:
            return cls.LOW_RISK
        if score >= 40:
            return cls.MEDIUM_RISK
        if score >= 20:
            return cls.HIGH_RISK
        return cls.CRITICAL


class InterventionAction(models.TextChoices):
    SOFT_WARNING = "soft_warning", "Soft Warning"
    MESSAGE_SLOWDOWN = "message_slowdown", "Message Slowdown"
    CHAT_FREEZE = "chat_freeze", "Chat Freeze"
    MESSAGING_TIMEOUT = "messaging_timeout", "Messaging Timeout"
    ACCOUNT_BAN = "account_ban", "Account Ban"


class PatternSeverity(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"
    CRITICAL = "critical", "Critical"


class SafetyEventType(models.TextChoices):
    EMOTIONAL_FOR_TOKENS = "emotional_for_tokens", "Emotional Pressure for Tokens"
    PAYMENT_PRESSURE = "payment_pressure", "Payment Pressure"
    THREATS = "threats", "Threats"
    REFUND_FRAUD = "refund_fraud", "Refund Fraud"
    MODERATION_SANCTION = "moderation_sanction", "Moderation Sanction"
    MANUAL_ADJUSTMENT = "manual_adjustment", "Manual Adjustment"


# Severity -> weight used for the mean confidence of a screening
SEVERITY_WEIGHTS = {
    PatternSeverity.LOW: 0.2,
    PatternSeverity.MEDIUM: 0.5,
    PatternSeverity.HIGH: 0.75,
    PatternSeverity.CRITICAL: 1.0,
}

# Score penalty multiplier for a blocked message
SEVERITY_IMPACT_MULTIPLIERS = {
    PatternSeverity.CRITICAL: 2.0,
    PatternSeverity.HIGH: 1.5,
}

BASE_MESSAGE_IMPACT = -10


@dataclass(frozen=True)
class InterventionLevel:
    """
    One rung of the intervention ladder.

    Triggered when the overall score is below max_score or the violation
    count reaches min_violations. duration None means permanent.
    """

    level: int
    action: str
    max_score: int
    min_violations: int
    duration: timedelta | None


# Checked top-down; the first matching level applies
INTERVENTION_LADDER = (
    InterventionLevel(5, InterventionAction.ACCOUNT_BAN, 20, 10, None),
    InterventionLevel(4, InterventionAction.MESSAGING_TIMEOUT, 40, 7, timedelta(hours=24)),
    InterventionLevel(3, InterventionAction.CHAT_FREEZE, 60, 5, timedelta(hours=12)),
    InterventionLevel(2, InterventionAction.MESSAGE_SLOWDOWN, 70, 3, timedelta(hours=6)),
    InterventionLevel(1, InterventionAction.SOFT_WARNING, 80, 2, timedelta(hours=1)),
)


@dataclass
class MessageScreening:
    """
    Result of screening one message.

    Attributes:
        allowed: False when the message must not be delivered
        confidence: Mean severity weight of the matched patterns (0 when clean)
        patterns: Names of the manipulation patterns that matched
        severity: Highest severity among the matched patterns
        event: SafetyEvent recorded for a blocked message
    """

    allowed: bool
    confidence: float = 0.0
    patterns: list[str] = field(default_factory=list)
    severity: str | None = None
    event: SafetyEvent | None = None


@dataclass
class SafetyAdjustment:
    """
    Result of SafetyService.record_event.

    Attributes:
        event: The SafetyEvent written
        previous_score / new_score: Overall score before and after
        intervention: Intervention created by this adjustment, if any
    """

    event: SafetyEvent
    previous_score: int
    new_score: int
    intervention: SafetyIntervention | None = None
