"""
Safety scoring service.

Scores only move through record_event, which writes a SafetyEvent, updates
the dimension and checks the intervention ladder in one transaction.

Usage:
    from safety.services import SafetyService
    from safety.types import SafetyDimension

    SafetyService.record_event(
        user,
        event_type="refund_fraud",
        dimension=SafetyDimension.PAYMENT_ETHICS,
        impact=-20,
    )

    screening = SafetyService.screen_message(sender, text)
    if not screening.allowed:
        ...
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.utils import timezone

from core.services import BaseService
from safety.models import SafetyEvent, SafetyIntervention, SafetyScore
from safety.rules import MANIPULATION_PATTERNS, MessageContext
from safety.types import (
    BASE_MESSAGE_IMPACT,
    INTERVENTION_LADDER,
    SEVERITY_IMPACT_MULTIPLIERS,
    SEVERITY_WEIGHTS,
    MessageScreening,
    PatternSeverity,
    SafetyAdjustment,
    SafetyDimension,
)

if TYPE_CHECKING:
    from accounts.models import User

_SEVERITY_ORDER = [
    PatternSeverity.LOW,
    PatternSeverity.MEDIUM,
    PatternSeverity.HIGH,
    PatternSeverity.CRITICAL,
]


class SafetyService(BaseService):
    # ==========================================================================
    # Scores
    # ==========================================================================

    @staticmethod
    def get_or_create_score(user: User) -> SafetyScore:
        score, _ = SafetyScore.objects.get_or_create(user=user)
        return score

    @classmethod
    def record_event(
        cls,
        user: User,
        *,
        event_type: str,
        dimension: str,
        impact: int,
        source: str = "",
        metadata: dict[str, Any] | None = None,
        confidence: float = 1.0,
    ) -> SafetyAdjustment:
        """
        Apply a signed adjustment to one dimension of a user's score.

        The dimension is clamped to 0-100. A negative impact counts as a
        violation and resets the good-behaviour streak.

        Raises:
            ValueError: dimension is not a SafetyDimension
        """
        if dimension not in SafetyDimension.values:
            raise ValueError(f"Unknown safety dimension: {dimension}")

        with cls.atomic():
            cls.get_or_create_score(user)
            score = SafetyScore.objects.select_for_update().get(user=user)
            previous = score.overall_score

            current = getattr(score, dimension)
            setattr(score, dimension, max(0, min(100, current + impact)))
            score.recalculate()
            if impact < 0:
                score.total_violations += 1
                score.consecutive_good_days = 0
            elif impact > 0:
                score.consecutive_good_days += 1
            score.save()

            event = SafetyEvent.objects.create(
                user=user,
                event_type=event_type,
                dimension=dimension,
                impact=impact,
                confidence=confidence,
                source=source,
                metadata=metadata or {},
                score_after=score.overall_score,
            )
            intervention = cls._apply_intervention(user, score)

        cls.get_logger().info(
            "Safety score adjusted",
            extra={
                "user_id": str(user.pk),
                "event_type": event_type,
                "dimension": dimension,
                "impact": impact,
                "previous_score": previous,
                "new_score": score.overall_score,
            },
        )
        return SafetyAdjustment(
            event=event,
            previous_score=previous,
            new_score=score.overall_score,
            intervention=intervention,
        )

    # ==========================================================================
    # Interventions
    # ==========================================================================

    @classmethod
    def _apply_intervention(
        cls, user: User, score: SafetyScore
    ) -> SafetyIntervention | None:
        rung = next(
            (
                rung
                for rung in INTERVENTION_LADDER
                if score.overall_score < rung.max_score
                or score.total_violations >= rung.min_violations
            ),
            None,
        )
        if rung is None:
            return None

        already_covered = SafetyIntervention.objects.active().filter(
            user=user, level__gte=rung.level
        )
        if already_covered.exists():
            return None

        now = timezone.now()
        intervention = SafetyIntervention.objects.create(
            user=user,
            level=rung.level,
            action=rung.action,
            reason=(
                f"Safety score {score.overall_score} with "
                f"{score.total_violations} violations"
            ),
            score_at_trigger=score.overall_score,
            violations_at_trigger=score.total_violations,
            expires_at=now + rung.duration if rung.duration else None,
        )
        cls.get_logger().warning(
            "Safety intervention applied",
            extra={
                "user_id": str(user.pk),
                "level": rung.level,
                "action": rung.action,
                "score": score.overall_score,
                "violations": score.total_violations,
            },
        )
        return intervention

    @staticmethod
    def active_interventions(user: User):
        return SafetyIntervention.objects.active().filter(user=user).order_by("-level")

    @classmethod
    def expire_interventions(cls) -> int:
        """Deactivate interventions whose expiry has passed. Returns the count."""
        now = timezone.now()
        count = SafetyIntervention.objects.filter(
            is_active=True,
            expires_at__isnull=False,
            expires_at__lte=now,
        ).update(is_active=False, lifted_at=now)
        if count:
            cls.get_logger().info("Expired safety interventions", extra={"count": count})
        return count

    # ==========================================================================
    # Message Screening
    # ==========================================================================

    @classmethod
    def screen_message(
        cls, sender: User, text: str, conversation_id: str = ""
    ) -> MessageScreening:
        """
        Check a message for manipulation patterns before delivery.

        Confidence is the mean severity weight of the matched patterns. A
        message is blocked when confidence exceeds
        SAFETY_MESSAGE_BLOCK_CONFIDENCE; the sender then loses
        10 points (x1.5 high, x2 critical) on the first pattern's dimension.
        """
        hits = MANIPULATION_PATTERNS.evaluate(MessageContext(text=text))
        if not hits:
            return MessageScreening(allowed=True)

        severities = [hit.metadata["severity"] for hit in hits]
        confidence = round(
            sum(SEVERITY_WEIGHTS[severity] for severity in severities) / len(hits), 4
        )
        highest = max(severities, key=_SEVERITY_ORDER.index)
        screening = MessageScreening(
            allowed=True,
            confidence=confidence,
            patterns=[hit.rule for hit in hits],
            severity=highest,
        )
        if confidence <= settings.SAFETY_MESSAGE_BLOCK_CONFIDENCE:
            return screening

        primary = hits[0]
        impact = round(BASE_MESSAGE_IMPACT * SEVERITY_IMPACT_MULTIPLIERS.get(highest, 1))
        adjustment = cls.record_event(
            sender,
            event_type=primary.metadata["event_type"],
            dimension=primary.metadata["dimension"],
            impact=impact,
            source=f"conversation:{conversation_id}" if conversation_id else "message",
            metadata={"patterns": screening.patterns, "message": text[:500]},
            confidence=confidence,
        )
        screening.allowed = False
        screening.event = adjustment.event
        return screening

    # ==========================================================================
    # Recovery
    # ==========================================================================

    @classmethod
    def apply_daily_decay(cls) -> int:
        """
        Move every dimension of eligible scores back toward 100.

        A score is eligible once 24 hours have passed since its last decay.
        Returns the number of scores updated.
        """
        now = timezone.now()
        points = settings.SAFETY_DAILY_DECAY_POINTS
        updated = 0

        due = SafetyScore.objects.filter(last_decay_at__lte=now - timedelta(hours=24))
        for user_id in due.values_list("user_id", flat=True).iterator():
            with cls.atomic():
                score = SafetyScore.objects.select_for_update().get(user_id=user_id)
                for dimension in SafetyDimension.values:
                    setattr(score, dimension, min(100, getattr(score, dimension) + points))
                score.recalculate()
                score.last_decay_at = now
                score.consecutive_good_days += 1
                score.save()
            updated += 1

        cls.get_logger().info("Applied safety score decay", extra={"count": updated})
        return updated
