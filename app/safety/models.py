"""
Safety models.

SafetyScore holds the current per-dimension scores for a user. Every change
is written as a SafetyEvent so a score can be explained after the fact;
SafetyIntervention records the restriction applied when a score drops.
"""

from __future__ import annotations

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from safety.types import InterventionAction, RiskLevel, SafetyDimension

_SCORE_VALIDATORS = [MinValueValidator(0), MaxValueValidator(100)]


class SafetyScore(BaseModel):
    """
    Current safety standing of one user.

    Fields:
        respecting_consent / tone_and_boundaries / payment_ethics /
        platform_safety: Dimension scores, 0-100, starting at 100
        overall_score: Rounded mean of the four dimensions
        risk_level: Band derived from overall_score
        total_violations: Number of negative adjustments ever applied
        consecutive_good_days: Days of recovery since the last violation
        last_decay_at: Last time good-behaviour recovery was applied
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="safety_score",
        primary_key=True,
    )

    respecting_consent = models.PositiveSmallIntegerField(
        default=100, validators=_SCORE_VALIDATORS
    )
    tone_and_boundaries = models.PositiveSmallIntegerField(
        default=100, validators=_SCORE_VALIDATORS
    )
    payment_ethics = models.PositiveSmallIntegerField(
        default=100, validators=_SCORE_VALIDATORS
    )
    platform_safety = models.PositiveSmallIntegerField(
        default=100, validators=_SCORE_VALIDATORS
    )

    overall_score = models.PositiveSmallIntegerField(default=100, db_index=True)
    risk_level = models.CharField(
        max_length=16,
        choices=RiskLevel.choices,
        default=RiskLevel.SAFE,
        db_index=True,
    )
    total_violations = models.PositiveIntegerField(default=0)
    consecutive_good_days = models.PositiveIntegerField(default=0)
    last_decay_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = "Safety Score"
        verbose_name_plural = "Safety Scores"

    def __str__(self) -> str:
        return f"SafetyScore({self.user_id}, {self.overall_score}, {self.risk_level})"

    def dimension_scores(self) -> dict[str, int]:
        return {dimension: getattr(self, dimension) for dimension in SafetyDimension.values}

    def recalculate(self) -> None:
        """Refresh overall_score and risk_level from the dimension fields."""
        # Mean rounded half up
        total = sum(self.dimension_scores().values())
        self.overall_score = (total + 2) // 4
        self.risk_level = RiskLevel.for_score(self.overall_score)


class SafetyEvent(UUIDPrimaryKeyMixin, BaseModel):
    """One score adjustment. Write-once."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="safety_events",
    )
    event_type = models.CharField(max_length=32, db_index=True)
    dimension = models.CharField(max_length=32, choices=SafetyDimension.choices)
    impact = models.SmallIntegerField(help_text="Signed score change requested")
    confidence = models.FloatField(default=1.0)
    source = models.CharField(max_length=64, blank=True, default="")
    metadata = models.JSONField(default=dict, blank=True)
    score_after = models.PositiveSmallIntegerField(
        help_text="Overall score after the adjustment"
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"SafetyEvent({self.event_type}, {self.dimension}, {self.impact:+d})"


class SafetyInterventionQuerySet(models.QuerySet):
    def active(self):
        now = timezone.now()
        return self.filter(is_active=True).filter(
            models.Q(expires_at__isnull=True) | models.Q(expires_at__gt=now)
        )


class SafetyIntervention(UUIDPrimaryKeyMixin, BaseModel):
    """
    Restriction applied to a user whose score crossed a threshold.

    Levels:
        1 soft warning (1h), 2 message slowdown (6h), 3 chat freeze (12h),
        4 messaging timeout (24h), 5 account ban (permanent)
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="safety_interventions",
    )
    level = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    action = models.CharField(max_length=24, choices=InterventionAction.choices)
    reason = models.CharField(max_length=255)
    score_at_trigger = models.PositiveSmallIntegerField()
    violations_at_trigger = models.PositiveIntegerField()
    expires_at = models.DateTimeField(null=True, blank=True, db_index=True)
    is_active = models.BooleanField(default=True, db_index=True)
    lifted_at = models.DateTimeField(null=True, blank=True)

    objects = SafetyInterventionQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "is_active"]),
        ]

    def __str__(self) -> str:
        return f"SafetyIntervention({self.user_id}, L{self.level}, {self.action})"

    @property
    def is_permanent(self) -> bool:
        return self.expires_at is None
