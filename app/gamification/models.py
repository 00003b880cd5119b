"""
Gamification models.

CreatorMissionProfile: level, streaks and LP balance of one creator
Mission: one assigned daily or weekly mission and its progress
MissionActivity: every accepted activity report (drives payer concentration checks)
LevelPointsEntry: append-only LP ledger, separate from the token ledger
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from gamification.types import ActivityType, CreatorLevel, MissionStatus, MissionType


class CreatorMissionProfile(BaseModel):
    creator = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="mission_profile",
        primary_key=True,
    )
    level = models.CharField(
        max_length=16,
        choices=CreatorLevel.choices,
        default=CreatorLevel.BRONZE,
    )

    daily_streak = models.PositiveIntegerField(default=0)
    best_daily_streak = models.PositiveIntegerField(default=0)
    last_daily_completion = models.DateTimeField(null=True, blank=True)
    weekly_streak = models.PositiveIntegerField(default=0)
    best_weekly_streak = models.PositiveIntegerField(default=0)
    last_weekly_completion = models.DateTimeField(null=True, blank=True)

    completed_daily = models.PositiveIntegerField(default=0)
    completed_weekly = models.PositiveIntegerField(default=0)
    total_lp_earned = models.PositiveIntegerField(default=0)

    def __str__(self) -> str:
        return f"CreatorMissionProfile({self.creator_id}, {self.level})"


class Mission(UUIDPrimaryKeyMixin, BaseModel):
    """
    An assigned mission.

    State Flow:
        ACTIVE -> COMPLETED -> CLAIMED
        ACTIVE -> EXPIRED
    """

    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="missions",
    )
    template_key = models.CharField(max_length=64)
    mission_type = models.CharField(max_length=8, choices=MissionType.choices)
    title = models.CharField(max_length=128)
    description = models.CharField(max_length=255, blank=True, default="")
    activity_type = models.CharField(max_length=32, choices=ActivityType.choices)
    unit = models.CharField(max_length=32)
    target = models.PositiveIntegerField()
    progress = models.PositiveIntegerField(default=0)
    reward_lp = models.PositiveIntegerField()

    status = FSMField(
        default=MissionStatus.ACTIVE,
        choices=MissionStatus.choices,
        db_index=True,
        protected=True,
    )
    expires_at = models.DateTimeField(db_index=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    claimed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["creator", "status", "activity_type"]),
        ]

    def __str__(self) -> str:
        return f"Mission({self.title}, {self.progress}/{self.target}, {self.status})"

    @property
    def percentage(self) -> int:
        return self.progress * 100 // self.target if self.target else 100

    def add_progress(self, value: int) -> None:
        """Add progress, capped at the target."""
        self.progress = min(self.progress + value, self.target)

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=MissionStatus.ACTIVE,
        target=MissionStatus.COMPLETED,
        conditions=[lambda mission: mission.progress >= mission.target],
    )
    def complete(self):
        self.completed_at = timezone.now()

    @transition(field=status, source=MissionStatus.COMPLETED, target=MissionStatus.CLAIMED)
    def claim(self):
        self.claimed_at = timezone.now()

    @transition(field=status, source=MissionStatus.ACTIVE, target=MissionStatus.EXPIRED)
    def expire(self):
        pass


class MissionActivity(BaseModel):
    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="mission_activities",
    )
    activity_type = models.CharField(max_length=32, choices=ActivityType.choices)
    value = models.PositiveIntegerField()
    payer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "Mission activities"
        indexes = [
            models.Index(fields=["creator", "payer", "activity_type", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"MissionActivity({self.creator_id}, {self.activity_type}, {self.value})"


class LevelPointsEntry(BaseModel):
    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="level_points",
    )
    mission = models.OneToOneField(
        Mission,
        on_delete=models.PROTECT,
        related_name="lp_entry",
    )
    points = models.PositiveIntegerField()
    source = models.CharField(max_length=128)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "Level points entries"

    def __str__(self) -> str:
        return f"LevelPointsEntry({self.creator_id}, +{self.points})"
