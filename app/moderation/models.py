"""
Moderation models.

Comment: every comment that passed the throttle, with its visibility
AbuseCase: one harmful comment under review
Sanction: restriction issued to the author of an abusive comment
EnforcementState: account-wide status and feature locks derived from sanctions
CreatorShield: per-creator protection settings, switched on by hand or by a raid
DefamationReport: evidence request opened for a defamation case
"""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from moderation.types import (
    AbuseCategory,
    AccountStatus,
    CaseStatus,
    CommentVisibility,
    DefamationReportStatus,
    SanctionAction,
)


class Comment(UUIDPrimaryKeyMixin, BaseModel):
    """
    A comment on creator content.

    Fields:
        author: Who wrote it
        target: Owner of the content commented on
        content_id: Id of the post, stream or clip
        visibility: Stealth-hidden comments are shown to their author only
        distribution_throttled: Kept out of feeds while a defamation claim
            waits for evidence
    """

    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="comments_written",
    )
    target = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="comments_received",
    )
    content_id = models.CharField(max_length=128, db_index=True)
    text = models.TextField()
    visibility = models.CharField(
        max_length=16,
        choices=CommentVisibility.choices,
        default=CommentVisibility.VISIBLE,
    )
    distribution_throttled = models.BooleanField(default=False)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["author", "content_id", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"Comment({self.id}, {self.visibility})"


class AbuseCase(UUIDPrimaryKeyMixin, BaseModel):
    """
    One abusive comment and what was done about it.

    State Flow:
        OPEN -> ESCALATED
        OPEN / ESCALATED -> CONFIRMED
        OPEN / ESCALATED -> DISMISSED
    """

    comment = models.OneToOneField(
        Comment,
        on_delete=models.CASCADE,
        related_name="abuse_case",
    )
    perpetrator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="abuse_cases_caused",
    )
    target = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="abuse_cases_received",
    )
    category = models.CharField(max_length=24, choices=AbuseCategory.choices)
    severity = models.PositiveSmallIntegerField()
    matched_signals = models.JSONField(default=list, blank=True)
    mitigation_actions = models.JSONField(default=list, blank=True)

    status = FSMField(
        default=CaseStatus.OPEN,
        choices=CaseStatus.choices,
        db_index=True,
        protected=True,
    )
    escalated_at = models.DateTimeField(null=True, blank=True)

    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="abuse_cases_reviewed",
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    review_notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Abuse Case"
        verbose_name_plural = "Abuse Cases"
        indexes = [
            models.Index(fields=["status", "severity"]),
        ]

    def __str__(self) -> str:
        return f"AbuseCase({self.id}, {self.category}, {self.severity}, {self.status})"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(field=status, source=CaseStatus.OPEN, target=CaseStatus.ESCALATED)
    def escalate(self):
        self.escalated_at = timezone.now()

    @transition(
        field=status,
        source=[CaseStatus.OPEN, CaseStatus.ESCALATED],
        target=CaseStatus.CONFIRMED,
    )
    def confirm(self, moderator, notes: str = ""):
        self._record_review(moderator, notes)

    @transition(
        field=status,
        source=[CaseStatus.OPEN, CaseStatus.ESCALATED],
        target=CaseStatus.DISMISSED,
    )
    def dismiss(self, moderator, notes: str = ""):
        self._record_review(moderator, notes)

    def _record_review(self, moderator, notes: str) -> None:
        self.reviewed_by = moderator
        self.reviewed_at = timezone.now()
        self.review_notes = notes


class Sanction(UUIDPrimaryKeyMixin, BaseModel):
    """
    Levels:
        1 soft warning, 2 content removal, 3 comment freeze (24h),
        5 permanent ban
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sanctions",
    )
    case = models.ForeignKey(
        AbuseCase,
        on_delete=models.CASCADE,
        related_name="sanctions",
    )
    level = models.PositiveSmallIntegerField()
    action = models.CharField(max_length=24, choices=SanctionAction.choices)
    reason = models.CharField(max_length=255)
    freeze_ends_at = models.DateTimeField(null=True, blank=True, db_index=True)
    permanent_ban = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True, db_index=True)
    lifted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "is_active"]),
        ]

    def __str__(self) -> str:
        return f"Sanction({self.user_id}, L{self.level}, {self.action})"

    @property
    def appealable(self) -> bool:
        return not self.permanent_ban

    def lift(self) -> None:
        self.is_active = False
        self.lifted_at = timezone.now()


class EnforcementState(BaseModel):
    """Account-wide moderation status; recomputed from active sanctions."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="enforcement_state",
        primary_key=True,
    )
    account_status = models.CharField(
        max_length=16,
        choices=AccountStatus.choices,
        default=AccountStatus.ACTIVE,
        db_index=True,
    )
    feature_locks = models.JSONField(default=list, blank=True)
    reason_codes = models.JSONField(default=list, blank=True)

    def __str__(self) -> str:
        return f"EnforcementState({self.user_id}, {self.account_status})"


class CreatorShield(BaseModel):
    """
    Protection a creator turns on by hand or that a raid switches on.

    While enabled, comments from accounts younger than fresh_account_age_days
    are stealth-hidden on arrival and abusive comments are removed instead
    of hidden.
    """

    creator = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="creator_shield",
        primary_key=True,
    )
    enabled = models.BooleanField(default=True)
    block_fresh_accounts = models.BooleanField(default=True)
    fresh_account_age_days = models.PositiveSmallIntegerField(default=7)
    remove_abusive_comments = models.BooleanField(default=True)
    under_raid = models.BooleanField(default=False)
    last_raid_detected_at = models.DateTimeField(null=True, blank=True)

    def __str__(self) -> str:
        return f"CreatorShield({self.creator_id}, enabled={self.enabled})"

    def blocks(self, author) -> bool:
        """Whether a comment by author is hidden on arrival."""
        if not (self.enabled and self.block_fresh_accounts):
            return False
        return author.date_joined > timezone.now() - timedelta(days=self.fresh_account_age_days)


class DefamationReport(UUIDPrimaryKeyMixin, BaseModel):
    """
    A factual claim about the target that the author is asked to back up.

    The comment's distribution stays throttled until the case is resolved.
    """

    case = models.OneToOneField(
        AbuseCase,
        on_delete=models.CASCADE,
        related_name="defamation_report",
    )
    accuser = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="defamation_reports_made",
    )
    target = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="defamation_reports_received",
    )
    content_snapshot = models.TextField()
    claims = models.JSONField(default=list, blank=True)
    status = FSMField(
        default=DefamationReportStatus.PENDING_EVIDENCE,
        choices=DefamationReportStatus.choices,
        db_index=True,
        protected=True,
    )
    evidence = models.TextField(blank=True, default="")
    evidence_submitted_at = models.DateTimeField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"DefamationReport({self.id}, {self.status})"

    @transition(
        field=status,
        source=DefamationReportStatus.PENDING_EVIDENCE,
        target=DefamationReportStatus.EVIDENCE_SUBMITTED,
    )
    def submit_evidence(self, evidence: str):
        self.evidence = evidence
        self.evidence_submitted_at = timezone.now()

    @transition(
        field=status,
        source=DefamationReportStatus.open_states(),
        target=DefamationReportStatus.UPHELD,
    )
    def uphold(self):
        self.closed_at = timezone.now()

    @transition(
        field=status,
        source=DefamationReportStatus.open_states(),
        target=DefamationReportStatus.CLEARED,
    )
    def clear(self):
        self.closed_at = timezone.now()
