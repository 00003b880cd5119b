"""
RefundRequest model.

A payer's claim against a HELD escrow. At most one request per escrow may be
open at a time; the partial unique constraint enforces it in the database.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin, VersionedMixin
from core.models import BaseModel
from escrow.state_machines import (
    RefundOutcome,
    RefundReason,
    RefundRequestState,
    RefundTier,
)


class RefundRequest(UUIDPrimaryKeyMixin, VersionedMixin, BaseModel):
    """
    State Flow:
        PENDING -> RESOLVED                              (tier 1)
        PENDING -> QUEUED_FOR_REVIEW -> RESOLVED         (tier 2, staff override)
        PENDING -> AWAITING_HUMAN -> RESOLVED            (tier 3)
        PENDING -> REJECTED                              (fraud block)

    Fields:
        escrow: The escrow being contested
        requester: Must be the escrow's payer
        reason / details: Reason code and free text
        tier: Routing tier, set when the request is routed
        outcome / refund_tokens: Set on resolution
        fraud_pattern: Label of the fraud rule that fired, if any
        resolved_by: Staff member for manual resolutions
    """

    escrow = models.ForeignKey(
        "escrow.EscrowRecord",
        on_delete=models.PROTECT,
        related_name="refund_requests",
    )
    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="refund_requests",
    )

    reason = models.CharField(max_length=32, choices=RefundReason.choices)
    details = models.TextField(blank=True, default="")

    tier = models.PositiveSmallIntegerField(
        choices=RefundTier.choices,
        null=True,
        blank=True,
    )

    state = FSMField(
        default=RefundRequestState.PENDING,
        choices=RefundRequestState.choices,
        db_index=True,
        protected=True,
    )

    outcome = models.CharField(
        max_length=16,
        choices=RefundOutcome.choices,
        null=True,
        blank=True,
    )
    refund_tokens = models.PositiveBigIntegerField(null=True, blank=True)

    fraud_flagged = models.BooleanField(default=False)
    fraud_pattern = models.CharField(max_length=48, blank=True, default="")

    resolved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="refunds_resolved",
    )
    resolution_notes = models.TextField(blank=True, default="")
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Refund Request"
        verbose_name_plural = "Refund Requests"
        indexes = [
            models.Index(fields=["requester", "created_at"]),
            models.Index(fields=["state", "tier"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["escrow"],
                condition=Q(
                    state__in=[
                        RefundRequestState.PENDING,
                        RefundRequestState.QUEUED_FOR_REVIEW,
                        RefundRequestState.AWAITING_HUMAN,
                    ]
                ),
                name="one_open_refund_request_per_escrow",
            ),
        ]

    def __str__(self) -> str:
        return f"RefundRequest({self.id}, {self.reason}, {self.state})"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=state,
        source=RefundRequestState.PENDING,
        target=RefundRequestState.QUEUED_FOR_REVIEW,
    )
    def queue_for_review(self):
        self.tier = RefundTier.ASSISTED

    @transition(
        field=state,
        source=RefundRequestState.PENDING,
        target=RefundRequestState.AWAITING_HUMAN,
    )
    def await_human(self):
        self.tier = RefundTier.HUMAN

    @transition(
        field=state,
        source=[
            RefundRequestState.PENDING,
            RefundRequestState.QUEUED_FOR_REVIEW,
            RefundRequestState.AWAITING_HUMAN,
        ],
        target=RefundRequestState.RESOLVED,
    )
    def resolve(self, outcome: str, refund_tokens: int, resolved_by=None, notes: str = ""):
        self.outcome = outcome
        self.refund_tokens = refund_tokens
        self.resolved_by = resolved_by
        self.resolution_notes = notes
        self.resolved_at = timezone.now()

    @transition(
        field=state,
        source=RefundRequestState.PENDING,
        target=RefundRequestState.REJECTED,
    )
    def reject(self, notes: str = ""):
        self.resolution_notes = notes
        self.resolved_at = timezone.now()

    @property
    def is_open(self) -> bool:
        return self.state in RefundRequestState.open_states()

    @property
    def was_approved(self) -> bool:
        """Resolved with tokens going back to the payer."""
        return (
            self.state == RefundRequestState.RESOLVED
            and self.outcome in (RefundOutcome.FULL, RefundOutcome.PARTIAL)
        )
