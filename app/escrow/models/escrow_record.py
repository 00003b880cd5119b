"""
EscrowRecord model.

An EscrowRecord holds a payer's tokens in the platform escrow account until
the purchased message, call, meeting or event is settled. The split is
fixed when the escrow opens; the ledger entries written on release or
refund always move exactly total_tokens out of escrow.

Usage:
    from escrow.models import EscrowRecord
    from escrow.state_machines import EscrowState

    escrow.release()   # held/disputed -> released
    escrow.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin, VersionedMixin
from core.models import BaseModel
from escrow.state_machines import BookingStatus, EscrowState, TransactionType


class EscrowRecord(UUIDPrimaryKeyMixin, VersionedMixin, BaseModel):
    """
    Tokens held between payment and settlement.

    State Flow:
        HELD -> RELEASED
        HELD -> REFUNDED
        HELD -> DISPUTED -> RELEASED / REFUNDED

    Fields:
        payer / recipient: The two parties
        transaction_type: message, call, meeting or event
        total_tokens: Amount taken from the payer
        recipient_share_percent: Fixed split (65 or 80)
        recipient_tokens / platform_tokens: Split of total_tokens
        refunded_tokens: Tokens returned to the payer on refund
        release_after: Recipient may request release from this time
        auto_release_at: Refund window closes; sweep releases after this
        scheduled_start: Start of a meeting or event
        message_delivered / call_duration_seconds / booking_status:
            Delivery evidence used by automatic refund evaluation
    """

    # ==========================================================================
    # Parties
    # ==========================================================================

    payer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="escrows_paid",
    )
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="escrows_received",
    )

    transaction_type = models.CharField(
        max_length=16,
        choices=TransactionType.choices,
        db_index=True,
    )
    reference = models.CharField(
        max_length=128,
        blank=True,
        default="",
        help_text="External id of the chat, call, booking or ticket",
    )

    # ==========================================================================
    # Amounts
    # ==========================================================================

    total_tokens = models.PositiveBigIntegerField()
    recipient_share_percent = models.PositiveSmallIntegerField(
        help_text="Recipient percentage; the platform takes the rest",
    )
    recipient_tokens = models.PositiveBigIntegerField()
    platform_tokens = models.PositiveBigIntegerField()
    refunded_tokens = models.PositiveBigIntegerField(default=0)

    # ==========================================================================
    # State
    # ==========================================================================

    state = FSMField(
        default=EscrowState.HELD,
        choices=EscrowState.choices,
        db_index=True,
        protected=True,
    )

    release_after = models.DateTimeField()
    auto_release_at = models.DateTimeField(db_index=True)
    scheduled_start = models.DateTimeField(null=True, blank=True)

    released_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    disputed_at = models.DateTimeField(null=True, blank=True)

    # ==========================================================================
    # Delivery Evidence
    # ==========================================================================

    message_delivered = models.BooleanField(default=False)
    call_duration_seconds = models.PositiveIntegerField(null=True, blank=True)
    booking_status = models.CharField(
        max_length=16,
        choices=BookingStatus.choices,
        null=True,
        blank=True,
    )

    idempotency_key = models.CharField(
        max_length=128,
        null=True,
        blank=True,
        unique=True,
        help_text="Client key; a repeated open returns the original escrow",
    )
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Escrow Record"
        verbose_name_plural = "Escrow Records"
        indexes = [
            models.Index(fields=["state", "auto_release_at"]),
            models.Index(fields=["payer", "state"]),
            models.Index(fields=["recipient", "state"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(total_tokens__gt=0),
                name="escrow_total_positive",
            ),
            models.CheckConstraint(
                condition=Q(total_tokens=F("recipient_tokens") + F("platform_tokens")),
                name="escrow_split_sums_to_total",
            ),
            models.CheckConstraint(
                condition=~Q(payer=F("recipient")),
                name="escrow_payer_is_not_recipient",
            ),
        ]

    def __str__(self) -> str:
        return f"Escrow({self.id}, {self.state}, {self.total_tokens} tokens)"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=state,
        source=[EscrowState.HELD, EscrowState.DISPUTED],
        target=EscrowState.RELEASED,
    )
    def release(self):
        """Transition: HELD/DISPUTED -> RELEASED"""
        self.released_at = timezone.now()

    @transition(
        field=state,
        source=[EscrowState.HELD, EscrowState.DISPUTED],
        target=EscrowState.REFUNDED,
    )
    def refund(self, refunded_tokens: int):
        """
        Transition: HELD/DISPUTED -> REFUNDED

        Args:
            refunded_tokens: Tokens returned to the payer (0..total)
        """
        self.refunded_tokens = refunded_tokens
        self.refunded_at = timezone.now()

    @transition(
        field=state,
        source=EscrowState.HELD,
        target=EscrowState.DISPUTED,
    )
    def dispute(self):
        """Transition: HELD -> DISPUTED"""
        self.disputed_at = timezone.now()

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def platform_share_percent(self) -> int:
        return 100 - self.recipient_share_percent

    @property
    def is_settled(self) -> bool:
        return self.state in EscrowState.terminal_states()

    @property
    def refund_window_open(self) -> bool:
        return self.state == EscrowState.HELD and timezone.now() < self.auto_release_at
