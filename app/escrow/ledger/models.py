"""
Append-only token ledger.

- LedgerAccount: A bucket of tokens (user wallet, platform escrow, platform
  revenue, token issuance)
- LedgerEntry: An immutable movement of tokens from one account to another

Balances are never stored. They are computed by replaying entries, so the
ledger is the single source of truth for who holds what.

Usage:
    from escrow.ledger.models import AccountType, LedgerAccount

    escrow_account = LedgerAccount.objects.get(type=AccountType.PLATFORM_ESCROW)
    escrow_account.get_balance()  # tokens currently held in escrow
"""

from __future__ import annotations

from django.db import models
from django.db.models import Case, Q, Sum, Value, When
from django.db.models.functions import Coalesce

from core.model_mixins import UUIDPrimaryKeyMixin


class AccountType(models.TextChoices):
    """
    Values:
        USER_WALLET: A user's spendable tokens
        PLATFORM_ESCROW: Tokens held between payment and settlement
        PLATFORM_REVENUE: The platform's share of settled transactions
        TOKEN_ISSUANCE: Source of purchased tokens (may go negative)
    """

    USER_WALLET = "user_wallet", "User Wallet"
    PLATFORM_ESCROW = "platform_escrow", "Platform Escrow"
    PLATFORM_REVENUE = "platform_revenue", "Platform Revenue"
    TOKEN_ISSUANCE = "token_issuance", "Token Issuance"


class EntryType(models.TextChoices):
    TOKEN_PURCHASE = "token_purchase", "Token Purchase"
    ESCROW_HOLD = "escrow_hold", "Escrow Hold"
    ESCROW_RELEASE = "escrow_release", "Escrow Release"
    PLATFORM_FEE = "platform_fee", "Platform Fee"
    REFUND = "refund", "Refund"
    VOLUNTARY_REFUND = "voluntary_refund", "Voluntary Refund"
    ADJUSTMENT = "adjustment", "Adjustment"


class LedgerAccount(UUIDPrimaryKeyMixin, models.Model):
    """
    A ledger account that holds tokens.

    Fields:
        type: Account category
        owner_id: User id for wallets, empty for platform accounts
        allow_negative: Only the issuance account may go below zero
        is_active: Inactive accounts reject new entries
        created_at: When the account was opened

    Constraints:
        - Unique combination of (type, owner_id)
    """

    type = models.CharField(
        max_length=50,
        choices=AccountType.choices,
        help_text="Category of this account",
    )
    owner_id = models.UUIDField(
        null=True,
        blank=True,
        db_index=True,
        help_text="UUID of the user that owns this account",
    )
    allow_negative = models.BooleanField(
        default=False,
        help_text="Whether this account can have a negative balance",
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["type", "owner_id"],
                name="unique_ledger_account_per_owner",
            )
        ]

    def __str__(self) -> str:
        if self.owner_id:
            return f"{self.get_type_display()} ({self.owner_id})"
        return self.get_type_display()

    def get_balance(self) -> int:
        """Sum of credits minus sum of debits, in tokens."""
        result = LedgerEntry.objects.filter(
            Q(credit_account=self) | Q(debit_account=self)
        ).aggregate(
            credits=Coalesce(
                Sum(
                    Case(
                        When(credit_account=self, then="amount_tokens"),
                        default=Value(0),
                        output_field=models.BigIntegerField(),
                    )
                ),
                Value(0),
                output_field=models.BigIntegerField(),
            ),
            debits=Coalesce(
                Sum(
                    Case(
                        When(debit_account=self, then="amount_tokens"),
                        default=Value(0),
                        output_field=models.BigIntegerField(),
                    )
                ),
                Value(0),
                output_field=models.BigIntegerField(),
            ),
        )
        return result["credits"] - result["debits"]


class LedgerEntry(UUIDPrimaryKeyMixin, models.Model):
    """
    One immutable token movement.

    Entries are never updated or deleted; corrections are new ADJUSTMENT
    entries. The idempotency key makes every write safe to retry.

    Constraints:
        - amount_tokens must be positive
        - idempotency_key must be unique
    """

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    debit_account = models.ForeignKey(
        LedgerAccount,
        on_delete=models.PROTECT,
        related_name="debit_entries",
        help_text="Account tokens are taken from",
    )
    credit_account = models.ForeignKey(
        LedgerAccount,
        on_delete=models.PROTECT,
        related_name="credit_entries",
        help_text="Account tokens are added to",
    )
    amount_tokens = models.PositiveBigIntegerField()
    entry_type = models.CharField(max_length=50, choices=EntryType.choices)
    reference_id = models.UUIDField(null=True, blank=True)
    reference_type = models.CharField(max_length=50, null=True, blank=True)
    description = models.TextField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_by = models.CharField(max_length=255, null=True, blank=True)
    idempotency_key = models.CharField(max_length=255, unique=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "ledger entries"
        indexes = [
            models.Index(fields=["reference_type", "reference_id"]),
            models.Index(fields=["entry_type"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount_tokens__gt=0),
                name="ledger_entry_amount_tokens_positive",
            )
        ]

    def __str__(self) -> str:
        return f"{self.get_entry_type_display()}: {self.amount_tokens} tokens"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Ledger entries are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Ledger entries are immutable")
