"""
Data types for ledger operations.

Usage:
    from escrow.ledger.types import RecordEntryParams

    params = RecordEntryParams(
        debit_account_id=wallet.id,
        credit_account_id=escrow_account.id,
        amount_tokens=1000,
        entry_type=EntryType.ESCROW_HOLD,
        idempotency_key=f"escrow:{escrow.id}:hold",
    )
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any


@dataclass
class RecordEntryParams:
    """
    Parameters for one ledger entry: tokens move from debit to credit.

    Required Attributes:
        debit_account_id: Account tokens leave
        credit_account_id: Account tokens enter
        amount_tokens: Positive whole number of tokens
        entry_type: EntryType value
        idempotency_key: Unique key; replays return the original entry

    Optional Attributes:
        reference_id / reference_type: Business entity (escrow, refund)
        description: Human-readable description
        metadata: JSON-serializable extras
        created_by: Service or user that wrote the entry
    """

    debit_account_id: uuid.UUID
    credit_account_id: uuid.UUID
    amount_tokens: int
    entry_type: str
    idempotency_key: str

    reference_id: uuid.UUID | None = None
    reference_type: str | None = None
    description: str | None = None
    metadata: dict[str, Any] | None = field(default_factory=dict)
    created_by: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.amount_tokens, int) or self.amount_tokens <= 0:
            raise ValueError("amount_tokens must be a positive integer")
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")
        if self.debit_account_id == self.credit_account_id:
            raise ValueError("debit_account_id and credit_account_id must be different")


@dataclass(frozen=True)
class WalletBalance:
    """Replayed balance of one account."""

    account_id: uuid.UUID
    tokens: int

    def __str__(self) -> str:
        return f"{self.tokens} tokens"
