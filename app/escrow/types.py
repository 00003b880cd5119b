"""
Typed request and response structs for escrow operations.

Views build these from validated serializer data; services accept and
return them instead of loose dicts.

Usage:
    from escrow.types import OpenEscrowParams

    params = OpenEscrowParams(
        payer=fan,
        recipient=creator,
        total_tokens=1000,
        transaction_type=TransactionType.MEETING,
    )
    result = EscrowService.open_escrow(params)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from accounts.models import User
    from escrow.models import EscrowRecord, RefundRequest


@dataclass(frozen=True)
class Split:
    """
    Division of an escrow total.

    Invariant: recipient_tokens + platform_tokens == total_tokens.
    """

    total_tokens: int
    recipient_tokens: int
    platform_tokens: int

    def __post_init__(self) -> None:
        if self.recipient_tokens + self.platform_tokens != self.total_tokens:
            raise ValueError("Split does not add up to the total")


@dataclass
class OpenEscrowParams:
    """
    Required Attributes:
        payer: User paying tokens
        recipient: Creator receiving the payment
        total_tokens: Positive amount taken from the payer's wallet
        transaction_type: TransactionType value

    Optional Attributes:
        recipient_share_percent: Override of the per-type default split
        reference: External id of the chat, call, booking or ticket
        scheduled_start: Start time of a meeting or event
        idempotency_key: Client key; repeated opens return the same escrow
    """

    payer: User
    recipient: User
    total_tokens: int
    transaction_type: str
    recipient_share_percent: int | None = None
    reference: str = ""
    scheduled_start: datetime | None = None
    idempotency_key: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class RefundRequestParams:
    escrow_id: Any
    requester: User
    reason: str
    details: str = ""


@dataclass
class SettlementResult:
    """Token movements produced by a release, refund or cancellation."""

    escrow: EscrowRecord
    payer_tokens: int = 0
    recipient_tokens: int = 0
    platform_tokens: int = 0


@dataclass
class RefundDecision:
    """
    Response of the refund router.

    For tier 1 requests outcome and refund_tokens are set immediately; for
    tier 2 and 3 they stay None until a staff resolution.
    """

    request: RefundRequest
    tier: int
    outcome: str | None = None
    refund_tokens: int | None = None
    fraud_pattern: str | None = None
