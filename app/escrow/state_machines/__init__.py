"""
State machine enums for the escrow app.
"""

from escrow.state_machines.states import (
    BookingStatus,
    EscrowState,
    FraudAction,
    FraudSeverity,
    RefundOutcome,
    RefundReason,
    RefundRequestState,
    RefundTier,
    TransactionType,
)

__all__ = [
    "BookingStatus",
    "EscrowState",
    "FraudAction",
    "FraudSeverity",
    "RefundOutcome",
    "RefundReason",
    "RefundRequestState",
    "RefundTier",
    "TransactionType",
]
