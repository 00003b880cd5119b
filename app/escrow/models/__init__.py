"""
Escrow domain models.

- EscrowRecord: Tokens held between payment and settlement
- RefundRequest: A payer's claim against a held escrow
- FraudDetectionRecord: Audit log of fraud rule hits
- LedgerAccount / LedgerEntry: Token ledger (see escrow.ledger)
"""

from escrow.ledger.models import LedgerAccount, LedgerEntry
from escrow.models.escrow_record import EscrowRecord
from escrow.models.fraud_record import FraudDetectionRecord
from escrow.models.refund_request import RefundRequest

__all__ = [
    "EscrowRecord",
    "FraudDetectionRecord",
    "LedgerAccount",
    "LedgerEntry",
    "RefundRequest",
]
