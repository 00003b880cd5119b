"""
Refund fraud heuristics.

Hand-tuned weighted rules over a requester's refund history and the text
of the request. Not a statistical model.
"""

from escrow.fraud.detector import FraudVerdict, RefundFraudDetector
from escrow.fraud.rules import REFUND_FRAUD_RULES, RefundFraudContext

__all__ = [
    "FraudVerdict",
    "REFUND_FRAUD_RULES",
    "RefundFraudContext",
    "RefundFraudDetector",
]
