"""
State enums for escrow models.

These are Django TextChoices used with django-fsm.

EscrowRecord States:
    held → released
    held → refunded
    held → disputed → released / refunded

RefundRequest States:
    pending → queued_for_review → resolved
    pending → awaiting_human → resolved
    pending → resolved (tier 1 auto-evaluation)
    pending → rejected (fraud block)
"""

from django.db import models


class EscrowState(models.TextChoices):
    """
    Terminal states: RELEASED, REFUNDED

    DISPUTED escrows are never auto-released; only a staff resolution
    moves them on.
    """

    HELD = "held", "Held"
    RELEASED = "released", "Released"
    REFUNDED = "refunded", "Refunded"
    DISPUTED = "disputed", "Disputed"

    @classmethod
    def terminal_states(cls) -> list[str]:
        return [cls.RELEASED, cls.REFUNDED]


class RefundRequestState(models.TextChoices):
    PENDING = "pending", "Pending"
    QUEUED_FOR_REVIEW = "queued_for_review", "Queued For Review"
    AWAITING_HUMAN = "awaiting_human", "Awaiting Human"
    RESOLVED = "resolved", "Resolved"
    REJECTED = "rejected", "Rejected"

    @classmethod
    def open_states(cls) -> list[str]:
        return [cls.PENDING, cls.QUEUED_FOR_REVIEW, cls.AWAITING_HUMAN]


class RefundTier(models.IntegerChoices):
    """Tier 1 automatic, tier 2 assisted review, tier 3 human arbitration."""

    AUTO = 1, "Automatic"
    ASSISTED = 2, "Assisted Review"
    HUMAN = 3, "Human Arbitration"


class RefundOutcome(models.TextChoices):
    FULL = "full", "Full Refund"
    PARTIAL = "partial", "Partial Refund"
    CREATOR_WINS = "creator_wins", "Creator Wins"


class TransactionType(models.TextChoices):
    """What the payer bought. Each has its own default split."""

    MESSAGE = "message", "Paid Message"
    CALL = "call", "Call"
    MEETING = "meeting", "Meeting"
    EVENT = "event", "Event"


class BookingStatus(models.TextChoices):
    """Lifecycle flag recorded by the recipient for meetings and events."""

    SCHEDULED = "scheduled", "Scheduled"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    NO_SHOW = "no_show", "Creator No-Show"


class RefundReason(models.TextChoices):
    """
    Reason codes a payer may give.

    The last four are never refundable and are rejected up front.
    """

    NOT_DELIVERED = "not_delivered", "Not Delivered"
    CALL_NOT_CONNECTED = "call_not_connected", "Call Not Connected"
    EVENT_CANCELLED = "event_cancelled", "Event Cancelled"
    CREATOR_NO_SHOW = "creator_no_show", "Creator No-Show"
    QUALITY_ISSUE = "quality_issue", "Quality Issue"
    INCOMPLETE_DELIVERY = "incomplete_delivery", "Incomplete Delivery"
    MISLEADING_DESCRIPTION = "misleading_description", "Misleading Description"
    HARASSMENT = "harassment", "Harassment"
    SAFETY_CONCERN = "safety_concern", "Safety Concern"
    OTHER = "other", "Other"
    CHANGED_MIND = "changed_mind", "Changed Mind"
    ALREADY_CONSUMED = "already_consumed", "Already Consumed"
    PRICE_TOO_HIGH = "price_too_high", "Price Too High"
    DISLIKED_CONTENT = "disliked_content", "Disliked Content"


class FraudSeverity(models.TextChoices):
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"
    CRITICAL = "critical", "Critical"


class FraudAction(models.TextChoices):
    FLAGGED = "flagged", "Flagged"
    ESCALATED_TO_HUMAN = "escalated_to_human", "Escalated To Human"
    REFUND_BLOCKED = "refund_blocked", "Refund Blocked"
