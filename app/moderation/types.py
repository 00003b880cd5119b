"""
Choices and typed results for the moderation app.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from django.db import models

if TYPE_CHECKING:
    from moderation.models import AbuseCase, Comment, Sanction


class AbuseCategory(models.TextChoices):
    HARASSMENT = "harassment", "Harassment"
    HATE = "hate", "Hate"
    THREATS = "threats", "Threats"
    DEFAMATION = "defamation", "Defamation"
    ENCOURAGING_HARM = "encouraging_harm", "Encouraging Harm"


class CaseStatus(models.TextChoices):
    """
    State Flow:
        OPEN -> ESCALATED
        OPEN / ESCALATED -> CONFIRMED    (moderator upheld)
        OPEN / ESCALATED -> DISMISSED    (false positive, mitigation reverted)
    """

    OPEN = "open", "Open"
    ESCALATED = "escalated", "Escalated"
    CONFIRMED = "confirmed", "Confirmed"
    DISMISSED = "dismissed", "Dismissed"

    @classmethod
    def review_states(cls) -> list[str]:
        return [cls.OPEN, cls.ESCALATED]


class CommentVisibility(models.TextChoices):
    VISIBLE = "visible", "Visible"
    STEALTH_HIDDEN = "stealth_hidden", "Hidden (visible to author only)"
    REMOVED = "removed", "Removed"


class MitigationAction(models.TextChoices):
    STEALTH_HIDE = "stealth_hide", "Stealth Hide"
    SOFT_WARNING = "soft_warning", "Soft Warning"
    HARD_WARNING = "hard_warning", "Hard Warning"
    REMOVE_CONTENT = "remove_content", "Remove Content"
    TEMP_BAN = "temp_ban", "Temporary Ban"
    PERMANENT_BAN = "permanent_ban", "Permanent Ban"
    ENABLE_SHIELD_MODE = "enable_shield_mode", "Enable Shield Mode"
    REQUEST_EVIDENCE = "request_evidence", "Request Evidence"


class DefamationReportStatus(models.TextChoices):
    """
    State Flow:
        PENDING_EVIDENCE -> EVIDENCE_SUBMITTED
        PENDING_EVIDENCE / EVIDENCE_SUBMITTED -> UPHELD    (case confirmed)
        PENDING_EVIDENCE / EVIDENCE_SUBMITTED -> CLEARED   (case dismissed)
    """

    PENDING_EVIDENCE = "pending_evidence", "Pending Evidence"
    EVIDENCE_SUBMITTED = "evidence_submitted", "Evidence Submitted"
    UPHELD = "upheld", "Upheld"
    CLEARED = "cleared", "Cleared"

    @classmethod
    def open_states(cls) -> list[str]:
        return [cls.PENDING_EVIDENCE, cls.EVIDENCE_SUBMITTED]


class SanctionAction(models.TextChoices):
    SOFT_WARNING = "soft_warning", "Soft Warning"
    CONTENT_REMOVAL = "content_removal", "Content Removal"
    COMMENT_FREEZE = "comment_freeze", "Comment Freeze"
    PERMANENT_BAN = "permanent_ban", "Permanent Ban"


class AccountStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    HARD_RESTRICTED = "hard_restricted", "Hard Restricted"
    BANNED = "banned", "Banned"


class FeatureLock(models.TextChoices):
    SEND_MESSAGES = "SEND_MESSAGES", "Send Messages"
    SEND_COMMENTS = "SEND_COMMENTS", "Send Comments"


HARD_RESTRICTION_LOCKS = [FeatureLock.SEND_MESSAGES, FeatureLock.SEND_COMMENTS]

TEMP_BAN_FREEZE = timedelta(hours=24)
ESCALATION_SEVERITY = 85


@dataclass(frozen=True)
class SanctionSpec:
    level: int
    action: str
    freeze: timedelta | None = None
    permanent: bool = False


# Mitigation -> sanction issued to the comment author
SANCTIONS = {
    MitigationAction.SOFT_WARNING: SanctionSpec(1, SanctionAction.SOFT_WARNING),
    MitigationAction.HARD_WARNING: SanctionSpec(2, SanctionAction.CONTENT_REMOVAL),
    MitigationAction.TEMP_BAN: SanctionSpec(
        3, SanctionAction.COMMENT_FREEZE, freeze=TEMP_BAN_FREEZE
    ),
    MitigationAction.PERMANENT_BAN: SanctionSpec(
        5, SanctionAction.PERMANENT_BAN, permanent=True
    ),
}


def mitigations_for(severity: int) -> list[str]:
    """Mitigation actions for a 0-100 abuse severity."""
    if severity >= 90:
        return [MitigationAction.REMOVE_CONTENT, MitigationAction.PERMANENT_BAN]
    if severity >= 75:
        return [MitigationAction.REMOVE_CONTENT, MitigationAction.TEMP_BAN]
    if severity >= 60:
        return [MitigationAction.REMOVE_CONTENT, MitigationAction.HARD_WARNING]
    if severity >= 40:
        return [MitigationAction.STEALTH_HIDE, MitigationAction.SOFT_WARNING]
    return [MitigationAction.STEALTH_HIDE]


@dataclass
class CommentInspection:
    """
    Outcome of inspecting one comment.

    Attributes:
        comment: Stored comment with its final visibility
        case: Abuse case opened for it, if any
        category / severity: Strongest abuse match (None / 0 when clean)
        mitigations: Actions applied
        shielded: The target's shield was on when the comment arrived
    """

    comment: Comment
    case: AbuseCase | None = None
    category: str | None = None
    severity: int = 0
    mitigations: list[str] = field(default_factory=list)
    shielded: bool = False

    @property
    def visible_to_public(self) -> bool:
        return self.comment.visibility == CommentVisibility.VISIBLE


@dataclass
class Restrictions:
    """Current moderation restrictions on a user."""

    account_status: str
    feature_locks: list[str]
    active_freeze_until: datetime | None
    permanent_ban: bool
    active_sanctions: list[Sanction] = field(default_factory=list)

    @property
    def can_comment(self) -> bool:
        return not (
            self.permanent_ban
            or self.active_freeze_until is not None
            or FeatureLock.SEND_COMMENTS in self.feature_locks
        )

    @property
    def can_message(self) -> bool:
        return not (
            self.permanent_ban
            or self.active_freeze_until is not None
            or FeatureLock.SEND_MESSAGES in self.feature_locks
        )

    @property
    def can_post(self) -> bool:
        return not self.permanent_ban

    @property
    def restricted(self) -> bool:
        return not (self.can_comment and self.can_message and self.can_post)
