"""
Abuse firewall service.

Usage:
    from moderation.services import ModerationService

    result = ModerationService.inspect_comment(author, creator, "post-42", text)
    if not result.success:
        # COMMENTING_FORBIDDEN or COMMENT_RATE_LIMITED
        ...
    inspection = result.data
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.db.models import Q
from django.utils import timezone

from core.services import BaseService, ServiceResult
from moderation.models import (
    AbuseCase,
    Comment,
    CreatorShield,
    DefamationReport,
    EnforcementState,
    Sanction,
)
from moderation.rules import defamation_claims, score_comment
from moderation.types import (
    ESCALATION_SEVERITY,
    HARD_RESTRICTION_LOCKS,
    SANCTIONS,
    AbuseCategory,
    AccountStatus,
    CaseStatus,
    CommentInspection,
    CommentVisibility,
    DefamationReportStatus,
    MitigationAction,
    Restrictions,
    mitigations_for,
)
from safety.services import SafetyService
from safety.types import SafetyDimension, SafetyEventType

if TYPE_CHECKING:
    from accounts.models import User

# Safety points per sanction level; refunded when the case is dismissed
SAFETY_POINTS_PER_LEVEL = 5


class ModerationService(BaseService):
    # ==========================================================================
    # Inspection
    # ==========================================================================

    @classmethod
    def inspect_comment(
        cls,
        author: User,
        target: User,
        content_id: str,
        text: str,
    ) -> ServiceResult[CommentInspection]:
        """
        Store a comment and mitigate it if it is abusive.

        Authors who are banned, frozen or comment-locked are rejected, as are
        authors over COMMENT_THROTTLE_LIMIT comments on the same content
        within COMMENT_THROTTLE_WINDOW_MINUTES.
        """
        restrictions = cls.check_restrictions(author)
        if not restrictions.can_comment:
            return ServiceResult.failure(
                "Commenting is restricted for this account",
                error_code="COMMENTING_FORBIDDEN",
            )

        window_start = timezone.now() - timedelta(
            minutes=settings.COMMENT_THROTTLE_WINDOW_MINUTES
        )
        recent = Comment.objects.filter(
            author=author, content_id=content_id, created_at__gte=window_start
        ).count()
        if recent >= settings.COMMENT_THROTTLE_LIMIT:
            cls.get_logger().info(
                "Comment throttled",
                extra={"author_id": str(author.pk), "content_id": content_id},
            )
            return ServiceResult.failure(
                "Too many comments on this content, slow down",
                error_code="COMMENT_RATE_LIMITED",
            )

        match = score_comment(text)
        shield = CreatorShield.objects.filter(creator=target, enabled=True).first()
        with cls.atomic():
            comment = Comment.objects.create(
                author=author, target=target, content_id=content_id, text=text
            )
            if match is None:
                if shield is not None and shield.blocks(author):
                    comment.visibility = CommentVisibility.STEALTH_HIDDEN
                    comment.save(update_fields=["visibility", "updated_at"])
                    return ServiceResult.success(
                        CommentInspection(
                            comment=comment,
                            mitigations=[MitigationAction.STEALTH_HIDE],
                            shielded=True,
                        )
                    )
                return ServiceResult.success(
                    CommentInspection(comment=comment, shielded=shield is not None)
                )

            category, severity, signals = match
            case = AbuseCase.objects.create(
                comment=comment,
                perpetrator=author,
                target=target,
                category=category,
                severity=severity,
                matched_signals=signals,
            )
            actions = mitigations_for(severity)
            if shield is not None and shield.remove_abusive_comments:
                actions = [
                    MitigationAction.REMOVE_CONTENT if a == MitigationAction.STEALTH_HIDE else a
                    for a in actions
                ]
            if category == AbuseCategory.DEFAMATION:
                actions.append(MitigationAction.REQUEST_EVIDENCE)
            if shield is None and cls._raid_detected(target):
                actions.append(MitigationAction.ENABLE_SHIELD_MODE)
            for action in actions:
                cls._apply_mitigation(case, action)
            case.mitigation_actions = list(actions)

            if severity >= ESCALATION_SEVERITY or category == AbuseCategory.ENCOURAGING_HARM:
                case.escalate()
            case.save()

        cls.get_logger().warning(
            "Abusive comment mitigated",
            extra={
                "case_id": str(case.pk),
                "author_id": str(author.pk),
                "category": category,
                "severity": severity,
                "actions": list(actions),
                "escalated": case.escalated_at is not None,
            },
        )
        return ServiceResult.success(
            CommentInspection(
                comment=comment,
                case=case,
                category=category,
                severity=severity,
                mitigations=list(actions),
                shielded=shield is not None,
            )
        )

    @classmethod
    def _apply_mitigation(cls, case: AbuseCase, action: str) -> None:
        comment = case.comment
        if action == MitigationAction.STEALTH_HIDE:
            comment.visibility = CommentVisibility.STEALTH_HIDDEN
            comment.save(update_fields=["visibility", "updated_at"])
            return
        if action == MitigationAction.REMOVE_CONTENT:
            comment.visibility = CommentVisibility.REMOVED
            comment.save(update_fields=["visibility", "updated_at"])
            return
        if action == MitigationAction.REQUEST_EVIDENCE:
            cls._request_defamation_evidence(case)
            return
        if action == MitigationAction.ENABLE_SHIELD_MODE:
            cls._enable_shield_for_raid(case.target)
            return

        rung = SANCTIONS[action]
        Sanction.objects.create(
            user=case.perpetrator,
            case=case,
            level=rung.level,
            action=rung.action,
            reason=f"{case.category} - Severity: {case.severity}",
            freeze_ends_at=timezone.now() + rung.freeze if rung.freeze else None,
            permanent_ban=rung.permanent,
        )
        cls._sync_enforcement(case.perpetrator)
        SafetyService.record_event(
            case.perpetrator,
            event_type=SafetyEventType.MODERATION_SANCTION,
            dimension=SafetyDimension.TONE_AND_BOUNDARIES,
            impact=-SAFETY_POINTS_PER_LEVEL * rung.level,
            source=f"abuse_case:{case.pk}",
            metadata={"category": case.category, "severity": case.severity},
        )

    # ==========================================================================
    # Creator Shield
    # ==========================================================================

    @staticmethod
    def _raid_detected(target: User) -> bool:
        """Enough distinct authors have abused target within the raid window."""
        window_start = timezone.now() - timedelta(
            minutes=settings.CREATOR_SHIELD_RAID_WINDOW_MINUTES
        )
        authors = (
            AbuseCase.objects.filter(target=target, created_at__gte=window_start)
            .order_by()
            .values("perpetrator")
            .distinct()
            .count()
        )
        return authors >= settings.CREATOR_SHIELD_RAID_AUTHORS

    @classmethod
    def _enable_shield_for_raid(cls, creator: User) -> CreatorShield:
        now = timezone.now()
        shield, _ = CreatorShield.objects.update_or_create(
            creator=creator,
            defaults={"enabled": True, "under_raid": True, "last_raid_detected_at": now},
        )
        cls.get_logger().warning(
            "Creator shield enabled by raid",
            extra={"creator_id": str(creator.pk)},
        )
        return shield

    @staticmethod
    def get_shield(creator: User) -> CreatorShield:
        """Shield settings; a creator who never set them gets a disabled shield."""
        shield, _ = CreatorShield.objects.get_or_create(
            creator=creator, defaults={"enabled": False}
        )
        return shield

    @classmethod
    def update_shield(cls, creator: User, **changes) -> ServiceResult[CreatorShield]:
        """
        Change a creator's shield settings.

        Turning the shield off also ends a detected raid.
        """
        if not creator.is_creator:
            return ServiceResult.failure(
                "Only creators have a shield", error_code="PERMISSION_DENIED"
            )

        shield = cls.get_shield(creator)
        for name, value in changes.items():
            setattr(shield, name, value)
        if not shield.enabled:
            shield.under_raid = False
        shield.save()

        cls.get_logger().info(
            "Creator shield updated",
            extra={"creator_id": str(creator.pk), "enabled": shield.enabled},
        )
        return ServiceResult.success(shield)

    # ==========================================================================
    # Defamation Evidence
    # ==========================================================================

    @classmethod
    def _request_defamation_evidence(cls, case: AbuseCase) -> DefamationReport:
        comment = case.comment
        comment.distribution_throttled = True
        comment.save(update_fields=["distribution_throttled", "updated_at"])
        report = DefamationReport.objects.create(
            case=case,
            accuser=case.perpetrator,
            target=case.target,
            content_snapshot=comment.text,
            claims=defamation_claims(comment.text),
        )
        cls.get_logger().info(
            "Defamation evidence requested",
            extra={"case_id": str(case.pk), "report_id": str(report.pk)},
        )
        return report

    @classmethod
    def submit_defamation_evidence(
        cls, report_id, author: User, evidence: str
    ) -> ServiceResult[DefamationReport]:
        """Let the comment's author back up their claim before review."""
        with cls.atomic():
            report = DefamationReport.objects.select_for_update().filter(pk=report_id).first()
            if report is None:
                return ServiceResult.failure(
                    "Defamation report not found", error_code="REPORT_NOT_FOUND"
                )
            if report.accuser_id != author.pk:
                return ServiceResult.failure(
                    "Only the comment's author can submit evidence",
                    error_code="PERMISSION_DENIED",
                )
            if report.status != DefamationReportStatus.PENDING_EVIDENCE:
                return ServiceResult.failure(
                    f"Defamation report {report.pk} is {report.status}",
                    error_code="INVALID_STATE",
                )
            report.submit_evidence(evidence)
            report.save()

        return ServiceResult.success(report)

    @staticmethod
    def _close_defamation_report(case: AbuseCase, upheld: bool) -> None:
        report = (
            DefamationReport.objects.select_for_update()
            .filter(case=case, status__in=DefamationReportStatus.open_states())
            .first()
        )
        if report is None:
            return
        if upheld:
            report.uphold()
        else:
            report.clear()
        report.save()

    # ==========================================================================
    # Review
    # ==========================================================================

    @classmethod
    def resolve_case(
        cls,
        case_id,
        moderator: User,
        upheld: bool,
        notes: str = "",
    ) -> ServiceResult[AbuseCase]:
        """
        Close a case after moderator review.

        Dismissing a case restores the comment, lifts its sanctions,
        recomputes the author's enforcement state and gives back the safety
        points the sanctions cost. A pending defamation report is upheld or
        cleared with the case.
        """
        if not moderator.is_staff:
            return ServiceResult.failure(
                "Only staff can review abuse cases", error_code="PERMISSION_DENIED"
            )

        with cls.atomic():
            case = (
                AbuseCase.objects.select_for_update()
                .select_related("comment", "perpetrator")
                .filter(pk=case_id)
                .first()
            )
            if case is None:
                return ServiceResult.failure(
                    "Abuse case not found", error_code="CASE_NOT_FOUND"
                )
            if case.status not in CaseStatus.review_states():
                return ServiceResult.failure(
                    f"Abuse case {case.pk} is already {case.status}",
                    error_code="INVALID_STATE",
                )

            if upheld:
                case.confirm(moderator, notes)
                case.save()
            else:
                case.dismiss(moderator, notes)
                case.save()
                cls._revert_mitigations(case)
            cls._close_defamation_report(case, upheld)

        cls.get_logger().info(
            "Abuse case resolved",
            extra={
                "case_id": str(case.pk),
                "upheld": upheld,
                "moderator_id": str(moderator.pk),
            },
        )
        return ServiceResult.success(case)

    @classmethod
    def _revert_mitigations(cls, case: AbuseCase) -> None:
        comment = case.comment
        comment.visibility = CommentVisibility.VISIBLE
        comment.distribution_throttled = False
        comment.save(update_fields=["visibility", "distribution_throttled", "updated_at"])

        lifted_levels = 0
        for sanction in case.sanctions.filter(is_active=True):
            sanction.lift()
            sanction.save(update_fields=["is_active", "lifted_at", "updated_at"])
            lifted_levels += sanction.level
        cls._sync_enforcement(case.perpetrator)

        if lifted_levels:
            SafetyService.record_event(
                case.perpetrator,
                event_type=SafetyEventType.MODERATION_SANCTION,
                dimension=SafetyDimension.TONE_AND_BOUNDARIES,
                impact=SAFETY_POINTS_PER_LEVEL * lifted_levels,
                source=f"abuse_case:{case.pk}",
                metadata={"reverted": True},
            )

    @staticmethod
    def review_queue():
        return (
            AbuseCase.objects.filter(status__in=CaseStatus.review_states())
            .select_related("comment", "perpetrator", "target")
            .order_by("-severity", "created_at")
        )

    # ==========================================================================
    # Restrictions
    # ==========================================================================

    @staticmethod
    def _active_sanctions(user: User):
        now = timezone.now()
        return Sanction.objects.filter(user=user, is_active=True).filter(
            Q(freeze_ends_at__isnull=True) | Q(freeze_ends_at__gt=now)
        )

    @classmethod
    def _sync_enforcement(cls, user: User) -> EnforcementState:
        """Recompute the account status and feature locks from active sanctions."""
        sanctions = list(cls._active_sanctions(user))
        state, _ = EnforcementState.objects.get_or_create(user=user)

        if any(sanction.permanent_ban for sanction in sanctions):
            state.account_status = AccountStatus.BANNED
            state.feature_locks = []
            state.reason_codes = ["HARASSMENT_BAN"]
        elif any(sanction.level >= 3 for sanction in sanctions):
            state.account_status = AccountStatus.HARD_RESTRICTED
            state.feature_locks = [str(lock) for lock in HARD_RESTRICTION_LOCKS]
            state.reason_codes = ["HARASSMENT_RESTRICTION"]
        else:
            state.account_status = AccountStatus.ACTIVE
            state.feature_locks = []
            state.reason_codes = []
        state.save()
        return state

    @classmethod
    def check_restrictions(cls, user: User) -> Restrictions:
        sanctions = list(cls._active_sanctions(user))
        state = EnforcementState.objects.filter(user=user).first()
        freezes = [s.freeze_ends_at for s in sanctions if s.freeze_ends_at is not None]
        return Restrictions(
            account_status=state.account_status if state else AccountStatus.ACTIVE,
            feature_locks=list(state.feature_locks) if state else [],
            active_freeze_until=max(freezes) if freezes else None,
            permanent_ban=any(s.permanent_ban for s in sanctions),
            active_sanctions=sanctions,
        )

    @classmethod
    def expire_sanctions(cls) -> int:
        """Lift comment freezes that have run out. Returns the count."""
        now = timezone.now()
        expired = Sanction.objects.filter(
            is_active=True, freeze_ends_at__isnull=False, freeze_ends_at__lte=now
        )
        user_ids = set(expired.values_list("user_id", flat=True))
        count = expired.update(is_active=False, lifted_at=now)

        for state in EnforcementState.objects.filter(user_id__in=user_ids).select_related("user"):
            cls._sync_enforcement(state.user)

        if count:
            cls.get_logger().info(
                "Expired comment freezes",
                extra={"count": count, "users": len(user_ids)},
            )
        return count