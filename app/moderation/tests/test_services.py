"""
Tests for ModerationService: inspection, mitigation, review and restrictions.
"""

import uuid
from datetime import timedelta

import pytest
from django.test import override_settings
from django.utils import timezone
from freezegun import freeze_time

from accounts.tests.factories import CreatorFactory, StaffFactory, UserFactory
from moderation.models import (
    AbuseCase,
    Comment,
    CreatorShield,
    DefamationReport,
    EnforcementState,
    Sanction,
)
from moderation.services import ModerationService
from moderation.tests.factories import (
    CommentFactory,
    CreatorShieldFactory,
    FreezeSanctionFactory,
)
from moderation.types import (
    AbuseCategory,
    AccountStatus,
    CaseStatus,
    CommentVisibility,
    DefamationReportStatus,
    FeatureLock,
    MitigationAction,
    SanctionAction,
)
from safety.models import SafetyScore


@pytest.fixture
def author(db):
    return UserFactory()


@pytest.fixture
def creator(db):
    return CreatorFactory()


@pytest.fixture
def moderator(db):
    return StaffFactory()


def _inspect(author, creator, text, content_id="post-1"):
    return ModerationService.inspect_comment(author, creator, content_id, text)


class TestInspectComment:
    def test_clean_comment_stays_visible(self, author, creator):
        result = _inspect(author, creator, "Loved this one")

        assert result.success
        assert result.data.case is None
        assert result.data.visible_to_public
        assert not AbuseCase.objects.exists()

    def test_low_severity_is_stealth_hidden(self, author, creator):
        result = _inspect(author, creator, "what a liar")

        inspection = result.data
        assert inspection.comment.visibility == CommentVisibility.STEALTH_HIDDEN
        assert inspection.mitigations == [
            MitigationAction.STEALTH_HIDE,
            MitigationAction.REQUEST_EVIDENCE,
        ]
        assert inspection.case.status == CaseStatus.OPEN
        assert not Sanction.objects.exists()

    def test_soft_warning_band(self, author, creator):
        result = _inspect(author, creator, "shut up")

        sanction = Sanction.objects.get(user=author)
        assert result.data.severity == 45
        assert sanction.level == 1
        assert sanction.action == SanctionAction.SOFT_WARNING
        assert ModerationService.check_restrictions(author).can_comment

    def test_hard_warning_removes_comment(self, author, creator):
        result = _inspect(author, creator, "shut up, loser")

        assert result.data.comment.visibility == CommentVisibility.REMOVED
        assert Sanction.objects.get(user=author).level == 2

    def test_temp_ban_freezes_and_locks(self, author, creator):
        result = _inspect(author, creator, "I'll find you")

        sanction = Sanction.objects.get(user=author)
        assert result.data.severity == 80
        assert sanction.action == SanctionAction.COMMENT_FREEZE
        assert sanction.freeze_ends_at is not None

        state = EnforcementState.objects.get(user=author)
        assert state.account_status == AccountStatus.HARD_RESTRICTED
        assert state.feature_locks == [FeatureLock.SEND_MESSAGES, FeatureLock.SEND_COMMENTS]

        restrictions = ModerationService.check_restrictions(author)
        assert restrictions.can_comment is False
        assert restrictions.can_message is False
        assert restrictions.can_post is True

    def test_permanent_ban_and_escalation(self, author, creator):
        result = _inspect(author, creator, "kill yourself")

        case = AbuseCase.objects.get(pk=result.data.case.pk)
        assert case.category == AbuseCategory.ENCOURAGING_HARM
        assert case.status == CaseStatus.ESCALATED
        assert EnforcementState.objects.get(user=author).account_status == AccountStatus.BANNED
        assert ModerationService.check_restrictions(author).permanent_ban

    def test_high_severity_escalates(self, author, creator):
        result = _inspect(author, creator, "I'll find you and I will hurt you")

        assert result.data.severity == 95
        assert AbuseCase.objects.get(pk=result.data.case.pk).status == CaseStatus.ESCALATED

    def test_sanction_lowers_safety_score(self, author, creator):
        _inspect(author, creator, "I'll find you")

        assert SafetyScore.objects.get(user=author).tone_and_boundaries == 85

    def test_restricted_author_rejected(self, author, creator):
        _inspect(author, creator, "I'll find you")

        result = _inspect(author, creator, "sorry", content_id="post-2")

        assert not result.success
        assert result.error_code == "COMMENTING_FORBIDDEN"

    @override_settings(COMMENT_THROTTLE_LIMIT=3, COMMENT_THROTTLE_WINDOW_MINUTES=10)
    def test_throttles_per_content(self, author, creator):
        for _ in range(3):
            assert _inspect(author, creator, "first!").success

        throttled = _inspect(author, creator, "first!")
        other_content = _inspect(author, creator, "first!", content_id="post-2")

        assert throttled.error_code == "COMMENT_RATE_LIMITED"
        assert other_content.success
        assert Comment.objects.filter(content_id="post-1").count() == 3

    @override_settings(COMMENT_THROTTLE_LIMIT=2, COMMENT_THROTTLE_WINDOW_MINUTES=10)
    def test_throttle_window_slides(self, author, creator):
        with freeze_time("2026-05-01 10:00:00"):
            CommentFactory.create_batch(2, author=author, target=creator, content_id="post-1")

        with freeze_time("2026-05-01 10:11:00"):
            result = _inspect(author, creator, "back again")

        assert result.success


class TestResolveCase:
    def test_upheld_case_confirmed(self, author, creator, moderator):
        case = _inspect(author, creator, "shut up, loser").data.case

        result = ModerationService.resolve_case(case.pk, moderator, upheld=True, notes="ok")

        assert result.success
        case = AbuseCase.objects.get(pk=case.pk)
        assert case.status == CaseStatus.CONFIRMED
        assert case.reviewed_by == moderator
        assert Sanction.objects.get(case=case).is_active

    def test_dismissal_reverts_everything(self, author, creator, moderator):
        case = _inspect(author, creator, "I'll find you").data.case

        result = ModerationService.resolve_case(case.pk, moderator, upheld=False)

        assert result.success
        assert AbuseCase.objects.get(pk=case.pk).status == CaseStatus.DISMISSED
        assert Comment.objects.get(pk=case.comment_id).visibility == CommentVisibility.VISIBLE
        assert not Sanction.objects.get(case_id=case.pk).is_active
        assert EnforcementState.objects.get(user=author).account_status == AccountStatus.ACTIVE
        assert ModerationService.check_restrictions(author).can_comment
        assert SafetyScore.objects.get(user=author).tone_and_boundaries == 100

    def test_cannot_resolve_twice(self, author, creator, moderator):
        case = _inspect(author, creator, "shut up").data.case
        ModerationService.resolve_case(case.pk, moderator, upheld=True)

        result = ModerationService.resolve_case(case.pk, moderator, upheld=False)

        assert result.error_code == "INVALID_STATE"

    def test_requires_staff(self, author, creator):
        case = _inspect(author, creator, "shut up").data.case

        result = ModerationService.resolve_case(case.pk, UserFactory(), upheld=False)

        assert result.error_code == "PERMISSION_DENIED"

    def test_unknown_case(self, moderator):
        result = ModerationService.resolve_case(uuid.uuid4(), moderator, upheld=True)

        assert result.error_code == "CASE_NOT_FOUND"


class TestExpireSanctions:
    def test_lifts_expired_freeze_and_unlocks(self, author, creator):
        _inspect(author, creator, "I'll find you")
        Sanction.objects.filter(user=author).update(
            freeze_ends_at=timezone.now() - timedelta(minutes=1)
        )

        count = ModerationService.expire_sanctions()

        assert count == 1
        state = EnforcementState.objects.get(user=author)
        assert state.account_status == AccountStatus.ACTIVE
        assert state.feature_locks == []
        assert ModerationService.check_restrictions(author).can_comment

    def test_keeps_running_freeze(self, db):
        sanction = FreezeSanctionFactory()

        assert ModerationService.expire_sanctions() == 0
        sanction.refresh_from_db()
        assert sanction.is_active


class TestDefamationEvidence:
    def test_defamation_opens_report_and_throttles(self, author, creator):
        result = _inspect(author, creator, "honestly, a scammer and a liar")

        report = DefamationReport.objects.get(case=result.data.case)
        assert report.status == DefamationReportStatus.PENDING_EVIDENCE
        assert report.claims == ["scammer", "liar"]
        assert report.accuser == author
        assert report.target == creator
        assert Comment.objects.get(pk=result.data.comment.pk).distribution_throttled is True

    def test_other_categories_request_no_evidence(self, author, creator):
        _inspect(author, creator, "shut up")

        assert not DefamationReport.objects.exists()

    def test_author_submits_evidence_once(self, author, creator):
        case = _inspect(author, creator, "what a liar").data.case
        report = DefamationReport.objects.get(case=case)

        result = ModerationService.submit_defamation_evidence(
            report.pk, author, "Screenshot of the cancelled booking"
        )
        again = ModerationService.submit_defamation_evidence(report.pk, author, "more")

        assert result.success
        assert result.data.status == DefamationReportStatus.EVIDENCE_SUBMITTED
        assert result.data.evidence_submitted_at is not None
        assert again.error_code == "INVALID_STATE"

    def test_only_author_submits_evidence(self, author, creator):
        case = _inspect(author, creator, "what a liar").data.case
        report = DefamationReport.objects.get(case=case)

        result = ModerationService.submit_defamation_evidence(report.pk, creator, "no")

        assert result.error_code == "PERMISSION_DENIED"

    def test_dismissal_clears_report_and_restores_distribution(self, author, creator, moderator):
        inspection = _inspect(author, creator, "what a liar").data

        ModerationService.resolve_case(inspection.case.pk, moderator, upheld=False)

        report = DefamationReport.objects.get(case=inspection.case)
        assert report.status == DefamationReportStatus.CLEARED
        assert report.closed_at is not None
        comment = Comment.objects.get(pk=inspection.comment.pk)
        assert comment.distribution_throttled is False
        assert comment.visibility == CommentVisibility.VISIBLE

    def test_upheld_case_upholds_report(self, author, creator, moderator):
        inspection = _inspect(author, creator, "what a liar").data

        ModerationService.resolve_case(inspection.case.pk, moderator, upheld=True)

        report = DefamationReport.objects.get(case=inspection.case)
        assert report.status == DefamationReportStatus.UPHELD
        assert Comment.objects.get(pk=inspection.comment.pk).distribution_throttled is True


class TestCreatorShield:
    @override_settings(CREATOR_SHIELD_RAID_AUTHORS=3, CREATOR_SHIELD_RAID_WINDOW_MINUTES=60)
    def test_raid_enables_shield(self, creator):
        first = _inspect(UserFactory(), creator, "shut up").data
        second = _inspect(UserFactory(), creator, "shut up").data
        third = _inspect(UserFactory(), creator, "shut up").data

        assert MitigationAction.ENABLE_SHIELD_MODE not in first.mitigations
        assert MitigationAction.ENABLE_SHIELD_MODE not in second.mitigations
        assert MitigationAction.ENABLE_SHIELD_MODE in third.mitigations
        shield = CreatorShield.objects.get(creator=creator)
        assert shield.enabled is True
        assert shield.under_raid is True
        assert shield.last_raid_detected_at is not None

    @override_settings(CREATOR_SHIELD_RAID_AUTHORS=3, CREATOR_SHIELD_RAID_WINDOW_MINUTES=60)
    def test_one_author_is_not_a_raid(self, author, creator):
        for content_id in ("a", "b", "c"):
            _inspect(author, creator, "shut up", content_id=content_id)

        assert not CreatorShield.objects.filter(creator=creator).exists()

    @override_settings(CREATOR_SHIELD_RAID_AUTHORS=2, CREATOR_SHIELD_RAID_WINDOW_MINUTES=60)
    def test_raid_window_slides(self, creator):
        with freeze_time(timezone.now() - timedelta(hours=2)):
            _inspect(UserFactory(), creator, "shut up")

        _inspect(UserFactory(), creator, "shut up")

        assert not CreatorShield.objects.filter(creator=creator).exists()

    def test_hides_comments_from_fresh_accounts(self, creator):
        CreatorShieldFactory(creator=creator)
        newcomer = UserFactory(date_joined=timezone.now() - timedelta(days=2))

        inspection = _inspect(newcomer, creator, "first time here, hi!").data

        assert inspection.shielded is True
        assert inspection.case is None
        assert inspection.mitigations == [MitigationAction.STEALTH_HIDE]
        assert inspection.comment.visibility == CommentVisibility.STEALTH_HIDDEN

    def test_established_accounts_pass(self, author, creator):
        CreatorShieldFactory(creator=creator)

        inspection = _inspect(author, creator, "great stream").data

        assert inspection.shielded is True
        assert inspection.visible_to_public

    def test_removes_abuse_instead_of_hiding(self, author, creator):
        CreatorShieldFactory(creator=creator)

        inspection = _inspect(author, creator, "what a liar").data

        assert inspection.mitigations == [
            MitigationAction.REMOVE_CONTENT,
            MitigationAction.REQUEST_EVIDENCE,
        ]
        assert inspection.comment.visibility == CommentVisibility.REMOVED

    def test_disabled_shield_does_nothing(self, creator):
        CreatorShieldFactory(creator=creator, enabled=False)
        newcomer = UserFactory(date_joined=timezone.now())

        inspection = _inspect(newcomer, creator, "hello").data

        assert inspection.shielded is False
        assert inspection.visible_to_public

    def test_turning_shield_off_ends_raid(self, creator):
        CreatorShieldFactory(creator=creator, under_raid=True)

        result = ModerationService.update_shield(creator, enabled=False)

        assert result.success
        shield = CreatorShield.objects.get(creator=creator)
        assert shield.enabled is False
        assert shield.under_raid is False

    def test_update_shield_requires_creator(self, author):
        result = ModerationService.update_shield(author, enabled=True)

        assert result.error_code == "PERMISSION_DENIED"
