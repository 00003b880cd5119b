"""
Tests for SafetyService scoring, interventions and recovery.
"""

from datetime import timedelta

import pytest
from django.utils import timezone
from freezegun import freeze_time

from accounts.tests.factories import UserFactory
from safety.models import SafetyEvent, SafetyIntervention, SafetyScore
from safety.services import SafetyService
from safety.tests.factories import SafetyInterventionFactory, SafetyScoreFactory
from safety.types import InterventionAction, RiskLevel, SafetyDimension


def _penalise(user, impact=-20, dimension=SafetyDimension.PAYMENT_ETHICS):
    return SafetyService.record_event(
        user, event_type="test", dimension=dimension, impact=impact
    )


@pytest.fixture
def user(db):
    return UserFactory()


class TestRecordEvent:
    def test_new_score_starts_at_100(self, user):
        score = SafetyService.get_or_create_score(user)

        assert score.overall_score == 100
        assert score.risk_level == RiskLevel.SAFE
        assert score.dimension_scores() == {
            "respecting_consent": 100,
            "tone_and_boundaries": 100,
            "payment_ethics": 100,
            "platform_safety": 100,
        }

    def test_negative_impact_lowers_dimension_and_overall(self, user):
        adjustment = _penalise(user, -20)

        score = SafetyScore.objects.get(user=user)
        assert score.payment_ethics == 80
        assert score.overall_score == 95
        assert score.total_violations == 1
        assert adjustment.previous_score == 100
        assert adjustment.new_score == 95
        assert adjustment.intervention is None

    def test_writes_event(self, user):
        _penalise(user, -20)

        event = SafetyEvent.objects.get(user=user)
        assert event.dimension == SafetyDimension.PAYMENT_ETHICS
        assert event.impact == -20
        assert event.score_after == 95

    def test_dimension_clamped_at_zero(self, user):
        _penalise(user, -100)
        _penalise(user, -50)

        assert SafetyScore.objects.get(user=user).payment_ethics == 0

    def test_dimension_clamped_at_100(self, user):
        SafetyService.record_event(
            user, event_type="test", dimension=SafetyDimension.PAYMENT_ETHICS, impact=30
        )

        score = SafetyScore.objects.get(user=user)
        assert score.payment_ethics == 100
        assert score.total_violations == 0
        assert score.consecutive_good_days == 1

    def test_overall_rounds_half_up(self, user):
        _penalise(user, -2)

        # 398 / 4 = 99.5
        assert SafetyScore.objects.get(user=user).overall_score == 100

    def test_unknown_dimension_rejected(self, user):
        with pytest.raises(ValueError):
            _penalise(user, -10, dimension="charisma")

    @pytest.mark.parametrize(
        ("score", "level"),
        [
            (100, RiskLevel.SAFE),
            (80, RiskLevel.SAFE),
            (79, RiskLevel.LOW_RISK),
            (60, RiskLevel.LOW_RISK),
            (59, RiskLevel.MEDIUM_RISK),
            (40, RiskLevel.MEDIUM_RISK),
            (20, RiskLevel.HIGH_RISK),
            (19, RiskLevel.CRITICAL),
            (0, RiskLevel.CRITICAL),
        ],
    )
    def test_risk_level_bands(self, score, level):
        assert RiskLevel.for_score(score) == level


class TestInterventions:
    def test_two_violations_trigger_soft_warning(self, user):
        _penalise(user, -20)
        adjustment = _penalise(user, -20)

        intervention = adjustment.intervention
        assert intervention.level == 1
        assert intervention.action == InterventionAction.SOFT_WARNING
        assert intervention.expires_at is not None

    def test_third_violation_escalates_to_slowdown(self, user):
        for _ in range(3):
            adjustment = _penalise(user, -20)

        assert adjustment.intervention.level == 2
        assert adjustment.intervention.action == InterventionAction.MESSAGE_SLOWDOWN
        assert SafetyIntervention.objects.filter(user=user).count() == 2

    def test_no_duplicate_while_same_level_active(self, user):
        for _ in range(3):
            _penalise(user, -20)

        adjustment = SafetyService.record_event(
            user, event_type="test", dimension=SafetyDimension.PAYMENT_ETHICS, impact=5
        )

        assert adjustment.intervention is None
        assert SafetyIntervention.objects.filter(user=user).count() == 2

    def test_expired_intervention_does_not_suppress_new_one(self, user):
        SafetyInterventionFactory(
            user=user,
            level=3,
            expires_at=timezone.now() - timedelta(minutes=1),
        )
        _penalise(user, -20)

        adjustment = _penalise(user, -20)

        assert adjustment.intervention is not None
        assert adjustment.intervention.level == 1

    def test_collapsed_score_triggers_permanent_ban(self, user):
        for dimension in SafetyDimension.values:
            adjustment = _penalise(user, -100, dimension=dimension)

        assert adjustment.new_score == 0
        assert adjustment.intervention.level == 5
        assert adjustment.intervention.action == InterventionAction.ACCOUNT_BAN
        assert adjustment.intervention.is_permanent

    def test_expire_interventions(self, user):
        expired = SafetyInterventionFactory(
            user=user, expires_at=timezone.now() - timedelta(minutes=5)
        )
        current = SafetyInterventionFactory(user=user)
        permanent = SafetyInterventionFactory(
            user=user, level=5, action=InterventionAction.ACCOUNT_BAN, expires_at=None
        )

        count = SafetyService.expire_interventions()

        assert count == 1
        expired.refresh_from_db()
        current.refresh_from_db()
        permanent.refresh_from_db()
        assert expired.is_active is False
        assert expired.lifted_at is not None
        assert current.is_active is True
        assert permanent.is_active is True


class TestDailyDecay:
    def test_recovers_each_dimension(self, db):
        with freeze_time("2026-03-01 12:00:00"):
            score = SafetyScoreFactory(payment_ethics=50, platform_safety=99)

        with freeze_time("2026-03-02 12:30:00"):
            updated = SafetyService.apply_daily_decay()

        score.refresh_from_db()
        assert updated == 1
        assert score.payment_ethics == 52
        assert score.platform_safety == 100
        assert score.respecting_consent == 100
        assert score.overall_score == 88
        assert score.consecutive_good_days == 1

    def test_skips_scores_decayed_within_a_day(self, db):
        with freeze_time("2026-03-01 12:00:00"):
            score = SafetyScoreFactory(payment_ethics=50)

        with freeze_time("2026-03-02 06:00:00"):
            updated = SafetyService.apply_daily_decay()

        score.refresh_from_db()
        assert updated == 0
        assert score.payment_ethics == 50
