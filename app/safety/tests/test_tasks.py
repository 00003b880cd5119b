"""
Tests for safety Celery tasks.
"""

from datetime import timedelta

from django.utils import timezone

from safety.tasks import apply_daily_decay, expire_interventions
from safety.tests.factories import SafetyInterventionFactory, SafetyScoreFactory


class TestApplyDailyDecayTask:
    def test_reports_updated_count(self, db):
        SafetyScoreFactory(
            payment_ethics=70, last_decay_at=timezone.now() - timedelta(days=2)
        )

        result = apply_daily_decay.delay().get()

        assert result == {"updated_count": 1}


class TestExpireInterventionsTask:
    def test_reports_expired_count(self, db):
        SafetyInterventionFactory(expires_at=timezone.now() - timedelta(hours=1))
        SafetyInterventionFactory()

        result = expire_interventions.delay().get()

        assert result == {"expired_count": 1}
