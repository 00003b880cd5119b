"""
Tests for moderation Celery tasks.
"""

from datetime import timedelta

from django.utils import timezone

from moderation.tasks import expire_sanctions
from moderation.tests.factories import FreezeSanctionFactory


class TestExpireSanctionsTask:
    def test_reports_expired_count(self, db):
        FreezeSanctionFactory(freeze_ends_at=timezone.now() - timedelta(minutes=5))
        FreezeSanctionFactory()

        result = expire_sanctions.delay().get()

        assert result == {"expired_count": 1}
