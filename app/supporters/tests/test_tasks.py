from datetime import timedelta

from django.utils import timezone

from supporters.tasks import refresh_segments
from supporters.tests.factories import SupporterStatsFactory


class TestRefreshSegmentsTask:
    def test_reports_changed_count(self, db):
        SupporterStatsFactory(last_spend_at=timezone.now() - timedelta(days=8))

        assert refresh_segments.delay().get() == {"changed_count": 1}
