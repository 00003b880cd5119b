from freezegun import freeze_time

from accounts.tests.factories import CreatorFactory
from gamification.services import MissionService
from gamification.tasks import reset_daily_missions, reset_weekly_missions
from gamification.types import CreatorLevel


class TestResetTasks:
    def test_daily_reset_reports_counts(self, db):
        with freeze_time("2026-03-04 10:00:00"):
            MissionService.get_or_create_profile(CreatorFactory())

        with freeze_time("2026-03-05 00:05:00"):
            result = reset_daily_missions.delay().get()

        assert result == {"expired_count": 2, "assigned_count": 2}

    def test_weekly_reset_skips_bronze_creators(self, db):
        with freeze_time("2026-03-04 10:00:00"):
            MissionService.get_or_create_profile(CreatorFactory())
            MissionService.set_level(CreatorFactory(), CreatorLevel.PLATINUM)

        with freeze_time("2026-03-08 23:59:05"):
            result = reset_weekly_missions.delay().get()

        assert result == {"expired_count": 3, "assigned_count": 3}
