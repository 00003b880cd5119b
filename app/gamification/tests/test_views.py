"""
Tests for gamification API views.
"""

import uuid

from rest_framework import status

from accounts.tests.factories import CreatorFactory, UserFactory
from gamification.models import CreatorMissionProfile
from gamification.tests.factories import CreatorMissionProfileFactory, MissionFactory
from gamification.types import ActivityType, MissionStatus

MISSIONS_URL = "/api/v1/gamification/missions/"
ACTIVITY_URL = "/api/v1/gamification/activity/"


def claim_url(mission_id):
    return f"/api/v1/gamification/missions/{mission_id}/claim/"


class TestMissionListView:
    def test_first_visit_creates_profile(self, db, authenticated_client_factory):
        creator = CreatorFactory()

        response = authenticated_client_factory(creator).get(MISSIONS_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data["profile"]["level"] == "bronze"
        assert len(response.data["missions"]) == 2
        assert CreatorMissionProfile.objects.filter(creator=creator).exists()

    def test_non_creator_forbidden(self, db, authenticated_client_factory):
        response = authenticated_client_factory(UserFactory()).get(MISSIONS_URL)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_requires_authentication(self, db, api_client):
        response = api_client.get(MISSIONS_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestActivityReportView:
    def test_records_progress(self, db, authenticated_client_factory):
        profile = CreatorMissionProfileFactory()
        mission = MissionFactory(
            creator=profile.creator, activity_type=ActivityType.HOST_LIVE, target=10
        )

        response = authenticated_client_factory(profile.creator).post(
            ACTIVITY_URL,
            {"activity_type": "host_live", "value": 12, "viewer_count": 4},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["completed_mission_ids"] == [str(mission.pk)]

    def test_rejected_activity(self, db, authenticated_client_factory):
        creator = CreatorFactory()

        response = authenticated_client_factory(creator).post(
            ACTIVITY_URL,
            {"activity_type": "host_live", "value": 12, "viewer_count": 1},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "ACTIVITY_REJECTED"

    def test_unknown_payer(self, db, authenticated_client_factory):
        response = authenticated_client_factory(CreatorFactory()).post(
            ACTIVITY_URL,
            {"activity_type": "earn_tokens", "value": 10, "payer_id": str(uuid.uuid4())},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestClaimMissionView:
    def test_claim(self, db, authenticated_client_factory):
        profile = CreatorMissionProfileFactory()
        mission = MissionFactory(creator=profile.creator, status=MissionStatus.COMPLETED)

        response = authenticated_client_factory(profile.creator).post(claim_url(mission.pk))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["status"] == "claimed"
        assert CreatorMissionProfile.objects.get(pk=profile.pk).total_lp_earned == 75

    def test_claim_unknown_mission(self, db, authenticated_client_factory):
        response = authenticated_client_factory(CreatorFactory()).post(claim_url(uuid.uuid4()))

        assert response.status_code == status.HTTP_404_NOT_FOUND
