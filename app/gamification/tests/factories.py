"""
Factory Boy factories for the gamification app.

CreatorMissionProfileFactory writes the profile only; use
MissionService.get_or_create_profile when the test needs assigned missions.
"""

from datetime import timedelta

import factory
from django.utils import timezone

from accounts.tests.factories import CreatorFactory
from gamification.models import CreatorMissionProfile, Mission
from gamification.types import ActivityType, CreatorLevel, MissionType


class CreatorMissionProfileFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = CreatorMissionProfile
        skip_postgeneration_save = True

    creator = factory.SubFactory(CreatorFactory)
    level = CreatorLevel.BRONZE


class MissionFactory(factory.django.DjangoModelFactory):
    """Active daily mission: post one story for 75 LP."""

    class Meta:
        model = Mission
        skip_postgeneration_save = True

    creator = factory.SubFactory(CreatorFactory)
    template_key = "daily_story_1"
    mission_type = MissionType.DAILY
    title = "Post 1 new story"
    activity_type = ActivityType.POST_STORY
    unit = "stories"
    target = 1
    reward_lp = 75
    expires_at = factory.LazyFunction(lambda: timezone.now() + timedelta(hours=6))
