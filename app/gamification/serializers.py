from rest_framework import serializers

from accounts.models import User
from gamification.models import CreatorMissionProfile, Mission
from gamification.types import ActivityType


class MissionSerializer(serializers.ModelSerializer):
    percentage = serializers.IntegerField(read_only=True)

    class Meta:
        model = Mission
        fields = [
            "id",
            "mission_type",
            "title",
            "description",
            "activity_type",
            "unit",
            "target",
            "progress",
            "percentage",
            "reward_lp",
            "status",
            "expires_at",
            "completed_at",
            "claimed_at",
        ]
        read_only_fields = fields


class MissionProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = CreatorMissionProfile
        fields = [
            "level",
            "daily_streak",
            "best_daily_streak",
            "weekly_streak",
            "best_weekly_streak",
            "completed_daily",
            "completed_weekly",
            "total_lp_earned",
        ]
        read_only_fields = fields


class ActivityReportSerializer(serializers.Serializer):
    activity_type = serializers.ChoiceField(choices=ActivityType.choices)
    value = serializers.IntegerField(min_value=1)
    viewer_count = serializers.IntegerField(min_value=0, required=False)
    checkin_count = serializers.IntegerField(min_value=0, required=False)
    payer_id = serializers.UUIDField(required=False)

    def validate_payer_id(self, value):
        if not User.objects.filter(pk=value).exists():
            raise serializers.ValidationError("Unknown payer.")
        return value


class ProgressResultSerializer(serializers.Serializer):
    completed_mission_ids = serializers.ListField(child=serializers.CharField())
    updated_mission_ids = serializers.ListField(child=serializers.CharField())
    potential_lp = serializers.IntegerField()
