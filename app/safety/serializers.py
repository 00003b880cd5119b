"""
Serializers for the safety app.
"""

from rest_framework import serializers

from safety.models import SafetyEvent, SafetyIntervention, SafetyScore
from safety.types import SafetyDimension


class SafetyScoreSerializer(serializers.ModelSerializer):
    class Meta:
        model = SafetyScore
        fields = [
            "respecting_consent",
            "tone_and_boundaries",
            "payment_ethics",
            "platform_safety",
            "overall_score",
            "risk_level",
            "total_violations",
            "consecutive_good_days",
            "last_decay_at",
        ]
        read_only_fields = fields


class SafetyEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = SafetyEvent
        fields = [
            "id",
            "event_type",
            "dimension",
            "impact",
            "confidence",
            "source",
            "score_after",
            "created_at",
        ]
        read_only_fields = fields


class SafetyInterventionSerializer(serializers.ModelSerializer):
    class Meta:
        model = SafetyIntervention
        fields = ["id", "level", "action", "reason", "expires_at", "is_active", "created_at"]
        read_only_fields = fields


class ScreenMessageSerializer(serializers.Serializer):
    text = serializers.CharField(max_length=4000)
    conversation_id = serializers.CharField(max_length=128, required=False, default="")


class MessageScreeningSerializer(serializers.Serializer):
    allowed = serializers.BooleanField()
    confidence = serializers.FloatField()
    patterns = serializers.ListField(child=serializers.CharField())
    severity = serializers.CharField(allow_null=True)


class ManualAdjustmentSerializer(serializers.Serializer):
    """Staff correction of a user's score."""

    user_id = serializers.UUIDField()
    dimension = serializers.ChoiceField(choices=SafetyDimension.choices)
    impact = serializers.IntegerField(min_value=-100, max_value=100)
    reason = serializers.CharField(max_length=255)

    def validate_impact(self, value):
        if value == 0:
            raise serializers.ValidationError("Impact must be non-zero.")
        return value
