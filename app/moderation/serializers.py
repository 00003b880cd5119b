"""
Serializers for the moderation app.
"""

from rest_framework import serializers

from accounts.models import User
from moderation.models import AbuseCase, Comment, CreatorShield, DefamationReport, Sanction


class CommentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Comment
        fields = [
            "id",
            "author",
            "target",
            "content_id",
            "text",
            "visibility",
            "distribution_throttled",
            "created_at",
        ]
        read_only_fields = fields


class SanctionSerializer(serializers.ModelSerializer):
    appealable = serializers.BooleanField(read_only=True)

    class Meta:
        model = Sanction
        fields = [
            "id",
            "level",
            "action",
            "reason",
            "freeze_ends_at",
            "permanent_ban",
            "is_active",
            "appealable",
            "created_at",
        ]
        read_only_fields = fields


class AbuseCaseSerializer(serializers.ModelSerializer):
    comment = CommentSerializer(read_only=True)

    class Meta:
        model = AbuseCase
        fields = [
            "id",
            "comment",
            "perpetrator",
            "target",
            "category",
            "severity",
            "matched_signals",
            "mitigation_actions",
            "status",
            "escalated_at",
            "reviewed_by",
            "reviewed_at",
            "review_notes",
            "created_at",
        ]
        read_only_fields = fields


class CommentCreateSerializer(serializers.Serializer):
    target_id = serializers.UUIDField()
    content_id = serializers.CharField(max_length=128)
    text = serializers.CharField(max_length=2000)

    def validate_target_id(self, value):
        target = User.objects.filter(pk=value, is_active=True).first()
        if target is None:
            raise serializers.ValidationError("Unknown content owner.")
        return target


class CommentInspectionSerializer(serializers.Serializer):
    comment = CommentSerializer()
    visible_to_public = serializers.BooleanField()
    category = serializers.CharField(allow_null=True)
    severity = serializers.IntegerField()
    mitigations = serializers.ListField(child=serializers.CharField())
    shielded = serializers.BooleanField()
    case_id = serializers.UUIDField(source="case.id", allow_null=True, default=None)


class ResolveCaseSerializer(serializers.Serializer):
    upheld = serializers.BooleanField()
    notes = serializers.CharField(max_length=2000, required=False, allow_blank=True, default="")


class RestrictionsSerializer(serializers.Serializer):
    account_status = serializers.CharField()
    feature_locks = serializers.ListField(child=serializers.CharField())
    active_freeze_until = serializers.DateTimeField(allow_null=True)
    permanent_ban = serializers.BooleanField()
    can_comment = serializers.BooleanField()
    can_message = serializers.BooleanField()
    can_post = serializers.BooleanField()
    restricted = serializers.BooleanField()
    active_sanctions = SanctionSerializer(many=True)


class CreatorShieldSerializer(serializers.ModelSerializer):
    class Meta:
        model = CreatorShield
        fields = [
            "enabled",
            "block_fresh_accounts",
            "fresh_account_age_days",
            "remove_abusive_comments",
            "under_raid",
            "last_raid_detected_at",
            "updated_at",
        ]
        read_only_fields = ["under_raid", "last_raid_detected_at", "updated_at"]
        extra_kwargs = {"fresh_account_age_days": {"min_value": 1, "max_value": 365}}


class DefamationReportSerializer(serializers.ModelSerializer):
    class Meta:
        model = DefamationReport
        fields = [
            "id",
            "case",
            "accuser",
            "target",
            "content_snapshot",
            "claims",
            "status",
            "evidence",
            "evidence_submitted_at",
            "closed_at",
            "created_at",
        ]
        read_only_fields = fields


class DefamationEvidenceSerializer(serializers.Serializer):
    evidence = serializers.CharField(max_length=5000)
