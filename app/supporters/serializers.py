from rest_framework import serializers

from supporters.models import SupporterStats


class SupporterStatsSerializer(serializers.ModelSerializer):
    supporter_name = serializers.CharField(source="supporter.display_name", read_only=True)

    class Meta:
        model = SupporterStats
        fields = [
            "supporter",
            "supporter_name",
            "lifetime_tokens",
            "settlements",
            "rank",
            "badge",
            "segment",
            "first_spend_at",
            "last_spend_at",
        ]
        read_only_fields = fields


class SupportedCreatorSerializer(serializers.ModelSerializer):
    creator_name = serializers.CharField(source="creator.display_name", read_only=True)

    class Meta:
        model = SupporterStats
        fields = ["creator", "creator_name", "lifetime_tokens", "rank", "badge", "segment"]
        read_only_fields = fields
