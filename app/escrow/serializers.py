"""
DRF serializers for the escrow app.

Request serializers validate payloads at the boundary and are turned into
the typed params in escrow.types; response serializers are read-only.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework import serializers

from escrow.ledger import LedgerEntry
from escrow.models import EscrowRecord, RefundRequest
from escrow.services.splits import SUPPORTED_RECIPIENT_SHARES
from escrow.state_machines import BookingStatus, RefundOutcome, RefundReason, TransactionType

User = get_user_model()


# =============================================================================
# Response Serializers
# =============================================================================


class EscrowSerializer(serializers.ModelSerializer):
    payer_id = serializers.UUIDField(read_only=True)
    recipient_id = serializers.UUIDField(read_only=True)
    platform_share_percent = serializers.IntegerField(read_only=True)

    class Meta:
        model = EscrowRecord
        fields = [
            "id",
            "payer_id",
            "recipient_id",
            "transaction_type",
            "reference",
            "total_tokens",
            "recipient_share_percent",
            "platform_share_percent",
            "recipient_tokens",
            "platform_tokens",
            "refunded_tokens",
            "state",
            "release_after",
            "auto_release_at",
            "scheduled_start",
            "released_at",
            "refunded_at",
            "disputed_at",
            "message_delivered",
            "call_duration_seconds",
            "booking_status",
            "version",
            "created_at",
        ]
        read_only_fields = fields


class RefundRequestSerializer(serializers.ModelSerializer):
    escrow_id = serializers.UUIDField(read_only=True)
    requester_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = RefundRequest
        fields = [
            "id",
            "escrow_id",
            "requester_id",
            "reason",
            "details",
            "tier",
            "state",
            "outcome",
            "refund_tokens",
            "fraud_flagged",
            "fraud_pattern",
            "resolution_notes",
            "resolved_at",
            "version",
            "created_at",
        ]
        read_only_fields = fields


class LedgerEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = LedgerEntry
        fields = [
            "id",
            "entry_type",
            "amount_tokens",
            "debit_account_id",
            "credit_account_id",
            "reference_type",
            "reference_id",
            "description",
            "created_at",
        ]
        read_only_fields = fields


class SettlementSerializer(serializers.Serializer):
    escrow = EscrowSerializer(read_only=True)
    payer_tokens = serializers.IntegerField(read_only=True)
    recipient_tokens = serializers.IntegerField(read_only=True)
    platform_tokens = serializers.IntegerField(read_only=True)


class RefundDecisionSerializer(serializers.Serializer):
    request = RefundRequestSerializer(read_only=True)
    tier = serializers.IntegerField(read_only=True)
    outcome = serializers.CharField(read_only=True, allow_null=True)
    refund_tokens = serializers.IntegerField(read_only=True, allow_null=True)
    fraud_pattern = serializers.CharField(read_only=True, allow_null=True)


# =============================================================================
# Request Serializers
# =============================================================================


class OpenEscrowSerializer(serializers.Serializer):
    """
    Fields:
        recipient_id: Creator being paid
        total_tokens: Positive amount
        transaction_type: message, call, meeting or event
        recipient_share_percent: Optional override (65 or 80)
        scheduled_start: Required for meetings and events
    """

    recipient_id = serializers.UUIDField()
    total_tokens = serializers.IntegerField(min_value=1)
    transaction_type = serializers.ChoiceField(choices=TransactionType.choices)
    recipient_share_percent = serializers.ChoiceField(
        choices=sorted(SUPPORTED_RECIPIENT_SHARES),
        required=False,
    )
    reference = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")
    scheduled_start = serializers.DateTimeField(required=False, allow_null=True)
    idempotency_key = serializers.CharField(max_length=128, required=False, allow_null=True)

    def validate_recipient_id(self, value):
        recipient = User.objects.filter(pk=value).first()
        if recipient is None:
            raise serializers.ValidationError("Recipient not found.")
        return recipient

    def validate(self, attrs):
        if attrs["transaction_type"] in (TransactionType.MEETING, TransactionType.EVENT) and not attrs.get(
            "scheduled_start"
        ):
            raise serializers.ValidationError(
                {"scheduled_start": "Meetings and events need a start time."}
            )
        return attrs


class DeliveryUpdateSerializer(serializers.Serializer):
    message_delivered = serializers.BooleanField(required=False)
    call_duration_seconds = serializers.IntegerField(required=False, min_value=0)
    booking_status = serializers.ChoiceField(choices=BookingStatus.choices, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Provide at least one delivery field.")
        return attrs


class VoluntaryRefundSerializer(serializers.Serializer):
    percent = serializers.IntegerField(min_value=1, max_value=100)
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=500)


class RefundRequestCreateSerializer(serializers.Serializer):
    escrow_id = serializers.UUIDField()
    reason = serializers.ChoiceField(choices=RefundReason.choices)
    details = serializers.CharField(required=False, allow_blank=True, default="", max_length=2000)


class ResolveRefundSerializer(serializers.Serializer):
    outcome = serializers.ChoiceField(choices=RefundOutcome.choices)
    expected_version = serializers.IntegerField(min_value=1)
    refund_tokens = serializers.IntegerField(required=False, min_value=1)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
