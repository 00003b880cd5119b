"""
FraudDetectionRecord model - audit log of fraud rule hits.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from escrow.state_machines import FraudAction, FraudSeverity


class FraudDetectionRecord(UUIDPrimaryKeyMixin, BaseModel):
    """
    One fraud rule hit against a refund request.

    Write-once; nothing transitions. Fields mirror the RuleHit that produced
    it plus the action the refund service took.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="fraud_detections",
    )
    refund_request = models.ForeignKey(
        "escrow.RefundRequest",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="fraud_detections",
    )
    pattern = models.CharField(max_length=48, db_index=True)
    confidence = models.FloatField()
    severity = models.CharField(max_length=16, choices=FraudSeverity.choices)
    action = models.CharField(max_length=24, choices=FraudAction.choices)
    signals = models.JSONField(default=list, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "pattern"]),
        ]

    def __str__(self) -> str:
        return f"Fraud({self.pattern}, {self.confidence:.2f}, {self.action})"
