"""
Supporter models.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import BaseModel
from supporters.types import RankBadge, Segment


class SupporterStats(BaseModel):
    """
    What one supporter has spent on one creator.

    Fields:
        lifetime_tokens: Tokens paid and not refunded, over all settlements
        settlements: Number of settled escrows that contributed
        rank: Position among the creator's supporters (1 = biggest)
        badge: top_1 / top_3 / top_10, empty below the top 10
        segment: vip, active, dormant or cold
    """

    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="supporter_stats",
    )
    supporter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="supported_creators",
    )
    lifetime_tokens = models.PositiveBigIntegerField(default=0)
    settlements = models.PositiveIntegerField(default=0)
    first_spend_at = models.DateTimeField()
    last_spend_at = models.DateTimeField()
    rank = models.PositiveIntegerField(null=True, blank=True)
    badge = models.CharField(max_length=8, choices=RankBadge.choices, blank=True, default="")
    segment = models.CharField(
        max_length=8,
        choices=Segment.choices,
        default=Segment.ACTIVE,
        db_index=True,
    )

    class Meta:
        ordering = ["creator", "rank"]
        verbose_name = "Supporter Stats"
        verbose_name_plural = "Supporter Stats"
        constraints = [
            models.UniqueConstraint(
                fields=["creator", "supporter"],
                name="one_stats_row_per_supporter",
            ),
        ]
        indexes = [
            models.Index(fields=["creator", "-lifetime_tokens"]),
        ]

    def __str__(self) -> str:
        return f"SupporterStats({self.creator_id} <- {self.supporter_id}, {self.lifetime_tokens})"
