"""
Supporter ranking service.

Rankings are a full sort-and-slice recompute per creator after every spend;
a creator's supporter list is small enough that incremental rank updates
are not worth their edge cases.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from django.db.models import F
from django.utils import timezone

from core.services import BaseService
from supporters.models import SupporterStats
from supporters.types import (
    COLD_DAYS,
    DORMANT_DAYS,
    VIP_THRESHOLD_TOKENS,
    RankBadge,
    Segment,
)

if TYPE_CHECKING:
    from accounts.models import User


def segment_for(lifetime_tokens: int, last_spend_at: datetime, now: datetime) -> str:
    if lifetime_tokens >= VIP_THRESHOLD_TOKENS:
        return Segment.VIP
    idle_days = (now - last_spend_at).days
    if idle_days >= COLD_DAYS:
        return Segment.COLD
    if idle_days >= DORMANT_DAYS:
        return Segment.DORMANT
    return Segment.ACTIVE


class SupporterService(BaseService):
    @classmethod
    def record_spend(cls, creator: User, supporter: User, tokens: int) -> SupporterStats:
        """Add settled tokens to the pair's lifetime spend and re-rank the creator."""
        if tokens <= 0:
            raise ValueError("Spend must be positive")

        now = timezone.now()
        with cls.atomic():
            stats, created = SupporterStats.objects.select_for_update().get_or_create(
                creator=creator,
                supporter=supporter,
                defaults={
                    "lifetime_tokens": tokens,
                    "settlements": 1,
                    "first_spend_at": now,
                    "last_spend_at": now,
                },
            )
            if not created:
                SupporterStats.objects.filter(pk=stats.pk).update(
                    lifetime_tokens=F("lifetime_tokens") + tokens,
                    settlements=F("settlements") + 1,
                    last_spend_at=now,
                )
                stats.refresh_from_db()

            stats.segment = segment_for(stats.lifetime_tokens, stats.last_spend_at, now)
            stats.save(update_fields=["segment", "updated_at"])
            cls.recompute_rankings(creator)

        stats.refresh_from_db()
        return stats

    @classmethod
    def recompute_rankings(cls, creator: User) -> list[SupporterStats]:
        """
        Re-rank every supporter of a creator.

        Ties on lifetime spend go to whoever started supporting first.
        """
        ranked = list(
            SupporterStats.objects.filter(creator=creator).order_by(
                "-lifetime_tokens", "first_spend_at", "pk"
            )
        )
        for position, stats in enumerate(ranked, start=1):
            stats.rank = position
            stats.badge = RankBadge.for_rank(position)
        SupporterStats.objects.bulk_update(ranked, ["rank", "badge"])
        return ranked

    @classmethod
    def refresh_segments(cls) -> int:
        """Recompute segments as supporters go quiet. Returns the number changed."""
        now = timezone.now()
        changed = []
        for stats in SupporterStats.objects.only(
            "pk", "lifetime_tokens", "last_spend_at", "segment"
        ).iterator():
            segment = segment_for(stats.lifetime_tokens, stats.last_spend_at, now)
            if segment != stats.segment:
                stats.segment = segment
                changed.append(stats)

        SupporterStats.objects.bulk_update(changed, ["segment"], batch_size=500)
        cls.get_logger().info("Supporter segments refreshed", extra={"changed": len(changed)})
        return len(changed)

    @staticmethod
    def top_supporters(creator: User, limit: int = 10):
        return (
            SupporterStats.objects.filter(creator=creator, rank__isnull=False)
            .select_related("supporter")
            .order_by("rank")[:limit]
        )

    @staticmethod
    def supporters_in_segment(creator: User, segment: str):
        return (
            SupporterStats.objects.filter(creator=creator, segment=segment)
            .select_related("supporter")
            .order_by("rank")
        )
