"""
Choices and thresholds for supporter rankings.
"""

from django.db import models

VIP_THRESHOLD_TOKENS = 1000
DORMANT_DAYS = 7
COLD_DAYS = 30


class Segment(models.TextChoices):
    VIP = "vip", "VIP"
    ACTIVE = "active", "Active"
    DORMANT = "dormant", "Dormant"
    COLD = "cold", "Cold"


class RankBadge(models.TextChoices):
    TOP_1 = "top_1", "Top Supporter"
    TOP_3 = "top_3", "Top 3 Supporter"
    TOP_10 = "top_10", "Top 10 Supporter"

    @classmethod
    def for_rank(cls, rank: int) -> str:
        if rank == 1:
            return cls.TOP_1
        if rank <= 3:
            return cls.TOP_3
        if rank <= 10:
            return cls.TOP_10
        return ""
