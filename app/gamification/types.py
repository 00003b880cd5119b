"""
Choices, mission templates and limits for the gamification app.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from django.db import models


class CreatorLevel(models.TextChoices):
    BRONZE = "bronze", "Bronze"
    SILVER = "silver", "Silver"
    GOLD = "gold", "Gold"
    PLATINUM = "platinum", "Platinum"
    DIAMOND = "diamond", "Diamond"

    @classmethod
    def rank(cls, level: str) -> int:
        return cls.values.index(level)


class MissionType(models.TextChoices):
    DAILY = "daily", "Daily"
    WEEKLY = "weekly", "Weekly"


class MissionStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    COMPLETED = "completed", "Completed"
    EXPIRED = "expired", "Expired"
    CLAIMED = "claimed", "Claimed"


class ActivityType(models.TextChoices):
    REPLY_MESSAGES = "reply_messages", "Reply to Messages"
    HOST_LIVE = "host_live", "Host Live"
    POST_STORY = "post_story", "Post Story"
    START_PAID_CHAT = "start_paid_chat", "Start Paid Chat"
    REACTIVATE_SUPPORTER = "reactivate_supporter", "Reactivate Supporter"
    EARN_TOKENS = "earn_tokens", "Earn Tokens"
    FAN_CLUB_SUBS = "fan_club_subs", "Fan Club Subscriptions"
    SELL_EVENT_TICKETS = "sell_event_tickets", "Sell Event Tickets"
    SELL_PPV_TICKETS = "sell_ppv_tickets", "Sell PPV Tickets"


# (daily, weekly) mission slots per creator level
MISSION_SLOTS = {
    CreatorLevel.BRONZE: (2, 0),
    CreatorLevel.SILVER: (3, 1),
    CreatorLevel.GOLD: (4, 2),
    CreatorLevel.PLATINUM: (5, 3),
    CreatorLevel.DIAMOND: (5, 4),
}

# Anti-exploitation thresholds
MIN_LIVE_VIEWERS = 2
MIN_EVENT_CHECKINS = 5
MAX_TOKENS_PER_PAYER_PER_HOUR = 1000

# Activity types whose value is checked for single-payer concentration
PAYER_CAPPED_ACTIVITIES = (ActivityType.REPLY_MESSAGES, ActivityType.EARN_TOKENS)


def slots_for(level: str, mission_type: str) -> int:
    daily, weekly = MISSION_SLOTS[level]
    return daily if mission_type == MissionType.DAILY else weekly


@dataclass(frozen=True)
class MissionTemplate:
    key: str
    mission_type: str
    title: str
    description: str
    activity_type: str
    target: int
    unit: str
    reward_lp: int
    priority: int
    required_level: str = CreatorLevel.BRONZE

    def available_to(self, level: str) -> bool:
        return CreatorLevel.rank(level) >= CreatorLevel.rank(self.required_level)


MISSION_TEMPLATES = (
    MissionTemplate(
        key="daily_reply_20",
        mission_type=MissionType.DAILY,
        title="Reply to 20 paid messages",
        description="Respond to 20 messages from paying supporters today",
        activity_type=ActivityType.REPLY_MESSAGES,
        target=20,
        unit="messages",
        reward_lp=150,
        priority=1,
    ),
    MissionTemplate(
        key="daily_live_10",
        mission_type=MissionType.DAILY,
        title="Host a 10-minute Live",
        description="Stream live for at least 10 minutes with viewers",
        activity_type=ActivityType.HOST_LIVE,
        target=10,
        unit="minutes",
        reward_lp=250,
        priority=2,
    ),
    MissionTemplate(
        key="daily_story_1",
        mission_type=MissionType.DAILY,
        title="Post 1 new story",
        description="Share a new story to keep your audience engaged",
        activity_type=ActivityType.POST_STORY,
        target=1,
        unit="stories",
        reward_lp=75,
        priority=3,
    ),
    MissionTemplate(
        key="daily_paid_chat_1",
        mission_type=MissionType.DAILY,
        title="Start 1 paid chat from Discover",
        description="Initiate a conversation that becomes a paid chat",
        activity_type=ActivityType.START_PAID_CHAT,
        target=1,
        unit="chats",
        reward_lp=200,
        priority=4,
    ),
    MissionTemplate(
        key="daily_reactivate_1",
        mission_type=MissionType.DAILY,
        title="Reactivate 1 dormant supporter",
        description="Get a response from a supporter who hasn't chatted in 7+ days",
        activity_type=ActivityType.REACTIVATE_SUPPORTER,
        target=1,
        unit="supporters",
        reward_lp=300,
        priority=5,
    ),
    MissionTemplate(
        key="weekly_earn_5000",
        mission_type=MissionType.WEEKLY,
        title="Earn 5,000 tokens",
        description="Accumulate 5,000 tokens in earnings this week",
        activity_type=ActivityType.EARN_TOKENS,
        target=5000,
        unit="tokens",
        reward_lp=1500,
        priority=1,
        required_level=CreatorLevel.SILVER,
    ),
    MissionTemplate(
        key="weekly_fan_club_3",
        mission_type=MissionType.WEEKLY,
        title="Get 3 Fan Club subscriptions",
        description="Convert 3 new supporters to Fan Club members",
        activity_type=ActivityType.FAN_CLUB_SUBS,
        target=3,
        unit="subscriptions",
        reward_lp=2500,
        priority=2,
        required_level=CreatorLevel.SILVER,
    ),
    MissionTemplate(
        key="weekly_event_tickets_5",
        mission_type=MissionType.WEEKLY,
        title="Sell 5 Event tickets",
        description="Sell at least 5 tickets to your upcoming events",
        activity_type=ActivityType.SELL_EVENT_TICKETS,
        target=5,
        unit="tickets",
        reward_lp=3000,
        priority=3,
        required_level=CreatorLevel.SILVER,
    ),
    MissionTemplate(
        key="weekly_ppv_tickets_10",
        mission_type=MissionType.WEEKLY,
        title="Sell 10 PPV Live tickets",
        description="Sell 10 pay-per-view tickets for your premium Lives",
        activity_type=ActivityType.SELL_PPV_TICKETS,
        target=10,
        unit="tickets",
        reward_lp=2500,
        priority=4,
        required_level=CreatorLevel.SILVER,
    ),
)


def templates_for(level: str, mission_type: str) -> list[MissionTemplate]:
    """Templates a creator at this level may receive, in priority order."""
    return sorted(
        (
            template
            for template in MISSION_TEMPLATES
            if template.mission_type == mission_type and template.available_to(level)
        ),
        key=lambda template: template.priority,
    )


@dataclass
class ActivityReport:
    """
    Activity reported by a creator or recorded from a settlement.

    Attributes:
        activity_type: ActivityType value
        value: Units of progress (messages, minutes, tokens...)
        viewer_count: Required for host_live
        checkin_count: Required for sell_event_tickets
        payer_id: Paying user behind the activity, for concentration checks
    """

    activity_type: str
    value: int
    viewer_count: int | None = None
    checkin_count: int | None = None
    payer_id: str | None = None
    metadata: dict = field(default_factory=dict)


@dataclass
class ProgressResult:
    completed_mission_ids: list[str] = field(default_factory=list)
    updated_mission_ids: list[str] = field(default_factory=list)
    potential_lp: int = 0
