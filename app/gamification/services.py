"""
Creator mission service.

Missions are assigned deterministically: the highest-priority templates the
creator's level allows, skipping templates already assigned in the current
period. Daily periods end at 00:00 UTC, weekly periods at Sunday 23:59 UTC.

Usage:
    from gamification.services import MissionService

    MissionService.get_or_create_profile(creator)
    result = MissionService.record_activity(
        creator, ActivityReport(ActivityType.HOST_LIVE, 12, viewer_count=8)
    )
    MissionService.claim_mission(creator, mission_id)
"""

from __future__ import annotations

from datetime import datetime, time, timedelta
from datetime import timezone as dt_timezone
from typing import TYPE_CHECKING

from django.db.models import F, Sum
from django.utils import timezone

from core.services import BaseService, ServiceResult
from gamification.models import (
    CreatorMissionProfile,
    LevelPointsEntry,
    Mission,
    MissionActivity,
)
from gamification.types import (
    MAX_TOKENS_PER_PAYER_PER_HOUR,
    MIN_EVENT_CHECKINS,
    MIN_LIVE_VIEWERS,
    PAYER_CAPPED_ACTIVITIES,
    ActivityReport,
    ActivityType,
    CreatorLevel,
    MissionStatus,
    MissionType,
    ProgressResult,
    slots_for,
    templates_for,
)

if TYPE_CHECKING:
    from accounts.models import User


def period_end(mission_type: str, now: datetime) -> datetime:
    """End of the daily or weekly period containing `now` (UTC)."""
    now = now.astimezone(dt_timezone.utc)
    if mission_type == MissionType.DAILY:
        return datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=dt_timezone.utc)

    days_ahead = (6 - now.weekday()) % 7
    end = datetime.combine(
        now.date() + timedelta(days=days_ahead), time(23, 59), tzinfo=dt_timezone.utc
    )
    if end <= now:
        end += timedelta(days=7)
    return end


class MissionService(BaseService):
    # ==========================================================================
    # Profile & Assignment
    # ==========================================================================

    @classmethod
    def get_or_create_profile(cls, creator: User) -> CreatorMissionProfile:
        """Return the creator's profile, assigning first missions on creation."""
        profile, created = CreatorMissionProfile.objects.get_or_create(creator=creator)
        if created:
            cls.assign_missions(profile, MissionType.DAILY)
            cls.assign_missions(profile, MissionType.WEEKLY)
        return profile

    @classmethod
    def assign_missions(cls, profile: CreatorMissionProfile, mission_type: str) -> list[Mission]:
        """
        Fill the creator's free slots for the current period.

        Missions of any status that belong to the current period occupy a
        slot, so a completed or claimed mission is not replaced the same day.
        """
        now = timezone.now()
        expires_at = period_end(mission_type, now)
        current = Mission.objects.filter(
            creator_id=profile.pk, mission_type=mission_type, expires_at=expires_at
        )
        free = slots_for(profile.level, mission_type) - current.count()
        if free <= 0:
            return []

        taken = set(current.values_list("template_key", flat=True))
        templates = [
            template
            for template in templates_for(profile.level, mission_type)
            if template.key not in taken
        ][:free]

        missions = [
            Mission.objects.create(
                creator_id=profile.pk,
                template_key=template.key,
                mission_type=mission_type,
                title=template.title,
                description=template.description,
                activity_type=template.activity_type,
                unit=template.unit,
                target=template.target,
                reward_lp=template.reward_lp,
                expires_at=expires_at,
            )
            for template in templates
        ]
        if missions:
            cls.get_logger().info(
                "Missions assigned",
                extra={
                    "creator_id": str(profile.pk),
                    "mission_type": mission_type,
                    "count": len(missions),
                },
            )
        return missions

    @classmethod
    def set_level(cls, creator: User, level: str) -> CreatorMissionProfile:
        """Change the creator level and top up any slots it adds."""
        if level not in CreatorLevel.values:
            raise ValueError(f"Unknown creator level: {level}")

        profile = cls.get_or_create_profile(creator)
        if profile.level != level:
            profile.level = level
            profile.save(update_fields=["level", "updated_at"])
            cls.assign_missions(profile, MissionType.DAILY)
            cls.assign_missions(profile, MissionType.WEEKLY)
        return profile

    @staticmethod
    def current_missions(creator: User):
        """Missions the creator can still progress or claim."""
        now = timezone.now()
        return Mission.objects.filter(creator=creator).filter(
            status__in=[MissionStatus.ACTIVE, MissionStatus.COMPLETED]
        ).exclude(status=MissionStatus.ACTIVE, expires_at__lte=now).order_by(
            "mission_type", "created_at"
        )

    # ==========================================================================
    # Progress
    # ==========================================================================

    @classmethod
    def _rejection_reason(cls, creator: User, report: ActivityReport) -> str | None:
        if report.activity_type == ActivityType.HOST_LIVE:
            if (report.viewer_count or 0) < MIN_LIVE_VIEWERS:
                return f"Live sessions need at least {MIN_LIVE_VIEWERS} viewers"
        elif report.activity_type == ActivityType.SELL_EVENT_TICKETS:
            if (report.checkin_count or 0) < MIN_EVENT_CHECKINS:
                return f"Events need at least {MIN_EVENT_CHECKINS} check-ins"
        elif report.activity_type in PAYER_CAPPED_ACTIVITIES and report.payer_id:
            recent = MissionActivity.objects.filter(
                creator=creator,
                payer_id=report.payer_id,
                activity_type=report.activity_type,
                created_at__gt=timezone.now() - timedelta(hours=1),
            ).aggregate(total=Sum("value"))["total"] or 0
            if recent + report.value > MAX_TOKENS_PER_PAYER_PER_HOUR:
                return "Too much activity from a single payer in the last hour"
        return None

    @classmethod
    def record_activity(cls, creator: User, report: ActivityReport) -> ServiceResult[ProgressResult]:
        """
        Apply reported activity to the creator's matching active missions.

        Progress is capped at each mission's target. Missions reaching their
        target move to COMPLETED and update the creator's streaks; LP is only
        awarded when the mission is claimed.
        """
        if report.activity_type not in ActivityType.values:
            return ServiceResult.failure(
                f"Unknown activity type: {report.activity_type}",
                error_code="INVALID_ACTIVITY",
            )
        if report.value <= 0:
            return ServiceResult.failure(
                "Activity value must be positive", error_code="INVALID_ACTIVITY"
            )

        reason = cls._rejection_reason(creator, report)
        if reason:
            cls.get_logger().warning(
                "Mission activity rejected",
                extra={
                    "creator_id": str(creator.pk),
                    "activity_type": report.activity_type,
                    "value": report.value,
                    "reason": reason,
                },
            )
            return ServiceResult.failure(reason, error_code="ACTIVITY_REJECTED")

        now = timezone.now()
        result = ProgressResult()
        with cls.atomic():
            MissionActivity.objects.create(
                creator=creator,
                activity_type=report.activity_type,
                value=report.value,
                payer_id=report.payer_id,
                metadata=report.metadata,
            )
            missions = Mission.objects.select_for_update().filter(
                creator=creator,
                activity_type=report.activity_type,
                status=MissionStatus.ACTIVE,
                expires_at__gt=now,
            )
            for mission in missions:
                mission.add_progress(report.value)
                result.updated_mission_ids.append(str(mission.pk))
                if mission.progress >= mission.target:
                    mission.complete()
                    cls._record_completion(creator, mission.mission_type)
                    result.completed_mission_ids.append(str(mission.pk))
                    result.potential_lp += mission.reward_lp
                mission.save()

        if result.completed_mission_ids:
            cls.get_logger().info(
                "Missions completed",
                extra={
                    "creator_id": str(creator.pk),
                    "missions": result.completed_mission_ids,
                    "lp": result.potential_lp,
                },
            )
        return ServiceResult.success(result)

    @classmethod
    def _record_completion(cls, creator: User, mission_type: str) -> None:
        """
        Count the completion and advance the streak.

        Streaks count calendar days (or ISO weeks) with at least one
        completion; a second completion in the same day does not extend it.
        """
        now = timezone.now()
        profile = CreatorMissionProfile.objects.select_for_update().get(creator=creator)

        if mission_type == MissionType.DAILY:
            last = profile.last_daily_completion
            profile.daily_streak = _next_streak(
                profile.daily_streak,
                last.date() if last else None,
                now.date(),
                timedelta(days=1),
            )
            profile.best_daily_streak = max(profile.best_daily_streak, profile.daily_streak)
            profile.last_daily_completion = now
            profile.completed_daily += 1
        else:
            last = profile.last_weekly_completion
            profile.weekly_streak = _next_streak(
                profile.weekly_streak,
                _week_start(last) if last else None,
                _week_start(now),
                timedelta(weeks=1),
            )
            profile.best_weekly_streak = max(profile.best_weekly_streak, profile.weekly_streak)
            profile.last_weekly_completion = now
            profile.completed_weekly += 1
        profile.save()

    # ==========================================================================
    # Rewards
    # ==========================================================================

    @classmethod
    def claim_mission(cls, creator: User, mission_id) -> ServiceResult[Mission]:
        """Claim a completed mission's LP. LP never touches the token ledger."""
        with cls.atomic():
            mission = (
                Mission.objects.select_for_update()
                .filter(pk=mission_id, creator=creator)
                .first()
            )
            if mission is None:
                return ServiceResult.failure("Mission not found", error_code="MISSION_NOT_FOUND")
            if mission.status == MissionStatus.CLAIMED:
                return ServiceResult.failure(
                    "Reward already claimed", error_code="ALREADY_CLAIMED"
                )
            if mission.status != MissionStatus.COMPLETED:
                return ServiceResult.failure(
                    "Mission not completed", error_code="MISSION_NOT_COMPLETED"
                )

            mission.claim()
            mission.save()
            LevelPointsEntry.objects.create(
                creator=creator,
                mission=mission,
                points=mission.reward_lp,
                source=mission.title,
            )
            CreatorMissionProfile.objects.filter(creator=creator).update(
                total_lp_earned=F("total_lp_earned") + mission.reward_lp
            )

        cls.get_logger().info(
            "Mission reward claimed",
            extra={
                "creator_id": str(creator.pk),
                "mission_id": str(mission.pk),
                "lp": mission.reward_lp,
            },
        )
        return ServiceResult.success(mission)

    # ==========================================================================
    # Resets
    # ==========================================================================

    @classmethod
    def reset_missions(cls, mission_type: str) -> tuple[int, int]:
        """
        Expire active missions of this type whose period has ended and refill
        every creator's slots. Idempotent. Returns (expired, assigned).
        """
        now = timezone.now()
        expired = Mission.objects.filter(
            mission_type=mission_type,
            status=MissionStatus.ACTIVE,
            expires_at__lte=now,
        ).update(status=MissionStatus.EXPIRED, updated_at=now)

        assigned = 0
        for profile in CreatorMissionProfile.objects.all():
            assigned += len(cls.assign_missions(profile, mission_type))

        cls.get_logger().info(
            "Mission reset",
            extra={"mission_type": mission_type, "expired": expired, "assigned": assigned},
        )
        return expired, assigned


def _week_start(moment: datetime):
    day = moment.date()
    return day - timedelta(days=day.weekday())


def _next_streak(streak: int, last, current, step: timedelta) -> int:
    if last == current:
        return max(streak, 1)
    if last is not None and last + step == current:
        return streak + 1
    return 1
