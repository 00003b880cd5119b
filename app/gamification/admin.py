from django.contrib import admin

from gamification.models import (
    CreatorMissionProfile,
    LevelPointsEntry,
    Mission,
    MissionActivity,
)


@admin.register(CreatorMissionProfile)
class CreatorMissionProfileAdmin(admin.ModelAdmin):
    list_display = ["creator", "level", "daily_streak", "weekly_streak", "total_lp_earned"]
    list_filter = ["level"]
    search_fields = ["creator__email"]
    readonly_fields = ["total_lp_earned"]


@admin.register(Mission)
class MissionAdmin(admin.ModelAdmin):
    list_display = ["title", "creator", "mission_type", "progress", "target", "status", "expires_at"]
    list_filter = ["mission_type", "status"]
    search_fields = ["creator__email", "title"]
    readonly_fields = ["status", "completed_at", "claimed_at"]


@admin.register(MissionActivity)
class MissionActivityAdmin(admin.ModelAdmin):
    list_display = ["creator", "activity_type", "value", "payer", "created_at"]
    list_filter = ["activity_type"]
    search_fields = ["creator__email"]

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(LevelPointsEntry)
class LevelPointsEntryAdmin(admin.ModelAdmin):
    list_display = ["creator", "points", "source", "created_at"]
    search_fields = ["creator__email"]

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
