from django.contrib import admin

from moderation.models import (
    AbuseCase,
    Comment,
    CreatorShield,
    DefamationReport,
    EnforcementState,
    Sanction,
)


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "author",
        "target",
        "content_id",
        "visibility",
        "distribution_throttled",
        "created_at",
    ]
    list_filter = ["visibility", "distribution_throttled"]
    search_fields = ["author__email", "content_id", "text"]


class SanctionInline(admin.TabularInline):
    model = Sanction
    extra = 0
    readonly_fields = ["user", "level", "action", "freeze_ends_at", "permanent_ban", "is_active"]


@admin.register(AbuseCase)
class AbuseCaseAdmin(admin.ModelAdmin):
    list_display = ["id", "category", "severity", "status", "perpetrator", "target", "created_at"]
    list_filter = ["status", "category"]
    search_fields = ["perpetrator__email", "target__email"]
    readonly_fields = ["status", "escalated_at", "reviewed_by", "reviewed_at"]
    inlines = [SanctionInline]


@admin.register(EnforcementState)
class EnforcementStateAdmin(admin.ModelAdmin):
    list_display = ["user", "account_status", "feature_locks", "updated_at"]
    list_filter = ["account_status"]
    search_fields = ["user__email"]


@admin.register(CreatorShield)
class CreatorShieldAdmin(admin.ModelAdmin):
    list_display = ["creator", "enabled", "under_raid", "last_raid_detected_at", "updated_at"]
    list_filter = ["enabled", "under_raid"]
    search_fields = ["creator__email"]


@admin.register(DefamationReport)
class DefamationReportAdmin(admin.ModelAdmin):
    list_display = ["id", "accuser", "target", "status", "created_at"]
    list_filter = ["status"]
    search_fields = ["accuser__email", "target__email"]
    readonly_fields = ["status", "evidence_submitted_at", "closed_at"]
