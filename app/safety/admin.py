from django.contrib import admin

from safety.models import SafetyEvent, SafetyIntervention, SafetyScore


@admin.register(SafetyScore)
class SafetyScoreAdmin(admin.ModelAdmin):
    list_display = ["user", "overall_score", "risk_level", "total_violations", "last_decay_at"]
    list_filter = ["risk_level"]
    search_fields = ["user__email"]
    readonly_fields = ["created_at", "updated_at"]


@admin.register(SafetyEvent)
class SafetyEventAdmin(admin.ModelAdmin):
    list_display = ["user", "event_type", "dimension", "impact", "score_after", "created_at"]
    list_filter = ["event_type", "dimension"]
    search_fields = ["user__email", "source"]

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(SafetyIntervention)
class SafetyInterventionAdmin(admin.ModelAdmin):
    list_display = ["user", "level", "action", "is_active", "expires_at", "created_at"]
    list_filter = ["action", "is_active", "level"]
    search_fields = ["user__email"]
