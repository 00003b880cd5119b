from django.contrib import admin

from supporters.models import SupporterStats


@admin.register(SupporterStats)
class SupporterStatsAdmin(admin.ModelAdmin):
    list_display = ["creator", "supporter", "lifetime_tokens", "rank", "badge", "segment"]
    list_filter = ["segment", "badge"]
    search_fields = ["creator__email", "supporter__email"]
    readonly_fields = ["lifetime_tokens", "settlements", "rank", "badge", "first_spend_at", "last_spend_at"]
