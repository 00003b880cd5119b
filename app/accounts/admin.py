from django.contrib import admin

from accounts.models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ["email", "display_name", "is_creator", "loyalty_tier", "is_staff", "date_joined"]
    list_filter = ["is_creator", "loyalty_tier", "is_staff", "is_active"]
    search_fields = ["email", "display_name"]
    readonly_fields = ["id", "date_joined", "last_login"]
