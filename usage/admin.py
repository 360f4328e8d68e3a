from django.contrib import admin

from .models import UsageLog


@admin.register(UsageLog)
class UsageLogAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "action", "cost", "created_at")
    list_filter = ("action",)
    search_fields = ("user__id", "user__email", "action")
    readonly_fields = ("user", "action", "cost", "created_at")

    def has_change_permission(self, request, obj=None):
        return False
