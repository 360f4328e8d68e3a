from django.contrib import admin
from .models import ApiKey

@admin.register(ApiKey)
class ApiKeyAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "name", "active", "usage_count", "last_used_at", "created_at")
    list_filter = ("active",)
    search_fields = ("user__id", "user__email", "name")
    readonly_fields = ("key", "usage_count", "created_at", "last_used_at")
