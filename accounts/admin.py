from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("id", "username", "email", "wallet_address", "points", "is_staff", "date_joined")
    search_fields = ("id", "username", "email", "wallet_address")
    readonly_fields = ("id", "date_joined", "last_login")
    fieldsets = BaseUserAdmin.fieldsets + (
        ("BlockAI", {"fields": ("id", "wallet_address", "full_name", "points")}),
    )
