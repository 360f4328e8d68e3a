from django.contrib import admin

from .models import BillingState, PaymentRecord


@admin.register(BillingState)
class BillingStateAdmin(admin.ModelAdmin):
    list_display = ("user", "tier", "credits", "daily_usage_count", "last_reset_at", "updated_at")
    list_filter = ("tier",)
    search_fields = ("user__id", "user__email", "user__wallet_address")
    readonly_fields = ("updated_at",)


@admin.register(PaymentRecord)
class PaymentRecordAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "tx_hash", "wallet_address", "amount", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("tx_hash", "wallet_address", "user__id")
    readonly_fields = ("created_at",)
