from rest_framework import serializers

from usage.models import UsageLog


class UsageLogOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = UsageLog
        fields = ("id", "user", "action", "cost", "created_at")
        read_only_fields = fields
