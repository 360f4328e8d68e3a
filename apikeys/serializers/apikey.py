from rest_framework import serializers
from ..models import ApiKey

class ApiKeyCreateSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True, max_length=128, default="Default Key")

class ApiKeyToggleSerializer(serializers.Serializer):
    key_id = serializers.IntegerField()

class ApiKeyOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = ApiKey
        fields = ("id", "user", "name", "active", "usage_count", "created_at", "last_used_at")
        read_only_fields = fields

class ApiKeyRevealSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    apiKey = serializers.CharField(source="key")
