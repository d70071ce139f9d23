from rest_framework import serializers

from .models import SystemSetting


class SystemSettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = SystemSetting
        fields = [
            "key",
            "value",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]
