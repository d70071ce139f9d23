from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import UploadQueueJob


class UploadQueueJobSerializer(serializers.ModelSerializer):
    created_by = serializers.PrimaryKeyRelatedField(
        queryset=get_user_model().objects.all(), required=False, allow_null=True
    )
    status = serializers.CharField(max_length=32, required=False)
    file_path = serializers.CharField(
        max_length=1024,
        trim_whitespace=True,
        error_messages={
            "required": "file_path is required",
            "blank": "file_path is required",
            "null": "file_path is required",
        },
    )

    class Meta:
        model = UploadQueueJob
        fields = [
            "id",
            "file_name",
            "file_size",
            "file_path",
            "status",
            "source",
            "upload_id",
            "created_by",
            "error",
            "error_details",
            "upload_date",
            "updated_at",
            "completed_date",
        ]
        read_only_fields = ["id", "upload_date", "updated_at"]
        extra_kwargs = {
            "file_name": {"required": False, "allow_blank": True},
            "source": {"required": False, "allow_blank": True},
        }


class UploadQueueJobUpdateSerializer(UploadQueueJobSerializer):
    """Administrative updates; the stored file reference cannot change."""

    file_path = serializers.CharField(read_only=True)
