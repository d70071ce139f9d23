from typing import Optional

from django.db import models


class SystemSetting(models.Model):
    """Runtime key/value settings editable from the administration UI."""

    KEY_RESUME_PROCESSING_WEBHOOK_URL = "resumeProcessingWebhookUrl"
    KEY_MAX_CONCURRENT_PROCESSORS = "maxConcurrentProcessors"

    key = models.CharField(max_length=128, unique=True)
    value = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["key"]

    def __str__(self) -> str:
        return self.key

    @classmethod
    def get_value(cls, key: str) -> Optional[str]:
        return cls.objects.filter(key=key).values_list("value", flat=True).first()
