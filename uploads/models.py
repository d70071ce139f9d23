import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone


class UploadQueueJob(models.Model):
    """A file waiting to be forwarded to the automation webhook.

    ``status`` is a plain string column; the choices below describe the
    values the queue writes but are not enforced by the database.
    """

    class Status(models.TextChoices):
        QUEUED = "queued", "Queued"
        PROCESSING = "processing", "Processing"
        SUCCESS = "success", "Success"
        ERROR = "error", "Error"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    file_name = models.CharField(max_length=255)
    file_size = models.BigIntegerField(null=True, blank=True)
    file_path = models.CharField(max_length=1024)
    source = models.CharField(max_length=32, blank=True, default="")
    upload_id = models.CharField(max_length=64, null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="upload_queue_jobs",
    )
    status = models.CharField(
        max_length=32, choices=Status.choices, default=Status.QUEUED
    )
    error = models.TextField(null=True, blank=True)
    error_details = models.TextField(null=True, blank=True)
    upload_date = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)
    completed_date = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "upload_queue"
        ordering = ["-upload_date"]
        indexes = [
            models.Index(fields=["status", "upload_date"], name="upload_queue_claim_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.file_name} ({self.status})"
