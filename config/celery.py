import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

from django.conf import settings  # noqa: E402

app = Celery("config")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.conf.update(
    broker_url=settings.CELERY_BROKER_URL,
    result_backend=settings.CELERY_RESULT_BACKEND,
    task_track_started=getattr(settings, "CELERY_TASK_TRACK_STARTED", True),
    result_extended=getattr(settings, "CELERY_RESULT_EXTENDED", True),
)

if getattr(settings, "UPLOAD_QUEUE_BEAT_ENABLED", False):
    try:
        interval_ms = int(settings.PROCESSOR_INTERVAL_MS)
    except (TypeError, ValueError):
        interval_ms = 5000
    app.conf.beat_schedule = {
        "process-upload-queue": {
            "task": "uploads.process_upload_queue_task",
            "schedule": max(interval_ms, 1) / 1000.0,
        },
    }

app.autodiscover_tasks()
