import logging
from typing import Any, Dict

from celery import shared_task

from .processor import process_next_job

logger = logging.getLogger(__name__)


@shared_task(bind=True, name="uploads.process_upload_queue_task")
def process_upload_queue_task(self) -> Dict[str, Any]:
    """Run one claim-and-process cycle inside a Celery worker."""
    result = process_next_job()
    if result is None:
        logger.debug("process_upload_queue_task: no queued jobs")
        return {"message": "No queued jobs"}

    logger.info(
        "process_upload_queue_task processed job=%s status=%s webhook_status=%s",
        result.job.pk,
        result.job.status,
        result.webhook_status,
    )
    return {
        "job_id": str(result.job.pk),
        "status": result.job.status,
        "webhook_status": result.webhook_status,
    }
