import logging
import traceback
from dataclasses import dataclass
from typing import Optional

from automation.client import forward_file

from . import storage
from .models import UploadQueueJob
from .notifications import publish_queue_updated
from .queue import claim_next_job, complete_job, record_failure

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    job: UploadQueueJob
    webhook_status: Optional[int] = None


def process_claimed_job(job: UploadQueueJob) -> ProcessResult:
    """Forward one claimed job's file to the automation webhook.

    Storage and transport errors propagate to the caller; a non-2xx answer
    from the webhook is recorded on the job as an ``error`` outcome.
    """
    if not (job.file_path or "").strip():
        message = f"Invalid file_path {job.file_path!r}: job has no stored file to process"
        logger.warning("Upload queue job %s rejected: %s", job.pk, message)
        complete_job(job, UploadQueueJob.Status.ERROR, error=message)
        publish_queue_updated()
        return ProcessResult(job=job)

    content = storage.get_object_bytes(job.file_path)
    response = forward_file(job.file_name, content)

    if 200 <= response.status_code < 300:
        complete_job(job, UploadQueueJob.Status.SUCCESS)
    else:
        complete_job(
            job,
            UploadQueueJob.Status.ERROR,
            error=f"Automation webhook responded with status {response.status_code}",
            error_details=response.text,
        )

    publish_queue_updated()
    return ProcessResult(job=job, webhook_status=response.status_code)


def process_job_safely(job: UploadQueueJob) -> ProcessResult:
    """Run :func:`process_claimed_job`, recording unexpected errors on the job.

    The exception is re-raised after the ``error`` status is written.
    """
    try:
        return process_claimed_job(job)
    except Exception as exc:
        logger.exception("Processing upload queue job %s failed", job.pk)
        record_failure(job, exc, traceback.format_exc())
        publish_queue_updated()
        raise


def process_next_job() -> Optional[ProcessResult]:
    """Claim the oldest queued job and process it.

    Returns None when nothing was claimable.
    """
    job = claim_next_job()
    if job is None:
        publish_queue_updated()
        return None
    return process_job_safely(job)
