import logging
from typing import Optional

from django.db import transaction
from django.utils import timezone

from .models import UploadQueueJob

logger = logging.getLogger(__name__)


def claim_next_job() -> Optional[UploadQueueJob]:
    """Atomically move the oldest queued job to ``processing`` and return it.

    The candidate row is read with ``FOR UPDATE SKIP LOCKED`` so concurrent
    callers on Postgres never wait on (or select) a row another claim holds.
    The status flip is conditional on the row still being ``queued``; on
    engines that ignore row locks a lost race simply moves on to the next row.
    """
    while True:
        with transaction.atomic():
            candidate = (
                UploadQueueJob.objects.select_for_update(skip_locked=True)
                .filter(status=UploadQueueJob.Status.QUEUED)
                .order_by("upload_date", "id")
                .first()
            )
            if candidate is None:
                return None

            now = timezone.now()
            claimed = UploadQueueJob.objects.filter(
                pk=candidate.pk, status=UploadQueueJob.Status.QUEUED
            ).update(status=UploadQueueJob.Status.PROCESSING, updated_at=now)

        if claimed:
            candidate.status = UploadQueueJob.Status.PROCESSING
            candidate.updated_at = now
            logger.info("Claimed upload queue job %s (%s)", candidate.pk, candidate.file_name)
            return candidate

        logger.debug("Upload queue job %s was claimed concurrently, retrying", candidate.pk)


def complete_job(
    job: UploadQueueJob,
    status: str,
    *,
    error: Optional[str] = None,
    error_details: Optional[str] = None,
) -> UploadQueueJob:
    """Write the terminal status of ``job`` in a single update keyed by id."""
    now = timezone.now()
    UploadQueueJob.objects.filter(pk=job.pk).update(
        status=status,
        error=error,
        error_details=error_details,
        completed_date=now,
        updated_at=now,
    )
    job.status = status
    job.error = error
    job.error_details = error_details
    job.completed_date = now
    job.updated_at = now
    logger.info("Upload queue job %s finished with status=%s", job.pk, status)
    return job


def record_failure(job: UploadQueueJob, exc: BaseException, stacktrace: str) -> bool:
    """Best-effort ``error`` write for a job whose processing raised.

    Returns False when the write itself failed, in which case the job stays
    ``processing``.
    """
    try:
        complete_job(
            job,
            UploadQueueJob.Status.ERROR,
            error=str(exc) or type(exc).__name__,
            error_details=stacktrace,
        )
    except Exception:
        logger.exception("Failed to record error status for upload queue job %s", job.pk)
        return False
    return True
