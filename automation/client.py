import logging
import time
from typing import Optional

import requests
from django.conf import settings

from .models import SystemSetting

logger = logging.getLogger(__name__)

DEFAULT_WEBHOOK_URL = "http://localhost:5678/webhook"


def resolve_webhook_url() -> str:
    """Return the automation webhook URL.

    A ``resumeProcessingWebhookUrl`` system setting wins over the
    ``UPLOAD_QUEUE_WEBHOOK_URL`` setting (``N8N_WEBHOOK_URL`` in the
    environment), which wins over the local default.
    """
    configured = (SystemSetting.get_value(SystemSetting.KEY_RESUME_PROCESSING_WEBHOOK_URL) or "").strip()
    if configured:
        return configured
    return getattr(settings, "UPLOAD_QUEUE_WEBHOOK_URL", "") or DEFAULT_WEBHOOK_URL


def forward_file(
    file_name: str,
    content: bytes,
    *,
    url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> requests.Response:
    """POST ``content`` as multipart form data under the ``file`` field.

    Transport errors are not caught here; the caller decides how they are
    recorded.
    """
    target = url or resolve_webhook_url()
    if timeout is None:
        timeout = getattr(settings, "UPLOAD_QUEUE_WEBHOOK_TIMEOUT", None)

    start = time.perf_counter()
    response = requests.post(
        target,
        files={"file": (file_name, content)},
        timeout=timeout,
    )
    duration_ms = int((time.perf_counter() - start) * 1000)
    logger.info(
        "Forwarded %s (%s bytes) to %s: HTTP %s in %sms",
        file_name,
        len(content),
        target,
        response.status_code,
        duration_ms,
    )
    return response
