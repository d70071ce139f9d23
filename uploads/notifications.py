import json
import logging
from typing import Dict

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings

from .utils.redis_client import get_redis_client

logger = logging.getLogger(__name__)

QUEUE_GROUP_NAME = "upload_queue"
QUEUE_UPDATED = "queue_updated"


def _publish_to_channel_layer(message: Dict[str, str]) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    # The consumer handler for "queue.updated" is ``queue_updated``.
    async_to_sync(channel_layer.group_send)(
        QUEUE_GROUP_NAME,
        {"type": "queue.updated", "payload": message},
    )


def _publish_to_redis(message: Dict[str, str]) -> None:
    channel = getattr(settings, "UPLOAD_QUEUE_REDIS_CHANNEL", "")
    if not channel:
        return
    get_redis_client().publish(channel, json.dumps(message))


def publish_queue_updated() -> None:
    """Tell live observers that the upload queue changed.

    Fire-and-forget: a missing or failing transport is logged and ignored.
    """
    message = {"type": QUEUE_UPDATED}
    for publisher in (_publish_to_channel_layer, _publish_to_redis):
        try:
            publisher(message)
        except Exception:
            logger.exception("Failed to publish %s via %s", QUEUE_UPDATED, publisher.__name__)
