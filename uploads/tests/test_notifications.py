import json
from unittest import mock

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.test import SimpleTestCase, override_settings

from uploads.notifications import QUEUE_GROUP_NAME, publish_queue_updated


class PublishQueueUpdatedTests(SimpleTestCase):
    def test_message_reaches_group_members(self):
        channel_layer = get_channel_layer()
        channel_name = async_to_sync(channel_layer.new_channel)()
        async_to_sync(channel_layer.group_add)(QUEUE_GROUP_NAME, channel_name)
        try:
            publish_queue_updated()
            message = async_to_sync(channel_layer.receive)(channel_name)
        finally:
            async_to_sync(channel_layer.group_discard)(QUEUE_GROUP_NAME, channel_name)

        self.assertEqual(message["type"], "queue.updated")
        self.assertEqual(message["payload"], {"type": "queue_updated"})

    @override_settings(UPLOAD_QUEUE_REDIS_CHANNEL="candidate_upload_queue")
    def test_publishes_to_redis_channel(self):
        redis_client = mock.Mock()
        with mock.patch("uploads.notifications.get_redis_client", return_value=redis_client):
            publish_queue_updated()

        redis_client.publish.assert_called_once_with(
            "candidate_upload_queue", json.dumps({"type": "queue_updated"})
        )

    @override_settings(UPLOAD_QUEUE_REDIS_CHANNEL="candidate_upload_queue")
    def test_transport_failures_are_swallowed(self):
        with mock.patch("uploads.notifications.get_channel_layer", side_effect=RuntimeError("no layer")), \
                mock.patch("uploads.notifications.get_redis_client", side_effect=ConnectionError("no redis")):
            publish_queue_updated()

    def test_missing_channel_layer_is_a_no_op(self):
        with mock.patch("uploads.notifications.get_channel_layer", return_value=None):
            publish_queue_updated()
