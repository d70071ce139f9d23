from channels.generic.websocket import AsyncJsonWebsocketConsumer

from .notifications import QUEUE_GROUP_NAME


class UploadQueueConsumer(AsyncJsonWebsocketConsumer):
    async def connect(self):
        self.group_name = QUEUE_GROUP_NAME
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive_json(self, content, **kwargs):
        # Queue updates are server -> client only.
        pass

    async def queue_updated(self, event):
        await self.send_json(event.get("payload", {"type": "queue_updated"}))
