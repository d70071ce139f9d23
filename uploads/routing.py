from django.urls import path

from .consumers import UploadQueueConsumer

websocket_urlpatterns = [
    path("ws/upload-queue/", UploadQueueConsumer.as_asgi(), name="upload-queue-updates"),
]
