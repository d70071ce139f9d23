from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import BlockingProcessView, ProcessUploadQueueView, UploadFileView, UploadQueueViewSet

router = DefaultRouter()
router.register(r"upload-queue", UploadQueueViewSet, basename="upload-queue")

urlpatterns = [
    path("upload-queue/process/", ProcessUploadQueueView.as_view(), name="upload-queue-process"),
    path("upload-queue/upload-file/", UploadFileView.as_view(), name="upload-queue-upload-file"),
    path(
        "upload-queue/blocking-process/",
        BlockingProcessView.as_view(),
        name="upload-queue-blocking-process",
    ),
] + router.urls
