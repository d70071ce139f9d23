import logging
import traceback
from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from rest_framework import exceptions, mixins, permissions, status, viewsets
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from . import storage
from .audit import describe_user, log_audit
from .authentication import ProcessorAPIKeyAuthentication
from .filters import UploadQueueJobFilterSet
from .models import UploadQueueJob
from .notifications import publish_queue_updated
from .pagination import UploadQueuePagination
from .processor import ProcessResult, process_job_safely, process_next_job
from .serializers import UploadQueueJobSerializer, UploadQueueJobUpdateSerializer

logger = logging.getLogger(__name__)

NO_QUEUED_JOBS = "No queued jobs"


def _first_error(errors: Any) -> str:
    if isinstance(errors, dict):
        for value in errors.values():
            return _first_error(value)
    if isinstance(errors, (list, tuple)) and errors:
        return _first_error(errors[0])
    return str(errors)


def _result_payload(result: ProcessResult) -> Dict[str, Any]:
    return {
        "job": UploadQueueJobSerializer(result.job).data,
        "webhook_status": result.webhook_status,
    }


def _acting_user(request):
    user = getattr(request, "user", None)
    return user if user is not None and user.is_authenticated else None


class UploadQueueViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    queryset = UploadQueueJob.objects.all().order_by("-upload_date")
    serializer_class = UploadQueueJobSerializer
    pagination_class = UploadQueuePagination
    filterset_class = UploadQueueJobFilterSet

    def get_serializer_class(self):
        if self.action == "partial_update":
            return UploadQueueJobUpdateSerializer
        return UploadQueueJobSerializer

    def list(self, request, *args, **kwargs):
        response = super().list(request, *args, **kwargs)
        log_audit(
            "AUDIT",
            f"Upload queue accessed by {describe_user(request.user)}. "
            f"Retrieved {len(response.data.get('data', []))} items.",
            "API:UploadQueue:Get",
            _acting_user(request),
            {"total": response.data.get("total")},
        )
        return response

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            if "file_path" in serializer.errors:
                log_audit(
                    "WARN",
                    f"Upload queue entry attempted without file_path by {describe_user(request.user)}",
                    "API:UploadQueue:Post",
                    _acting_user(request),
                )
            return Response(
                {"error": _first_error(serializer.errors), "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )

        extra: Dict[str, Any] = {}
        if "created_by" not in serializer.validated_data:
            extra["created_by"] = _acting_user(request)
        job = serializer.save(**extra)

        log_audit(
            "AUDIT",
            f"File '{job.file_name}' added to upload queue by {describe_user(request.user)}",
            "API:UploadQueue:Post",
            _acting_user(request),
            {
                "queueId": str(job.pk),
                "fileName": job.file_name,
                "fileSize": job.file_size,
                "status": job.status,
                "source": job.source,
                "uploadId": job.upload_id,
                "filePath": job.file_path,
            },
        )
        publish_queue_updated()
        return Response(UploadQueueJobSerializer(job).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        if not request.data:
            return Response({"error": "No fields to update"}, status=status.HTTP_400_BAD_REQUEST)

        job = self.get_object()
        serializer = self.get_serializer(job, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(
                {"error": _first_error(serializer.errors), "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )
        job = serializer.save()

        log_audit(
            "AUDIT",
            f"Upload queue job {job.pk} updated by {describe_user(request.user)}",
            "API:UploadQueue:Patch",
            _acting_user(request),
            {"fields": sorted(request.data.keys())},
        )
        publish_queue_updated()
        return Response(UploadQueueJobSerializer(job).data)

    def destroy(self, request, *args, **kwargs):
        job = self.get_object()
        job_id = str(job.pk)
        job.delete()

        log_audit(
            "AUDIT",
            f"Upload queue job {job_id} deleted by {describe_user(request.user)}",
            "API:UploadQueue:Delete",
            _acting_user(request),
        )
        publish_queue_updated()
        return Response({"success": True})


class UploadFileView(APIView):
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request, *args, **kwargs):
        uploaded_file = request.FILES.get("file")
        if not uploaded_file:
            return Response({"error": "No file uploaded"}, status=status.HTTP_400_BAD_REQUEST)

        max_size = getattr(settings, "UPLOAD_QUEUE_MAX_FILE_SIZE", 0)
        if max_size and uploaded_file.size > max_size:
            return Response(
                {"error": "Uploaded file exceeds the maximum allowed size."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        object_key = storage.build_object_key(uploaded_file.name)
        try:
            storage.ensure_bucket_exists()
            storage.put_object_bytes(
                object_key,
                uploaded_file.read(),
                content_type=uploaded_file.content_type,
            )
        except (BotoCoreError, ClientError):
            logger.exception("Failed to store %s as %s", uploaded_file.name, object_key)
            return Response(
                {"error": "Failed to upload file to storage. Please check your storage configuration."},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        log_audit(
            "AUDIT",
            f"File '{uploaded_file.name}' uploaded to storage by {describe_user(request.user)}",
            "API:UploadQueue:UploadFile",
            _acting_user(request),
            {"filePath": object_key, "fileSize": uploaded_file.size},
        )
        return Response({"file_path": object_key})


class BlockingProcessView(APIView):
    """Enqueue a file and forward it in the same request."""

    def post(self, request, *args, **kwargs):
        serializer = UploadQueueJobSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": _first_error(serializer.errors), "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )

        # Created already claimed so a concurrent poller cannot pick it up.
        job = serializer.save(
            created_by=_acting_user(request),
            status=UploadQueueJob.Status.PROCESSING,
        )
        log_audit(
            "AUDIT",
            f"File '{job.file_name}' added to upload queue (blocking) by {describe_user(request.user)}",
            "API:UploadQueue:BlockingPost",
            _acting_user(request),
            {"queueId": str(job.pk), "filePath": job.file_path},
        )

        try:
            result = process_job_safely(job)
        except Exception as exc:
            log_audit(
                "ERROR",
                f"Failed to process file '{job.file_name}' (blocking). Error: {exc}",
                "API:UploadQueue:BlockingPost",
                _acting_user(request),
            )
            return Response({"error": str(exc)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(_result_payload(result))


class ProcessUploadQueueView(APIView):
    """Claim the oldest queued job and forward it to the automation webhook."""

    authentication_classes = [ProcessorAPIKeyAuthentication]
    permission_classes = [permissions.AllowAny]

    def handle_exception(self, exc):
        response = super().handle_exception(exc)
        if isinstance(exc, (exceptions.AuthenticationFailed, exceptions.NotAuthenticated)):
            response.data = {"error": "Unauthorized"}
        return response

    def post(self, request, *args, **kwargs):
        try:
            result: Optional[ProcessResult] = process_next_job()
        except Exception as exc:
            return Response(
                {"error": str(exc), "stack": traceback.format_exc()},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        if result is None:
            return Response({"message": NO_QUEUED_JOBS})
        return Response(_result_payload(result))
