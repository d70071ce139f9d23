from unittest import mock

from django.test import TestCase

from uploads.models import UploadQueueJob
from uploads.tasks import process_upload_queue_task

from .factories import make_job


@mock.patch("uploads.processor.publish_queue_updated")
@mock.patch("uploads.processor.forward_file")
@mock.patch("uploads.processor.storage.get_object_bytes")
class ProcessUploadQueueTaskTests(TestCase):
    def test_reports_empty_queue(self, get_object_bytes, forward_file, publish):
        self.assertEqual(process_upload_queue_task.apply().get(), {"message": "No queued jobs"})

    def test_processes_one_job(self, get_object_bytes, forward_file, publish):
        job = make_job()
        get_object_bytes.return_value = b"data"
        forward_file.return_value = mock.Mock(status_code=200, text="")

        result = process_upload_queue_task.apply().get()

        self.assertEqual(result, {"job_id": str(job.pk), "status": "success", "webhook_status": 200})
        job.refresh_from_db()
        self.assertEqual(job.status, UploadQueueJob.Status.SUCCESS)
