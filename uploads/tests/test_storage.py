import io
import threading
from unittest import mock

import boto3
from botocore.exceptions import ClientError
from botocore.response import StreamingBody
from botocore.stub import Stubber
from django.test import SimpleTestCase, override_settings

from uploads import storage

BUCKET = "resumes"


def _s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="test",
        aws_secret_access_key="test",
        endpoint_url="http://minio.test:9000",
    )


@override_settings(MINIO_BUCKET_NAME=BUCKET, MINIO_REGION="us-east-1")
class StorageStubTests(SimpleTestCase):
    def setUp(self):
        self.client = _s3_client()
        self.stubber = Stubber(self.client)
        self.stubber.activate()
        self.addCleanup(self.stubber.deactivate)
        patcher = mock.patch("uploads.storage.get_storage_client", return_value=self.client)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_missing_bucket_is_created(self):
        for code in ("404", "NoSuchBucket", "NotFound"):
            with self.subTest(code=code):
                self.stubber.add_client_error(
                    "head_bucket",
                    service_error_code=code,
                    http_status_code=404,
                    expected_params={"Bucket": BUCKET},
                )
                self.stubber.add_response("create_bucket", {}, {"Bucket": BUCKET})

                storage.ensure_bucket_exists()

                self.stubber.assert_no_pending_responses()

    def test_existing_bucket_is_left_alone(self):
        self.stubber.add_response("head_bucket", {}, {"Bucket": BUCKET})

        storage.ensure_bucket_exists()

        self.stubber.assert_no_pending_responses()

    def test_other_head_bucket_errors_propagate(self):
        self.stubber.add_client_error(
            "head_bucket",
            service_error_code="403",
            http_status_code=403,
            expected_params={"Bucket": BUCKET},
        )

        with self.assertRaises(ClientError) as ctx:
            storage.ensure_bucket_exists()

        self.assertEqual(ctx.exception.response["Error"]["Code"], "403")
        self.stubber.assert_no_pending_responses()

    @override_settings(MINIO_REGION="eu-west-1")
    def test_bucket_outside_us_east_1_gets_location_constraint(self):
        self.stubber.add_client_error("head_bucket", service_error_code="NoSuchBucket", http_status_code=404)
        self.stubber.add_response(
            "create_bucket",
            {},
            {"Bucket": BUCKET, "CreateBucketConfiguration": {"LocationConstraint": "eu-west-1"}},
        )

        storage.ensure_bucket_exists()

        self.stubber.assert_no_pending_responses()

    def test_put_object_sends_key_body_and_content_type(self):
        self.stubber.add_response(
            "put_object",
            {},
            {
                "Bucket": BUCKET,
                "Key": "uploads/abc.pdf",
                "Body": b"%PDF-1.4",
                "ContentType": "application/pdf",
            },
        )

        key = storage.put_object_bytes("uploads/abc.pdf", b"%PDF-1.4")

        self.assertEqual(key, "uploads/abc.pdf")
        self.stubber.assert_no_pending_responses()

    def test_get_object_returns_body_bytes(self):
        data = b"resume contents"
        self.stubber.add_response(
            "get_object",
            {"Body": StreamingBody(io.BytesIO(data), len(data))},
            {"Bucket": BUCKET, "Key": "uploads/abc.pdf"},
        )

        self.assertEqual(storage.get_object_bytes("uploads/abc.pdf"), data)

    def test_missing_object_propagates(self):
        self.stubber.add_client_error(
            "get_object",
            service_error_code="NoSuchKey",
            http_status_code=404,
            expected_params={"Bucket": BUCKET, "Key": "uploads/gone.pdf"},
        )

        with self.assertRaises(ClientError) as ctx:
            storage.get_object_bytes("uploads/gone.pdf")

        self.assertEqual(ctx.exception.response["Error"]["Code"], "NoSuchKey")


@override_settings(MINIO_BUCKET_NAME=BUCKET)
class GetObjectBodyTests(SimpleTestCase):
    def test_body_is_closed_when_read_fails(self):
        body = mock.Mock()
        body.read.side_effect = IOError("connection reset")
        client = mock.Mock()
        client.get_object.return_value = {"Body": body}

        with mock.patch("uploads.storage.get_storage_client", return_value=client):
            with self.assertRaises(IOError):
                storage.get_object_bytes("uploads/abc.pdf")

        body.close.assert_called_once_with()

    def test_body_is_closed_after_read(self):
        body = mock.Mock()
        body.read.return_value = b"data"
        client = mock.Mock()
        client.get_object.return_value = {"Body": body}

        with mock.patch("uploads.storage.get_storage_client", return_value=client):
            self.assertEqual(storage.get_object_bytes("uploads/abc.pdf"), b"data")

        body.close.assert_called_once_with()


class StorageClientTests(SimpleTestCase):
    def setUp(self):
        previous = storage._client
        storage._client = None

        def restore():
            storage._client = previous

        self.addCleanup(restore)

    @override_settings(MINIO_ENDPOINT="minio", MINIO_PORT=9000, MINIO_USE_SSL=False)
    def test_client_is_built_once_under_concurrent_first_use(self):
        callers = 8
        barrier = threading.Barrier(callers)
        results = []
        results_lock = threading.Lock()

        def worker():
            barrier.wait()
            client = storage.get_storage_client()
            with results_lock:
                results.append(client)

        with mock.patch("uploads.storage.boto3.session.Session") as session_cls:
            threads = [threading.Thread(target=worker) for _ in range(callers)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        session_cls.assert_called_once_with()
        session_cls.return_value.client.assert_called_once()
        args, kwargs = session_cls.return_value.client.call_args
        self.assertEqual(args, ("s3",))
        self.assertEqual(kwargs["endpoint_url"], "http://minio:9000")
        self.assertEqual(len(results), callers)
        self.assertTrue(all(client is session_cls.return_value.client.return_value for client in results))
