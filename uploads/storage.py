import logging
import mimetypes
import threading
import uuid
from pathlib import PurePosixPath
from typing import Optional

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError
from django.conf import settings

logger = logging.getLogger(__name__)

UPLOAD_PREFIX = "uploads"

_client = None
_client_lock = threading.Lock()


def get_storage_client():
    """Return a shared S3 client pointed at the configured MinIO endpoint."""
    global _client
    if _client is not None:
        return _client
    with _client_lock:
        if _client is None:
            scheme = "https" if settings.MINIO_USE_SSL else "http"
            session = boto3.session.Session()
            _client = session.client(
                "s3",
                endpoint_url=f"{scheme}://{settings.MINIO_ENDPOINT}:{settings.MINIO_PORT}",
                aws_access_key_id=settings.MINIO_ACCESS_KEY,
                aws_secret_access_key=settings.MINIO_SECRET_KEY,
                region_name=settings.MINIO_REGION,
                config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
            )
    return _client


def get_bucket() -> str:
    return settings.MINIO_BUCKET_NAME


def build_object_key(filename: str) -> str:
    """``uploads/<uuid>.<ext>``; the original name is kept on the queue job."""
    extension = PurePosixPath(filename or "").suffix.lower()
    return f"{UPLOAD_PREFIX}/{uuid.uuid4()}{extension}"


def guess_content_type(filename: str, fallback: str = "application/octet-stream") -> str:
    ctype, _ = mimetypes.guess_type(filename)
    return ctype or fallback


def ensure_bucket_exists(bucket: Optional[str] = None) -> None:
    bucket = bucket or get_bucket()
    client = get_storage_client()
    try:
        client.head_bucket(Bucket=bucket)
        return
    except ClientError as exc:
        code = str(exc.response.get("Error", {}).get("Code", ""))
        if code not in {"404", "NoSuchBucket", "NotFound"}:
            raise

    region = settings.MINIO_REGION
    if region and region != "us-east-1":
        client.create_bucket(
            Bucket=bucket,
            CreateBucketConfiguration={"LocationConstraint": region},
        )
    else:
        client.create_bucket(Bucket=bucket)
    logger.info("Created storage bucket %s", bucket)


def put_object_bytes(key: str, data: bytes, content_type: Optional[str] = None) -> str:
    get_storage_client().put_object(
        Bucket=get_bucket(),
        Key=key,
        Body=data,
        ContentType=content_type or guess_content_type(key),
    )
    return key


def get_object_bytes(key: str) -> bytes:
    """Read a whole object. Missing keys and connection errors propagate."""
    response = get_storage_client().get_object(Bucket=get_bucket(), Key=key)
    body = response["Body"]
    try:
        return body.read()
    finally:
        body.close()
