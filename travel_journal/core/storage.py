"""Image storage backends.

Uploaded images live either in a local directory, served by the app under
/uploads, or in an S3 bucket. Both backends address files by their bare
filename; callers pass URLs through `filename_from_url` first.
"""
import logging
import time
import uuid
from functools import lru_cache
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse

import boto3
from botocore.exceptions import ClientError

from travel_journal.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


def filename_from_url(image_url: str) -> str:
    """Reduce an image URL (or bare name) to its last path segment."""
    path = urlparse(image_url).path or image_url
    return PurePosixPath(path.replace("\\", "/")).name


def generate_filename(original_name: str | None) -> str:
    suffix = PurePosixPath(original_name or "").suffix.lower()
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}{suffix}"


class LocalImageStore:
    def __init__(self, directory: str | Path, base_url: str):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.base_url = base_url.rstrip("/")

    def url_for(self, filename: str) -> str:
        return f"{self.base_url}/uploads/{filename}"

    def save(self, filename: str, content: bytes, content_type: str | None = None) -> str:
        (self.directory / filename).write_bytes(content)
        return self.url_for(filename)

    def exists(self, filename: str) -> bool:
        return bool(filename) and (self.directory / filename).is_file()

    def delete(self, filename: str) -> bool:
        """Remove a stored image; False when there was nothing to remove."""
        if not self.exists(filename):
            return False
        (self.directory / filename).unlink()
        return True


class S3ImageStore:
    def __init__(self, client, bucket: str, region: str):
        self.client = client
        self.bucket = bucket
        self.region = region

    def url_for(self, filename: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{filename}"

    def save(self, filename: str, content: bytes, content_type: str | None = None) -> str:
        self.client.put_object(
            Bucket=self.bucket,
            Key=filename,
            Body=content,
            ContentType=content_type or "application/octet-stream",
        )
        return self.url_for(filename)

    def exists(self, filename: str) -> bool:
        if not filename:
            return False
        try:
            self.client.head_object(Bucket=self.bucket, Key=filename)
        except ClientError:
            return False
        return True

    def delete(self, filename: str) -> bool:
        if not self.exists(filename):
            return False
        self.client.delete_object(Bucket=self.bucket, Key=filename)
        return True


def build_image_store(settings: Settings):
    if settings.storage_backend == "s3":
        s3 = boto3.client(
            "s3",
            aws_access_key_id=settings.aws_access_key_id or None,
            aws_secret_access_key=settings.aws_secret_access_key or None,
            region_name=settings.aws_region,
        )
        logger.info("Storing images in S3 bucket %s", settings.aws_s3_bucket_name)
        return S3ImageStore(s3, settings.aws_s3_bucket_name, settings.aws_region)
    return LocalImageStore(settings.upload_dir, settings.public_base_url)


@lru_cache
def get_image_store():
    return build_image_store(get_settings())
