"""Attachment storage on S3 or any S3-compatible service (MinIO, Ceph).

Every upload gets a fresh key, so replacing a paper's PDF never overwrites
the blob an older row might still reference. Download links are presigned
GET URLs with a bounded lifetime.
"""

import hashlib
import logging
from io import BytesIO
from typing import Any, Callable, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from ...domain.papers.errors import StorageError
from ...domain.papers.ports.attachment_storage_port import (
    AttachmentStoragePort,
    StoredAttachment,
)
from .storage_keys import generate_storage_key, normalize_storage_key, sanitize_filename

logger = logging.getLogger(__name__)

_MISSING_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "Unknown")


class S3StorageAdapter(AttachmentStoragePort):
    """Paper PDFs as objects in a single bucket.

    The object metadata records the SHA256 and the sanitised upload name.

    Example:
        storage = S3StorageAdapter(
            endpoint_url="http://localhost:9000",
            access_key="minioadmin",
            secret_key="minioadmin",
            bucket_name="paperflow-attachments",
        )
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
        presigned_url_ttl: int = 3600,
    ):
        """
        Args:
            endpoint_url: None for AWS itself, the service URL otherwise
            presigned_url_ttl: Lifetime of download URLs in seconds

        Raises:
            StorageError: If the client cannot be built
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except NoCredentialsError as e:
            raise StorageError(f"S3 credentials rejected: {e}")
        except (BotoCoreError, ValueError) as e:
            raise StorageError(f"Could not create S3 client: {e}")

        self.bucket_name = bucket_name
        self.presigned_url_ttl = presigned_url_ttl
        logger.info(f"Attachment bucket '{bucket_name}' at {endpoint_url or 'AWS'} ({region})")

    def _object_key(self, storage_key: str) -> str:
        try:
            return normalize_storage_key(storage_key)
        except ValueError as e:
            raise StorageError(f"Invalid storage key: {e}")

    def _call(self, operation: str, fn: Callable[..., Any], **params) -> Any:
        """Run one S3 request; ClientError propagates, transport errors become StorageError."""
        try:
            return fn(Bucket=self.bucket_name, **params)
        except BotoCoreError as e:
            logger.error(f"S3 {operation} failed in transport: {e}")
            raise StorageError(f"S3 {operation} failed: {e}")

    def store(self, content: bytes, filename: str, mime_type: str = "application/pdf") -> StoredAttachment:
        if not content:
            raise ValueError("Cannot store empty file")

        safe_name = sanitize_filename(filename)
        key = generate_storage_key(safe_name)
        digest = hashlib.sha256(content).hexdigest()

        try:
            self._call(
                "upload",
                self.s3_client.put_object,
                Key=key,
                Body=BytesIO(content),
                ContentType=mime_type,
                Metadata={"sha256": digest, "original_filename": safe_name},
            )
        except ClientError as e:
            logger.error(f"Attachment upload rejected by S3: {_error_code(e)}", extra={"storage_key": key})
            raise StorageError(f"S3 upload failed: {_error_code(e)}")

        logger.info(f"Stored attachment ({len(content)} bytes)", extra={"storage_key": key})
        return StoredAttachment(
            storage_key=key,
            sha256=digest,
            size_bytes=len(content),
            mime_type=mime_type,
            filename=safe_name,
        )

    def retrieve(self, storage_key: str) -> bytes:
        key = self._object_key(storage_key)
        try:
            response = self._call("download", self.s3_client.get_object, Key=key)
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                raise FileNotFoundError(f"No attachment stored under {key}")
            raise StorageError(f"S3 download failed: {_error_code(e)}")
        return response["Body"].read()

    def delete(self, storage_key: str) -> bool:
        key = self._object_key(storage_key)
        if not self.exists(key):
            return False
        try:
            self._call("delete", self.s3_client.delete_object, Key=key)
        except ClientError as e:
            raise StorageError(f"S3 delete failed: {_error_code(e)}")
        logger.info("Deleted attachment", extra={"storage_key": key})
        return True

    def exists(self, storage_key: str) -> bool:
        try:
            key = self._object_key(storage_key)
        except StorageError:
            return False
        try:
            self._call("head", self.s3_client.head_object, Key=key)
        except ClientError as e:
            if _error_code(e) not in _MISSING_CODES:
                raise StorageError(f"S3 head failed: {_error_code(e)}")
            return False
        return True

    def public_url(self, storage_key: str) -> str:
        key = self._object_key(storage_key)
        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": key},
                ExpiresIn=self.presigned_url_ttl,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Could not presign download URL: {e}")

    def verify_bucket_exists(self) -> bool:
        """Fail fast at startup when the bucket is missing or unreachable."""
        try:
            self._call("head bucket", self.s3_client.head_bucket)
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                raise StorageError(f"Bucket '{self.bucket_name}' does not exist")
            raise StorageError(f"Bucket check failed: {_error_code(e)}")
        return True
