"""Storage configuration and adapter factory.

Selects the attachment storage backend from settings. Supports the local
filesystem (development, single host) and S3-compatible object storage
(MinIO in dev, AWS S3 in production) behind the same port.
"""

from dataclasses import dataclass
from typing import Optional

from ...config import Settings
from ...domain.papers.ports.attachment_storage_port import AttachmentStoragePort
from .local_storage_adapter import LocalFileStorageAdapter
from .s3_storage_adapter import S3StorageAdapter

SUPPORTED_BACKENDS = ("local", "s3")


@dataclass
class StorageConfig:
    """Configuration for attachment storage.

    Attributes:
        backend: "local" or "s3"
        upload_dir: Root directory for the local backend
        url_prefix: Public URL prefix for the local backend
        endpoint_url: S3 endpoint URL (None for AWS S3)
        access_key: S3 access key ID
        secret_key: S3 secret access key
        bucket_name: S3 bucket name
        region: AWS region
        presigned_url_ttl: Lifetime of presigned download URLs
    """
    backend: str
    upload_dir: str
    url_prefix: str
    endpoint_url: Optional[str] = None
    access_key: str = ""
    secret_key: str = ""
    bucket_name: str = ""
    region: str = "us-east-1"
    presigned_url_ttl: int = 3600


def load_storage_config(settings: Settings) -> StorageConfig:
    """Build a StorageConfig from application settings."""
    return StorageConfig(
        backend=settings.STORAGE_BACKEND.lower(),
        upload_dir=settings.UPLOAD_DIR,
        url_prefix=settings.UPLOAD_URL_PREFIX,
        endpoint_url=settings.S3_ENDPOINT_URL,
        access_key=settings.S3_ACCESS_KEY_ID,
        secret_key=settings.S3_SECRET_ACCESS_KEY,
        bucket_name=settings.S3_BUCKET_NAME,
        region=settings.S3_REGION,
        presigned_url_ttl=settings.S3_PRESIGNED_URL_TTL,
    )


def validate_storage_config(config: StorageConfig) -> None:
    """Validate storage configuration.

    Raises:
        ValueError: If configuration is invalid
    """
    if config.backend not in SUPPORTED_BACKENDS:
        raise ValueError(
            f"Unsupported STORAGE_BACKEND '{config.backend}'. "
            f"Expected one of: {', '.join(SUPPORTED_BACKENDS)}"
        )

    if config.backend == "local":
        if not config.upload_dir:
            raise ValueError("UPLOAD_DIR is required for the local storage backend")
        if not config.url_prefix.startswith("/"):
            raise ValueError(f"UPLOAD_URL_PREFIX must start with '/': {config.url_prefix}")
        return

    if not config.access_key:
        raise ValueError("Storage access_key is required")

    if not config.secret_key:
        raise ValueError("Storage secret_key is required")

    if not config.bucket_name:
        raise ValueError("Storage bucket_name is required")

    if config.endpoint_url and not config.endpoint_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid endpoint_url: {config.endpoint_url}. "
            "Must start with http:// or https://"
        )


def create_attachment_storage(config: StorageConfig) -> AttachmentStoragePort:
    """Instantiate the adapter named by the configuration."""
    validate_storage_config(config)

    if config.backend == "local":
        return LocalFileStorageAdapter(root_dir=config.upload_dir, url_prefix=config.url_prefix)

    adapter = S3StorageAdapter(
        endpoint_url=config.endpoint_url,
        access_key=config.access_key,
        secret_key=config.secret_key,
        bucket_name=config.bucket_name,
        region=config.region,
        presigned_url_ttl=config.presigned_url_ttl,
    )
    adapter.verify_bucket_exists()
    return adapter
