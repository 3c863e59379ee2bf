"""Attachment storage adapters (local filesystem, S3-compatible)."""

from .local_storage_adapter import LocalFileStorageAdapter
from .s3_storage_adapter import S3StorageAdapter
from .storage_config import StorageConfig, load_storage_config, create_attachment_storage
from .storage_keys import generate_storage_key, normalize_storage_key, sanitize_filename

__all__ = [
    "LocalFileStorageAdapter",
    "S3StorageAdapter",
    "StorageConfig",
    "load_storage_config",
    "create_attachment_storage",
    "generate_storage_key",
    "normalize_storage_key",
    "sanitize_filename",
]
