"""Attachment Storage Port - Domain interface for paper PDF blobs.

This port defines the contract for storing and retrieving attachment blobs.
Adapters implement it for the local filesystem or S3-compatible storage.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class StoredAttachment:
    """Metadata for a blob written to attachment storage.

    Attributes:
        storage_key: Relative, location-independent key
                     (format: {year}/{month}/{uuid}-{filename})
        sha256: SHA256 hash of the content (hex format)
        size_bytes: Content size in bytes
        mime_type: MIME type of the blob (always 'application/pdf' today)
        filename: Sanitised original filename
    """
    storage_key: str
    sha256: str
    size_bytes: int
    mime_type: str
    filename: str


class AttachmentStoragePort(ABC):
    """Port interface for attachment blob storage.

    Key Design Principles:
    - Keys are relative; no adapter ever returns an absolute host path
    - store() returns only after the blob is durably written
    - delete() is idempotent (missing blob returns False)

    Example Usage:
        storage = LocalFileStorageAdapter(root_dir="uploads/papers")
        stored = storage.store(content=pdf_bytes, filename="exam.pdf")
        url = storage.public_url(stored.storage_key)
    """

    @abstractmethod
    def store(self, content: bytes, filename: str, mime_type: str = "application/pdf") -> StoredAttachment:
        """Durably write a new blob under a freshly generated key.

        Raises:
            StorageError: If the write fails
            ValueError: If content is empty
        """

    @abstractmethod
    def retrieve(self, storage_key: str) -> bytes:
        """Read a blob back.

        Raises:
            FileNotFoundError: If no blob exists under the key
            StorageError: If the read fails
        """

    @abstractmethod
    def delete(self, storage_key: str) -> bool:
        """Delete a blob.

        Returns:
            bool: True if deleted, False if it didn't exist

        Raises:
            StorageError: If deletion fails
        """

    @abstractmethod
    def exists(self, storage_key: str) -> bool:
        """Check whether a blob exists under the key."""

    @abstractmethod
    def public_url(self, storage_key: str) -> str:
        """Servable URL for the blob that never leaks a host filesystem path."""
