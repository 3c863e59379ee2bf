"""Storage ports for the paper domain."""

from .attachment_storage_port import AttachmentStoragePort, StoredAttachment

__all__ = ["AttachmentStoragePort", "StoredAttachment"]
