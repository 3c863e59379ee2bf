"""Attachment Manager - owns the PDF attached to a paper.

Replacement is store-first: the new blob is durably written, the paper is
pointed at it, the record is committed, and only then is the superseded
blob removed. If anything fails before the commit, the new blob is
discarded and the paper keeps its old attachment.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..domain.papers.errors import StorageError, ValidationError
from ..domain.papers.ports.attachment_storage_port import (
    AttachmentStoragePort,
    StoredAttachment,
)
from ..observability.metrics import record_attachment_operation

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
PDF_MAGIC = b"%PDF"

# Browsers and some clients send these for PDFs
ACCEPTED_PDF_MIME_TYPES = {
    PDF_MIME_TYPE,
    "application/x-pdf",
    "application/octet-stream",
}


@dataclass
class AttachmentUpload:
    """An uploaded file as received at the request boundary."""
    filename: str
    content: bytes
    content_type: Optional[str] = PDF_MIME_TYPE


@dataclass
class AttachmentSwap:
    """Pending replacement of a paper's attachment.

    Attributes:
        new: Blob written for the paper
        old_ref: Key of the blob it supersedes (None on first attachment)
    """
    new: StoredAttachment
    old_ref: Optional[str] = None

    @property
    def new_ref(self) -> str:
        return self.new.storage_key


def validate_filename(filename: Optional[str]) -> Tuple[bool, Optional[str]]:
    """Validate an uploaded filename.

    Example:
        >>> validate_filename('exam.pdf')
        (True, None)
        >>> validate_filename('')
        (False, 'Filename cannot be empty')
    """
    if not filename or not filename.strip():
        return False, "Filename cannot be empty"

    if len(filename) > 255:
        return False, f"Filename exceeds 255 characters (got {len(filename)})"

    if "\x00" in filename or any(ord(c) < 32 for c in filename):
        return False, "Filename contains control characters"

    if not filename.lower().endswith(".pdf"):
        return False, "Only PDF files are allowed"

    return True, None


def validate_pdf_upload(upload: Optional[AttachmentUpload], max_size_bytes: int) -> None:
    """Check an upload is a non-empty PDF within the size limit.

    Directory components in the filename are tolerated here; they are
    stripped when the storage key is generated.

    Raises:
        ValidationError: With field="pdf" on any violation
    """
    if upload is None:
        raise ValidationError("PDF attachment is required", field="pdf")

    is_valid, error = validate_filename(upload.filename)
    if not is_valid:
        raise ValidationError(error, field="pdf")

    size = len(upload.content or b"")
    if size == 0:
        raise ValidationError("File is empty (0 bytes)", field="pdf")
    if size > max_size_bytes:
        raise ValidationError(
            f"File exceeds maximum size of {max_size_bytes} bytes (got {size} bytes)",
            field="pdf",
        )

    content_type = (upload.content_type or PDF_MIME_TYPE).split(";")[0].strip().lower()
    if content_type not in ACCEPTED_PDF_MIME_TYPES:
        raise ValidationError(f"Only PDF files are allowed (got {content_type})", field="pdf")

    if not upload.content.startswith(PDF_MAGIC):
        raise ValidationError("File is not a valid PDF document", field="pdf")


class AttachmentManager:
    """Stores, swaps and purges paper attachments through the storage port."""

    def __init__(self, storage: AttachmentStoragePort, max_size_bytes: int = 20 * 1024 * 1024):
        self.storage = storage
        self.max_size_bytes = max_size_bytes

    def stage(self, upload: AttachmentUpload) -> StoredAttachment:
        """Validate and durably store an upload without touching any paper.

        Raises:
            ValidationError: Upload is not an acceptable PDF
            StorageError: The blob could not be written
        """
        validate_pdf_upload(upload, self.max_size_bytes)
        try:
            stored = self.storage.store(
                content=upload.content,
                filename=upload.filename,
                mime_type=PDF_MIME_TYPE,
            )
        except StorageError:
            record_attachment_operation("store", "error")
            raise
        except ValueError as e:
            raise ValidationError(str(e), field="pdf")

        record_attachment_operation("store", "success")
        return stored

    def apply(self, paper, stored: StoredAttachment) -> AttachmentSwap:
        """Point the paper at an already stored blob (not committed)."""
        old_ref = paper.attachment_ref
        paper.attachment_ref = stored.storage_key
        paper.attachment_filename = stored.filename
        paper.attachment_size_bytes = stored.size_bytes
        paper.attachment_sha256 = stored.sha256
        return AttachmentSwap(new=stored, old_ref=old_ref if old_ref != stored.storage_key else None)

    def set_attachment(self, paper, upload: AttachmentUpload) -> AttachmentSwap:
        """Store the upload and point the paper at it.

        The caller commits, then calls finalize() with the returned swap,
        or discard() if the commit does not happen.
        """
        stored = self.stage(upload)
        return self.apply(paper, stored)

    def finalize(self, swap: Optional[AttachmentSwap]) -> None:
        """Delete the superseded blob after the new reference is committed.

        A failed delete leaves an orphan blob but never fails the request.
        """
        if swap is None or not swap.old_ref:
            return
        self._delete_quietly(swap.old_ref, reason="superseded")

    def discard(self, stored: Optional[StoredAttachment]) -> None:
        """Remove a blob whose paper update was never committed."""
        if stored is None:
            return
        self._delete_quietly(stored.storage_key, reason="uncommitted")

    def purge(self, attachment_ref: Optional[str]) -> None:
        """Remove the blob of a deleted paper."""
        if not attachment_ref:
            return
        self._delete_quietly(attachment_ref, reason="paper deleted")

    def public_url(self, attachment_ref: Optional[str]) -> Optional[str]:
        """Servable URL for a reference, or None if it cannot be resolved."""
        if not attachment_ref:
            return None
        try:
            return self.storage.public_url(attachment_ref)
        except StorageError as e:
            logger.warning(
                f"Cannot build attachment URL: {e}",
                extra={"storage_key": attachment_ref},
            )
            return None

    def _delete_quietly(self, storage_key: str, reason: str) -> None:
        try:
            self.storage.delete(storage_key)
        except StorageError as e:
            record_attachment_operation("delete", "error")
            logger.warning(
                f"Orphaned attachment blob ({reason}): {e}",
                extra={"storage_key": storage_key},
            )
            return
        record_attachment_operation("delete", "success")
